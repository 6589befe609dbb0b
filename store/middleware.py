# store/middleware.py
from urllib.parse import urlencode

from django.conf import settings
from django.http import HttpResponseRedirect
from django.utils.deprecation import MiddlewareMixin

from .store_utils import json_error

# Paths that need a signed-in shopper
PROTECTED_PREFIXES = (
    '/account/',
    '/cart/',
    '/checkout/',
    '/api/account/',
    '/api/cart/',
    '/api/checkout/',
    '/api/orders/',
    '/api/user/',
    '/api/stripe/',
    '/api/imagine/save/',
)
ADMIN_PREFIX = '/api/admin/'


class ProtectedRoutesMiddleware(MiddlewareMixin):
    """
    Gate shopper and back-office routes on the session user.
    API callers get a JSON error, browsers are sent to the login page.
    """
    def process_request(self, request):
        path = request.path
        user = request.user

        if path.startswith(ADMIN_PREFIX):
            if not user.is_authenticated:
                return json_error('Authentication required', status=401)
            if not user.is_staff:
                return json_error('Admin access required', status=403)
            return None

        if not path.startswith(PROTECTED_PREFIXES) or user.is_authenticated:
            return None

        if path.startswith('/api/'):
            return json_error('Authentication required', status=401)
        return HttpResponseRedirect(f"{settings.LOGIN_URL}?{urlencode({'next': request.get_full_path()})}")
