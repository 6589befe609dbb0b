"""
Back-office JSON endpoints under /api/admin/.

Access is limited to staff users by ``ProtectedRoutesMiddleware``.
"""
import logging

from botocore.exceptions import BotoCoreError, ClientError
from django.http import JsonResponse
from django.views.decorators.http import require_GET, require_http_methods, require_POST

from . import identity, orders, ranking
from .models import Order, Wallpaper
from .store_utils import json_error, parse_json_body

logger = logging.getLogger(__name__)

USER_OPERATIONS = ('getUser', 'updateRole', 'updateAttributes', 'resetPassword')
DEVICE_OPERATIONS = ('getDevice', 'forgetDevice', 'updateDeviceStatus')


def _directory_error(message, error):
    logger.error("%s: %s", message, error)
    return JsonResponse({'error': message, 'details': str(error)}, status=500)


# -------------------------------
# Catalog order
# -------------------------------
@require_GET
def wallpaper_rankings(request):
    status = request.GET.get('status', 'active')
    entries = ranking.ranked_wallpapers(Wallpaper.objects.filter(status=status))
    return JsonResponse({'wallpapers': [w.to_dict(ranking=rank) for w, rank in entries]})


@require_POST
def update_wallpaper_ranking(request, pk):
    try:
        data = parse_json_body(request)
        wallpaper = ranking.move_wallpaper(pk, data.get('ranking'))
    except ValueError as e:
        # InvalidRanking is a ValueError
        return json_error(str(e))
    except Wallpaper.DoesNotExist:
        return json_error('Wallpaper not found', status=404)
    return JsonResponse({'success': True, 'wallpaper': wallpaper.to_dict()})


# -------------------------------
# Orders
# -------------------------------
@require_GET
def order_list(request):
    found = orders.list_orders(
        user_id=request.GET.get('userId') or None,
        wallpaper_id=request.GET.get('wallpaperId') or None,
        status=request.GET.get('status') or None,
    )
    return JsonResponse({'orders': [o.to_dict() for o in found]})


@require_POST
def update_order_status(request, pk):
    try:
        data = parse_json_body(request)
    except ValueError as e:
        return json_error(str(e))
    if not data.get('status'):
        return json_error('Missing status')
    try:
        order = orders.update_order_status(pk, data['status'], data.get('paymentStatus') or None)
    except ValueError as e:
        return json_error(str(e))
    except Order.DoesNotExist:
        return json_error('Order not found', status=404)
    return JsonResponse({'success': True, 'order': order.to_dict()})


@require_POST
def update_multiple_order_status(request):
    try:
        data = parse_json_body(request)
    except ValueError as e:
        return json_error(str(e))
    order_ids = data.get('orderIds')
    if not isinstance(order_ids, list) or not order_ids or not data.get('status'):
        return json_error('orderIds and status are required')
    try:
        result = orders.update_multiple_order_status(order_ids, data['status'])
    except ValueError as e:
        return json_error(str(e))
    return JsonResponse(result)


# -------------------------------
# Analytics
# -------------------------------
@require_GET
def dashboard_stats(request):
    return JsonResponse(orders.dashboard_stats())


@require_GET
def monthly_revenue(request):
    return JsonResponse({'revenue': orders.monthly_revenue()})


# -------------------------------
# User directory
# -------------------------------
@require_http_methods(['GET', 'POST'])
def users(request):
    if request.method == 'GET':
        try:
            return JsonResponse(identity.list_users(
                pagination_token=request.GET.get('paginationToken') or None,
            ))
        except (BotoCoreError, ClientError) as e:
            return _directory_error('Failed to list users', e)

    try:
        data = parse_json_body(request)
    except ValueError as e:
        return json_error(str(e))

    operation = data.get('operation')
    user_id = data.get('userId')
    if operation not in USER_OPERATIONS:
        return json_error('Invalid operation')
    if not user_id:
        return json_error('Missing userId')

    try:
        if operation == 'getUser':
            return JsonResponse(identity.get_user(user_id))
        if operation == 'updateRole':
            return JsonResponse(identity.update_user_role(user_id, data.get('role')))
        if operation == 'updateAttributes':
            attributes = data.get('attributes')
            if not isinstance(attributes, dict) or not attributes:
                return json_error('Missing attributes')
            return JsonResponse(identity.update_user_attributes(user_id, attributes))
        return JsonResponse(identity.reset_user_password(user_id))
    except ValueError as e:
        return json_error(str(e))
    except (BotoCoreError, ClientError) as e:
        return _directory_error('Failed to process request', e)


def _group_membership(request, action, failure_message):
    try:
        data = parse_json_body(request)
    except ValueError as e:
        return json_error(str(e))
    username = data.get('username')
    group_name = data.get('groupName')
    if not username or not group_name:
        return json_error('Missing username or groupName')
    try:
        return JsonResponse(action(username, group_name))
    except (BotoCoreError, ClientError) as e:
        return _directory_error(failure_message, e)


@require_POST
def add_user_to_group(request):
    return _group_membership(request, identity.add_user_to_group, 'Failed to add user to group')


@require_POST
def remove_user_from_group(request):
    return _group_membership(request, identity.remove_user_from_group, 'Failed to remove user from group')


@require_GET
def group_users(request, group_name):
    try:
        return JsonResponse(identity.list_users_in_group(
            group_name,
            pagination_token=request.GET.get('paginationToken') or None,
        ))
    except (BotoCoreError, ClientError) as e:
        return _directory_error('Failed to list users in group', e)


@require_http_methods(['GET', 'POST'])
def devices(request):
    if request.method == 'GET':
        username = request.GET.get('username')
        if not username:
            return json_error('Missing username')
        try:
            return JsonResponse(identity.list_devices(
                username,
                pagination_token=request.GET.get('paginationToken') or None,
            ))
        except (BotoCoreError, ClientError) as e:
            return _directory_error('Failed to list devices', e)

    try:
        data = parse_json_body(request)
    except ValueError as e:
        return json_error(str(e))

    operation = data.get('operation')
    username = data.get('username')
    device_key = data.get('deviceKey')
    if operation not in DEVICE_OPERATIONS:
        return json_error('Invalid operation')
    if not username or not device_key:
        return json_error('Missing username or deviceKey')

    try:
        if operation == 'getDevice':
            return JsonResponse(identity.get_device(username, device_key))
        if operation == 'forgetDevice':
            return JsonResponse(identity.forget_device(username, device_key))
        return JsonResponse(identity.update_device_status(
            username, device_key, data.get('deviceRememberedStatus'),
        ))
    except ValueError as e:
        return json_error(str(e))
    except (BotoCoreError, ClientError) as e:
        return _directory_error('Failed to process device request', e)
