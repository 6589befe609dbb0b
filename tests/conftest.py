# tests/conftest.py
"""
Shared fixtures: users, signed-in clients and a catalog with a few wallpapers.
"""
import json
from decimal import Decimal
from types import SimpleNamespace

import pytest
from django.contrib.auth import get_user_model

from store.models import Category, Wallpaper


@pytest.fixture(autouse=True)
def _test_settings(settings):
    settings.EMAIL_BACKEND = 'django.core.mail.backends.locmem.EmailBackend'
    settings.STRIPE_SECRET_KEY = 'sk_test_123'
    settings.IMAGINE_API_KEY = 'imagine-test-key'
    settings.COGNITO_USER_POOL_ID = 'us-east-1_pool'
    settings.LIKE_WEIGHT = 1
    settings.CART_WEIGHT = 1


@pytest.fixture
def user(db):
    return get_user_model().objects.create_user(
        username='shopper', email='shopper@example.com', password='pw',
        first_name='Sam', last_name='Shopper',
    )


@pytest.fixture
def other_user(db):
    return get_user_model().objects.create_user(username='other', email='other@example.com', password='pw')


@pytest.fixture
def staff(db):
    return get_user_model().objects.create_user(
        username='boss', email='boss@example.com', password='pw', is_staff=True,
    )


@pytest.fixture
def auth_client(client, user):
    client.force_login(user)
    return client


@pytest.fixture
def staff_client(client, staff):
    client.force_login(staff)
    return client


@pytest.fixture
def category(db):
    return Category.objects.create(name='Botanical')


@pytest.fixture
def make_wallpaper(db, category):
    def make(name='Wallpaper', price='20.00', **kwargs):
        kwargs.setdefault('image', f"wallpapers/{name.lower().replace(' ', '-')}")
        kwargs.setdefault('category', category)
        return Wallpaper.objects.create(name=name, price=Decimal(price), **kwargs)
    return make


@pytest.fixture
def wallpapers(make_wallpaper):
    """Three ranked wallpapers: 1, 2, 3."""
    return [make_wallpaper(name) for name in ('Fern', 'Palm', 'Moss')]


@pytest.fixture
def post_json():
    def post(client, url, data=None, **extra):
        return client.post(url, data=json.dumps(data or {}), content_type='application/json', **extra)
    return post


def intent(status='succeeded', id='pi_123', client_secret='pi_123_secret'):
    return SimpleNamespace(id=id, status=status, client_secret=client_secret)


@pytest.fixture
def make_intent():
    return intent
