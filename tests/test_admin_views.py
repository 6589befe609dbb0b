import json
from decimal import Decimal

import pytest
from django.utils import timezone

from store import orders
from store.models import Order, Wallpaper


def make_order(user, status='pending', payment_status='unpaid', items=None):
    return Order.objects.create(
        order_number=orders.generate_order_number(),
        user=user,
        total_amount=Decimal('10.00'),
        status=status,
        payment_status=payment_status,
        order_date=timezone.now(),
        items=json.dumps(items or []),
    )


@pytest.mark.django_db
class TestRankingRoutes:
    def test_list_in_display_order(self, staff_client, wallpapers):
        Wallpaper.objects.filter(pk=wallpapers[2].pk).update(ranking=None)
        data = staff_client.get('/api/admin/wallpapers/').json()
        assert [(w['name'], w['ranking']) for w in data['wallpapers']] == [('Fern', 1), ('Palm', 2), ('Moss', 3)]

    def test_move(self, staff_client, post_json, wallpapers):
        response = post_json(staff_client, f"/api/admin/wallpapers/{wallpapers[2].pk}/ranking/", {'ranking': 1})
        assert response.json()['wallpaper']['ranking'] == 1
        assert list(Wallpaper.objects.values_list('name', flat=True)) == ['Moss', 'Fern', 'Palm']

    @pytest.mark.parametrize('value', [0, -1, 'first', None, 1.5, 10 ** 20])
    def test_invalid_ranking(self, staff_client, post_json, wallpapers, value):
        response = post_json(staff_client, f"/api/admin/wallpapers/{wallpapers[0].pk}/ranking/", {'ranking': value})
        assert response.status_code == 400
        assert Wallpaper.objects.get(pk=wallpapers[0].pk).ranking == 1

    def test_missing_wallpaper(self, staff_client, post_json):
        assert post_json(staff_client, '/api/admin/wallpapers/999/ranking/', {'ranking': 1}).status_code == 404


@pytest.mark.django_db
class TestOrderRoutes:
    def test_list_with_filters(self, staff_client, user):
        wanted = make_order(user, items=[{'wallpaperId': 3}])
        make_order(user, status='delivered')
        data = staff_client.get('/api/admin/orders/?wallpaperId=3').json()
        assert [o['id'] for o in data['orders']] == [wanted.pk]
        data = staff_client.get(f"/api/admin/orders/?userId={user.pk}&status=delivered").json()
        assert len(data['orders']) == 1

    def test_update_status(self, staff_client, post_json, user):
        order = make_order(user)
        response = post_json(staff_client, f"/api/admin/orders/{order.pk}/status/", {
            'status': 'shipped', 'paymentStatus': 'paid',
        })
        assert response.json()['order']['status'] == 'shipped'
        assert response.json()['order']['paymentStatus'] == 'paid'

    def test_update_status_errors(self, staff_client, post_json, user):
        order = make_order(user)
        assert post_json(staff_client, f"/api/admin/orders/{order.pk}/status/", {}).status_code == 400
        assert post_json(staff_client, f"/api/admin/orders/{order.pk}/status/", {'status': 'lost'}).status_code == 400
        assert post_json(staff_client, '/api/admin/orders/999/status/', {'status': 'shipped'}).status_code == 404

    def test_batch(self, staff_client, post_json, user):
        first, second = make_order(user), make_order(user)
        response = post_json(staff_client, '/api/admin/orders/batch-status/', {
            'orderIds': [first.pk, second.pk], 'status': 'shipped',
        })
        assert response.json() == {'success': True, 'totalUpdated': 2, 'failed': []}
        assert post_json(staff_client, '/api/admin/orders/batch-status/', {'orderIds': []}).status_code == 400

    def test_batch_with_malformed_id(self, staff_client, post_json, user):
        order = make_order(user)
        response = post_json(staff_client, '/api/admin/orders/batch-status/', {
            'orderIds': [order.pk, 'abc'], 'status': 'shipped',
        })
        assert response.status_code == 200
        assert response.json() == {'success': False, 'totalUpdated': 1, 'failed': ['abc']}


@pytest.mark.django_db
class TestAnalyticsRoutes:
    def test_stats(self, staff_client, user):
        make_order(user, payment_status='paid')
        data = staff_client.get('/api/admin/stats/').json()
        assert data['totalOrders'] == 1
        assert data['currentMonthRevenue'] == 10.0

    def test_revenue(self, staff_client, user):
        make_order(user, payment_status='paid')
        now = timezone.now()
        assert staff_client.get('/api/admin/revenue/').json() == {'revenue': {f"{now.year}-{now.month}": 10.0}}
