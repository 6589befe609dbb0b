import json
from datetime import timedelta
from decimal import Decimal

import pytest
from django.core import mail
from django.utils import timezone

from store import orders
from store.models import CartOrder, Order


def make_order(user=None, status='pending', payment_status='unpaid', total='10.00', days_ago=0, items=None, **kwargs):
    return Order.objects.create(
        order_number=orders.generate_order_number(),
        user=user,
        email=kwargs.pop('email', 'shopper@example.com'),
        total_amount=Decimal(total),
        status=status,
        payment_status=payment_status,
        order_date=timezone.now() - timedelta(days=days_ago),
        items=json.dumps(items or []),
        **kwargs
    )


@pytest.mark.django_db
class TestCartOrders:
    def test_lifecycle(self, user, wallpapers):
        cart_order = orders.save_cart_order(wallpapers[0], user, 2, Decimal('40.00'))
        assert cart_order.status == 'pending'
        assert orders.get_cart_order(wallpapers[0].pk) == cart_order

        orders.update_cart_order(cart_order.pk, quantity=3, total_amount=Decimal('60.00'))
        updated = orders.update_cart_order_status(cart_order.pk, 'completed')
        assert (updated.quantity, updated.total_amount, updated.status) == (3, Decimal('60.00'), 'completed')

    def test_customer_orders_by_status(self, user, wallpapers):
        orders.save_cart_order(wallpapers[0], user, 1, Decimal('20.00'))
        orders.save_cart_order(wallpapers[1], user, 1, Decimal('20.00'), status='completed')
        assert len(orders.get_customer_orders(user)) == 2
        assert [c.project for c in orders.get_customer_orders(user, 'completed')] == [wallpapers[1]]

    def test_invalid_status(self, user, wallpapers):
        with pytest.raises(ValueError):
            orders.save_cart_order(wallpapers[0], user, 1, Decimal('1.00'), status='shipped')
        cart_order = orders.save_cart_order(wallpapers[0], user, 1, Decimal('1.00'))
        with pytest.raises(ValueError):
            orders.update_cart_order_status(cart_order.pk, 'lost')
        assert CartOrder.objects.get(pk=cart_order.pk).status == 'pending'

    def test_my_cart_orders_route(self, auth_client, user, wallpapers):
        orders.save_cart_order(wallpapers[0], user, 1, Decimal('20.00'))
        data = auth_client.get('/api/orders/cart-orders/').json()
        assert data['cartOrders'][0]['projectId'] == wallpapers[0].pk
        assert auth_client.get('/api/orders/cart-orders/?status=bogus').status_code == 400


@pytest.mark.django_db
class TestOrders:
    def test_order_number_format(self):
        number = orders.generate_order_number()
        prefix, day, suffix = number.split('-')
        assert prefix == 'BB'
        assert day == f"{timezone.now():%Y%m%d}"
        assert len(suffix) == 6

    def test_paid_order_leaves_pending(self, user):
        order = make_order(user, payment_status='paid')
        assert order.status == 'processing'

    def test_list_orders_priority(self, user):
        delivered = make_order(user, status='delivered', days_ago=0)
        old_pending = make_order(user, status='pending', days_ago=5)
        processing = make_order(user, status='processing', days_ago=1)
        new_pending = make_order(user, status='pending', days_ago=1)

        assert orders.list_orders() == [new_pending, old_pending, processing, delivered]

    def test_list_orders_filters(self, user, other_user):
        mine = make_order(user, items=[{'wallpaperId': 7}])
        make_order(other_user, items=[{'wallpaperId': 8}])
        assert orders.list_orders(user_id=user.pk) == [mine]
        assert orders.list_orders(wallpaper_id=7) == [mine]
        assert orders.list_orders(wallpaper_id='7') == [mine]
        assert orders.list_orders(status='shipped') == []

    def test_update_status(self, user):
        order = make_order(user)
        orders.update_order_status(order.pk, 'shipped', 'paid')
        order.refresh_from_db()
        assert (order.status, order.payment_status) == ('shipped', 'paid')

        with pytest.raises(ValueError):
            orders.update_order_status(order.pk, 'lost')
        with pytest.raises(Order.DoesNotExist):
            orders.update_order_status(999, 'shipped')

    def test_batch_update_reports_missing(self, user):
        first, second = make_order(user), make_order(user)
        result = orders.update_multiple_order_status([first.pk, 999, second.pk], 'cancelled')
        assert result == {'success': False, 'totalUpdated': 2, 'failed': [999]}
        assert set(Order.objects.values_list('status', flat=True)) == {'cancelled'}

    def test_batch_update_reports_malformed_ids(self, user):
        order = make_order(user)
        result = orders.update_multiple_order_status([order.pk, 'abc', None], 'shipped')
        assert result == {'success': False, 'totalUpdated': 1, 'failed': ['abc', None]}
        assert Order.objects.get(pk=order.pk).status == 'shipped'

    def test_my_orders_route(self, auth_client, user, other_user):
        make_order(user, days_ago=2)
        latest = make_order(user)
        make_order(other_user)
        data = auth_client.get('/api/orders/').json()
        assert len(data['orders']) == 2
        assert data['orders'][0]['orderNumber'] == latest.order_number


@pytest.mark.django_db
class TestAnalytics:
    def test_monthly_revenue_counts_paid_orders(self, user):
        make_order(user, payment_status='paid', total='30.00')
        make_order(user, payment_status='paid', total='12.50')
        make_order(user, payment_status='unpaid', total='99.00')
        now = timezone.now()
        assert orders.monthly_revenue() == {f"{now.year}-{now.month}": 42.5}

    def test_dashboard_stats(self, user, staff, wallpapers):
        make_order(user, payment_status='paid', total='30.00')
        make_order(user, status='pending')
        make_order(user, status='delivered')

        stats = orders.dashboard_stats()

        assert stats['totalUsers'] == 2
        assert stats['totalWallpapers'] == 3
        assert stats['totalOrders'] == 3
        assert stats['pendingOrdersCount'] == 2
        assert stats['currentMonthRevenue'] == 30.0
        assert stats['monthlyStats'][timezone.now().month - 1] == 30.0
        assert len(stats['monthlyStats']) == 12
        assert len(stats['recentActivity']) == 3
        assert stats['recentActivity'][0]['type'] == 'order'


@pytest.mark.django_db
class TestConfirmationEmail:
    def test_sends_plain_and_html(self, user):
        order = make_order(user, payment_status='paid', total='52.50', items=[{
            'name': 'Fern', 'quantity': 2, 'itemTotal': 40.0, 'options': {'rollSize': 'standard'},
        }], shipping_address='1 Leaf Lane')

        orders.send_order_confirmation(order.pk)

        assert len(mail.outbox) == 1
        message = mail.outbox[0]
        assert message.to == ['shopper@example.com']
        assert order.order_number in message.subject
        assert 'Sam Shopper' in message.body
        assert 'Fern (standard) x 2: $40.00' in message.body
        assert 'Total: $52.50' in message.body
        html, mimetype = message.alternatives[0]
        assert mimetype == 'text/html'
        assert '1 Leaf Lane' in html

    def test_no_email_address(self, user):
        order = make_order(user, email='')
        orders.send_order_confirmation(order.pk)
        assert mail.outbox == []
