# store/orders.py
import json
import logging
import secrets
import threading
from decimal import Decimal

from anymail.message import AnymailMessage
from django.conf import settings
from django.contrib.auth import get_user_model
from django.db import transaction
from django.template.loader import render_to_string
from django.utils import timezone

from .models import CartOrder, Order, Wallpaper
from .store_utils import serialize_line
from .wallet import create_transaction

logger = logging.getLogger(__name__)

# Admin queues show open orders first
STATUS_PRIORITY = {'pending': 0, 'processing': 1}
OPEN_STATUSES = ('pending', 'processing')


def _check_choice(value, choices, label):
    if value not in dict(choices):
        raise ValueError(f"Invalid {label}: {value}")


# -------------------------------
# Cart orders
# -------------------------------
def save_cart_order(project, customer, quantity, total_amount, status='pending'):
    _check_choice(status, CartOrder.STATUS_CHOICES, 'status')
    return CartOrder.objects.create(
        project=project,
        customer=customer,
        quantity=quantity,
        total_amount=total_amount,
        status=status,
    )


def get_cart_order(project_id):
    return CartOrder.objects.filter(project_id=project_id).first()


def get_customer_orders(customer, status=None):
    orders = CartOrder.objects.filter(customer=customer)
    if status:
        _check_choice(status, CartOrder.STATUS_CHOICES, 'status')
        orders = orders.filter(status=status)
    return list(orders)


def update_cart_order_status(cart_order_id, status):
    _check_choice(status, CartOrder.STATUS_CHOICES, 'status')
    cart_order = CartOrder.objects.get(pk=cart_order_id)
    cart_order.status = status
    cart_order.save(update_fields=['status'])
    return cart_order


def update_cart_order(cart_order_id, quantity=None, total_amount=None):
    cart_order = CartOrder.objects.get(pk=cart_order_id)
    if quantity is not None:
        cart_order.quantity = quantity
    if total_amount is not None:
        cart_order.total_amount = total_amount
    cart_order.save(update_fields=['quantity', 'total_amount'])
    return cart_order


# -------------------------------
# Orders
# -------------------------------
def generate_order_number():
    return f"BB-{timezone.now():%Y%m%d}-{secrets.token_hex(3).upper()}"


@transaction.atomic
def place_order(user, lines, total_price, payment_intent, payment_method='',
                shipping_address='', billing_address='', email=''):
    """
    Record a charged cart: the order, one cart order per line and the
    payment transaction. The confirmation e-mail goes out after commit.
    """
    paid = payment_intent.status == 'succeeded'
    order = Order.objects.create(
        order_number=generate_order_number(),
        user=user,
        email=email or user.email,
        total_amount=total_price,
        payment_status='paid' if paid else 'unpaid',
        payment_method=payment_method,
        stripe_payment_id=payment_intent.id,
        shipping_address=shipping_address,
        billing_address=billing_address or shipping_address,
        items=json.dumps([serialize_line(line) for line in lines]),
    )

    for line in lines:
        save_cart_order(
            project=line['wallpaper'],
            customer=user,
            quantity=line['quantity'],
            total_amount=line['item_total'],
            status='completed' if paid else 'pending',
        )

    create_transaction(
        user,
        total_price,
        f"Order #{order.order_number}",
        type='payment',
        status='completed' if paid else 'pending',
        payment_method_id=payment_method,
        stripe_payment_id=payment_intent.id,
    )

    transaction.on_commit(lambda: _start_confirmation(order.pk))
    logger.info("Order %s placed by user %s for %s", order.order_number, user.pk, total_price)
    return order


def orders_for_user(user):
    return list(Order.objects.filter(user=user).order_by('-order_date'))


def list_orders(user_id=None, wallpaper_id=None, status=None):
    orders = Order.objects.all()
    if user_id:
        orders = orders.filter(user_id=user_id)
    if status:
        orders = orders.filter(status=status)
    orders = list(orders)

    if wallpaper_id:
        orders = [o for o in orders if o.contains_wallpaper(wallpaper_id)]

    # newest first, then stable sort on the status priority
    orders.sort(key=lambda o: o.order_date, reverse=True)
    orders.sort(key=lambda o: STATUS_PRIORITY.get(o.status, 2))
    return orders


def update_order_status(order_id, status, payment_status=None):
    _check_choice(status, Order.STATUS_CHOICES, 'status')
    if payment_status:
        _check_choice(payment_status, Order.PAYMENT_STATUS_CHOICES, 'payment status')
    order = Order.objects.get(pk=order_id)
    order.status = status
    if payment_status:
        order.payment_status = payment_status
    order.save()
    logger.info("Order %s set to %s / %s", order.order_number, order.status, order.payment_status)
    return order


def update_multiple_order_status(order_ids, status):
    _check_choice(status, Order.STATUS_CHOICES, 'status')
    updated, failed = 0, []
    for order_id in order_ids:
        try:
            update_order_status(order_id, status)
            updated += 1
        except (Order.DoesNotExist, ValueError, TypeError):
            logger.warning("Batch status update: order %s not found", order_id)
            failed.append(order_id)
    return {'success': not failed, 'totalUpdated': updated, 'failed': failed}


# -------------------------------
# Analytics
# -------------------------------
def monthly_revenue():
    revenue = {}
    for order in Order.objects.filter(payment_status='paid'):
        key = f"{order.order_date.year}-{order.order_date.month}"
        revenue[key] = revenue.get(key, Decimal('0.00')) + order.total_amount
    return {key: float(total) for key, total in revenue.items()}


def dashboard_stats():
    now = timezone.now()
    orders = list(Order.objects.all())

    current_month_revenue = Decimal('0.00')
    monthly_stats = [Decimal('0.00')] * 12
    for order in orders:
        if order.payment_status != 'paid':
            continue
        if order.order_date.year == now.year:
            monthly_stats[order.order_date.month - 1] += order.total_amount
            if order.order_date.month == now.month:
                current_month_revenue += order.total_amount

    recent = sorted(orders, key=lambda o: o.order_date, reverse=True)[:5]
    return {
        'totalUsers': get_user_model().objects.count(),
        'totalWallpapers': Wallpaper.objects.exclude(status='deleted').count(),
        'totalOrders': len(orders),
        'pendingOrdersCount': sum(1 for o in orders if o.status in OPEN_STATUSES),
        'currentMonthRevenue': float(current_month_revenue),
        'monthlyStats': [float(total) for total in monthly_stats],
        'recentActivity': [
            {
                'type': 'order',
                'user': o.user_id or 'Unknown',
                'time': o.order_date.date().isoformat(),
                'action': f"Order #{o.order_number} - {o.status} - ${o.total_amount}",
            }
            for o in recent
        ],
    }


# -------------------------------
# Confirmation e-mail
# -------------------------------
def send_order_confirmation(order_id):
    try:
        o = Order.objects.get(pk=order_id)
        if not o.email:
            return

        ctx = {
            "order": o,
            "items": o.item_list(),
            "name": (o.user.get_full_name() if o.user else '') or "Customer",
            "site_url": settings.SITE_URL,
        }

        plain = render_to_string("store/emails/order_confirmation.txt", ctx)
        html = render_to_string("store/emails/order_confirmation.html", ctx)

        msg = AnymailMessage(
            subject=f"Your BangBang order #{o.order_number}",
            body=plain,
            from_email=settings.DEFAULT_FROM_EMAIL,
            to=[o.email],
        )
        msg.attach_alternative(html, "text/html")
        msg.send()
        logger.info("Order confirmation sent for order %s", o.order_number)

    except Exception:
        logger.exception("Order confirmation send failed for order %s", order_id)


def _start_confirmation(order_id):
    try:
        threading.Thread(target=send_order_confirmation, args=(order_id,), daemon=True).start()
    except Exception:
        logger.exception("Failed to start customer confirmation thread for order %s", order_id)
