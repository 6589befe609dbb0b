"""
Route handlers under /api/stripe/ and /api/account/.

Each handler validates the request body, forwards to Stripe through
``store.payments`` and mirrors what the shopper needs to see locally.
"""
import logging
from functools import wraps

import stripe
from django.conf import settings
from django.http import JsonResponse
from django.views.decorators.http import require_GET, require_http_methods, require_POST

from . import payments, wallet
from .models import PaymentMethod, Transaction
from .store_utils import json_error, parse_amount, parse_json_body

logger = logging.getLogger(__name__)


def stripe_route(failure_message):
    """
    Parse the JSON body for the view and turn SDK failures into JSON errors.
    """
    def decorator(view):
        @wraps(view)
        def wrapper(request, *args, **kwargs):
            try:
                data = parse_json_body(request) if request.method == 'POST' else {}
            except ValueError as e:
                return json_error(str(e))
            try:
                return view(request, data, *args, **kwargs)
            except stripe.CardError as e:
                logger.warning("%s: %s", failure_message, e.user_message)
                return json_error(e.user_message or failure_message, status=402)
            except stripe.StripeError as e:
                logger.exception(failure_message)
                return json_error(e.user_message or failure_message, status=500)
        return wrapper
    return decorator


def _customer_id(request, data=None):
    user = request.user
    data = data or {}
    customer_id, _ = payments.get_or_create_customer(
        user.pk,
        data.get('email') or user.email,
        data.get('name') or user.get_full_name(),
    )
    return customer_id


# -------------------------------
# Customers
# -------------------------------
@require_POST
@stripe_route('Failed to create customer')
def create_customer(request, data):
    user = request.user
    customer_id, created = payments.get_or_create_customer(
        user.pk,
        data.get('email') or user.email,
        data.get('name') or user.get_full_name(),
    )
    return JsonResponse({'customerId': customer_id, 'isNew': created})


# -------------------------------
# Payment methods
# -------------------------------
@require_POST
@stripe_route('Failed to create bank account token')
def create_bank_account(request, data):
    holder = data.get('accountHolderName')
    account_number = data.get('accountNumber')
    routing_number = data.get('routingNumber')
    if not holder or not account_number or not routing_number:
        return json_error('Missing required bank account information')
    token = payments.create_bank_account_token(holder, account_number, routing_number)
    return JsonResponse({'token': token})


@require_POST
@stripe_route('Failed to create card payment method')
def create_card_payment_method(request, data):
    payment_method_id = data.get('paymentMethodId') or data.get('cardToken')
    if not payment_method_id:
        return json_error('Missing required payment information')

    is_default = bool(data.get('isDefault'))
    method = payments.attach_card_payment_method(_customer_id(request), payment_method_id, is_default)
    wallet.save_payment_method(
        request.user,
        method['id'],
        'card',
        last_four=method['lastFour'],
        brand=method['cardType'],
        expiry_date=method['expiryDate'] or '',
        is_default=is_default,
    )
    return JsonResponse({'success': True, 'paymentMethod': method})


@require_POST
@stripe_route('Failed to create bank payment method')
def create_bank_payment_method(request, data):
    payment_method_id = data.get('paymentMethodId')
    if not payment_method_id:
        return json_error('Missing required payment information')

    is_default = bool(data.get('isDefault'))
    setup_intent_id, method = payments.create_bank_payment_method(
        _customer_id(request), payment_method_id, is_default
    )
    wallet.save_payment_method(
        request.user,
        method['id'],
        'bank_account',
        last_four=method['lastFour'],
        bank_name=method['bankName'],
        is_default=is_default,
    )
    return JsonResponse({'success': True, 'setupIntent': setup_intent_id, 'paymentMethod': method})


@require_POST
@stripe_route('Failed to retrieve bank account details')
def get_bank_account_details(request, data):
    token = data.get('bankAccountToken')
    if not token:
        return json_error('Missing bank account token')
    try:
        details = payments.bank_account_details(token)
    except ValueError as e:
        return json_error(str(e))
    return JsonResponse(details)


@require_http_methods(['GET', 'POST'])
@stripe_route('Failed to retrieve payment methods')
def get_payment_methods(request, data):
    return JsonResponse({'paymentMethods': payments.list_payment_methods(_customer_id(request))})


@require_POST
@stripe_route('Failed to set default payment method')
def set_default_payment_method(request, data):
    payment_method_id = data.get('paymentMethodId')
    method_type = data.get('type')
    if not payment_method_id or not method_type:
        return json_error('Missing required information')
    if method_type not in wallet.PAYMENT_METHOD_TYPES:
        return json_error(f"Unsupported payment method type: {method_type}")

    payments.set_default_payment_method(_customer_id(request), payment_method_id, method_type)
    try:
        wallet.set_default_payment_method(request.user, payment_method_id)
    except PaymentMethod.DoesNotExist:
        logger.info("Payment method %s is not mirrored locally", payment_method_id)
    return JsonResponse({'success': True})


# -------------------------------
# Charges
# -------------------------------
@require_POST
@stripe_route('Payment processing failed')
def process_payment(request, data):
    payment_method_id = data.get('paymentMethodId')
    if not data.get('amount') or not payment_method_id:
        return json_error('Missing required payment information')
    try:
        amount = parse_amount(data['amount'])
    except ValueError as e:
        return json_error(str(e))

    intent = payments.process_payment(
        amount,
        payment_method_id,
        return_url=f"{settings.SITE_URL}/cart",
        currency=data.get('currency') or settings.STRIPE_CURRENCY,
        customer_id=_customer_id(request),
    )
    return JsonResponse({
        'success': True,
        'paymentIntent': {
            'id': intent.id,
            'status': intent.status,
            'client_secret': intent.client_secret,
        },
    })


@require_POST
@stripe_route('Failed to process ACH deposit')
def process_ach_deposit(request, data):
    token = data.get('bankAccountToken')
    if not data.get('amount') or not token:
        return json_error('Missing required payment information')
    try:
        amount = parse_amount(data['amount'])
    except ValueError as e:
        return json_error(str(e))

    description = data.get('description') or 'Wallet deposit via ACH'
    bank_account, intent = payments.process_ach_deposit(request.user, amount, token, description)
    if intent.status == 'succeeded':
        record, user_wallet, _ = wallet.record_deposit(
            request.user,
            amount,
            description,
            payment_method_id=bank_account.id,
            stripe_payment_id=intent.id,
        )
    else:
        # ACH debits settle later; the balance moves when the status does
        user_wallet = wallet.get_or_create_wallet(request.user)
        record = wallet.create_transaction(
            request.user,
            amount,
            description,
            type='deposit',
            status='pending',
            payment_method_id=bank_account.id,
            stripe_payment_id=intent.id,
        )

    return JsonResponse({
        'success': True,
        'paymentIntent': {'id': intent.id, 'status': intent.status, 'amount': float(amount)},
        'transaction': record.to_dict(),
        'wallet': user_wallet.to_dict(),
    })


@require_POST
@stripe_route('Failed to create transaction')
def create_transaction(request, data):
    """
    Manual ledger entry (staff only): records the transaction and moves
    the wallet balance.
    """
    if not request.user.is_staff:
        return json_error('Admin access required', status=403)
    if not data.get('amount') or not data.get('description'):
        return json_error('Missing required transaction information')
    status = data.get('status') or 'completed'
    if status not in dict(Transaction.STATUS_CHOICES):
        return json_error(f"Invalid transaction status: {status}")
    try:
        amount = parse_amount(data['amount'])
    except ValueError as e:
        return json_error(str(e))

    record, user_wallet, wallet_created = wallet.record_deposit(
        request.user,
        amount,
        data['description'],
        status=status,
        payment_method_id=data.get('paymentMethodId', ''),
    )
    response = {'success': True, 'transaction': record.to_dict(), 'wallet': user_wallet.to_dict()}
    if wallet_created:
        response['isNewWallet'] = True
    return JsonResponse(response)


# -------------------------------
# Account mirror
# -------------------------------
@require_GET
def my_wallet(request):
    user_wallet = wallet.get_or_create_wallet(request.user)
    return JsonResponse({
        'wallet': user_wallet.to_dict(),
        'transactions': [t.to_dict() for t in wallet.transactions_for_user(request.user)],
    })


@require_GET
def my_payment_methods(request):
    method_type = request.GET.get('type') or None
    return JsonResponse({
        'paymentMethods': [m.to_dict() for m in wallet.payment_methods_for_user(request.user, method_type)],
    })


@require_POST
def delete_payment_method(request, payment_method_id):
    try:
        wallet.delete_payment_method(request.user, payment_method_id)
    except PaymentMethod.DoesNotExist:
        return json_error('Payment method not found', status=404)
    return JsonResponse({'success': True})
