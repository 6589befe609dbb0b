# store/payments.py
"""
Thin wrappers around the Stripe SDK.

Amounts are taken in dollars and sent to Stripe in cents. Stripe errors are
left to propagate; the views turn them into JSON error responses.
"""
import logging

import stripe
from django.conf import settings

from .store_utils import to_cents

logger = logging.getLogger(__name__)

CARD = 'card'
BANK_ACCOUNT = 'bank_account'
US_BANK_ACCOUNT = 'us_bank_account'


def _configure():
    stripe.api_key = settings.STRIPE_SECRET_KEY


def _is_default(obj):
    metadata = getattr(obj, 'metadata', None)
    if not metadata:
        return False
    try:
        return metadata['isDefault'] == 'true'
    except (KeyError, TypeError):
        return False


def format_card(method, is_default=None):
    card = getattr(method, 'card', None)
    return {
        'id': method.id,
        'type': CARD,
        'cardType': getattr(card, 'brand', None) or 'unknown',
        'lastFour': getattr(card, 'last4', None) or '****',
        'expiryDate': f"{card.exp_month}/{card.exp_year}" if card else None,
        'isDefault': _is_default(method) if is_default is None else is_default,
    }


def format_bank_account(method, is_default=None):
    account = getattr(method, US_BANK_ACCOUNT, None)
    return {
        'id': method.id,
        'type': BANK_ACCOUNT,
        'bankName': getattr(account, 'bank_name', None) or 'Bank Account',
        'lastFour': getattr(account, 'last4', None) or '****',
        'routingNumber': getattr(account, 'routing_number', None) or '******',
        'isDefault': _is_default(method) if is_default is None else is_default,
    }


# -------------------------------
# Customers
# -------------------------------
def get_or_create_customer(user_id, email=None, name=None):
    """
    Returns ``(customer_id, created)``. Customers are found by the
    ``userId`` stored in their metadata.
    """
    _configure()
    user_id = str(user_id).replace("'", "\\'")
    found = stripe.Customer.search(query=f"metadata['userId']:'{user_id}'")
    if found.data:
        return found.data[0].id, False

    params = {'metadata': {'userId': user_id}}
    if email:
        params['email'] = email
    if name:
        params['name'] = name
    customer = stripe.Customer.create(**params)
    logger.info("Created Stripe customer %s for user %s", customer.id, user_id)
    return customer.id, True


# -------------------------------
# Payment methods
# -------------------------------
def _unset_other_defaults(customer_id, keep_id, method_type):
    others = stripe.PaymentMethod.list(customer=customer_id, type=method_type)
    for method in others.data:
        if method.id != keep_id and _is_default(method):
            stripe.PaymentMethod.modify(method.id, metadata={'isDefault': 'false'})


def _mark_default(customer_id, payment_method_id, method_type):
    stripe.Customer.modify(
        customer_id,
        invoice_settings={'default_payment_method': payment_method_id},
    )
    stripe.PaymentMethod.modify(payment_method_id, metadata={'isDefault': 'true'})
    _unset_other_defaults(customer_id, payment_method_id, method_type)


def attach_card_payment_method(customer_id, payment_method_id, is_default=False):
    _configure()
    method = stripe.PaymentMethod.attach(payment_method_id, customer=customer_id)
    if is_default:
        _mark_default(customer_id, method.id, CARD)
    return format_card(method, is_default=bool(is_default))


def create_bank_account_token(account_holder_name, account_number, routing_number):
    _configure()
    token = stripe.Token.create(bank_account={
        'country': 'US',
        'currency': 'usd',
        'account_holder_name': account_holder_name,
        'account_holder_type': 'individual',
        'routing_number': routing_number,
        'account_number': account_number,
    })
    return token.id


def create_bank_payment_method(customer_id, payment_method_id, is_default=False):
    """
    Confirm an offline-mandate SetupIntent for a US bank account payment
    method, which also attaches it to the customer.
    Returns ``(setup_intent_id, payment_method)``.
    """
    _configure()
    setup_intent = stripe.SetupIntent.create(
        payment_method_types=[US_BANK_ACCOUNT],
        customer=customer_id,
        payment_method=payment_method_id,
        confirm=True,
        mandate_data={'customer_acceptance': {'type': 'offline'}},
    )
    if is_default:
        _mark_default(customer_id, payment_method_id, US_BANK_ACCOUNT)
    method = stripe.PaymentMethod.retrieve(payment_method_id)
    return setup_intent.id, format_bank_account(method, is_default=bool(is_default))


def list_payment_methods(customer_id):
    _configure()
    cards = stripe.PaymentMethod.list(customer=customer_id, type=CARD)
    banks = stripe.PaymentMethod.list(customer=customer_id, type=US_BANK_ACCOUNT)
    return [format_card(m) for m in cards.data] + [format_bank_account(m) for m in banks.data]


def set_default_payment_method(customer_id, payment_method_id, method_type):
    _configure()
    if method_type == CARD:
        _mark_default(customer_id, payment_method_id, CARD)
    elif method_type in (BANK_ACCOUNT, US_BANK_ACCOUNT):
        _mark_default(customer_id, payment_method_id, US_BANK_ACCOUNT)
    else:
        raise ValueError(f"Unsupported payment method type: {method_type}")


def bank_account_details(token_id):
    _configure()
    token = stripe.Token.retrieve(token_id)
    account = getattr(token, 'bank_account', None)
    if not account:
        raise ValueError("Invalid bank account token")
    return {
        'last4': account.last4,
        'bank_name': account.bank_name,
        'country': account.country,
        'currency': account.currency,
        'status': account.status,
    }


# -------------------------------
# Charges
# -------------------------------
def process_payment(amount, payment_method_id, return_url, currency=None, customer_id=None, metadata=None):
    """
    Create and confirm a PaymentIntent for ``amount`` dollars.
    """
    _configure()
    params = {
        'amount': to_cents(amount),
        'currency': currency or settings.STRIPE_CURRENCY,
        'payment_method': payment_method_id,
        'confirm': True,
        'return_url': return_url,
    }
    if customer_id:
        params['customer'] = customer_id
    if metadata:
        params['metadata'] = metadata
    intent = stripe.PaymentIntent.create(**params)
    logger.info("PaymentIntent %s for %s %s: %s", intent.id, amount, params['currency'], intent.status)
    return intent


def process_ach_deposit(user, amount, bank_account_token, description):
    """
    Charge a bank account for a wallet deposit.
    Returns ``(bank_account, payment_intent)``.
    """
    _configure()
    customer_id, _ = get_or_create_customer(user.pk, user.email, user.get_full_name())
    bank_account = stripe.Customer.create_source(customer_id, source=bank_account_token)
    intent = stripe.PaymentIntent.create(
        amount=to_cents(amount),
        currency='usd',
        customer=customer_id,
        payment_method=bank_account.id,
        payment_method_types=[US_BANK_ACCOUNT],
        confirm=True,
        description=description,
        metadata={'userId': str(user.pk), 'type': 'wallet_deposit'},
    )
    logger.info("ACH deposit %s for user %s: %s", intent.id, user.pk, intent.status)
    return bank_account, intent
