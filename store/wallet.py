# store/wallet.py
"""
Local mirror of wallet balances, transactions and saved payment methods.
"""
import logging

from django.db import transaction
from django.db.models import F

from .models import PaymentMethod, Transaction, Wallet

logger = logging.getLogger(__name__)

PAYMENT_METHOD_TYPES = ('card', 'bank_account')


# -------------------------------
# Wallets
# -------------------------------
def get_or_create_wallet(user, currency='USD'):
    wallet, created = Wallet.objects.get_or_create(user=user, defaults={'currency': currency})
    if created:
        logger.info("Wallet created for user %s", user.pk)
    return wallet


def update_wallet_balance(user, amount):
    """
    Add ``amount`` (negative to withdraw) to the user's balance.
    """
    wallet = get_or_create_wallet(user)
    Wallet.objects.filter(pk=wallet.pk).update(balance=F('balance') + amount)
    wallet.refresh_from_db()
    return wallet


# -------------------------------
# Transactions
# -------------------------------
def create_transaction(user, amount, description, type='payment', status='pending',
                       payment_method_id='', stripe_payment_id='', currency='USD'):
    return Transaction.objects.create(
        user=user,
        wallet=Wallet.objects.filter(user=user).first(),
        amount=amount,
        currency=currency,
        description=description,
        type=type,
        status=status,
        payment_method_id=payment_method_id or '',
        stripe_payment_id=stripe_payment_id or '',
    )


@transaction.atomic
def record_deposit(user, amount, description, status='completed', payment_method_id='', stripe_payment_id=''):
    """
    Credit the wallet and log the deposit. Returns ``(transaction, wallet, wallet_created)``.
    """
    wallet_created = not Wallet.objects.filter(user=user).exists()
    wallet = update_wallet_balance(user, amount)
    record = create_transaction(
        user,
        amount,
        description,
        type='deposit',
        status=status,
        payment_method_id=payment_method_id,
        stripe_payment_id=stripe_payment_id,
        currency=wallet.currency,
    )
    return record, wallet, wallet_created


def transactions_for_user(user):
    return list(Transaction.objects.filter(user=user).order_by('-created_at'))


def update_transaction_status(user, transaction_id, status):
    if status not in dict(Transaction.STATUS_CHOICES):
        raise ValueError(f"Invalid transaction status: {status}")
    record = Transaction.objects.get(pk=transaction_id, user=user)
    record.status = status
    record.save(update_fields=['status', 'updated_at'])
    return record


# -------------------------------
# Payment methods
# -------------------------------
def _unset_defaults(user, method_type, keep=None):
    defaults = PaymentMethod.objects.filter(user=user, type=method_type, is_default=True)
    if keep is not None:
        defaults = defaults.exclude(pk=keep.pk)
    defaults.update(is_default=False)


@transaction.atomic
def save_payment_method(user, stripe_payment_method_id, method_type, last_four='', brand='',
                        expiry_date='', bank_name='', is_default=False):
    if method_type not in PAYMENT_METHOD_TYPES:
        raise ValueError(f"Invalid payment method type: {method_type}")
    if is_default:
        _unset_defaults(user, method_type)
    method, _ = PaymentMethod.objects.update_or_create(
        user=user,
        stripe_payment_method_id=stripe_payment_method_id,
        defaults={
            'type': method_type,
            'last_four': (last_four or '')[-4:],
            'brand': brand or '',
            'expiry_date': expiry_date or '',
            'bank_name': bank_name or '',
            'is_default': bool(is_default),
        },
    )
    return method


def payment_methods_for_user(user, method_type=None):
    methods = PaymentMethod.objects.filter(user=user)
    if method_type:
        methods = methods.filter(type=method_type)
    return list(methods)


def default_payment_method(user, method_type):
    return PaymentMethod.objects.filter(user=user, type=method_type, is_default=True).first()


def delete_payment_method(user, stripe_payment_method_id):
    deleted, _ = PaymentMethod.objects.filter(
        user=user, stripe_payment_method_id=stripe_payment_method_id
    ).delete()
    if not deleted:
        raise PaymentMethod.DoesNotExist("Payment method not found")
    return True


@transaction.atomic
def set_default_payment_method(user, stripe_payment_method_id):
    method = PaymentMethod.objects.select_for_update().get(
        user=user, stripe_payment_method_id=stripe_payment_method_id
    )
    _unset_defaults(user, method.type, keep=method)
    method.is_default = True
    method.save(update_fields=['is_default'])
    return method
