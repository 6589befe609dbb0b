from decimal import Decimal

import pytest

from store import wallet
from store.models import PaymentMethod, Transaction


@pytest.mark.django_db
class TestWallet:
    def test_balance_updates(self, user):
        wallet.update_wallet_balance(user, Decimal('10.00'))
        updated = wallet.update_wallet_balance(user, Decimal('-2.50'))
        assert updated.balance == Decimal('7.50')

    def test_record_deposit(self, user):
        record, user_wallet, created = wallet.record_deposit(user, Decimal('20.00'), 'Top up')
        assert created is True
        assert user_wallet.balance == Decimal('20.00')
        assert record.wallet == user_wallet
        assert (record.type, record.status) == ('deposit', 'completed')

        _, _, created = wallet.record_deposit(user, Decimal('1.00'), 'Again')
        assert created is False

    def test_transaction_status(self, user, other_user):
        record = wallet.create_transaction(user, Decimal('3.00'), 'Order #1')
        assert wallet.update_transaction_status(user, record.pk, 'refunded').status == 'refunded'
        with pytest.raises(ValueError):
            wallet.update_transaction_status(user, record.pk, 'lost')
        with pytest.raises(Transaction.DoesNotExist):
            wallet.update_transaction_status(other_user, record.pk, 'completed')

    def test_transactions_newest_first(self, user):
        first = wallet.create_transaction(user, Decimal('1.00'), 'first')
        second = wallet.create_transaction(user, Decimal('2.00'), 'second')
        assert wallet.transactions_for_user(user) == [second, first]


@pytest.mark.django_db
class TestPaymentMethods:
    def test_one_default_per_type(self, user):
        wallet.save_payment_method(user, 'pm_a', 'card', last_four='4242', is_default=True)
        wallet.save_payment_method(user, 'pm_bank', 'bank_account', last_four='6789', is_default=True)
        wallet.save_payment_method(user, 'pm_b', 'card', last_four='1111', is_default=True)

        assert wallet.default_payment_method(user, 'card').stripe_payment_method_id == 'pm_b'
        assert wallet.default_payment_method(user, 'bank_account').stripe_payment_method_id == 'pm_bank'
        assert PaymentMethod.objects.filter(user=user, is_default=True).count() == 2

    def test_saving_twice_updates(self, user):
        wallet.save_payment_method(user, 'pm_a', 'card', last_four='4242')
        wallet.save_payment_method(user, 'pm_a', 'card', last_four='1234', brand='visa')
        method = PaymentMethod.objects.get()
        assert (method.last_four, method.brand) == ('1234', 'visa')

    def test_invalid_type(self, user):
        with pytest.raises(ValueError):
            wallet.save_payment_method(user, 'pm_a', 'paypal')

    def test_delete(self, user, other_user):
        wallet.save_payment_method(user, 'pm_a', 'card')
        with pytest.raises(PaymentMethod.DoesNotExist):
            wallet.delete_payment_method(other_user, 'pm_a')
        assert wallet.delete_payment_method(user, 'pm_a') is True
        assert wallet.payment_methods_for_user(user) == []


@pytest.mark.django_db
class TestAccountRoutes:
    def test_requires_sign_in(self, client):
        assert client.get('/api/account/wallet/').status_code == 401

    def test_wallet(self, auth_client, user):
        wallet.record_deposit(user, Decimal('12.00'), 'Top up')
        data = auth_client.get('/api/account/wallet/').json()
        assert data['wallet']['balance'] == 12.0
        assert data['transactions'][0]['description'] == 'Top up'

    def test_payment_methods(self, auth_client, user):
        wallet.save_payment_method(user, 'pm_a', 'card', last_four='4242', is_default=True)
        wallet.save_payment_method(user, 'pm_bank', 'bank_account', last_four='6789')
        data = auth_client.get('/api/account/payment-methods/?type=card').json()
        assert [m['id'] for m in data['paymentMethods']] == ['pm_a']

    def test_delete_payment_method(self, auth_client, user):
        wallet.save_payment_method(user, 'pm_a', 'card')
        assert auth_client.post('/api/account/payment-methods/pm_a/delete/').json() == {'success': True}
        assert auth_client.post('/api/account/payment-methods/pm_a/delete/').status_code == 404
