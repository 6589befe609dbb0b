import pytest


@pytest.mark.django_db
class TestProtectedRoutes:
    @pytest.mark.parametrize('url', [
        '/api/cart/',
        '/api/orders/',
        '/api/user/',
        '/api/account/wallet/',
        '/api/stripe/get-payment-methods/',
    ])
    def test_api_requires_sign_in(self, client, url):
        response = client.get(url)
        assert response.status_code == 401
        assert response.json() == {'error': 'Authentication required'}

    def test_page_redirects_to_login(self, client, settings):
        settings.LOGIN_URL = '/login/'
        response = client.get('/checkout/?step=2')
        assert response.status_code == 302
        assert response['Location'] == '/login/?next=%2Fcheckout%2F%3Fstep%3D2'

    def test_public_catalog(self, client, wallpapers):
        assert client.get('/api/wallpapers/').status_code == 200

    def test_admin_needs_sign_in(self, client):
        assert client.get('/api/admin/stats/').status_code == 401

    def test_admin_needs_staff(self, auth_client):
        response = auth_client.get('/api/admin/stats/')
        assert response.status_code == 403
        assert response.json() == {'error': 'Admin access required'}

    def test_signed_in_passes(self, auth_client):
        assert auth_client.get('/api/cart/').status_code == 200
