import pytest

from store.models import Wallpaper


@pytest.mark.django_db
class TestCart:
    def test_requires_sign_in(self, client, post_json, wallpapers):
        response = post_json(client, '/api/cart/add/', {'wallpaperId': wallpapers[0].pk, 'rollSize': 'standard'})
        assert response.status_code == 401

    def test_add_lists_server_prices(self, auth_client, post_json, make_wallpaper):
        fern = make_wallpaper('Fern', price='19.99')
        response = post_json(auth_client, '/api/cart/add/', {
            'wallpaperId': fern.pk, 'rollSize': 'standard', 'patternSize': '24in', 'quantity': 2, 'price': '0.01',
        })
        assert response.status_code == 201
        data = response.json()
        assert data['cart_count'] == 2
        assert data['total'] == 39.98
        line = data['items'][0]
        assert line['id'] == f"{fern.pk}:standard"
        assert line['price'] == 19.99
        assert line['options'] == {'rollSize': 'standard', 'patternSize': '24in'}

    def test_same_line_accumulates(self, auth_client, post_json, wallpapers):
        for _ in range(2):
            post_json(auth_client, '/api/cart/add/', {'wallpaperId': wallpapers[0].pk, 'rollSize': 'standard'})
        data = auth_client.get('/api/cart/').json()
        assert len(data['items']) == 1
        assert data['items'][0]['quantity'] == 2

    def test_roll_sizes_are_separate_lines(self, auth_client, post_json, wallpapers):
        post_json(auth_client, '/api/cart/add/', {'wallpaperId': wallpapers[0].pk, 'rollSize': 'standard'})
        post_json(auth_client, '/api/cart/add/', {'wallpaperId': wallpapers[0].pk, 'rollSize': 'large'})
        assert len(auth_client.get('/api/cart/').json()['items']) == 2

    def test_add_promotes_wallpaper(self, auth_client, post_json, wallpapers):
        post_json(auth_client, '/api/cart/add/', {'wallpaperId': wallpapers[2].pk, 'rollSize': 'standard', 'quantity': 5})
        assert Wallpaper.objects.get(pk=wallpapers[2].pk).ranking == 2

    @pytest.mark.parametrize('body', [
        {'rollSize': 'standard'},
        {'wallpaperId': 1},
        {'wallpaperId': 1, 'rollSize': 'standard', 'quantity': 0},
    ])
    def test_add_validation(self, auth_client, post_json, wallpapers, body):
        assert post_json(auth_client, '/api/cart/add/', body).status_code == 400

    def test_add_deleted_wallpaper(self, auth_client, post_json, make_wallpaper):
        gone = make_wallpaper('Gone', status='deleted')
        response = post_json(auth_client, '/api/cart/add/', {'wallpaperId': gone.pk, 'rollSize': 'standard'})
        assert response.status_code == 404

    def test_update_quantity(self, auth_client, post_json, wallpapers):
        post_json(auth_client, '/api/cart/add/', {'wallpaperId': wallpapers[0].pk, 'rollSize': 'standard'})
        key = f"{wallpapers[0].pk}:standard"

        response = post_json(auth_client, '/api/cart/update/', {'id': key, 'quantity': 4})
        assert response.json() == {'status': 'success', 'cart_count': 4}

        # below one is ignored
        response = post_json(auth_client, '/api/cart/update/', {'id': key, 'quantity': 0})
        assert response.json()['cart_count'] == 4

        response = post_json(auth_client, '/api/cart/update/', {'id': key, 'action': 'decrease'})
        assert response.json()['cart_count'] == 3

    def test_update_requires_post(self, auth_client):
        assert auth_client.get('/api/cart/update/').status_code == 400

    def test_remove_and_clear(self, auth_client, post_json, wallpapers):
        for w in wallpapers:
            post_json(auth_client, '/api/cart/add/', {'wallpaperId': w.pk, 'rollSize': 'standard'})

        data = post_json(auth_client, '/api/cart/remove/', {'id': f"{wallpapers[0].pk}:standard"}).json()
        assert data['cart_count'] == 2

        data = post_json(auth_client, '/api/cart/clear/').json()
        assert data == {'items': [], 'total': 0.0, 'cart_count': 0}

    def test_deleted_wallpaper_drops_out_of_cart(self, auth_client, post_json, wallpapers):
        post_json(auth_client, '/api/cart/add/', {'wallpaperId': wallpapers[0].pk, 'rollSize': 'standard'})
        Wallpaper.objects.filter(pk=wallpapers[0].pk).update(status='deleted')
        assert auth_client.get('/api/cart/').json()['items'] == []

    def test_archived_wallpaper_drops_out_of_cart(self, auth_client, post_json, wallpapers):
        post_json(auth_client, '/api/cart/add/', {'wallpaperId': wallpapers[1].pk, 'rollSize': 'standard'})
        Wallpaper.objects.filter(pk=wallpapers[1].pk).update(status='archived')
        data = auth_client.get('/api/cart/').json()
        assert data['items'] == []
        assert data['total'] == 0.0

    def test_cannot_add_someone_elses_custom_wallpaper(self, auth_client, post_json, make_wallpaper, user, other_user):
        theirs = make_wallpaper('Their ferns', is_custom=True, owner=other_user)
        response = post_json(auth_client, '/api/cart/add/', {'wallpaperId': theirs.pk, 'rollSize': 'standard'})
        assert response.status_code == 404
        assert auth_client.get('/api/cart/').json()['items'] == []

        mine = make_wallpaper('My ferns', is_custom=True, owner=user)
        response = post_json(auth_client, '/api/cart/add/', {'wallpaperId': mine.pk, 'rollSize': 'standard'})
        assert response.status_code == 201
