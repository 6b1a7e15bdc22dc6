"""
Integration Tests for the full shopping flow
"""
import pytest
from httpx import AsyncClient
from faker import Faker

from conftest import bearer, insert_user

fake = Faker()


class TestShoppingFlow:
    """Admin stocks the catalog, a shopper registers and fills a cart"""

    @pytest.mark.asyncio
    async def test_catalog_to_cart(self, client: AsyncClient, admin_auth_headers, gridfs_bucket):
        # Admin: category, image, product
        category = await client.post('/api/v1/categories', json={'name': 'Garden'}, headers=admin_auth_headers)
        assert category.status_code == 201

        upload = await client.post(
            '/api/v1/upload',
            files={'file': ('hose.jpg', b'jpeg bytes', 'image/jpeg')},
            headers=admin_auth_headers,
        )
        image = upload.json()['data']

        created = await client.post('/api/v1/products', json={
            'name': 'Garden Hose',
            'price': 35.0,
            'category': 'garden',
            'rating': 4.7,
            'images': [{'id': image['id'], 'url': image['url'], 'filename': image['filename']}],
        }, headers=admin_auth_headers)
        assert created.status_code == 201
        product = created.json()['data']
        assert product['image'] == image['url']
        assert product['imageId'] == image['id']

        # Shopper: register, browse, add to cart
        email = fake.email()
        registered = await client.post('/api/v1/auth/register', json={
            'firstName': fake.first_name(),
            'lastName': fake.last_name(),
            'email': email,
            'password': 'securePassword123',
        })
        assert registered.status_code == 201

        login = await client.post('/api/v1/auth/login', json={'email': email, 'password': 'securePassword123'})
        assert login.status_code == 200
        headers = {'Authorization': f"Bearer {login.json()['data']['token']}"}

        search = await client.get('/api/v1/products', params={'search': 'hose'})
        assert [p['id'] for p in search.json()['data']] == [product['id']]

        featured = await client.get('/api/v1/products/featured')
        assert product['id'] in [p['id'] for p in featured.json()['data']]

        photo = await client.get(image['url'])
        assert photo.content == b'jpeg bytes'

        await client.post('/api/v1/cart', json={'productId': product['id'], 'quantity': 3}, headers=headers)
        summary = await client.get('/api/v1/cart/summary', params={'promoCode': 'WELCOME20'}, headers=headers)
        assert summary.json()['data'] == {
            'subtotal': 105.0,
            'promoCode': 'WELCOME20',
            'discountRate': 0.2,
            'discount': 21.0,
            'shipping': 0.0,
            'tax': 6.72,
            'total': 90.72,
            'itemCount': 3,
        }

        # Admin removes the product: image and cart line go with it
        deleted = await client.delete(f"/api/v1/products/{product['id']}", headers=admin_auth_headers)
        assert deleted.json()['data']['removedCartLines'] == 1
        assert gridfs_bucket.files == {}

        cart = await client.get('/api/v1/cart', headers=headers)
        assert cart.json()['data']['items'] == []

    @pytest.mark.asyncio
    async def test_demoted_admin_loses_access(self, client: AsyncClient, db, admin_user, admin_auth_headers):
        other_admin = await insert_user(db, role='admin')
        demoted = await client.put(
            f"/api/v1/admin/users/{admin_user['id']}/role",
            json={'role': 'user'},
            headers=bearer(other_admin),
        )
        assert demoted.status_code == 200

        response = await client.get('/api/v1/admin/users', headers=admin_auth_headers)
        assert response.status_code == 403
