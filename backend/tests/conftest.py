"""
Storefront - Test Configuration and Fixtures
"""
import os
from typing import AsyncGenerator
import pytest
from httpx import AsyncClient, ASGITransport
from faker import Faker

# Set testing environment (before the application reads its settings)
os.environ['ENVIRONMENT'] = 'testing'
os.environ['JWT_SECRET_KEY'] = 'test-jwt-secret-key-for-testing-only-0123456789'
os.environ['RATE_LIMIT_ENABLED'] = 'false'
os.environ['BCRYPT_ROUNDS'] = '4'
os.environ['LOG_FILE'] = ''
os.environ['LOG_LEVEL'] = 'WARNING'

from storefront.main import app
from storefront.core.database import CATEGORIES, PRODUCTS, USERS, get_db, next_sequence
from storefront.core.rate_limiter import email_login_limiter, ip_login_limiter
from storefront.core.security import create_token_pair, get_password_hash
from storefront.services.image_store import ImageStore, get_image_store
from mocks.mock_gridfs import MockGridFSBucket
from mocks.mock_mongo import MockDatabase

fake = Faker()

TEST_PASSWORD = 'testpassword123'


@pytest.fixture(autouse=True)
def reset_login_limiters():
    """Login attempt counters are process-wide; start every test clean"""
    email_login_limiter.clear()
    ip_login_limiter.clear()
    yield
    email_login_limiter.clear()
    ip_login_limiter.clear()


@pytest.fixture
def db():
    """Fresh in-memory database for each test"""
    return MockDatabase()


@pytest.fixture
def gridfs_bucket() -> MockGridFSBucket:
    return MockGridFSBucket(chunk_size=4)


@pytest.fixture
def image_store(gridfs_bucket: MockGridFSBucket) -> ImageStore:
    return ImageStore(gridfs_bucket)


@pytest.fixture
async def client(db, image_store: ImageStore) -> AsyncGenerator[AsyncClient, None]:
    """Create test client with database and image store overrides"""
    async def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_image_store] = lambda: image_store

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url='http://test') as ac:
        yield ac

    app.dependency_overrides.clear()


async def insert_user(db, role: str = 'user', password: str = TEST_PASSWORD, **fields) -> dict:
    """Insert a user document directly and return it without the password"""
    user = {
        'id': await next_sequence(db, USERS),
        'firstName': fake.first_name(),
        'lastName': fake.last_name(),
        'email': fake.unique.email().lower(),
        'password': get_password_hash(password),
        'role': role,
    }
    user.update(fields)
    await db[USERS].insert_one(user)
    user.pop('_id', None)
    user.pop('password', None)
    return user


def bearer(user: dict) -> dict:
    return {'Authorization': f"Bearer {create_token_pair(user)['token']}"}


@pytest.fixture
async def test_user(db) -> dict:
    """Create a test user"""
    return await insert_user(db)


@pytest.fixture
async def admin_user(db) -> dict:
    """Create an admin test user"""
    return await insert_user(db, role='admin')


@pytest.fixture
def auth_headers(test_user: dict) -> dict:
    """Generate authentication headers for test user"""
    return bearer(test_user)


@pytest.fixture
def admin_auth_headers(admin_user: dict) -> dict:
    """Generate authentication headers for admin user"""
    return bearer(admin_user)


async def insert_category(db, name: str, description: str = '', is_active: bool = True) -> dict:
    category = {
        'id': await next_sequence(db, CATEGORIES),
        'name': name,
        'description': description,
        'isActive': is_active,
    }
    await db[CATEGORIES].insert_one(category)
    category.pop('_id', None)
    return category


async def insert_product(db, **fields) -> dict:
    product = {
        'id': await next_sequence(db, PRODUCTS),
        'name': fake.catch_phrase(),
        'price': 10.0,
        'image': '/placeholder.svg',
        'images': [],
        'rating': 4.0,
        'reviews': 0,
        'category': 'Electronics',
        'inStock': True,
        'description': fake.sentence(),
    }
    product.update(fields)
    await db[PRODUCTS].insert_one(product)
    product.pop('_id', None)
    return product


@pytest.fixture
async def categories(db) -> list:
    """The default storefront categories"""
    return [
        await insert_category(db, name)
        for name in ('Electronics', 'Home', 'Fashion', 'Fitness', 'Beauty')
    ]
