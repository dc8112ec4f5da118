import os
import tempfile

# Configure the database before any storefront module reads the settings
_DB_DIR = tempfile.mkdtemp(prefix="storefront-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_DB_DIR, 'storefront.db')}"
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("ALGORITHM", "HS256")

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from storefront.main import app, Base, engine  # noqa: E402
from storefront.models.category import Category  # noqa: E402
from storefront.models.order import Order, OrderItem  # noqa: E402
from storefront.models.product import Product, ProductImage, Variant  # noqa: E402
from storefront.models.review import Review  # noqa: E402
from storefront.models.user import SessionLocal, User  # noqa: E402
from storefront.utils.dates import utcnow  # noqa: E402
from storefront.utils.revalidation import render_cache  # noqa: E402
from storefront.utils.security import create_access_token, hash_password  # noqa: E402
from storefront.utils.slugs import slugify  # noqa: E402

# Hashed once at import; bcrypt is slow per call
DEFAULT_PASSWORD = "Password123"
_DEFAULT_HASH = hash_password(DEFAULT_PASSWORD)


@pytest.fixture(autouse=True)
def _schema():
    Base.metadata.create_all(bind=engine)
    render_cache.clear()
    yield
    render_cache.clear()
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client():
    with TestClient(app) as c:
        yield c


# ----- factories -----

@pytest.fixture
def make_user(db):
    counter = {"n": 0}

    def _make(first_name="Jane", last_name="Doe", role="USER", email=None, name=None,
              password=DEFAULT_PASSWORD, created_at=None):
        counter["n"] += 1
        user = User(
            email=email or f"user{counter['n']}@example.com",
            first_name=first_name,
            last_name=last_name,
            name=name if name is not None else f"{first_name} {last_name}",
            role=role,
            password=_DEFAULT_HASH if password == DEFAULT_PASSWORD else hash_password(password),
            created_at=created_at or utcnow(),
        )
        db.add(user)
        db.commit()
        return user

    return _make


@pytest.fixture
def make_category(db):
    def _make(name="Electronics", is_active=True, created_at=None):
        category = Category(name=name, slug=slugify(name), is_active=is_active, created_at=created_at or utcnow())
        db.add(category)
        db.commit()
        return category

    return _make


@pytest.fixture
def make_product(db):
    def _make(category, title="Phone", price=100, variants=None, images=None, is_archived=False,
              created_at=None, slug=None):
        product = Product(
            title=title,
            slug=slug or slugify(title),
            description="A product used in tests.",
            title_price=price,
            category_id=category.id,
            main_image_url="https://cdn.example.com/main.jpg",
            is_archived=is_archived,
            colors=["Black"],
            created_at=created_at or utcnow(),
            variants=[
                Variant(type=t, value=v, price=p, stock=s)
                for t, v, p, s in (variants or [])
            ],
            images=[
                ProductImage(url=url, key=f"key-{i}", order=order)
                for i, (url, order) in enumerate(images or [])
            ],
        )
        db.add(product)
        db.commit()
        return product

    return _make


@pytest.fixture
def make_order(db):
    counter = {"n": 0}

    def _make(user, total, status="COMPLETED", payment_status="success", created_at=None,
              tx_ref=None, items=None):
        counter["n"] += 1
        order = Order(
            user_id=user.id,
            total_price=total,
            status=status,
            payment_status=payment_status,
            tx_ref=tx_ref or f"tx-{counter['n']:04d}",
            created_at=created_at or utcnow(),
            items=[
                OrderItem(product_id=product.id, quantity=qty, price=price)
                for product, qty, price in (items or [])
            ],
        )
        db.add(order)
        db.commit()
        return order

    return _make


@pytest.fixture
def make_review(db):
    def _make(product, user, rating, comment=None, created_at=None):
        review = Review(
            product_id=product.id,
            user_id=user.id,
            rating=rating,
            comment=comment,
            created_at=created_at or utcnow(),
        )
        db.add(review)
        db.commit()
        return review

    return _make


@pytest.fixture
def admin_headers(make_user):
    admin = make_user(first_name="Store", last_name="Admin", role="ADMIN", email="admin@example.com")
    return {"Authorization": f"Bearer {create_access_token(subject=admin.id)}"}


@pytest.fixture
def user_headers(make_user):
    user = make_user(first_name="Casey", last_name="Shopper", email="shopper@example.com")
    return {"Authorization": f"Bearer {create_access_token(subject=user.id)}"}


@pytest.fixture
def product_payload():
    def _payload(category_id, **overrides):
        payload = {
            "title": "Smart Speaker",
            "description": "A speaker that listens and plays music.",
            "titlePrice": "149.99",
            "discountedPrice": None,
            "categoryId": category_id,
            "mainImageUrl": "https://cdn.example.com/speaker.jpg",
            "isFeatured": True,
            "tags": ["audio", "smart-home"],
            "colors": ["Charcoal", "Chalk"],
            "images": [
                {"url": "https://cdn.example.com/speaker-2.jpg", "key": "img-2", "altText": "Side", "order": 1},
                {"url": "https://cdn.example.com/speaker-1.jpg", "key": "img-1", "order": 0},
            ],
            "variants": [
                {"type": "Color", "value": "Charcoal", "price": "149.99", "stock": 12},
                {"type": "Color", "value": "Chalk", "price": 149.99, "stock": 3},
            ],
        }
        payload.update(overrides)
        return payload

    return _payload

