"""Populate a development database with a couple of categories, products, a customer and an admin.

Run with ``storefront-seed`` (or ``python -m storefront.seed``). Rows are matched by
their unique keys, so running it twice does not duplicate anything.
"""
import logging
import os

from sqlalchemy.orm import Session

from storefront.main import Base, engine
from storefront.models.category import Category
from storefront.models.product import Product, Variant
from storefront.models.review import Review
from storefront.models.user import SessionLocal, User
from storefront.utils.security import hash_password
from storefront.utils.slugs import slugify

logger = logging.getLogger(__name__)

SAMPLE_PRODUCTS = [
    {
        "title": "iPhone 15 Pro",
        "description": "Titanium design and A17 Pro chip.",
        "price": 999.99,
        "category": "Electronics",
        "variants": [("Color", "Natural Titanium", 10), ("Storage", "256GB", 5)],
    },
    {
        "title": "Logitech G Pro Mouse",
        "description": "Wireless gaming mouse with HERO sensor.",
        "price": 129.99,
        "category": "Electronics",
        "variants": [("Color", "Black", 100), ("Color", "White", 45)],
    },
    {
        "title": "Vintage Denim Jacket",
        "description": "Classic blue denim jacket with a relaxed fit.",
        "price": 85.00,
        "category": "Fashion",
        # Large is deliberately out of stock
        "variants": [("Size", "Medium", 12), ("Size", "Large", 0)],
    },
]


def get_or_create_category(db: Session, name: str) -> Category:
    category = db.query(Category).filter(Category.name == name).first()
    if not category:
        category = Category(name=name, slug=slugify(name), is_active=True)
        db.add(category)
        db.flush()
    return category


def get_or_create_user(db: Session, email: str, first_name: str, last_name: str,
                       role: str = "USER", password: str = "Password123") -> User:
    user = db.query(User).filter(User.email == email).first()
    if not user:
        user = User(
            email=email,
            first_name=first_name,
            last_name=last_name,
            name=f"{first_name} {last_name}",
            role=role,
            password=hash_password(password),
        )
        db.add(user)
        db.flush()
    return user


def seed(db: Session) -> None:
    customer = get_or_create_user(db, "customer@example.com", "John", "Doe")
    get_or_create_user(
        db, os.getenv("SEED_ADMIN_EMAIL", "admin@example.com"), "Store", "Admin",
        role="ADMIN", password=os.getenv("SEED_ADMIN_PASSWORD", "Admin12345"),
    )

    for sample in SAMPLE_PRODUCTS:
        slug = slugify(sample["title"])
        if db.query(Product.id).filter(Product.slug == slug).first():
            continue
        category = get_or_create_category(db, sample["category"])
        product = Product(
            title=sample["title"],
            slug=slug,
            description=sample["description"],
            title_price=sample["price"],
            category_id=category.id,
            main_image_url=f"https://images.unsplash.com/photo-example-{slug}",
            colors=[],
            variants=[
                Variant(type=t, value=v, price=sample["price"], stock=stock)
                for t, v, stock in sample["variants"]
            ],
            reviews=[
                Review(
                    rating=5,
                    comment=f"This {sample['title']} is amazing! Highly recommended.",
                    user_id=customer.id,
                )
            ],
        )
        db.add(product)
        logger.info("Created product: %s", product.title)
    db.commit()


def main():
    logging.basicConfig(level=logging.INFO, format="%(asctime)s [%(levelname)s] %(name)s: %(message)s")
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        seed(db)
        logger.info("Seeding complete")
    except Exception:
        db.rollback()
        logger.exception("Seeding failed")
        raise
    finally:
        db.close()


if __name__ == "__main__":
    main()
