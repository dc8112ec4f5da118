import logging
from typing import List

from pydantic import ValidationError
from sqlalchemy import func
from sqlalchemy.orm import Session

from storefront.models.category import Category
from storefront.models.product import Product
from storefront.schemas.category import CategoryIn, CategoryUpdate
from storefront.utils.responses import ok, fail
from storefront.utils.revalidation import (
    ADMIN_CATEGORIES_PATH,
    ADMIN_PRODUCTS_PATH,
    product_detail_path,
    revalidate_path,
)
from storefront.utils.slugs import generate_unique_slug

logger = logging.getLogger(__name__)


def serialize_category(category: Category, product_count: int = 0) -> dict:
    return {
        "id": category.id,
        "name": category.name,
        "slug": category.slug,
        "isActive": bool(category.is_active),
        "createdAt": category.created_at.isoformat() if category.created_at else None,
        "productCount": int(product_count or 0),
    }


def create_category(db: Session, name: str) -> dict:
    try:
        try:
            name = CategoryIn(name=name).name
        except ValidationError:
            return fail("Category name is required.")

        # Store only enforces exact uniqueness; "Books" vs "books" is checked here
        existing = db.query(Category.id).filter(func.lower(Category.name) == name.lower()).first()
        if existing:
            return fail("A category with this name already exists.")

        category = Category(
            name=name,
            slug=generate_unique_slug(db, Category, name),
            is_active=True,
        )
        db.add(category)
        db.commit()
        db.refresh(category)

        revalidate_path(ADMIN_CATEGORIES_PATH)
        return ok(serialize_category(category))
    except Exception:
        db.rollback()
        logger.exception("CREATE_CATEGORY_ERROR")
        return fail("An unexpected error occurred while saving.")


def update_category(db: Session, category_id: str, name: str, is_active: bool) -> dict:
    try:
        try:
            values = CategoryUpdate(name=name, isActive=is_active)
        except ValidationError:
            return fail("Category name is required.")

        category = db.query(Category).filter(Category.id == category_id).first()
        if not category:
            return fail("Category not found.")

        taken = (
            db.query(Category.id)
            .filter(func.lower(Category.name) == values.name.lower(), Category.id != category_id)
            .first()
        )
        if taken:
            return fail("A category with this name already exists.")

        category.slug = generate_unique_slug(db, Category, values.name, exclude_id=category.id)
        category.name = values.name
        category.is_active = values.isActive
        db.commit()

        # Product pages show the category name
        slugs = [slug for (slug,) in db.query(Product.slug).filter(Product.category_id == category_id).all()]
        revalidate_path(ADMIN_CATEGORIES_PATH)
        revalidate_path(ADMIN_PRODUCTS_PATH)
        for slug in slugs:
            revalidate_path(product_detail_path(slug))
        return ok()
    except Exception:
        db.rollback()
        logger.exception("UPDATE_CATEGORY_ERROR")
        return fail("Failed to update category. The name might be taken.")


def delete_category(db: Session, category_id: str) -> dict:
    try:
        category = db.query(Category).filter(Category.id == category_id).first()
        if not category:
            return fail("Category not found.")

        product_count = db.query(func.count(Product.id)).filter(Product.category_id == category_id).scalar() or 0
        if product_count > 0:
            return fail(f"Cannot delete: {product_count} products are still in this category.")

        db.delete(category)
        db.commit()

        revalidate_path(ADMIN_CATEGORIES_PATH)
        revalidate_path(ADMIN_PRODUCTS_PATH)
        return ok()
    except Exception:
        db.rollback()
        logger.exception("DELETE_CATEGORY_ERROR")
        return fail("An error occurred while trying to delete.")


def get_categories(db: Session) -> List[dict]:
    """All categories, newest first, with how many products each one holds."""
    try:
        rows = (
            db.query(Category, func.count(Product.id))
            .outerjoin(Product, Product.category_id == Category.id)
            .group_by(Category.id)
            .order_by(Category.created_at.desc())
            .all()
        )
        return [serialize_category(category, count) for category, count in rows]
    except Exception:
        logger.exception("FETCH_CATEGORIES_ERROR")
        return []


def get_categories_for_select(db: Session) -> List[dict]:
    try:
        rows = db.query(Category.id, Category.name).order_by(Category.name.asc()).all()
        return [{"id": r.id, "name": r.name} for r in rows]
    except Exception:
        logger.exception("FETCH_CATEGORY_OPTIONS_ERROR")
        return []
