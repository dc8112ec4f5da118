import logging
import math
import time
from typing import Dict, List, Optional

from pydantic import ValidationError
from sqlalchemy import func, or_, text
from sqlalchemy.orm import Session, selectinload

from storefront.config import get_settings
from storefront.models.category import Category
from storefront.models.order import OrderItem
from storefront.models.product import Product, ProductImage, Variant
from storefront.models.review import Review
from storefront.schemas.product import ProductIn, ProductVariantIn, ProductImageIn
from storefront.services.tags import connect_or_create_tags
from storefront.utils.errors import TransactionTimeout
from storefront.utils.formatters import to_float
from storefront.utils.responses import ok, fail
from storefront.utils.revalidation import (
    ADMIN_PRODUCTS_PATH,
    product_detail_path,
    render_cache,
    revalidate_path,
)
from storefront.utils.search import LIKE_ESCAPE, contains_pattern
from storefront.utils.slugs import generate_unique_slug

logger = logging.getLogger(__name__)

_PRODUCT_LOAD_OPTIONS = (
    selectinload(Product.category),
    selectinload(Product.variants),
    selectinload(Product.tags),
    selectinload(Product.images),
)


# Helpers

def _review_counts(db: Session, product_ids: List[str]) -> Dict[str, int]:
    if not product_ids:
        return {}
    rows = (
        db.query(Review.product_id, func.count(Review.id))
        .filter(Review.product_id.in_(product_ids))
        .group_by(Review.product_id)
        .all()
    )
    return {product_id: int(count) for product_id, count in rows}


def serialize_image(image: ProductImage) -> dict:
    return {
        "id": image.id,
        "productId": image.product_id,
        "url": image.url,
        "key": image.key,
        "altText": image.alt_text,
        "order": image.order,
    }


def serialize_product(product: Product, review_count: int = 0) -> dict:
    """Plain-data view of a product: Decimal prices become floats and stock is totalled."""
    variants = [
        {"id": v.id, "type": v.type, "value": v.value, "price": to_float(v.price), "stock": int(v.stock or 0)}
        for v in product.variants
    ]
    return {
        "id": product.id,
        "title": product.title,
        "slug": product.slug,
        "description": product.description,
        "titlePrice": to_float(product.title_price),
        "discountedPrice": to_float(product.discounted_price) if product.discounted_price else None,
        "categoryId": product.category_id,
        "categoryName": product.category.name if product.category else None,
        "mainImageUrl": product.main_image_url,
        "isFeatured": bool(product.is_featured),
        "isArchived": bool(product.is_archived),
        "colors": list(product.colors or []),
        "images": [serialize_image(i) for i in product.images],
        "variants": variants,
        "tags": [{"id": t.id, "name": t.name} for t in product.tags],
        "reviewCount": review_count,
        "totalStock": sum(v["stock"] for v in variants),
        "createdAt": product.created_at.isoformat() if product.created_at else None,
    }


def _build_images(images: List[ProductImageIn]) -> List[ProductImage]:
    return [
        ProductImage(url=str(img.url), key=img.key, alt_text=img.altText or "", order=img.order)
        for img in images
    ]


def _build_variants(variants: List[ProductVariantIn]) -> List[Variant]:
    return [Variant(type=v.type, value=v.value, price=v.price, stock=v.stock) for v in variants]


def _apply_scalar_fields(product: Product, data: ProductIn) -> None:
    product.title = data.title
    product.description = data.description
    product.title_price = data.titlePrice
    product.discounted_price = data.discountedPrice if data.discountedPrice else None
    product.category_id = data.categoryId
    product.main_image_url = str(data.mainImageUrl)
    product.is_featured = data.isFeatured
    product.is_archived = data.isArchived
    product.colors = list(data.colors)


def _apply_transaction_bounds(db: Session, max_wait_ms: int, timeout_ms: int) -> None:
    # SET LOCAL only lasts until the current transaction ends
    if db.get_bind().dialect.name == "postgresql":
        db.execute(text(f"SET LOCAL lock_timeout = {int(max_wait_ms)}"))
        db.execute(text(f"SET LOCAL statement_timeout = {int(timeout_ms)}"))


def _check_deadline(started: float, limit_ms: int) -> None:
    elapsed_ms = (time.monotonic() - started) * 1000.0
    if elapsed_ms > limit_ms:
        raise TransactionTimeout(elapsed_ms, limit_ms)


# Reads

def get_products(db: Session, include_archived: bool = True) -> List[dict]:
    try:
        query = db.query(Product).options(*_PRODUCT_LOAD_OPTIONS)
        if not include_archived:
            query = query.filter(Product.is_archived.is_(False))
        products = query.order_by(Product.created_at.desc()).all()
        counts = _review_counts(db, [p.id for p in products])
        return [serialize_product(p, counts.get(p.id, 0)) for p in products]
    except Exception:
        logger.exception("GET_PRODUCTS_ERROR")
        return []


def get_admin_products(db: Session, page: int = 1, page_size: int = 10, search: str = "") -> dict:
    page = max(1, int(page or 1))
    page_size = max(1, int(page_size or 10))
    search = (search or "").strip()
    cache_key = f"{ADMIN_PRODUCTS_PATH}?page={page}&pageSize={page_size}&search={search}"

    def render() -> dict:
        query = db.query(Product)
        if search:
            pattern = contains_pattern(search)
            query = query.filter(or_(
                Product.title.ilike(pattern, escape=LIKE_ESCAPE),
                Product.id.ilike(pattern, escape=LIKE_ESCAPE),
            ))
        total_count = query.count()
        products = (
            query.options(*_PRODUCT_LOAD_OPTIONS)
            .order_by(Product.created_at.desc())
            .offset((page - 1) * page_size)
            .limit(page_size)
            .all()
        )
        counts = _review_counts(db, [p.id for p in products])
        return {
            "data": [serialize_product(p, counts.get(p.id, 0)) for p in products],
            "totalCount": total_count,
            "totalPages": math.ceil(total_count / page_size),
        }

    try:
        return render_cache.get_or_render(cache_key, render)
    except Exception:
        logger.exception("GET_ADMIN_PRODUCTS_ERROR")
        return {"data": [], "totalCount": 0, "totalPages": 0}


def get_product_by_slug(db: Session, slug: str) -> Optional[dict]:
    """Public product detail page, served from the render cache until revalidated."""

    def render() -> Optional[dict]:
        product = (
            db.query(Product)
            .options(*_PRODUCT_LOAD_OPTIONS)
            .filter(Product.slug == slug, Product.is_archived.is_(False))
            .first()
        )
        if not product:
            return None
        return serialize_product(product, _review_counts(db, [product.id]).get(product.id, 0))

    try:
        return render_cache.get_or_render(product_detail_path(slug), render)
    except Exception:
        logger.exception("GET_PRODUCT_DETAIL_ERROR")
        return None


def get_product_images(db: Session, product_id: str) -> dict:
    try:
        images = (
            db.query(ProductImage)
            .filter(ProductImage.product_id == product_id)
            .order_by(ProductImage.order.asc())
            .all()
        )
        return ok([serialize_image(i) for i in images])
    except Exception:
        logger.exception("GET_PRODUCT_IMAGES_ERROR")
        return fail("Failed to fetch images")


# Writes

def create_product(db: Session, values: dict) -> dict:
    try:
        data = ProductIn.model_validate(values)
    except ValidationError as e:
        logger.info("Rejected product payload: %s", e.errors())
        return fail("Invalid fields")

    try:
        if not db.query(Category.id).filter(Category.id == data.categoryId).first():
            return fail("Category not found")

        product = Product(slug=data.slug or generate_unique_slug(db, Product, data.title))
        _apply_scalar_fields(product, data)
        product.images = _build_images(data.images)
        product.tags = connect_or_create_tags(db, data.tags)
        product.variants = _build_variants(data.variants)
        db.add(product)
        db.commit()
        db.refresh(product)

        revalidate_path(ADMIN_PRODUCTS_PATH)
        return ok(serialize_product(product))
    except Exception:
        db.rollback()
        logger.exception("CREATE_PRODUCT_ERROR")
        return fail("Failed to create product")


def update_product(db: Session, product_id: str, values: dict) -> dict:
    """Replace a product's full state in one transaction.

    Images and variants are deleted and recreated and the tag set is reset and
    reconnected. Either everything is written or, on any error or when the
    transaction runs past its bounds, nothing is.
    """
    try:
        data = ProductIn.model_validate(values)
    except ValidationError as e:
        logger.info("Rejected product payload: %s", e.errors())
        return fail("Invalid input")

    settings = get_settings()
    started = time.monotonic()
    try:
        _apply_transaction_bounds(db, settings.PRODUCT_TX_MAX_WAIT_MS, settings.PRODUCT_TX_TIMEOUT_MS)
        product = db.query(Product).filter(Product.id == product_id).with_for_update().first()
        _check_deadline(started, settings.PRODUCT_TX_MAX_WAIT_MS)
        if not product:
            db.rollback()
            return fail("Product not found")
        if not db.query(Category.id).filter(Category.id == data.categoryId).first():
            db.rollback()
            return fail("Category not found")
        previous_slug = product.slug

        # Clear existing relations so nothing is orphaned or duplicated
        db.query(ProductImage).filter(ProductImage.product_id == product.id).delete(synchronize_session=False)
        db.query(Variant).filter(Variant.product_id == product.id).delete(synchronize_session=False)
        db.expire(product, ["images", "variants"])

        _apply_scalar_fields(product, data)
        if data.slug:
            product.slug = data.slug
        product.images = _build_images(data.images)
        product.variants = _build_variants(data.variants)
        product.tags = []
        product.tags = connect_or_create_tags(db, data.tags)

        db.flush()
        _check_deadline(started, settings.PRODUCT_TX_TIMEOUT_MS)
        db.commit()
        db.refresh(product)
    except Exception:
        db.rollback()
        logger.exception("UPDATE_PRODUCT_ERROR")
        return fail("Failed to update product")

    revalidate_path(ADMIN_PRODUCTS_PATH)
    revalidate_path(product_detail_path(product.slug))
    if previous_slug != product.slug:
        revalidate_path(product_detail_path(previous_slug))
    return ok(serialize_product(product, _review_counts(db, [product.id]).get(product.id, 0)))


def delete_product(db: Session, product_id: str) -> dict:
    """Delete a product with its images, variants, reviews and tag links.

    Products that appear on orders are kept so order history stays intact;
    archive those instead.
    """
    try:
        product = db.query(Product).filter(Product.id == product_id).first()
        if not product:
            return fail("Product not found.")

        ordered = db.query(func.count(OrderItem.id)).filter(OrderItem.product_id == product_id).scalar() or 0
        if ordered > 0:
            return fail(f"Cannot delete: {ordered} order items reference this product. Archive it instead.")

        slug = product.slug
        db.delete(product)
        db.commit()

        revalidate_path(ADMIN_PRODUCTS_PATH)
        revalidate_path(product_detail_path(slug))
        return ok()
    except Exception:
        db.rollback()
        logger.exception("DELETE_PRODUCT_ERROR")
        return fail("Failed to delete product.")


def toggle_product_archive(db: Session, product_id: str, is_archived: bool) -> dict:
    try:
        product = db.query(Product).filter(Product.id == product_id).first()
        if not product:
            return fail("Product not found.")
        product.is_archived = bool(is_archived)
        db.commit()

        revalidate_path(ADMIN_PRODUCTS_PATH)
        revalidate_path(product_detail_path(product.slug))
        return ok()
    except Exception:
        db.rollback()
        logger.exception("TOGGLE_ARCHIVE_ERROR")
        return fail("Failed to update archive status.")
