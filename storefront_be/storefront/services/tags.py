import logging
from typing import Iterable, List

from sqlalchemy.orm import Session

from storefront.models.product import Product, Tag
from storefront.utils.responses import ok, fail
from storefront.utils.revalidation import ADMIN_PRODUCTS_PATH, product_detail_path, revalidate_path

logger = logging.getLogger(__name__)


def _clean_names(names: Iterable) -> List[str]:
    seen = []
    for raw in names or []:
        # Accept plain strings or {"name": ...} objects from the tag input
        name = raw.get("name") if isinstance(raw, dict) else raw
        name = (name or "").strip()
        if name and name not in seen:
            seen.append(name)
    return seen


def connect_or_create_tags(db: Session, names: Iterable) -> List[Tag]:
    """Resolve tag names to Tag rows, creating the missing ones in the current transaction."""
    cleaned = _clean_names(names)
    if not cleaned:
        return []
    existing = {t.name: t for t in db.query(Tag).filter(Tag.name.in_(cleaned)).all()}
    tags = []
    for name in cleaned:
        tag = existing.get(name)
        if tag is None:
            tag = Tag(name=name)
            db.add(tag)
            existing[name] = tag
        tags.append(tag)
    return tags


def get_product_tags(db: Session, product_id: str) -> List[dict]:
    try:
        tags = (
            db.query(Tag)
            .filter(Tag.products.any(Product.id == product_id))
            .order_by(Tag.name.asc())
            .all()
        )
        return [{"id": t.id, "name": t.name} for t in tags]
    except Exception:
        logger.exception("GET_TAGS_ERROR")
        return []


def sync_product_tags(db: Session, product_id: str, names: Iterable) -> dict:
    """Replace the product's tag set: clear it, then connect-or-create each name."""
    try:
        product = db.query(Product).filter(Product.id == product_id).first()
        if not product:
            return fail("Product not found")
        product.tags = []
        product.tags = connect_or_create_tags(db, names)
        db.commit()

        revalidate_path(ADMIN_PRODUCTS_PATH)
        revalidate_path(product_detail_path(product.slug))
        return ok()
    except Exception:
        db.rollback()
        logger.exception("SYNC_TAGS_ERROR")
        return fail("Failed to sync tags")
