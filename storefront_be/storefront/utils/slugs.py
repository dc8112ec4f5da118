import logging
import re
import secrets
from typing import Optional

from sqlalchemy.orm import Session

from storefront.config import get_settings
from storefront.utils.errors import SlugConflictError

logger = logging.getLogger(__name__)

_WHITESPACE = re.compile(r"\s+")
_NON_SLUG = re.compile(r"[^\w-]+", re.ASCII)
_REPEATED_HYPHENS = re.compile(r"--+")


def slugify(name: str) -> str:
    """Turn a display name into a URL-safe identifier.

    >>> slugify("Smart Home Electronics")
    'smart-home-electronics'
    """
    slug = (name or "").lower().strip()
    slug = _WHITESPACE.sub("-", slug)
    slug = _NON_SLUG.sub("", slug)
    return _REPEATED_HYPHENS.sub("-", slug)


def _slug_taken(db: Session, model, slug: str, exclude_id: Optional[str]) -> bool:
    query = db.query(model.id).filter(model.slug == slug)
    if exclude_id:
        query = query.filter(model.id != exclude_id)
    return query.first() is not None


def generate_unique_slug(db: Session, model, name: str, exclude_id: Optional[str] = None) -> str:
    """Derive a slug for ``model`` rows (Category or Product) that is not used by another row.

    When updating, pass the row's own id as ``exclude_id`` so keeping the same name
    keeps the same slug. On collision a 4 hex character suffix is appended and the
    candidate is checked again, up to ``SLUG_MAX_ATTEMPTS`` suffixes.
    """
    base_slug = slugify(name)
    if not _slug_taken(db, model, base_slug, exclude_id):
        return base_slug

    attempts = max(1, get_settings().SLUG_MAX_ATTEMPTS)
    for _ in range(attempts):
        candidate = f"{base_slug}-{secrets.token_hex(2)}"
        if not _slug_taken(db, model, candidate, exclude_id):
            return candidate
        logger.warning("Slug candidate %s already taken, retrying", candidate)
    raise SlugConflictError(base_slug, attempts)
