from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from storefront.models.user import User, get_db
from storefront.services import categories as category_service
from storefront.utils.security import require_admin


router = APIRouter()


@router.get("/")
def list_categories(db: Session = Depends(get_db), admin: User = Depends(require_admin)):
    return category_service.get_categories(db)


@router.get("/select")
def list_categories_for_select(db: Session = Depends(get_db), admin: User = Depends(require_admin)):
    return category_service.get_categories_for_select(db)


@router.post("/")
def create_category(payload: dict, db: Session = Depends(get_db), admin: User = Depends(require_admin)):
    return category_service.create_category(db, payload.get("name") or "")


@router.put("/{id}")
def update_category(id: str, payload: dict, db: Session = Depends(get_db), admin: User = Depends(require_admin)):
    return category_service.update_category(
        db,
        id,
        payload.get("name") or "",
        bool(payload.get("isActive", True)),
    )


@router.delete("/{id}")
def delete_category(id: str, db: Session = Depends(get_db), admin: User = Depends(require_admin)):
    return category_service.delete_category(db, id)
