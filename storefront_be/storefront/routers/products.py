from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from storefront.forms.product_wizard import STEP_FIELDS, ProductFormStep, ProductWizard
from storefront.models.user import User, get_db
from storefront.schemas.product import ProductOut, TagOut
from storefront.services import products as product_service
from storefront.services import tags as tag_service
from storefront.utils.alerts import AlertChannel
from storefront.utils.responses import ok, fail
from storefront.utils.security import require_admin


router = APIRouter()
admin_router = APIRouter()


# ----- Storefront -----

@router.get("/", response_model=List[ProductOut])
def get_all_products(db: Session = Depends(get_db)):
    """Published (non-archived) products, newest first."""
    return product_service.get_products(db, include_archived=False)


@router.get("/slug/{slug}", response_model=ProductOut)
def get_product_by_slug(slug: str, db: Session = Depends(get_db)):
    product = product_service.get_product_by_slug(db, slug)
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")
    return product


@router.get("/{id}/images")
def get_product_images(id: str, db: Session = Depends(get_db)):
    return product_service.get_product_images(db, id)


@router.get("/{id}/tags", response_model=List[TagOut])
def get_product_tags(id: str, db: Session = Depends(get_db)):
    return tag_service.get_product_tags(db, id)


# ----- Admin -----

@admin_router.get("/")
def get_admin_products(
    page: int = Query(1, ge=1),
    pageSize: int = Query(10, ge=1, le=100),
    search: str = Query(""),
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    return product_service.get_admin_products(db, page=page, page_size=pageSize, search=search)


@admin_router.post("/")
def create_product(payload: dict, db: Session = Depends(get_db), admin: User = Depends(require_admin)):
    return product_service.create_product(db, payload)


@admin_router.put("/{id}")
def update_product(id: str, payload: dict, db: Session = Depends(get_db), admin: User = Depends(require_admin)):
    return product_service.update_product(db, id, payload)


@admin_router.delete("/{id}")
def delete_product(id: str, db: Session = Depends(get_db), admin: User = Depends(require_admin)):
    return product_service.delete_product(db, id)


@admin_router.put("/{id}/archive")
def toggle_product_archive(id: str, payload: dict, db: Session = Depends(get_db), admin: User = Depends(require_admin)):
    return product_service.toggle_product_archive(db, id, bool(payload.get("isArchived")))


@admin_router.put("/{id}/tags")
def sync_product_tags(id: str, payload: dict, db: Session = Depends(get_db), admin: User = Depends(require_admin)):
    return tag_service.sync_product_tags(db, id, payload.get("tags") or [])


@admin_router.post("/validate")
def validate_product_step(
    payload: dict,
    step: ProductFormStep = Query(ProductFormStep.DETAILS),
    admin: User = Depends(require_admin),
):
    """Run the product form's gate for one step; on success report the step to show next."""
    if step not in STEP_FIELDS:
        return fail(f"Nothing to validate on step '{step.value}'")
    alerts = AlertChannel()
    wizard = ProductWizard.resume(step, payload, alerts=alerts)
    if wizard.next():
        return ok({"nextStep": wizard.step.value})
    return {**fail(alerts.current.message), "fieldErrors": wizard.errors}
