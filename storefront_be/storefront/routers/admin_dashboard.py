from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from storefront.models.user import User, get_db
from storefront.services import dashboard
from storefront.utils.security import require_admin


router = APIRouter()

# Every widget degrades to an empty/zero payload on failure so the page still renders.


@router.get("/metrics")
def get_metrics(admin: User = Depends(require_admin)):
    return dashboard.get_dashboard_metrics()


@router.get("/recent-orders")
def get_recent_orders(db: Session = Depends(get_db), admin: User = Depends(require_admin)):
    return dashboard.get_recent_orders(db)


@router.get("/low-stock")
def get_low_stock_items(db: Session = Depends(get_db), admin: User = Depends(require_admin)):
    return dashboard.get_low_stock_items(db)


@router.get("/revenue")
def get_revenue(db: Session = Depends(get_db), admin: User = Depends(require_admin)):
    return dashboard.get_revenue_dashboard_data(db)


@router.get("/category-distribution")
def get_category_distribution(db: Session = Depends(get_db), admin: User = Depends(require_admin)):
    return dashboard.get_category_distribution(db)


@router.get("/top-customers")
def get_top_customers(db: Session = Depends(get_db), admin: User = Depends(require_admin)):
    return dashboard.get_top_customers(db)


@router.get("/urgent-reviews")
def get_urgent_reviews(db: Session = Depends(get_db), admin: User = Depends(require_admin)):
    return dashboard.get_urgent_reviews(db)
