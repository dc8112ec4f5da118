from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from storefront.models.user import User, get_db
from storefront.services.orders import get_orders_data
from storefront.utils.security import require_admin


admin_router = APIRouter()


@admin_router.get("/")
def get_admin_orders(
    query: Optional[str] = Query(None, description="Matches order id, tx_ref or customer name"),
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    return get_orders_data(db, query)
