from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from storefront.models.user import User, get_db
from storefront.services.customers import get_customers_data
from storefront.utils.security import require_admin


router = APIRouter()


@router.get("/")
def get_customers(
    query: Optional[str] = Query(None, description="Matches name, email, first or last name"),
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    return get_customers_data(db, query)
