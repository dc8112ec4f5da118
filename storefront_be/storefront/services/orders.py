import logging
from typing import Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session, joinedload, selectinload

from storefront.models.order import Order
from storefront.models.user import User
from storefront.utils.formatters import floor_money
from storefront.utils.search import LIKE_ESCAPE, contains_pattern

logger = logging.getLogger(__name__)


def _empty_orders() -> dict:
    return {"orders": [], "stats": {"pending": 0, "completed": 0, "totalRevenue": 0}}


def serialize_order_row(order: Order) -> dict:
    user = order.user
    return {
        "id": order.id,
        "customerName": user.display_name if user else "Guest Customer",
        "email": user.email if user else None,
        "itemsCount": len(order.items),
        "total": floor_money(order.total_price),
        "status": order.status,
        "paymentStatus": order.payment_status,
        "txRef": order.tx_ref,
        "date": order.created_at.isoformat() if order.created_at else None,
    }


def get_orders_data(db: Session, query: Optional[str] = None) -> dict:
    """Admin order table plus the header counters.

    ``query`` matches order id, payment reference or customer name.
    """
    try:
        q = (
            db.query(Order)
            .join(User, Order.user_id == User.id)
            .options(joinedload(Order.user), selectinload(Order.items))
        )
        query = (query or "").strip()
        if query:
            pattern = contains_pattern(query)
            q = q.filter(or_(
                Order.id.ilike(pattern, escape=LIKE_ESCAPE),
                Order.tx_ref.ilike(pattern, escape=LIKE_ESCAPE),
                User.name.ilike(pattern, escape=LIKE_ESCAPE),
            ))
        orders = [serialize_order_row(o) for o in q.order_by(Order.created_at.desc()).all()]

        completed = [o for o in orders if o["status"] == "COMPLETED"]
        stats = {
            "pending": sum(1 for o in orders if o["status"] == "PENDING"),
            "completed": len(completed),
            "totalRevenue": sum(o["total"] for o in completed),
        }
        return {"orders": orders, "stats": stats}
    except Exception:
        logger.exception("ORDERS_FETCH_ERROR")
        return _empty_orders()
