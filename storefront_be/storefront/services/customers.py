import logging
from typing import Dict, List, Optional, Tuple

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from storefront.config import get_settings
from storefront.models.order import Order
from storefront.models.user import User
from storefront.utils.formatters import floor_money
from storefront.utils.search import LIKE_ESCAPE, contains_pattern

logger = logging.getLogger(__name__)


def is_vip(order_count: int, total_spent: float) -> bool:
    settings = get_settings()
    return order_count > settings.VIP_ORDER_THRESHOLD or total_spent > settings.VIP_SPEND_THRESHOLD


def _completed_order_totals(db: Session, user_ids: List[str]) -> Dict[str, Tuple[int, float]]:
    if not user_ids:
        return {}
    rows = (
        db.query(Order.user_id, func.count(Order.id), func.coalesce(func.sum(Order.total_price), 0))
        .filter(Order.user_id.in_(user_ids), Order.status == "COMPLETED")
        .group_by(Order.user_id)
        .all()
    )
    return {user_id: (int(count), float(total)) for user_id, count, total in rows}


def get_customers_data(db: Session, query: Optional[str] = None) -> dict:
    """Customer table (role USER only) with completed-order spend and VIP flag."""
    try:
        q = db.query(User).filter(User.role == "USER")
        query = (query or "").strip()
        if query:
            pattern = contains_pattern(query)
            q = q.filter(or_(
                User.name.ilike(pattern, escape=LIKE_ESCAPE),
                User.email.ilike(pattern, escape=LIKE_ESCAPE),
                User.first_name.ilike(pattern, escape=LIKE_ESCAPE),
                User.last_name.ilike(pattern, escape=LIKE_ESCAPE),
            ))
        users = q.order_by(User.created_at.desc()).all()
        totals = _completed_order_totals(db, [u.id for u in users])

        customers = []
        for user in users:
            order_count, total_spent = totals.get(user.id, (0, 0.0))
            customers.append({
                "id": user.id,
                "name": user.display_name,
                "email": user.email,
                "image": user.image,
                "totalOrders": order_count,
                "totalSpent": floor_money(total_spent),
                "joinedAt": user.created_at.isoformat() if user.created_at else None,
                "isVIP": is_vip(order_count, total_spent),
            })

        stats = {
            "totalCount": len(customers),
            "vipCount": sum(1 for c in customers if c["isVIP"]),
            "totalRevenue": sum(c["totalSpent"] for c in customers),
        }
        return {"customers": customers, "stats": stats}
    except Exception:
        logger.exception("CUSTOMERS_FETCH_ERROR")
        return {"customers": [], "stats": {"totalCount": 0, "vipCount": 0, "totalRevenue": 0}}
