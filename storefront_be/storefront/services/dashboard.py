"""Admin dashboard aggregates: KPIs, revenue series, category split and the small widgets."""
import logging
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Callable, Dict, List, Optional

from sqlalchemy import and_, func
from sqlalchemy.orm import Session, joinedload

from storefront.config import get_settings
from storefront.models.category import Category
from storefront.models.order import Order, PAYMENT_SUCCESS
from storefront.models.product import Product, Variant
from storefront.models.review import Review
from storefront.models.user import SessionLocal, User
from storefront.utils.dates import day_key, utcnow
from storefront.utils.formatters import floor_money, initials, short_order_id

logger = logging.getLogger(__name__)

REVENUE_WINDOWS = (("today", 0), ("week", 7), ("month", 30), ("year", 365))

DISTRIBUTION_MAX_ENTRIES = 6
DISTRIBUTION_TOP_N = 5
OTHERS_ID = "others"

EMPTY_METRICS = {
    "totalRevenue": 0,
    "customerCount": 0,
    "productCount": 0,
    "averageRating": 0,
    "lowStockCount": 0,
}


# ----- KPIs -----

def _total_revenue(db: Session) -> int:
    total = (
        db.query(func.coalesce(func.sum(Order.total_price), 0))
        .filter(Order.payment_status == PAYMENT_SUCCESS)
        .scalar()
    )
    return floor_money(total)


def _customer_count(db: Session) -> int:
    return db.query(func.count(User.id)).filter(User.role == "USER").scalar() or 0


def _product_count(db: Session) -> int:
    return db.query(func.count(Product.id)).filter(Product.is_archived.is_(False)).scalar() or 0


def _average_rating(db: Session) -> float:
    avg = db.query(func.avg(Review.rating)).scalar()
    return float(avg) if avg is not None else 0


def _low_stock_count(db: Session) -> int:
    threshold = get_settings().DASHBOARD_LOW_STOCK_THRESHOLD
    return db.query(func.count(Variant.id)).filter(Variant.stock < threshold).scalar() or 0


_METRIC_QUERIES = {
    "totalRevenue": _total_revenue,
    "customerCount": _customer_count,
    "productCount": _product_count,
    "averageRating": _average_rating,
    "lowStockCount": _low_stock_count,
}


def _run_in_session(session_factory: Callable[[], Session], query: Callable[[Session], object]):
    # Sessions are not thread-safe, so every concurrent query gets its own
    db = session_factory()
    try:
        return query(db)
    finally:
        db.close()


def get_dashboard_metrics(session_factory: Optional[Callable[[], Session]] = None) -> dict:
    """Headline KPIs, each from an independent aggregate query run concurrently.

    Any failure returns the zero-filled default; there is no per-field error.
    """
    session_factory = session_factory or SessionLocal
    try:
        with ThreadPoolExecutor(max_workers=len(_METRIC_QUERIES)) as pool:
            futures = {
                name: pool.submit(_run_in_session, session_factory, query)
                for name, query in _METRIC_QUERIES.items()
            }
            return {name: future.result() for name, future in futures.items()}
    except Exception:
        logger.exception("DASHBOARD_METRICS_ERROR")
        return dict(EMPTY_METRICS)


# ----- Revenue series -----

def _revenue_window(db: Session, days: int, now: datetime) -> List[dict]:
    today = now.date()
    start_day = today - timedelta(days=days)
    start = datetime.combine(start_day, datetime.min.time())

    # Zero-filled, oldest first; dict insertion order keeps it chronological
    buckets: Dict[str, Decimal] = {
        day_key(start_day + timedelta(days=offset)): Decimal(0) for offset in range(days + 1)
    }

    orders = (
        db.query(Order.total_price, Order.created_at)
        .filter(Order.payment_status == PAYMENT_SUCCESS, Order.created_at >= start)
        .all()
    )
    for total_price, created_at in orders:
        key = day_key(created_at)
        if key in buckets:
            buckets[key] += Decimal(total_price or 0)

    return [{"date": key, "revenue": floor_money(revenue)} for key, revenue in buckets.items()]


def empty_revenue_data() -> dict:
    return {
        "charts": {name: [] for name, _ in REVENUE_WINDOWS},
        "summary": {name: 0 for name, _ in REVENUE_WINDOWS},
    }


def get_revenue_dashboard_data(db: Session, now: Optional[datetime] = None) -> dict:
    """Paid revenue bucketed per day for the today/week/month/year windows.

    Each window runs its own query; the year window is not reused for the others.
    """
    now = now or utcnow()
    try:
        charts = {name: _revenue_window(db, days, now) for name, days in REVENUE_WINDOWS}
        summary = {name: sum(point["revenue"] for point in series) for name, series in charts.items()}
        return {"charts": charts, "summary": summary}
    except Exception:
        logger.exception("REVENUE_DASHBOARD_ERROR")
        return empty_revenue_data()


# ----- Category distribution -----

def collapse_distribution(entries: List[dict], top_n: int = DISTRIBUTION_TOP_N,
                          max_entries: int = DISTRIBUTION_MAX_ENTRIES) -> List[dict]:
    """Keep the leading ``top_n`` entries and fold the rest into one "Others" slice.

    ``entries`` must already be sorted. Lists that fit in ``max_entries`` come back unchanged.
    """
    if len(entries) <= max_entries:
        return list(entries)
    others = sum(entry["count"] for entry in entries[top_n:])
    return list(entries[:top_n]) + [{"id": OTHERS_ID, "name": "Others", "count": others}]


def get_category_distribution(db: Session) -> List[dict]:
    try:
        rows = (
            db.query(Category.id, Category.name, func.coalesce(func.sum(Variant.stock), 0))
            .outerjoin(Product, Product.category_id == Category.id)
            .outerjoin(Variant, Variant.product_id == Product.id)
            .group_by(Category.id, Category.name)
            .all()
        )
        distribution = [
            {"id": category_id, "name": name, "count": int(total)}
            for category_id, name, total in rows
            if int(total or 0) > 0
        ]
        # Name breaks ties so the chart order is stable between requests
        distribution.sort(key=lambda entry: (-entry["count"], entry["name"]))
        return collapse_distribution(distribution)
    except Exception:
        logger.exception("CATEGORY_DISTRIBUTION_ERROR")
        return []


# ----- Widgets -----

def get_recent_orders(db: Session, limit: int = 5) -> List[dict]:
    try:
        orders = (
            db.query(Order)
            .options(joinedload(Order.user))
            .order_by(Order.created_at.desc())
            .limit(limit)
            .all()
        )
        return [
            {
                "id": short_order_id(o.id),
                "customer": (o.user.name if o.user else None) or "Guest Customer",
                "amount": floor_money(o.total_price),
                "status": o.status,
            }
            for o in orders
        ]
    except Exception:
        logger.exception("RECENT_ORDERS_ERROR")
        return []


def get_low_stock_items(db: Session, limit: int = 10) -> List[dict]:
    try:
        threshold = get_settings().INVENTORY_LOW_STOCK_THRESHOLD
        variants = (
            db.query(Variant)
            .options(joinedload(Variant.product))
            .filter(Variant.stock < threshold)
            .order_by(Variant.stock.asc())
            .limit(limit)
            .all()
        )
        return [
            {
                "name": v.product.title,
                "variant": f"{v.type}: {v.value}",  # e.g. "Storage: 1TB"
                "stock": int(v.stock),
            }
            for v in variants
        ]
    except Exception:
        logger.exception("INVENTORY_STATUS_ERROR")
        return []


def get_top_customers(db: Session, limit: int = 5) -> List[dict]:
    """Customers ranked by what they spent on completed orders."""
    try:
        spent = func.coalesce(func.sum(Order.total_price), 0)
        rows = (
            db.query(User, spent.label("spent"))
            .outerjoin(Order, and_(Order.user_id == User.id, Order.status == "COMPLETED"))
            .filter(User.role == "USER")
            .group_by(User.id)
            .order_by(spent.desc(), User.created_at.asc())
            .limit(limit)
            .all()
        )
        return [
            {
                "id": user.id,
                "name": user.display_name,
                "email": user.email,
                "image": user.image,
                "spent": floor_money(total),
                "initials": initials(user.first_name, user.last_name),
            }
            for user, total in rows
        ]
    except Exception:
        logger.exception("GET_TOP_CUSTOMERS_ERROR")
        return []


def get_urgent_reviews(db: Session, limit: int = 5) -> List[dict]:
    try:
        reviews = (
            db.query(Review)
            .options(joinedload(Review.product), joinedload(Review.user))
            .filter(Review.rating <= 3)
            .order_by(Review.created_at.desc())
            .limit(limit)
            .all()
        )
        results = []
        for r in reviews:
            user = r.user
            display = user.name or f"{user.first_name or ''} {(user.last_name or '')[:1]}.".strip()
            results.append({
                "id": r.id,
                "user": display,
                "rating": r.rating,
                "comment": r.comment or "No comment provided.",
                "product": r.product.title,
            })
        return results
    except Exception:
        logger.exception("GET_URGENT_REVIEWS_ERROR")
        return []
