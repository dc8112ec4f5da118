from datetime import datetime, timedelta

import pytest

from storefront.models.user import SessionLocal
from storefront.services import dashboard

NOW = datetime(2026, 3, 15, 12, 0, 0)


# ----- revenue -----

def test_revenue_windows_bucket_paid_orders(db, make_user, make_order):
    user = make_user()
    make_order(user, 100, created_at=NOW - timedelta(hours=2))
    make_order(user, 200, created_at=NOW - timedelta(hours=1))
    make_order(user, 50, created_at=NOW - timedelta(days=10))
    make_order(user, 999, payment_status="pending", created_at=NOW)
    make_order(user, 75, created_at=NOW - timedelta(days=400))

    data = dashboard.get_revenue_dashboard_data(db, now=NOW)

    assert data["summary"] == {"today": 300, "week": 300, "month": 350, "year": 350}
    week = data["charts"]["week"]
    assert len(week) == 8
    assert week[0] == {"date": "2026-03-08", "revenue": 0}
    assert week[-1] == {"date": "2026-03-15", "revenue": 300}
    assert len(data["charts"]["today"]) == 1
    assert len(data["charts"]["month"]) == 31
    assert len(data["charts"]["year"]) == 366


def test_revenue_is_floored(db, make_user, make_order):
    user = make_user()
    make_order(user, 10.75, created_at=NOW)
    make_order(user, 0.50, created_at=NOW)

    data = dashboard.get_revenue_dashboard_data(db, now=NOW)

    assert data["summary"]["today"] == 11


def test_revenue_with_no_orders_is_zero_filled(db):
    data = dashboard.get_revenue_dashboard_data(db, now=NOW)

    assert all(point["revenue"] == 0 for point in data["charts"]["month"])
    assert data["summary"] == {"today": 0, "week": 0, "month": 0, "year": 0}


def test_revenue_failure_returns_empty_shape(db, monkeypatch):
    def boom(*args):
        raise RuntimeError("db down")

    monkeypatch.setattr(dashboard, "_revenue_window", boom)

    assert dashboard.get_revenue_dashboard_data(db, now=NOW) == dashboard.empty_revenue_data()


# ----- metrics -----

def test_dashboard_metrics(db, make_user, make_category, make_product, make_order, make_review):
    customer = make_user()
    make_user(role="ADMIN", email="boss@example.com")
    category = make_category()
    phone = make_product(category, title="Phone", variants=[("Color", "Red", 10, 2), ("Color", "Blue", 10, 8)])
    make_product(category, title="Old Phone", is_archived=True, variants=[("Color", "Grey", 10, 0)])
    make_order(customer, 120.60)
    make_order(customer, 80.50)
    make_order(customer, 500, payment_status="failed")
    make_review(phone, customer, 5)
    make_review(phone, customer, 2)

    metrics = dashboard.get_dashboard_metrics()

    assert metrics == {
        "totalRevenue": 201,
        "customerCount": 1,
        "productCount": 1,
        "averageRating": pytest.approx(3.5),
        "lowStockCount": 2,
    }


def test_dashboard_metrics_failure_is_all_zero():
    def broken_session():
        raise RuntimeError("no database")

    assert dashboard.get_dashboard_metrics(session_factory=broken_session) == dashboard.EMPTY_METRICS


def test_dashboard_metrics_empty_database():
    assert dashboard.get_dashboard_metrics(session_factory=SessionLocal) == dashboard.EMPTY_METRICS


# ----- category distribution -----

def _entries(counts):
    return [{"id": f"c{i}", "name": f"Category {i}", "count": c} for i, c in enumerate(counts)]


def test_collapse_distribution_folds_tail_into_others():
    collapsed = dashboard.collapse_distribution(_entries([50, 40, 30, 20, 10, 5, 1]))

    assert len(collapsed) == 6
    assert [e["count"] for e in collapsed] == [50, 40, 30, 20, 10, 6]
    assert collapsed[-1] == {"id": "others", "name": "Others", "count": 6}


@pytest.mark.parametrize("size", [0, 1, 6])
def test_collapse_distribution_short_lists_unchanged(size):
    entries = _entries(list(range(size, 0, -1)))
    assert dashboard.collapse_distribution(entries) == entries


def test_category_distribution_sums_stock(db, make_category, make_product):
    audio = make_category("Audio")
    books = make_category("Books")
    empty = make_category("Empty")
    make_product(audio, title="Speaker", variants=[("Color", "Black", 10, 4), ("Color", "White", 10, 6)])
    make_product(books, title="Novel", variants=[("Format", "Paperback", 10, 10)])
    make_product(empty, title="Ghost", variants=[("Size", "M", 10, 0)])

    distribution = dashboard.get_category_distribution(db)

    # equal counts fall back to name order; zero-stock categories are left out
    assert [(e["name"], e["count"]) for e in distribution] == [("Audio", 10), ("Books", 10)]


def test_category_distribution_collapses_many_categories(db, make_category, make_product):
    for i, stock in enumerate([50, 40, 30, 20, 10, 5, 1]):
        category = make_category(f"Category {i}")
        make_product(category, title=f"Item {i}", variants=[("Size", "M", 10, stock)])

    distribution = dashboard.get_category_distribution(db)

    assert len(distribution) == 6
    assert distribution[-1]["name"] == "Others"
    assert distribution[-1]["count"] == 6


# ----- widgets -----

def test_recent_orders(db, make_user, make_order):
    user = make_user(first_name="Ada", last_name="Lovelace")
    nameless = make_user(name="")
    old = make_order(user, 10.9, created_at=NOW - timedelta(days=1))
    new = make_order(nameless, 25, status="PENDING", created_at=NOW)

    recent = dashboard.get_recent_orders(db)

    assert recent == [
        {"id": new.id[-7:].upper(), "customer": "Guest Customer", "amount": 25, "status": "PENDING"},
        {"id": old.id[-7:].upper(), "customer": "Ada Lovelace", "amount": 10, "status": "COMPLETED"},
    ]


def test_recent_orders_limited_to_five(db, make_user, make_order):
    user = make_user()
    for day in range(7):
        make_order(user, 10, created_at=NOW - timedelta(days=day))

    assert len(dashboard.get_recent_orders(db)) == 5


def test_low_stock_items(db, make_category, make_product):
    category = make_category()
    make_product(category, title="Laptop", variants=[("Storage", "1TB", 10, 3), ("Storage", "512GB", 10, 40)])
    make_product(category, title="Mouse", variants=[("Color", "White", 10, 0), ("Color", "Black", 10, 9)])

    items = dashboard.get_low_stock_items(db)

    assert items == [
        {"name": "Mouse", "variant": "Color: White", "stock": 0},
        {"name": "Laptop", "variant": "Storage: 1TB", "stock": 3},
        {"name": "Mouse", "variant": "Color: Black", "stock": 9},
    ]


def test_top_customers_ranked_by_completed_spend(db, make_user, make_order):
    big = make_user(first_name="Big", last_name="Spender", created_at=NOW - timedelta(days=3))
    small = make_user(first_name="Small", last_name="Buyer", created_at=NOW - timedelta(days=2))
    idle = make_user(first_name="Window", last_name="Shopper", created_at=NOW - timedelta(days=1))
    admin = make_user(first_name="Store", last_name="Admin", role="ADMIN", email="boss@example.com")
    make_order(big, 300.99)
    make_order(big, 100)
    make_order(small, 50)
    make_order(small, 5000, status="PENDING")
    make_order(admin, 9999)

    top = dashboard.get_top_customers(db)

    assert [(c["name"], c["spent"], c["initials"]) for c in top] == [
        ("Big Spender", 400, "BS"),
        ("Small Buyer", 50, "SB"),
        ("Window Shopper", 0, "WS"),
    ]
    assert top[0]["id"] == big.id
    assert idle.id in {c["id"] for c in top}


def test_urgent_reviews(db, make_user, make_category, make_product, make_review):
    product = make_product(make_category(), title="Kettle")
    named = make_user(first_name="Ada", last_name="Lovelace")
    unnamed = make_user(first_name="Grace", last_name="Hopper", name="")
    make_review(product, named, 5, "Great", created_at=NOW - timedelta(days=3))
    make_review(product, named, 3, "Meh", created_at=NOW - timedelta(days=2))
    make_review(product, unnamed, 1, None, created_at=NOW - timedelta(days=1))

    reviews = dashboard.get_urgent_reviews(db)

    assert [(r["user"], r["rating"], r["comment"], r["product"]) for r in reviews] == [
        ("Grace H.", 1, "No comment provided.", "Kettle"),
        ("Ada Lovelace", 3, "Meh", "Kettle"),
    ]
