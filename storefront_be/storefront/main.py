from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import logging

from storefront.config import get_settings
from storefront.routers import auth, products, categories, orders, admin_customers, admin_dashboard

# Register every model before the first query configures the mappers
from storefront.models.user import Base, engine  # Base/engine single source
import storefront.models.category  # noqa: F401
import storefront.models.product  # noqa: F401
import storefront.models.order  # noqa: F401
import storefront.models.review  # noqa: F401

settings = get_settings()

logging.basicConfig(level=settings.LOG_LEVEL, format="%(asctime)s [%(levelname)s] %(name)s: %(message)s")
logger = logging.getLogger(__name__)

app = FastAPI(title="Storefront API")


@app.on_event("startup")
def on_startup():
    # Ensure all DB tables exist after all models are imported
    Base.metadata.create_all(bind=engine)
    logger.info("Database schema ready (%s)", engine.dialect.name)


# CORS configuration for the storefront and admin UI
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins or ["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(auth.router, prefix="/api/auth", tags=["auth"])
app.include_router(products.router, prefix="/api/products", tags=["products"])
app.include_router(products.admin_router, prefix="/api/admin/products", tags=["admin-products"])
app.include_router(categories.router, prefix="/api/admin/categories", tags=["admin-categories"])
app.include_router(orders.admin_router, prefix="/api/admin/orders", tags=["admin-orders"])
app.include_router(admin_customers.router, prefix="/api/admin/customers", tags=["admin-customers"])
app.include_router(admin_dashboard.router, prefix="/api/admin/dashboard", tags=["admin-dashboard"])


# --- Entry point for local runs ---
if __name__ == "__main__":
    import uvicorn, os
    port = int(os.environ.get("PORT", 8000))
    uvicorn.run("storefront.main:app", host="0.0.0.0", port=port, reload=False)
