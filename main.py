"""
Evo Store - Application Entry Point
=====================================
FastAPI app initialization, middleware, and router registration.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from apscheduler.schedulers.background import BackgroundScheduler

from config import settings
from config.database import SessionLocal, Base, engine
from common.exceptions import EvoError

scheduler_logger = logging.getLogger("evo.scheduler")

# ==========================================
# Import ALL models so Alembic/Base can see them
# ==========================================
from modules.admin.models import HomepageSetting  # noqa: F401
from modules.catalog.models import ProductCategory, Product, CuratedBundle  # noqa: F401
from modules.cart.models import CartSession  # noqa: F401
from modules.coupon.models import Coupon  # noqa: F401
from modules.order.models import Order  # noqa: F401
from modules.pricing.models import PricingRule  # noqa: F401

# ==========================================
# Import routers
# ==========================================
from modules.admin.routes import router as homepage_router
from modules.catalog.routes import router as catalog_router
from modules.catalog.admin_routes import router as catalog_admin_router
from modules.cart.routes import router as cart_router
from modules.coupon.routes import router as coupon_api_router
from modules.coupon.admin_routes import router as coupon_admin_router
from modules.order.routes import router as order_router
from modules.order.admin_routes import router as order_admin_router
from modules.payment.routes import router as payment_router
from modules.pricing.routes import router as pricing_router
from modules.pricing.admin_routes import router as pricing_admin_router


# ==========================================
# Background Scheduler: Expired Order Cleanup
# ==========================================
def _cleanup_expired_orders():
    """Background job: cancel unpaid orders past the payment window every 60 seconds."""
    db = SessionLocal()
    try:
        from modules.order.service import order_service
        count = order_service.release_expired_orders(db)
        if count:
            scheduler_logger.info(f"Released {count} expired orders")
    except Exception as e:
        db.rollback()
        scheduler_logger.error(f"Cleanup error: {e}")
    finally:
        db.close()


scheduler = BackgroundScheduler()


@asynccontextmanager
async def lifespan(app):
    # Auto-create any missing tables (safe for existing tables)
    Base.metadata.create_all(bind=engine)

    scheduler.add_job(_cleanup_expired_orders, 'interval', seconds=60, id='expired_orders')
    scheduler.start()
    scheduler_logger.info("Background scheduler started (orders: 60s)")
    yield
    scheduler.shutdown()
    scheduler_logger.info("Background scheduler stopped")


# ==========================================
# Create App
# ==========================================
app = FastAPI(
    title="Evo Store",
    description="Posters, frames and bundle deals",
    version="1.0.0",
    docs_url="/docs" if settings.DEBUG else None,
    redoc_url=None,
    lifespan=lifespan,
)


@app.exception_handler(EvoError)
async def evo_error_handler(request: Request, exc: EvoError):
    """Business errors that escape a route become 400s."""
    return JSONResponse({"detail": exc.message}, status_code=400)


# ==========================================
# Middleware: No-Cache for Studio pages
# ==========================================
_NO_CACHE_PREFIXES = ("/studio/",)

@app.middleware("http")
async def no_cache_studio(request: Request, call_next):
    """Studio stats and lists are always fresh."""
    response = await call_next(request)
    path = request.url.path
    if any(path.startswith(p) for p in _NO_CACHE_PREFIXES):
        response.headers["Cache-Control"] = "no-cache, no-store, must-revalidate"
        response.headers["Pragma"] = "no-cache"
        response.headers["Expires"] = "0"
    return response


# ==========================================
# Middleware: Maintenance Mode
# ==========================================
@app.middleware("http")
async def maintenance_check(request: Request, call_next):
    if settings.MAINTENANCE_MODE:
        path = request.url.path
        bypass = request.cookies.get("maintenance_bypass")

        # Health probe & bypass cookie
        if path == "/health" or (settings.MAINTENANCE_SECRET and bypass == settings.MAINTENANCE_SECRET):
            return await call_next(request)

        return JSONResponse(
            {"detail": "The store is being updated. Please check back in a few minutes."},
            status_code=503,
        )
    return await call_next(request)


# ==========================================
# Register Routers
# ==========================================
app.include_router(homepage_router)
app.include_router(catalog_router)
app.include_router(catalog_admin_router)
app.include_router(cart_router)
app.include_router(pricing_router)
app.include_router(pricing_admin_router)
app.include_router(coupon_api_router)
app.include_router(coupon_admin_router)
app.include_router(order_router)
app.include_router(order_admin_router)
app.include_router(payment_router)


# ==========================================
# Health check
# ==========================================
@app.get("/health")
async def health():
    return {"status": "ok", "version": "1.0.0"}
