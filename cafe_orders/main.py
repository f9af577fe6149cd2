"""
FastAPI Application Entry Point

Café Ordering System - order lifecycle API
Storage is pluggable (JSON file, SQL database, spreadsheet feed) and
selected with STORAGE_BACKEND.

Endpoints:
    - POST /api/orders: Place an order (customer)
    - GET /api/orders: Barista board, every order
    - GET /api/orders/{customerId}: One customer's orders
    - PATCH /api/orders/{orderId}: Status change (staff)
    - POST /api/orders/{orderId}/cancel: Cancellation (customer)
    - POST /api/orders/{orderId}/feedback: Rating of a delivered order
    - GET /api/me, /api/me/orders, /api/me/pending: Caller's identity and orders
    - GET /api/menu, /api/toppings: Catalog
    - GET /health: System health check

Author: Khalil Bannouri
Version: 1.0.0
"""

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, Optional

from fastapi import Depends, FastAPI, Query, Request, Response, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

# Internal imports
from cafe_orders.core.config import get_settings, setup_logging
from cafe_orders.core.exceptions import (
    CafeOrdersError,
    FeedIntegrityError,
    InvalidStateError,
    NotFoundError,
    TransportError,
    ValidationError,
)
from cafe_orders.models import (
    Actor,
    DrinkItem,
    FeedbackSummary,
    Order,
    OrderDraft,
    OrderStats,
    OrderStatus,
    Topping,
)
from cafe_orders.schemas import (
    ErrorResponse,
    FeedbackCreate,
    HealthResponse,
    IdentityResponse,
    StatusUpdate,
)
from cafe_orders.services.catalog import CatalogService, get_catalog_service
from cafe_orders.services.feedback import FeedbackService, summarize_ratings
from cafe_orders.services.identity import CookieIdentityStore, CustomerIdentity, IdentityProvider
from cafe_orders.services.lifecycle import sort_for_customer
from cafe_orders.services.poller import staff_poller
from cafe_orders.stores import BaseOrderStore, FeedOrderStore, SqlOrderStore, get_order_store

# Initialize configuration and logging
settings = get_settings()
setup_logging()
logger = logging.getLogger(__name__)

STALE_HEADER = "X-Orders-Stale"

ERROR_STATUS_CODES = {
    ValidationError: status.HTTP_400_BAD_REQUEST,
    NotFoundError: status.HTTP_404_NOT_FOUND,
    InvalidStateError: status.HTTP_409_CONFLICT,
    FeedIntegrityError: status.HTTP_502_BAD_GATEWAY,
    TransportError: status.HTTP_503_SERVICE_UNAVAILABLE,
}


# =============================================================================
# APPLICATION LIFECYCLE
# =============================================================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Manage application startup and shutdown events.
    """
    settings = get_settings()

    # Startup
    logger.info("=" * 60)
    logger.info(f"🚀 Starting {settings.app_name}")
    logger.info(f"   Version: {settings.app_version}")
    logger.info(f"   Environment: {settings.env_mode.value}")
    logger.info(f"   Storage: {settings.storage_backend.value}")
    logger.info(f"   Debug: {settings.debug}")
    logger.info("=" * 60)

    store = get_order_store()
    if isinstance(store, SqlOrderStore):
        await store.init()
        logger.info("✅ Database initialized")
    if isinstance(store, FeedOrderStore):
        logger.info(f"✅ Feed Client: {store.feed.provider_name}")

    missing = settings.validate_feed_config()
    if missing:
        logger.warning(f"⚠️ Missing feed config: {missing}")

    # Keeps the barista board's last-known list warm for degraded reads
    app.state.last_known_orders = []
    poller = staff_poller(store, on_update=lambda orders: _remember(app, orders))
    await poller.start()

    logger.info("=" * 60)
    logger.info("✅ Application ready!")
    logger.info("=" * 60)

    yield  # Application runs

    # Shutdown
    logger.info("Shutting down...")
    await poller.stop()
    await store.close()
    logger.info("✅ Cleanup complete")


# =============================================================================
# APPLICATION INSTANCE
# =============================================================================

app = FastAPI(
    title=settings.app_name,
    description=(
        "Café ordering backend: order lifecycle, pluggable order storage "
        "and reconciliation of an append-only spreadsheet feed."
    ),
    version=settings.app_version,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Configure appropriately for production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# =============================================================================
# DEPENDENCIES & HELPERS
# =============================================================================

def get_customer_identity(request: Request, response: Response) -> CustomerIdentity:
    """Caller's identity from the cookie, issuing (and setting) one if absent."""
    provider = IdentityProvider(CookieIdentityStore(request, response))
    return provider.get_or_create_identity()


def get_feedback_service(store: BaseOrderStore = Depends(get_order_store)) -> FeedbackService:
    return FeedbackService(store)


def _remember(app: FastAPI, orders: list[Order]) -> None:
    app.state.last_known_orders = orders


def _last_known(request: Request, response: Response, error: TransportError) -> list[Order]:
    logger.warning(f"Serving last-known orders: {error.message}")
    response.headers[STALE_HEADER] = "true"
    return getattr(request.app.state, "last_known_orders", [])


def _parse_status(value: str) -> OrderStatus:
    try:
        return OrderStatus(value)
    except ValueError:
        raise ValidationError(
            f"Invalid status. Options: {[s.value for s in OrderStatus]}", ["status"]
        )


# =============================================================================
# ROOT & HEALTH ENDPOINTS
# =============================================================================

@app.get("/", tags=["Root"])
async def root() -> dict[str, str]:
    """API root with navigation links."""
    settings = get_settings()
    return {
        "message": f"☕ Welcome to {settings.app_name}",
        "version": settings.app_version,
        "environment": settings.env_mode.value,
        "documentation": "/docs",
        "health": "/health",
    }


@app.get(
    "/health",
    response_model=HealthResponse,
    tags=["Health"],
    summary="System Health Check",
)
async def health_check(store: BaseOrderStore = Depends(get_order_store)) -> HealthResponse:
    """Verify the order store (and the feed, if used) is reachable."""
    store_status = "healthy" if await store.health_check() else "unhealthy"

    feed_status = None
    if isinstance(store, FeedOrderStore):
        feed_status = store.feed.provider_name

    return HealthResponse(
        status="operational" if store_status == "healthy" else "degraded",
        storage_backend=store.provider_name,
        order_store=store_status,
        feed=feed_status,
        timestamp=datetime.now(timezone.utc),
    )


# =============================================================================
# ORDER API ENDPOINTS
# =============================================================================

@app.post(
    "/api/orders",
    response_model=Order,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse}, 503: {"model": ErrorResponse}},
    tags=["Orders"],
    summary="Place Order",
)
async def create_order(
    draft: OrderDraft,
    identity: CustomerIdentity = Depends(get_customer_identity),
    store: BaseOrderStore = Depends(get_order_store),
) -> Order:
    """
    Place a new order for the calling customer.

    Any id, status or timestamp in the body is ignored; the order starts as
    New under the caller's identity.
    """
    logger.info(f"Creating order for: {draft.customer_name}")
    return await store.create(draft, customer_id=identity.token)


@app.get(
    "/api/orders",
    response_model=list[Order],
    tags=["Orders"],
    summary="List Orders",
)
async def list_orders(
    request: Request,
    response: Response,
    status_query: Optional[str] = Query(None, alias="status", description="Only orders with this status"),
    store: BaseOrderStore = Depends(get_order_store),
) -> list[Order]:
    """Every order (barista board). Falls back to the last-known list if the store is unreachable."""
    status_filter = _parse_status(status_query) if status_query else None

    try:
        orders = await store.list_all()
        _remember(request.app, orders)
    except TransportError as e:
        orders = _last_known(request, response, e)

    if status_filter:
        orders = [o for o in orders if o.order_status == status_filter]
    return orders


@app.get(
    "/api/orders/{customer_id}",
    response_model=list[Order],
    tags=["Orders"],
    summary="List Customer Orders",
)
async def list_customer_orders(
    customer_id: str,
    request: Request,
    response: Response,
    store: BaseOrderStore = Depends(get_order_store),
) -> list[Order]:
    """A customer's orders, open ones first and newest first within a status."""
    try:
        orders = await store.list_by_customer(customer_id)
    except TransportError as e:
        orders = [o for o in _last_known(request, response, e) if o.customer_id == customer_id]
    return sort_for_customer(orders)


@app.patch(
    "/api/orders/{order_id}",
    response_model=Order,
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
    tags=["Orders"],
    summary="Update Order Status",
)
async def update_order_status(
    order_id: str,
    update: StatusUpdate,
    store: BaseOrderStore = Depends(get_order_store),
) -> Order:
    """Staff status change (New, Brewing, On Hold, Delivered, Cancelled)."""
    return await store.update_status(order_id, update.order_status, actor=Actor.STAFF)


@app.post(
    "/api/orders/{order_id}/cancel",
    response_model=Order,
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
    tags=["Orders"],
    summary="Cancel Order",
)
async def cancel_order(
    order_id: str,
    store: BaseOrderStore = Depends(get_order_store),
) -> Order:
    """Customer cancellation; only open orders can be cancelled."""
    return await store.update_status(order_id, OrderStatus.CANCELLED, actor=Actor.CUSTOMER)


# =============================================================================
# FEEDBACK ENDPOINTS
# =============================================================================

@app.post(
    "/api/orders/{order_id}/feedback",
    response_model=Order,
    responses={400: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
    tags=["Feedback"],
    summary="Leave Feedback",
)
async def submit_feedback(
    order_id: str,
    feedback: FeedbackCreate,
    service: FeedbackService = Depends(get_feedback_service),
) -> Order:
    return await service.submit_feedback(order_id, feedback.rating, feedback.comment)


@app.get(
    "/api/feedback/summary",
    response_model=FeedbackSummary,
    tags=["Feedback"],
)
async def feedback_summary(
    request: Request,
    response: Response,
    service: FeedbackService = Depends(get_feedback_service),
) -> FeedbackSummary:
    try:
        return await service.summarize()
    except TransportError as e:
        return summarize_ratings(_last_known(request, response, e))


@app.get(
    "/api/stats",
    response_model=OrderStats,
    tags=["Dashboard"],
)
async def order_stats(
    request: Request,
    response: Response,
    store: BaseOrderStore = Depends(get_order_store),
) -> OrderStats:
    """Counts by status for the barista dashboard."""
    try:
        return await store.stats()
    except TransportError as e:
        return OrderStats.from_orders(_last_known(request, response, e))


# =============================================================================
# IDENTITY ENDPOINTS
# =============================================================================

@app.get(
    "/api/me",
    response_model=IdentityResponse,
    tags=["Identity"],
)
async def who_am_i(identity: CustomerIdentity = Depends(get_customer_identity)) -> IdentityResponse:
    return IdentityResponse(
        customer_id=identity.token,
        issued_at=identity.issued_at,
        expires_at=identity.expires_at,
        is_new=identity.is_new,
    )


@app.get(
    "/api/me/orders",
    response_model=list[Order],
    tags=["Identity"],
)
async def my_orders(
    request: Request,
    response: Response,
    identity: CustomerIdentity = Depends(get_customer_identity),
    store: BaseOrderStore = Depends(get_order_store),
) -> list[Order]:
    return await list_customer_orders(identity.token, request, response, store)


@app.get(
    "/api/me/pending",
    response_model=list[Order],
    tags=["Identity"],
)
async def my_pending_orders(
    identity: CustomerIdentity = Depends(get_customer_identity),
    store: BaseOrderStore = Depends(get_order_store),
) -> list[Order]:
    """Orders this installation placed, as last written locally."""
    return sort_for_customer(await store.list_pending(identity.token))


# =============================================================================
# CATALOG ENDPOINTS
# =============================================================================

@app.get("/api/menu", response_model=list[DrinkItem], tags=["Catalog"])
async def drink_menu(catalog: CatalogService = Depends(get_catalog_service)) -> list[DrinkItem]:
    return await catalog.list_drinks()


@app.get("/api/toppings", response_model=list[Topping], tags=["Catalog"])
async def toppings(catalog: CatalogService = Depends(get_catalog_service)) -> list[Topping]:
    return await catalog.list_toppings()


# =============================================================================
# ERROR HANDLERS
# =============================================================================

@app.exception_handler(CafeOrdersError)
async def cafe_orders_exception_handler(request: Request, exc: CafeOrdersError) -> JSONResponse:
    """Map domain errors to HTTP status codes."""
    status_code = next(
        (code for error_class, code in ERROR_STATUS_CODES.items() if isinstance(exc, error_class)),
        status.HTTP_500_INTERNAL_SERVER_ERROR,
    )
    content: dict[str, Any] = exc.to_dict()
    if isinstance(exc, TransportError):
        content["retryable"] = exc.retryable

    log = logger.warning if status_code < 500 else logger.error
    log(f"{request.method} {request.url.path} -> {status_code}: {exc.message}")

    return JSONResponse(status_code=status_code, content=content)


@app.exception_handler(RequestValidationError)
async def request_validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed bodies are reported like missing fields: 400, not 422."""
    fields = [".".join(str(p) for p in error["loc"] if p != "body") for error in exc.errors()]
    logger.warning(f"{request.method} {request.url.path} -> 400: invalid {fields}")

    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "success": False,
            "error": "Invalid request",
            "detail": ", ".join(f for f in fields if f) or None,
        },
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all exception handler."""
    logger.exception(f"Unhandled exception: {exc}")

    return JSONResponse(
        status_code=500,
        content={
            "success": False,
            "error": "Internal Server Error",
            "detail": str(exc) if get_settings().debug else "An unexpected error occurred",
        },
    )


# =============================================================================
# DEVELOPMENT SERVER
# =============================================================================

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "cafe_orders.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.is_development,
    )
