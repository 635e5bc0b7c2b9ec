import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import OperationalError
from starlette.responses import Response

from app.core.config import settings
from app.routers import coupons, customers, orders, returns

logger = logging.getLogger(__name__)

OPENAPI_TAGS = [
    {"name": "Coupons", "description": "Validate, apply and manage discount coupons."},
    {"name": "Customers", "description": "Look up and register storefront customers."},
    {"name": "Orders", "description": "Place orders and update their fulfilment state."},
    {"name": "Returns", "description": "Check eligibility, submit and process returns."},
]

app = FastAPI(
    title=settings.APP_NAME,
    version=settings.version,
    description=(
        "Storefront promotions and returns API. "
        "Validate and redeem coupons, track coupon savings, and run "
        "post-purchase returns from eligibility to refund."
    ),
    openapi_tags=OPENAPI_TAGS,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        o.strip() for o in settings.CORS_ORIGINS.split(",") if o.strip()
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["Idempotency-Replayed", "Retry-After"],
)


@app.middleware("http")
async def options_handler(request: Request, call_next):  # type: ignore[no-untyped-def]
    if request.method == "OPTIONS":
        origin = request.headers.get("origin", "*")
        return Response(
            status_code=200,
            headers={
                "Access-Control-Allow-Origin": origin,
                "Access-Control-Allow-Methods": "*",
                "Access-Control-Allow-Headers": "*",
                "Access-Control-Allow-Credentials": "true",
                "Access-Control-Max-Age": "86400",
            },
        )
    return await call_next(request)


@app.exception_handler(OperationalError)
async def database_unavailable_handler(request: Request, exc: OperationalError) -> JSONResponse:
    logger.error("Database unavailable on %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(
        status_code=503,
        content={"detail": "Service temporarily unavailable, please retry"},
        headers={"Retry-After": "5"},
    )


app.include_router(coupons.router, prefix="/v1/coupons", tags=["Coupons"])
app.include_router(customers.router, prefix="/v1/customers", tags=["Customers"])
app.include_router(orders.router, prefix="/v1/orders", tags=["Orders"])
app.include_router(returns.router, prefix="/v1/returns", tags=["Returns"])


@app.get("/")
async def root() -> dict[str, str]:
    return {
        "app": settings.APP_NAME,
        "version": settings.version,
        "status": "running",
    }
