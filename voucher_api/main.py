from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from voucher_api.auth_router import router as auth_router
from voucher_api.config import settings
from voucher_api.database import check_health, close_database, init_database
from voucher_api.exception_handlers import register_exception_handlers
from voucher_api.logging_config import setup_logging
from voucher_api.vouchers.router import router as vouchers_router


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging()
    await init_database()
    yield
    await close_database()


app = FastAPI(
    title="Voucher Service",
    description="Discount voucher management with bulk CSV import and export",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origin_list,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Origin", "Content-Type", "Accept", "Authorization"],
)

register_exception_handlers(app)

app.include_router(auth_router, prefix="/api/v1/auth", tags=["auth"])
app.include_router(vouchers_router, prefix="/api/v1/vouchers", tags=["vouchers"])


@app.get("/api/v1/health")
async def health():
    await check_health()
    return {"status": "healthy"}
