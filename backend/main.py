# backend/main.py
import logging
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

load_dotenv()

from config import settings
from database import init_db
from services.errors import ServiceError
from utils.activity_logger import ActivityLoggerMiddleware
from utils.cache import InMemoryCache, KeyValueCache
from utils.logging_setup import setup_logging

# Routers
from routes.auth import router as auth_router
from routes.users import router as users_router
from routes.products import router as products_router
from routes.categories import router as categories_router
from routes.suppliers import router as suppliers_router
from routes.sales import router as sales_router
from routes.dashboard import router as dashboard_router
from routes.inventory import router as inventory_router
from routes.reports import router as reports_router
from routes.logs import router as logs_router

setup_logging(settings)
logger = logging.getLogger(__name__)


async def service_error_handler(request: Request, exc: ServiceError):
    # Same body shape as HTTPException
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})


def create_app(cache: Optional[KeyValueCache] = None) -> FastAPI:
    init_db()

    app = FastAPI(title="Pharmacy POS API", version="1.0.0")

    # Uploads - make sure the directory exists
    upload_dir = Path(settings.UPLOAD_DIR)
    upload_dir.mkdir(parents=True, exist_ok=True)
    app.mount("/uploads", StaticFiles(directory=str(upload_dir)), name="uploads")

    app.add_exception_handler(ServiceError, service_error_handler)

    app.add_middleware(ActivityLoggerMiddleware, cache=cache if cache is not None else InMemoryCache())

    # CORS Configuration
    origins = ["http://localhost:5173", "http://127.0.0.1:5173"]
    if settings.FRONTEND_URL:
        origins.append(settings.FRONTEND_URL)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(auth_router)
    app.include_router(users_router)
    app.include_router(products_router)
    app.include_router(categories_router)
    app.include_router(suppliers_router)
    app.include_router(sales_router)
    app.include_router(dashboard_router)
    app.include_router(inventory_router)
    app.include_router(reports_router)
    app.include_router(logs_router)

    @app.get("/")
    def read_root():
        return {"message": "Pharmacy POS API is running"}

    logger.info("Application ready (database: %s)", settings.DATABASE_URL.split("@")[-1])
    return app


app = create_app()
