"""
Main FastAPI application for the Gallery API.
Builds the database, stores, token service and asset host once and shares them through app.state.
"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Optional
import logging

from config.config import Config, get_config
from config.db_connection import DatabaseManager
from routes import auth, images
from utils.asset_host import CloudinaryClient
from utils.errors import register_exception_handlers
from utils.image_store import ImageStore
from utils.image_service import MAX_UPLOAD_BYTES
from utils.security import TokenService
from utils.upload_limit import FORM_OVERHEAD_BYTES, UploadLimitMiddleware
from utils.user_store import UserStore

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

VERSION = "1.0.0"


@dataclass
class Components:
    """Long-lived handles shared by every request."""
    user_store: UserStore
    image_store: ImageStore
    asset_host: CloudinaryClient
    token_service: TokenService
    database: Optional[DatabaseManager] = None


def build_components(config: Config) -> Components:
    database = DatabaseManager(
        config.DATABASE_URL,
        min_size=config.DB_POOL_MIN_SIZE,
        max_size=config.DB_POOL_MAX_SIZE,
        command_timeout=config.DB_COMMAND_TIMEOUT,
    )
    return Components(
        user_store=UserStore(database),
        image_store=ImageStore(database),
        asset_host=CloudinaryClient(
            config.CLOUDINARY_CLOUD_NAME,
            config.CLOUDINARY_API_KEY,
            config.CLOUDINARY_API_SECRET,
            folder=config.CLOUDINARY_FOLDER,
            timeout=config.ASSET_HOST_TIMEOUT,
        ),
        token_service=TokenService(config.JWT_SECRET, config.JWT_EXPIRES_IN),
        database=database,
    )


def _attach(app: FastAPI, components: Components):
    app.state.components = components
    app.state.user_store = components.user_store
    app.state.image_store = components.image_store
    app.state.asset_host = components.asset_host
    app.state.token_service = components.token_service


def create_app(config: Optional[Config] = None, components: Optional[Components] = None) -> FastAPI:
    """
    Create the application.

    Args:
        config: Configuration, read from the environment when omitted
        components: Prebuilt components; when omitted they are built, connected
            and closed by the application lifespan
    """
    config = config or get_config()
    logging.getLogger().setLevel(config.LOG_LEVEL)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """
        Lifespan context manager for FastAPI application.
        Handles startup and shutdown events.
        """
        logger.info("Starting up Gallery API...")
        if components is not None:
            _attach(app, components)
            yield
            return

        built = build_components(config)
        await built.database.initialize()
        await built.database.apply_migrations()
        _attach(app, built)
        logger.info("Database connection pool initialized")

        yield

        logger.info("Shutting down Gallery API...")
        try:
            await built.asset_host.aclose()
            await built.database.close()
            logger.info("Database connection pool closed")
        except Exception as e:
            logger.error(f"Error during shutdown: {e}")

    app = FastAPI(
        title="Gallery API",
        description="Personal image galleries backed by Cloudinary",
        version=VERSION,
        lifespan=lifespan,
    )
    app.state.config = config

    # Added before CORS so that its refusals still carry the CORS headers
    app.add_middleware(
        UploadLimitMiddleware,
        path=f"{config.API_PREFIX}/images/upload",
        max_body_bytes=MAX_UPLOAD_BYTES + FORM_OVERHEAD_BYTES,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_exception_handlers(app)

    app.include_router(auth.router, prefix=f"{config.API_PREFIX}/auth", tags=["Authentication"])
    app.include_router(images.router, prefix=f"{config.API_PREFIX}/images", tags=["Images"])

    @app.get("/")
    async def home():
        """Root endpoint."""
        return {
            "message": "Gallery API is running",
            "version": VERSION,
            "status": "online"
        }

    @app.get("/health")
    async def health_check():
        """Health check endpoint. Reports database and asset host status."""
        current = app.state.components
        if current.database is None:
            db_status = "not configured"
        else:
            try:
                await current.database.fetch_val("SELECT 1")
                db_status = "connected"
            except Exception as e:
                logger.warning(f"Health check database error: {e}")
                db_status = "error"

        asset_host_status = "connected" if await current.asset_host.ping() else "error"

        return {
            "status": "healthy" if db_status != "error" and asset_host_status == "connected" else "degraded",
            "database": db_status,
            "assetHost": asset_host_status,
        }

    return app


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(create_app(), host="0.0.0.0", port=8000)
