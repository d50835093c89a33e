import os
import importlib
import logging
from fastapi import FastAPI, APIRouter, Request
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from alembic.config import Config
from alembic import command

from core.config import settings
from core.exceptions import WorkshopError

logging.basicConfig(level=settings.LOG_LEVEL)
logger = logging.getLogger(__name__)

# APScheduler imports
from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.cron import CronTrigger

# The directory where all application folders are located
APPS_DIRECTORY = "apps"
API_PREFIX = "/api/v1"
BASE_DIR = os.path.dirname(os.path.abspath(__file__))

# --- Database Migration Function ---
def run_migrations():
    """Programmatically runs Alembic migrations."""
    logger.info("⏳ Running database migrations...")
    try:
        # Load Alembic configuration from the alembic.ini file
        alembic_cfg = Config(os.path.join(BASE_DIR, "alembic.ini"))
        alembic_cfg.set_main_option("script_location", os.path.join(BASE_DIR, "alembic"))
        # Run the 'upgrade head' command to apply all pending migrations
        command.upgrade(alembic_cfg, "head")
        logger.info("✅ Migrations complete.")
    except Exception as e:
        logger.error(f"❌ An error occurred during migrations: {e}")
        raise

# Initialize the main FastAPI application
app = FastAPI(
    title="Phone Workshop API",
    description="Brands, spare parts inventory, repairs and dashboard for a phone repair workshop.",
    version="1.0.0",
)

# --- CORS Middleware ---
app.add_middleware(
    CORSMiddleware,
    allow_origins=['*'],  # Allows all origins
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# --- Error Handling ---
@app.exception_handler(WorkshopError)
async def workshop_error_handler(request: Request, exc: WorkshopError):
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})

@app.get("/health")
def health_check():
    return {"status": "ok", "storage": settings.STORAGE_BACKEND}

# --- Dynamic App Discovery and Router Inclusion ---
apps_path = os.path.join(BASE_DIR, APPS_DIRECTORY)

logger.info(f"Searching for apps in: {apps_path}")

if not os.path.isdir(apps_path):
    logger.error(f"The directory '{APPS_DIRECTORY}' was not found.")
else:
    for item_name in sorted(os.listdir(apps_path)):
        app_dir = os.path.join(apps_path, item_name)

        if os.path.isdir(app_dir) and not item_name.startswith(('_', '.')):
            module_name = f"{APPS_DIRECTORY}.{item_name}.router"
            try:
                # Import the models from each app so the tables are mapped
                if os.path.isfile(os.path.join(app_dir, "models.py")):
                    importlib.import_module(f'{APPS_DIRECTORY}.{item_name}.models')

                router_module = importlib.import_module(module_name)
                router_instance = getattr(router_module, "router", None)

                if router_instance and isinstance(router_instance, APIRouter):
                    app.include_router(
                        router_instance,
                        prefix=f"{API_PREFIX}/{item_name}",
                        tags=[item_name.capitalize()]
                    )
                    logger.info(f"✅ Successfully loaded router from '{item_name}'.")
                else:
                    logger.warning(f"⚠️ Could not find a valid APIRouter named 'router' in '{module_name}'.")

            except ImportError as e:
                logger.error(f"❌ Failed to import router for '{item_name}': {e}")
                raise

# --global scheduler variable
scheduler = None


def check_low_stock():
    """Scheduled job: log every spare part at or below its alert level."""
    from apps.spare_parts.services import SparePartService
    from core.storage.factory import get_cache, get_storage

    SparePartService(get_storage(), get_cache()).report_low_stock()


# --- Startup Event Handler ---
@app.on_event("startup")
def startup_event():
    """Run database migrations and start scheduler on application startup."""

    logger.info("🚀 Starting Phone Workshop API...")
    global scheduler
    if settings.STORAGE_BACKEND == "sql" and settings.RUN_MIGRATIONS:
        run_migrations()

    # Set up and start the scheduler
    if settings.LOW_STOCK_CHECK_ENABLED:
        scheduler = BackgroundScheduler()
        scheduler.add_job(
            check_low_stock,
            CronTrigger(hour=settings.LOW_STOCK_CHECK_HOUR, minute=0),
            id="low_stock_check",
            replace_existing=True,
        )
        scheduler.start()
        logger.info(f"Low stock check scheduled daily at {settings.LOW_STOCK_CHECK_HOUR}:00")
    logger.info("Application is ready to serve requests.")

# --- Shutdown Event Handler ---
@app.on_event("shutdown")
def shutdown_event():
    """Shutdown the scheduler and drop cache subscriptions when the application stops."""
    global scheduler
    if scheduler:
        scheduler.shutdown()
        scheduler = None
        logger.info("✅ Scheduler shut down gracefully.")

    from core.storage.factory import get_cache, get_storage
    get_cache().close()
    get_storage().close()
