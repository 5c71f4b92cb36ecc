# main.py - Process bootstrap: logging, error monitoring, database schema
import logging
import traceback
from pathlib import Path

from settings import get_settings, Settings
from database import init_db

logger = logging.getLogger(__name__)

# Get the directory where main.py is located (needed for migrations)
BASE_DIR = Path(__file__).resolve().parent


def configure_logging(settings: Settings) -> None:
    level = logging.DEBUG if settings.DEBUG else getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)
    logging.basicConfig(level=level)
    logging.getLogger().setLevel(level)


def init_sentry(settings: Settings) -> bool:
    """Initialize Sentry error monitoring (if configured)"""
    if not settings.SENTRY_DSN:
        return False

    import sentry_sdk
    sentry_sdk.init(
        dsn=settings.SENTRY_DSN,
        environment=settings.ENVIRONMENT,
        traces_sample_rate=0.1,
    )
    logger.info(f"Sentry initialized for {settings.ENVIRONMENT} environment")
    return True


def run_migrations():
    """Run Alembic migrations to ensure database schema is up to date."""
    try:
        from alembic.config import Config
        from alembic import command

        alembic_ini_path = BASE_DIR / "alembic.ini"
        if not alembic_ini_path.exists():
            raise FileNotFoundError(f"alembic.ini not found at {alembic_ini_path}")

        # Create Alembic config with absolute path
        alembic_cfg = Config(str(alembic_ini_path))
        alembic_cfg.set_main_option("script_location", str(BASE_DIR / "alembic"))

        logger.info("Running Alembic migrations...")
        command.upgrade(alembic_cfg, "head")
        logger.info("Database migrations completed successfully")
    except Exception as e:
        logger.error(f"Migration failed: {e}")
        logger.error(traceback.format_exc())
        # Fallback to create_all for fresh databases only
        logger.info("Falling back to create_all...")
        init_db()
        logger.info("Database tables created via create_all")


def startup():
    settings = get_settings()
    configure_logging(settings)
    init_sentry(settings)
    run_migrations()
    logger.info(f"{settings.APP_NAME} ready ({settings.ENVIRONMENT})")


if __name__ == "__main__":
    startup()
