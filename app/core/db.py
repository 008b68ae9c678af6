import logging
from logging import INFO

from tortoise import Tortoise

from app.core.config import DB_URL

log = logging.getLogger("db")

# Set logging level for Tortoise ORM
logging.getLogger('tortoise').setLevel(INFO)

# Define all models modules for the ORM
MODELS_MODULES = [
    "app.models.outbox",
    "app.models.organization",
    "app.models.mission",
]


async def init_db(db_url: str = DB_URL, generate_schemas: bool = True):
    """Initializes the Tortoise ORM connection and generates schemas."""
    try:
        # Envelope scheduling compares aware UTC datetimes, so the ORM must hand them back aware.
        await Tortoise.init(
            db_url=db_url,
            modules={"models": MODELS_MODULES},
            use_tz=True,
            timezone="UTC",
        )
        if generate_schemas:
            await Tortoise.generate_schemas()
        log.info("Database connection established and schemas generated.")
    except Exception as e:
        log.error(f"FATAL ERROR: Could not connect to database at {db_url}. Error: {e}")
        # Re-raise to prevent the application from starting without a database
        raise


async def close_db():
    """Closes all database connections."""
    await Tortoise.close_connections()
    log.info("Database connections closed.")


async def ping_db() -> bool:
    """Round-trips a trivial query on the default connection."""
    await Tortoise.get_connection("default").execute_query("SELECT 1")
    return True
