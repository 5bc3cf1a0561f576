import asyncio
import logging

from config.config import get_config
from config.db_connection import DatabaseManager

logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')
logger = logging.getLogger("run_migration")


async def run():
    config = get_config()
    db = DatabaseManager(config.DATABASE_URL, min_size=1, max_size=1)
    try:
        await db.initialize()
        applied = await db.apply_migrations()
        logger.info(f"Migrations executed successfully: {', '.join(applied) or 'none found'}")
    finally:
        await db.close()


if __name__ == "__main__":
    asyncio.run(run())
