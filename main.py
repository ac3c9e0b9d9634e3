# main.py
import asyncio
import logging
from dealengine.config import setup_logging
from dealengine.database.database import Database

async def main():
    # Setup logging
    setup_logging()
    logger = logging.getLogger(__name__)

    db = Database()
    try:
        logger.info("Applying deal engine migrations...")
        await db.connect()
    except Exception as e:
        logger.error(f"Error preparing database: {e}", exc_info=True)
        raise
    finally:
        await db.close()

if __name__ == "__main__":
    asyncio.run(main())
