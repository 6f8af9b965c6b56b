"""Script to initialize the database without Alembic (local development)."""

import asyncio

from sqlalchemy import select

from ubs_booking.database import engine
from ubs_booking.models import metadata, queue_counter
from ubs_booking.models.queue_counter import COUNTER_ROW_ID


async def init_db() -> None:
    """Create all tables and seed the queue counter row."""
    async with engine.begin() as conn:
        await conn.run_sync(metadata.create_all)

        existing = await conn.execute(
            select(queue_counter.c.id).where(queue_counter.c.id == COUNTER_ROW_ID)
        )
        if existing.first() is None:
            await conn.execute(queue_counter.insert().values(id=COUNTER_ROW_ID, current_count=0))

    await engine.dispose()
    print("✓ Database initialized successfully!")


if __name__ == "__main__":
    asyncio.run(init_db())
