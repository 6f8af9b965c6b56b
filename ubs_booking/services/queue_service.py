"""Queue counter handing out booking-order positions."""

import structlog
from sqlalchemy import insert, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from ubs_booking.models.queue_counter import COUNTER_ROW_ID, queue_counter

logger = structlog.get_logger(__name__)


class QueueCounter:
    """
    Single global counter stored in one locked row.

    ``next_position`` runs inside the caller's transaction: the row lock is
    held until the caller commits, so concurrent bookings are serialized on
    the counter and a rolled back booking does not consume a number.
    """

    def __init__(self, db: AsyncSession):
        """Initialize counter with database session."""
        self.db = db

    async def current(self) -> int:
        """Return the last position handed out (0 when none yet)."""
        stmt = select(queue_counter.c.current_count).where(queue_counter.c.id == COUNTER_ROW_ID)
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none() or 0

    async def next_position(self) -> int:
        """
        Increment the counter and return the new value.

        Returns:
            Next queue position, strictly greater than any handed out before
        """
        stmt = (
            select(queue_counter.c.current_count)
            .where(queue_counter.c.id == COUNTER_ROW_ID)
            .with_for_update()
        )
        result = await self.db.execute(stmt)
        current = result.scalar_one_or_none()

        if current is None:
            # Fresh database without the seeded row; a concurrent creator
            # makes this insert fail and the whole booking is retried.
            await self.db.execute(
                insert(queue_counter).values(id=COUNTER_ROW_ID, current_count=1)
            )
            logger.info("queue_counter_initialized")
            return 1

        position = current + 1
        await self.db.execute(
            update(queue_counter)
            .where(queue_counter.c.id == COUNTER_ROW_ID)
            .values(current_count=position)
        )
        return position
