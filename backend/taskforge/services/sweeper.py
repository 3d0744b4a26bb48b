"""Periodic maintenance: expired-invitation purge and membership repair."""

import asyncio
import logging
from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from taskforge.services import invitations, membership

logger = logging.getLogger(__name__)


@dataclass
class SweepResult:
    purged: int
    repaired: int


async def run_sweep(session_factory: async_sessionmaker[AsyncSession]) -> SweepResult:
    """One sweep pass in a single transaction."""
    async with session_factory() as session:
        async with session.begin():
            # Repair first so an accepted invitation is honoured before it is purged.
            repaired = await membership.repair_accepted_memberships(session)
            purged = await invitations.purge_expired(session)
    if purged or repaired:
        logger.info("Sweep finished: purged=%d repaired=%d", purged, repaired)
    return SweepResult(purged=purged, repaired=repaired)


async def sweep_forever(
    session_factory: async_sessionmaker[AsyncSession],
    interval_seconds: int,
) -> None:
    """Run ``run_sweep`` every ``interval_seconds`` until cancelled."""
    while True:
        try:
            await run_sweep(session_factory)
        except asyncio.CancelledError:
            raise
        except Exception:
            logger.exception("Invitation sweep failed")
        await asyncio.sleep(interval_seconds)
