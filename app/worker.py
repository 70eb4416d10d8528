"""Worker process for periodic credential housekeeping.

Runs an asyncio loop that purges denylist entries for tokens that have
expired on their own and unlocks accounts whose lockout window has passed.
"""

from __future__ import annotations

import asyncio
import logging

from app.config import get_settings
from app.db import get_session_factory, init_models
from app.services.clock import get_clock
from app.services.credentials import clear_elapsed_lockouts
from app.services.revocation import purge_expired_revoked_tokens

logger = logging.getLogger(__name__)


async def run_sweep_once() -> tuple[int, int]:
    """Run one housekeeping pass. Returns (purged tokens, unlocked accounts)."""
    session_factory = get_session_factory()
    now = get_clock().now()

    async with session_factory() as session:
        purged = await purge_expired_revoked_tokens(session, now)

    async with session_factory() as session:
        unlocked = await clear_elapsed_lockouts(session, now)
        await session.commit()

    return purged, unlocked


async def run_sweep_loop() -> None:
    """Main worker loop."""
    settings = get_settings()
    await init_models()
    logger.info("Sweep worker started (interval=%ds)", settings.revocation_sweep_interval_seconds)

    while True:
        try:
            purged, unlocked = await run_sweep_once()
            logger.info("Sweep complete: purged_tokens=%d unlocked_accounts=%d", purged, unlocked)
        except Exception:
            logger.exception("Sweep run failed")

        await asyncio.sleep(settings.revocation_sweep_interval_seconds)


def main() -> None:
    """Entry point for the worker process."""
    settings = get_settings()
    logging.basicConfig(level=settings.log_level.upper(), format="%(asctime)s %(name)s %(levelname)s %(message)s")
    asyncio.run(run_sweep_loop())


if __name__ == "__main__":
    main()
