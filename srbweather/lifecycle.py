"""Process-wide startup: seeds the initial city exactly once."""

import asyncio
from enum import Enum

from srbweather.logging_config import logger


class InitState(str, Enum):
    pending = "pending"
    running = "running"
    done = "done"


class Lifecycle:
    """Owns the one-time initialization guard for a session."""

    def __init__(self):
        self.state = InitState.pending
        self._done = asyncio.Event()

    async def ensure_initialized(self, session) -> bool:
        """Run ``session.bootstrap()`` unless it already ran or is running.

        Returns:
            True if this call performed the initialization.
        """
        if self.state is not InitState.pending:
            await self._done.wait()
            return False
        self.state = InitState.running
        try:
            await session.bootstrap()
        finally:
            self.state = InitState.done
            self._done.set()
        logger.info("LIFECYCLE_INITIALIZED")
        return True
