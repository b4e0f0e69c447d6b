"""
Signal Re-evaluation Service

Background service that re-classifies the selected food category against the
newest sensor temperature at a fixed interval, so the signal follows the
readings without the dashboard re-posting a selection.
"""

import asyncio
import logging
from typing import Optional

from .exceptions import InvalidInputError
from .models import SignalState
from .sensor_buffer import SensorBuffer
from .signal_controller import SignalController

logger = logging.getLogger(__name__)


class ReevaluationService:
    """
    Periodic caller of SignalController.select.

    Runs independently of the device poller; the two never coordinate and the
    store resolves their races as last-write-wins.
    """

    def __init__(
        self,
        controller: SignalController,
        buffer: SensorBuffer,
        interval_seconds: float = 3.0
    ):
        self.controller = controller
        self.buffer = buffer
        self.interval_seconds = interval_seconds

        self._task: asyncio.Task | None = None
        self._running = False

    @property
    def running(self) -> bool:
        return self._running

    async def start(self):
        """Start the re-evaluation loop."""
        if self._running:
            logger.warning("Re-evaluation service already running")
            return
        if self.interval_seconds <= 0:
            logger.info("Re-evaluation disabled (interval <= 0)")
            return

        self._running = True
        self._task = asyncio.create_task(self._run_loop())
        logger.info(f"Re-evaluation service started (every {self.interval_seconds:g}s)")

    async def stop(self):
        """Stop the re-evaluation loop."""
        if not self._running:
            return

        self._running = False
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass

        logger.info("Re-evaluation service stopped")

    async def _run_loop(self):
        while self._running:
            try:
                # Store access may block on the KV round trip
                await asyncio.to_thread(self.reevaluate_once)
            except Exception as e:
                logger.error(f"Error in re-evaluation loop: {e}", exc_info=True)

            await asyncio.sleep(self.interval_seconds)

    def reevaluate_once(self) -> Optional[SignalState]:
        """Re-classify the current category with the newest temperature.

        Returns:
            The new state, or None if no category is selected, no temperature
            has been received, or the stored category is no longer valid
        """
        current = self.controller.current()
        if current.category is None:
            return None

        temperature = self.buffer.latest_temperature()
        if temperature is None:
            logger.debug("No temperature reading yet, skipping re-evaluation")
            return None

        try:
            return self.controller.select(current.category, temperature)
        except InvalidInputError as e:
            logger.warning(f"Cannot re-evaluate {current.category}: {e}")
            return None
