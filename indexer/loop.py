"""
Ingestion Loop

Background thread that repeats IngestionCycle.run_once().

- TransientError: logged, retried after retry_delay
- DataIntegrityError: logged loudly, the loop halts for manual intervention
- Any other exception: treated like a data-integrity failure (fail closed)

stop() lets an in-flight cycle finish; only the wait between cycles is
interrupted.
"""
from __future__ import annotations

import logging
import threading
import time
from typing import Optional

from core.schemas.errors import DataIntegrityError, TransientError
from indexer.cycle import CycleResult, IngestionCycle


logger = logging.getLogger(__name__)


class IngestionLoop:
    """Single-writer polling loop around an IngestionCycle."""

    def __init__(
        self,
        cycle: IngestionCycle,
        *,
        poll_interval: float = 6.0,
        retry_delay: float = 2.0,
    ) -> None:
        self.cycle = cycle
        self.poll_interval = poll_interval
        self.retry_delay = retry_delay

        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

        self.cycles = 0
        self.halted = False
        self.halt_reason: Optional[str] = None
        self.last_error: Optional[str] = None
        self.last_result: Optional[CycleResult] = None
        self.last_success_at: Optional[float] = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    @property
    def status(self) -> str:
        if self.halted:
            return "halted"
        if self.last_error:
            return "degraded"
        return "ok"

    def step(self) -> Optional[float]:
        """
        Run one cycle and classify its outcome.

        Returns:
            Seconds to wait before the next cycle, or None if the loop must halt
        """
        try:
            result = self.cycle.run_once()
        except TransientError as e:
            self.last_error = e.message
            logger.warning(f"Transient failure, retrying in {self.retry_delay}s: {e.message}")
            return self.retry_delay
        except DataIntegrityError as e:
            self.halt(f"{e.code}: {e.message}")
            logger.critical(
                f"Data-integrity failure, ingestion halted: {e.message} details={e.details}"
            )
            return None
        except Exception as e:
            self.halt(f"{type(e).__name__}: {e}")
            logger.exception("Unexpected error in ingestion cycle, ingestion halted")
            return None

        self.cycles += 1
        self.last_error = None
        self.last_result = result
        self.last_success_at = time.time()
        return self.poll_interval

    def halt(self, reason: str) -> None:
        """Stop ingesting until restart; reads keep serving the last snapshot."""
        self.halted = True
        self.halt_reason = reason
        self.last_error = reason

    def run_forever(self) -> None:
        """Block until stop() is called or the loop halts."""
        logger.info("Ingestion loop started")
        while not self._stop.is_set():
            delay = self.step()
            if delay is None:
                break
            self._stop.wait(delay)
        logger.info("Ingestion loop stopped")

    def start(self) -> None:
        if self.running:
            return
        if self.halted:
            logger.warning(f"Ingestion halted, not starting: {self.halt_reason}")
            return
        self._stop.clear()
        self._thread = threading.Thread(
            target=self.run_forever,
            name="ingestion-loop",
            daemon=True,
        )
        self._thread.start()

    def stop(self, timeout: Optional[float] = None) -> None:
        """Signal the loop to stop and wait for the in-flight cycle to finish."""
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None
