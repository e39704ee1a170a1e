"""In-process aggregation engine.

Stands in for an embedded query engine: a single-connection resource that
owns the grouping buffers of at most one run at a time.
"""

from __future__ import annotations

import logging
from collections.abc import Callable

from .accumulator import GroupAccumulator
from .errors import EngineUnavailableError
from .normalizer import normalize

logger = logging.getLogger(__name__)


class AggregationEngine:
    """Owns the accumulator of the current run and releases it before the next one."""

    def __init__(self, normalizer: Callable[[str], str] = normalize) -> None:
        self._normalizer = normalizer
        self._ready = False
        self._accumulator: GroupAccumulator | None = None

    @property
    def ready(self) -> bool:
        return self._ready

    @property
    def has_buffers(self) -> bool:
        return self._accumulator is not None

    def start(self) -> None:
        self._ready = True
        logger.debug("Aggregation engine started")

    def shutdown(self) -> None:
        self.release()
        self._ready = False
        logger.debug("Aggregation engine shut down")

    def ensure_ready(self) -> None:
        if not self._ready:
            raise EngineUnavailableError("Aggregation engine is not ready; start it before running.")

    def allocate(self) -> GroupAccumulator:
        """Release the previous run's buffers and hand out a fresh accumulator."""
        self.ensure_ready()
        self.release()
        self._accumulator = GroupAccumulator(self._normalizer)
        return self._accumulator

    def release(self) -> None:
        if self._accumulator is not None:
            self._accumulator.clear()
            self._accumulator = None

    def __enter__(self) -> AggregationEngine:
        self.start()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.shutdown()
