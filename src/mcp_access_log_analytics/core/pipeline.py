"""Pipeline controller.

Runs one analysis at a time: validate input, normalize and group every
record, compute statistics, assemble the row-sets, then publish the result.
A failed run publishes nothing and clears whatever the previous run left.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from .assembler import assemble_results
from .config import AnalyzerConfig, InvalidRecordPolicy, parse_invalid_records
from .demo import demo_records
from .engine import AggregationEngine
from .errors import FieldMissingError, PipelineBusyError
from .loader import coerce_records, load_records
from .models import LogRecord, PipelineState
from .results import AnalysisResult
from .schema import infer_schema

logger = logging.getLogger(__name__)

_TRANSITIONS: dict[PipelineState, frozenset[PipelineState]] = {
    PipelineState.IDLE: frozenset({PipelineState.LOADING}),
    PipelineState.LOADING: frozenset({PipelineState.COMPUTING, PipelineState.ERROR}),
    PipelineState.COMPUTING: frozenset({PipelineState.READY, PipelineState.ERROR}),
    PipelineState.READY: frozenset({PipelineState.IDLE}),
    PipelineState.ERROR: frozenset({PipelineState.IDLE}),
}


@dataclass(frozen=True, slots=True)
class PipelineStatus:
    state: PipelineState
    has_results: bool
    last_error: str | None
    completed_runs: int


class PipelineController:
    """Drives runs against one aggregation engine and holds the published result."""

    def __init__(self, engine: AggregationEngine, cfg: AnalyzerConfig | None = None) -> None:
        self._engine = engine
        self._cfg = cfg or AnalyzerConfig()
        self._state = PipelineState.IDLE
        self._result: AnalysisResult | None = None
        self._last_error: str | None = None
        self._completed_runs = 0
        self._lock = threading.Lock()

    @property
    def config(self) -> AnalyzerConfig:
        return self._cfg

    @property
    def state(self) -> PipelineState:
        return self._state

    @property
    def result(self) -> AnalysisResult | None:
        """The last published result, or None when there is none."""
        return self._result

    @property
    def last_error(self) -> str | None:
        return self._last_error

    def status(self) -> PipelineStatus:
        return PipelineStatus(
            state=self._state,
            has_results=self._result is not None,
            last_error=self._last_error,
            completed_runs=self._completed_runs,
        )

    def run(
        self,
        data: Any,
        *,
        invalid_records: InvalidRecordPolicy | str | None = None,
    ) -> AnalysisResult:
        """Analyze an in-memory collection of JSON-like objects.

        Raises EngineUnavailableError before touching any state, and
        PipelineBusyError when another run is in flight. Every other failure
        leaves the controller in ERROR with no published result.
        """
        policy = self._resolve_policy(invalid_records)
        self._engine.ensure_ready()
        self._acquire()
        try:
            self._begin_load()
            return self._process(data, policy)
        finally:
            self._lock.release()

    def run_demo(self, *, invalid_records: InvalidRecordPolicy | str | None = None) -> AnalysisResult:
        """Analyze the bundled demo dataset through the same entry point."""
        return self.run(demo_records(), invalid_records=invalid_records)

    async def load_file(
        self,
        path: str | Path,
        *,
        invalid_records: InvalidRecordPolicy | str | None = None,
    ) -> AnalysisResult:
        """Read a dataset file and analyze it.

        A missing or unreadable file fails the run like malformed input does:
        the controller ends in ERROR and the previous result is dropped.
        """
        policy = self._resolve_policy(invalid_records)
        self._engine.ensure_ready()
        self._acquire()
        try:
            self._begin_load()
            try:
                data = await load_records(Path(path))
            except BaseException as exc:
                self._fail(exc)
                raise
            return self._process(data, policy)
        finally:
            self._lock.release()

    def reset(self) -> None:
        """Return to IDLE, discarding any published result."""
        self._acquire()
        try:
            if self._state is not PipelineState.IDLE:
                self._transition(PipelineState.IDLE)
            self._discard()
        finally:
            self._lock.release()

    def _resolve_policy(self, value: InvalidRecordPolicy | str | None) -> InvalidRecordPolicy:
        if value is None:
            return self._cfg.invalid_records
        return parse_invalid_records(value)

    def _acquire(self) -> None:
        if not self._lock.acquire(blocking=False):
            raise PipelineBusyError("An analysis run is already in progress.")

    def _transition(self, new: PipelineState) -> None:
        if new not in _TRANSITIONS[self._state]:
            raise RuntimeError(f"Invalid pipeline transition {self._state.value} -> {new.value}")
        logger.debug("Pipeline state %s -> %s", self._state.value, new.value)
        self._state = new

    def _discard(self) -> None:
        self._result = None
        self._last_error = None
        self._engine.release()

    def _begin_load(self) -> None:
        if self._state in (PipelineState.READY, PipelineState.ERROR):
            self._transition(PipelineState.IDLE)
        self._discard()
        self._transition(PipelineState.LOADING)

    def _fail(self, exc: BaseException) -> None:
        self._result = None
        self._engine.release()
        self._last_error = f"{type(exc).__name__}: {exc}"
        logger.warning("Analysis run failed: %s", self._last_error)
        self._transition(PipelineState.ERROR)

    def _process(self, data: Any, policy: InvalidRecordPolicy) -> AnalysisResult:
        try:
            records = coerce_records(data)
            self._transition(PipelineState.COMPUTING)
            result = self._compute(records, policy)
        except BaseException as exc:
            self._fail(exc)
            raise

        self._result = result
        self._completed_runs += 1
        self._transition(PipelineState.READY)
        logger.info(
            "Analysis complete: %d records, %d groups, %d skipped",
            result.summary.total_records,
            result.summary.group_count,
            result.summary.skipped_records,
        )
        return result

    def _compute(
        self, records: Sequence[Mapping[str, Any]], policy: InvalidRecordPolicy
    ) -> AnalysisResult:
        accumulator = self._engine.allocate()
        skipped = 0
        for index, obj in enumerate(records):
            try:
                record = LogRecord.from_mapping(obj, index=index)
            except FieldMissingError as exc:
                if policy == "fail":
                    raise
                skipped += 1
                logger.debug("Skipping invalid record: %s", exc)
                continue
            accumulator.ingest(record)

        return assemble_results(
            accumulator,
            cfg=self._cfg,
            schema_fields=infer_schema(records),
            skipped_records=skipped,
        )
