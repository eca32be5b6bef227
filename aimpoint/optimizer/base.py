"""Shared run loop for search strategies."""

from __future__ import annotations

import logging
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, ClassVar, Dict, Optional

from aimpoint.es.curves import ExpectedStrokesModel

from . import telemetry
from .cancel import CancelToken, OptimizationCancelled, check
from .evaluator import Evaluator
from .selection import SelectionParameters, select
from .types import (
    ElevationLookup,
    EvaluationPool,
    OptimizerInput,
    OptimizerResult,
    ProgressCallback,
)

logger = logging.getLogger(__name__)


class Progress:
    """Clamps and forwards progress to an optional callback."""

    __slots__ = ("_callback", "last")

    def __init__(self, callback: Optional[ProgressCallback]) -> None:
        self._callback = callback
        self.last = 0.0

    def __call__(self, pct: float, note: Optional[str] = None) -> None:
        pct = min(100.0, max(self.last, pct))
        self.last = pct
        if self._callback is not None:
            self._callback(pct, note)


@dataclass
class SearchOutcome:
    pool: EvaluationPool
    iterations: int
    diagnostics: Dict[str, Any] = field(default_factory=dict)


class SearchStrategy(ABC):
    """A search proposes aim points; selection and bookkeeping live here."""

    name: ClassVar[str]

    def __init__(self, selection: Optional[SelectionParameters] = None) -> None:
        self.selection = selection or SelectionParameters()

    @abstractmethod
    def search(
        self,
        inp: OptimizerInput,
        evaluator: Evaluator,
        cancel: CancelToken,
        progress: Progress,
    ) -> SearchOutcome:
        """Evaluate proposals and return every evaluated point."""

    def run(
        self,
        inp: OptimizerInput,
        cancel: Optional[CancelToken] = None,
        *,
        progress: Optional[ProgressCallback] = None,
        elevation: Optional[ElevationLookup] = None,
        model: Optional[ExpectedStrokesModel] = None,
    ) -> OptimizerResult:
        """Search, then select and re-score the final candidates.

        Raises ``OptimizationCancelled`` when ``cancel`` fires; no partial
        result is returned in that case.
        """
        cancel = cancel or CancelToken()
        reporter = Progress(progress)
        evaluator = Evaluator(inp, model=model, cancel=cancel, elevation=elevation)
        start = time.perf_counter()

        try:
            check(cancel)
            outcome = self.search(inp, evaluator, cancel, reporter)
            check(cancel)
            reporter(95.0, "selecting candidates")
            search_evaluations = evaluator.evaluations
            candidates = select(outcome.pool, inp, evaluator, self.selection, cancel)
            check(cancel)
        except OptimizationCancelled:
            self._finish(evaluator, start, "cancelled", iterations=0, candidates=0)
            raise
        except Exception:
            self._finish(evaluator, start, "error", iterations=0, candidates=0)
            raise

        diagnostics = dict(outcome.diagnostics)
        diagnostics["pool_size"] = len(outcome.pool)
        diagnostics["selector_reevaluations"] = evaluator.evaluations - search_evaluations
        diagnostics["evaluator"] = evaluator.diagnostics()
        diagnostics["landing"] = [c.landing_breakdown() for c in candidates]

        result = OptimizerResult(
            candidates=candidates,
            iterations=outcome.iterations,
            eval_count=evaluator.evaluations,
            strategy=self.name,
            diagnostics=diagnostics,
        )
        reporter(100.0, "done")
        self._finish(
            evaluator,
            start,
            "ok",
            iterations=outcome.iterations,
            candidates=len(candidates),
            best_es=candidates[0].es if candidates else None,
        )
        return result

    def _finish(
        self,
        evaluator: Evaluator,
        start: float,
        outcome: str,
        *,
        iterations: int,
        candidates: int,
        best_es: float | None = None,
    ) -> None:
        duration_ms = (time.perf_counter() - start) * 1000
        telemetry.record_run_metrics(
            strategy=self.name,
            outcome=outcome,
            duration_ms=duration_ms,
            evaluations=evaluator.evaluations,
        )
        payload = telemetry.build_structured_log_payload(
            strategy=self.name,
            outcome=outcome,
            iterations=iterations,
            evaluations=evaluator.evaluations,
            candidates=candidates,
            best_es=best_es,
            duration_ms=duration_ms,
        )
        logger.info("aim_optimize", extra={"aim_optimizer": payload})


__all__ = ["Progress", "SearchOutcome", "SearchStrategy"]
