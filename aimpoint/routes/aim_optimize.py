"""API route for the aim-point optimizer."""

from __future__ import annotations

import logging
import threading
import time

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from aimpoint.config import get_settings
from aimpoint.es.curves import DEFAULT_CACHE_SIZE, ExpectedStrokesModel
from aimpoint.optimizer import (
    CancelToken,
    OptimizationCancelled,
    SelectionParameters,
    Strategy,
    get_optimizer,
)
from aimpoint.providers import elevation_lookup
from aimpoint.schemas import aim_optimize as schemas

logger = logging.getLogger("aim_optimizer")

router = APIRouter(prefix="/aim", tags=["aim"])


def _error(status_code: int, code: str, message: str, details: dict | None = None):
    return JSONResponse(
        status_code=status_code,
        content=schemas.ErrorEnvelope(
            error_code=code, message=message, details=details
        ).model_dump(),
    )


def _default_strategy(name: str) -> Strategy:
    try:
        return Strategy(name)
    except ValueError:
        logger.warning("unknown AIM_DEFAULT_STRATEGY %r, using RingGrid", name)
        return Strategy.RING_GRID


@router.post("/optimize", response_model=schemas.AimOptimizeResponse)
def post_optimize(payload: dict):
    settings = get_settings()
    start = time.perf_counter()

    try:
        # Validate explicitly to control the 422 envelope shape
        request = schemas.AimOptimizeRequest.model_validate(payload)
        inp = schemas.to_domain(request, settings)
        strategy = request.strategy or _default_strategy(settings.default_strategy)
        optimizer = get_optimizer(
            strategy, SelectionParameters(max_candidates=settings.max_candidates)
        )
    except (ValueError, TypeError) as exc:
        return _error(422, "validation_error", str(exc))

    model = ExpectedStrokesModel(cache_size=DEFAULT_CACHE_SIZE if settings.es_cache else 0)
    elevation = elevation_lookup if (settings.plays_like and request.plays_like) else None

    cancel = CancelToken()
    timer = threading.Timer(settings.time_budget_s, cancel.cancel, args=("time_budget",))
    timer.daemon = True
    timer.start()
    try:
        result = optimizer.run(inp, cancel, elevation=elevation, model=model)
    except OptimizationCancelled as exc:
        duration_ms = (time.perf_counter() - start) * 1000
        return _error(
            503,
            "optimization_cancelled",
            "optimization did not finish within its time budget",
            details={"reason": exc.reason, "duration_ms": round(duration_ms, 1)},
        )
    finally:
        timer.cancel()

    duration_ms = (time.perf_counter() - start) * 1000
    logger.info(
        "aim_optimize_request",
        extra={
            "aim_optimizer": {
                "strategy": result.strategy,
                "candidates": len(result.candidates),
                "plays_like": elevation is not None,
                "duration_ms": duration_ms,
            }
        },
    )
    return schemas.from_domain(result)
