import platform
import time
from typing import Any, Dict

from aimpoint.config import get_settings
from aimpoint.metrics import BUILD_VERSION, GIT_SHA


async def health() -> Dict[str, Any]:
    settings = get_settings()
    return {
        "status": "ok",
        "version": BUILD_VERSION,
        "git": GIT_SHA,
        "ts": time.time(),
        "env": {
            "default_strategy": settings.default_strategy,
            "plays_like": settings.plays_like,
            "es_cache": settings.es_cache,
        },
        "runtime": {
            "python": platform.python_version(),
        },
    }
