from .elevation import (
    ElevationProviderResult,
    clear_elevation_cache,
    elevation_lookup,
    get_elevation,
)
from .errors import ProviderError

__all__ = [
    "ElevationProviderResult",
    "ProviderError",
    "clear_elevation_cache",
    "elevation_lookup",
    "get_elevation",
]
