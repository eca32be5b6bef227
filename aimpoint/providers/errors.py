from __future__ import annotations


class ProviderError(RuntimeError):
    """Raised when an upstream data provider cannot serve a request."""


__all__ = ["ProviderError"]
