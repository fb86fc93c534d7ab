"""Integrity-checked retrieval of pinned source archives."""

from .http import FetchResult, fetch

__all__ = ["FetchResult", "fetch"]
