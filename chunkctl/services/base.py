"""Base service with common methods for chunkctl services."""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING, Optional, TypeVar

if TYPE_CHECKING:
    from chunkctl.core.client import StoreClient

T = TypeVar("T")


class BaseService:
    """Base service class with common functionality."""

    def __init__(self, client: "StoreClient") -> None:
        """Initialize service with a store client.

        Args:
            client: StoreClient instance
        """
        self.client = client

    @staticmethod
    def _report(callback: Optional[Callable[[T], None]], payload: T) -> None:
        """Invoke a callback if provided.

        Args:
            callback: Optional callback
            payload: Value passed to the callback
        """
        if callback is not None:
            callback(payload)
