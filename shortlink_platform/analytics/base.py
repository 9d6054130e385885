"""
Abstract Base Class for Analytics Backends.

Responsibilities:
    - Define the read-only queries any analytics implementation answers
    - Support easy substitution (e.g., in-memory derivation, SQL aggregates)
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List

__all__ = ["BaseAnalytics"]


class BaseAnalytics(ABC):
    """Abstract base for pluggable analytics backends."""

    @abstractmethod
    def summary_for(self, code: str) -> Dict[str, Any]:  # pragma: no cover
        """
        Click count and recent unique visitors for one link.

        Raises:
            NotFoundError: If the link does not exist.
        """
        raise NotImplementedError

    @abstractmethod
    def global_summary(self) -> List[Dict[str, Any]]:  # pragma: no cover
        """One aggregate row per link, newest link first."""
        raise NotImplementedError

    @abstractmethod
    def detailed_info(self, code: str) -> Dict[str, Any]:  # pragma: no cover
        """
        Raw link record plus its full click history.

        Raises:
            NotFoundError: If the link does not exist or has expired.
        """
        raise NotImplementedError
