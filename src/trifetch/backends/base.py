"""Base backend client interface.

Every backend implements a narrow interface: `fetch() -> FetchResult[T]`.
Expected failures (BackendError subclasses) come back as failed results
instead of being raised, so the orchestrator always gets three outcomes.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import ClassVar, Generic, TypeVar

from trifetch.core.errors import BackendError
from trifetch.models.result import FetchResult

T = TypeVar("T")

logger = logging.getLogger(__name__)


class BackendClient(ABC, Generic[T]):
    """Abstract base class for backend clients.

    Subclasses implement `_fetch()`, raising BackendError subclasses on
    failure. Backends must NOT retry or read configuration from the
    environment; everything they need comes in through the constructor.
    """

    name: ClassVar[str] = "backend"

    def fetch(self) -> FetchResult[T]:
        """Run one fetch and wrap its outcome.

        Returns:
            FetchResult holding the value, or the error descriptor.
        """
        logger.debug("Fetching from %s", self.name)
        try:
            value = self._fetch()
        except BackendError as e:
            logger.warning("%s fetch failed: %s: %s", self.name, type(e).__name__, e)
            return FetchResult.failure(self.name, e)

        logger.info("%s fetch succeeded", self.name)
        return FetchResult.success(self.name, value)

    @abstractmethod
    def _fetch(self) -> T:
        """Fetch from the backend.

        Returns:
            Typed backend value.

        Raises:
            BackendError: On any expected failure.
        """
        pass
