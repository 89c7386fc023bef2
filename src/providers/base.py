"""
Abstract Base Class for Pull Request Views.

Defines the interface mungers use to read pull request state and to act on it.
All providers (GitHub, fakes in tests, etc.) should implement this interface.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import List, Optional, Sequence

from providers.models import Notification


class ProviderError(Exception):
    """Base error raised by pull request providers."""


class MergeableStateUnknown(ProviderError):
    """Mergeability has not been computed or could not be determined."""


class PendingWaitError(ProviderError):
    """CI was not observed starting a new run."""


class PullRequestView(ABC):
    """
    Abstract view over a single pull request (or issue).

    Query methods reflect the state at call time and have no side effects.
    Writes and waits are coroutines since they talk to remote services and
    may block for a long time.
    """

    @property
    @abstractmethod
    def number(self) -> int:
        """Issue/pull request number."""

    @abstractmethod
    def is_pull_request(self) -> bool:
        """Return True if the object is a pull request rather than an issue."""

    @abstractmethod
    def has_label(self, name: str) -> bool:
        """Return True if the label is currently applied."""

    @abstractmethod
    def is_mergeable(self) -> bool:
        """
        Report whether the pull request can be merged.

        Raises:
            MergeableStateUnknown: If mergeability is not known
        """

    @abstractmethod
    def is_status_success(self, contexts: Sequence[str]) -> bool:
        """Return True if every named status context currently reports success."""

    @abstractmethod
    def get_status_time(self, context: str) -> Optional[datetime]:
        """
        Get the time a status context was set to success.

        Returns:
            Optional[datetime]: Aware timestamp, or None if it cannot be determined
        """

    @abstractmethod
    def list_comments(self) -> List[Notification]:
        """Return all comments on the pull request, oldest first."""

    @abstractmethod
    def is_bot_comment(self, comment: Notification) -> bool:
        """Return True if the comment was posted by the automation account."""

    @abstractmethod
    async def write_comment(self, body: str) -> None:
        """Post a comment. Failures propagate."""

    @abstractmethod
    async def delete_comment(self, comment: Notification) -> None:
        """Remove a previously posted comment."""

    @abstractmethod
    async def wait_for_pending(self, contexts: Sequence[str]) -> None:
        """
        Block until CI reports a pending run for the given contexts.

        Raises:
            PendingWaitError: If no pending run is observed in time
        """
