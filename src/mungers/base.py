"""
Base Class for Mungers.

A munger is one rule the runner applies to every open pull request on each
pass. Mungers hold no state between passes.
"""

from abc import ABC, abstractmethod
from typing import List

from mungers.models import Action
from providers.base import PullRequestView
from providers.models import Notification


class Munger(ABC):
    """Base class for pull request mungers."""

    name: str = ""

    @abstractmethod
    async def munge(self, obj: PullRequestView) -> Action:
        """
        Apply the rule to one pull request.

        Args:
            obj (PullRequestView): The pull request to examine

        Returns:
            Action: What the munger did
        """

    def stale_comments(
        self, obj: PullRequestView, comments: List[Notification]
    ) -> List[Notification]:
        """Return the comments this munger posted that are now obsolete."""
        return []
