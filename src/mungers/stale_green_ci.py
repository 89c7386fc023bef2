"""
Stale Green CI Munger.

Re-runs the required CI contexts on approved, mergeable, green pull requests
whose last successful run is older than the freshness threshold, and
recognizes the re-test comments it posted once CI has run again.
"""

from datetime import datetime, timezone
from typing import Callable, List

from config import logger
from mungers.base import Munger
from mungers.models import Action, StaleGreenCIConfig, StalenessVerdict
from providers.base import MergeableStateUnknown, ProviderError, PullRequestView
from providers.models import Notification


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class StaleGreenCI(Munger):
    """
    Triggers a re-test when the green CI results behind an approval are old.

    Attributes:
        config (StaleGreenCIConfig): Threshold, grace window, contexts and message
        clock (Callable[[], datetime]): Source of the current aware time
    """

    name = "stale-green-ci"

    def __init__(
        self,
        config: StaleGreenCIConfig = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.config = config or StaleGreenCIConfig()
        self.clock = clock

    def assess(self, obj: PullRequestView) -> StalenessVerdict:
        """
        Classify the CI evidence behind a pull request's approval.

        Preconditions are checked in order and the first failure returns
        NOT_APPLICABLE. A required context whose success time cannot be
        determined also gives NOT_APPLICABLE, even if another context is old.
        Otherwise any context older than the threshold makes the verdict STALE.

        Args:
            obj (PullRequestView): The pull request to examine

        Returns:
            StalenessVerdict: Verdict derived from the current state only
        """
        if not obj.is_pull_request():
            return StalenessVerdict.NOT_APPLICABLE

        if not obj.has_label(self.config.approval_label):
            return StalenessVerdict.NOT_APPLICABLE

        try:
            if not obj.is_mergeable():
                return StalenessVerdict.NOT_APPLICABLE
        except MergeableStateUnknown as e:
            logger.warning(
                {
                    "message": "Unable to determine mergeability",
                    "pr_number": obj.number,
                    "error": str(e),
                }
            )
            return StalenessVerdict.NOT_APPLICABLE

        contexts = self.config.required_contexts
        if not obj.is_status_success(contexts):
            return StalenessVerdict.NOT_APPLICABLE

        status_times = []
        for context in contexts:
            status_time = obj.get_status_time(context)
            if status_time is None:
                logger.error(
                    {
                        "message": "Unable to determine time context was set",
                        "pr_number": obj.number,
                        "context": context,
                    }
                )
                return StalenessVerdict.NOT_APPLICABLE
            status_times.append(status_time)

        now = self.clock()
        if any(now - t > self.config.stale_after for t in status_times):
            return StalenessVerdict.STALE

        return StalenessVerdict.FRESH

    def evaluate(self, obj: PullRequestView) -> Action:
        """Decide what to do with a pull request without doing it."""
        return self.assess(obj).action

    async def munge(self, obj: PullRequestView) -> Action:
        """
        Evaluate a pull request and re-run its tests if they are stale.

        The comment is posted before waiting so reviewers see it even if the
        wait fails. A failed post propagates and skips the wait; a failed wait
        is only logged.

        Args:
            obj (PullRequestView): The pull request to munge

        Returns:
            Action: The action taken
        """
        action = self.evaluate(obj)
        if action is not Action.TRIGGER_RETEST:
            return action

        logger.info(
            {
                "message": "Green CI results are stale, re-running tests",
                "pr_number": obj.number,
                "stale_hours": self.config.stale_hours,
            }
        )
        await obj.write_comment(self.config.message_body)
        try:
            await obj.wait_for_pending(self.config.required_contexts)
        except ProviderError as e:
            logger.error(
                {
                    "message": "Failed waiting for PR to start testing",
                    "pr_number": obj.number,
                    "error": str(e),
                }
            )
        return action

    def comment_before_last_ci(
        self, obj: PullRequestView, comment: Notification
    ) -> bool:
        """
        Check whether every required context succeeded after the comment.

        Each context's success time is extended by the grace window.
        """
        contexts = self.config.required_contexts
        if not obj.is_status_success(contexts):
            return False
        if comment.created_at is None:
            return False

        for context in contexts:
            status_time = obj.get_status_time(context)
            if status_time is None:
                return False
            if comment.created_at > status_time + self.config.grace_window:
                return False
        return True

    def is_stale_comment(self, obj: PullRequestView, comment: Notification) -> bool:
        """
        Check whether a comment is one of ours that CI has since superseded.

        Args:
            obj (PullRequestView): The pull request the comment is on
            comment (Notification): Candidate comment

        Returns:
            bool: True if the comment can be removed
        """
        if not obj.is_bot_comment(comment):
            return False
        if comment.body != self.config.message_body:
            return False
        stale = self.comment_before_last_ci(obj, comment)
        if stale:
            logger.debug(
                {
                    "message": "Found stale StaleGreenCI comment",
                    "pr_number": obj.number,
                    "comment_id": comment.comment_id,
                }
            )
        return stale

    def stale_comments(
        self, obj: PullRequestView, comments: List[Notification]
    ) -> List[Notification]:
        return [c for c in comments if self.is_stale_comment(obj, c)]
