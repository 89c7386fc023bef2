"""
GitHub Pull Request Provider Module.

Reads pull request state (labels, mergeability, commit statuses, comments)
from the GitHub API through PyGithub and performs the writes mungers ask for.
"""

from datetime import datetime, timezone
from typing import Dict, List, Optional, Sequence

from github import Auth, Github, GithubException
from github.CommitStatus import CommitStatus
from github.Issue import Issue
from github.IssueComment import IssueComment
from github.PullRequest import PullRequest
from github.Repository import Repository
from tenacity import (
    AsyncRetrying,
    RetryError,
    retry_if_exception_type,
    stop_after_delay,
    wait_fixed,
)

from config import settings, logger
from providers.base import MergeableStateUnknown, PendingWaitError, PullRequestView
from providers.models import Notification

SUCCESS_STATE = "success"
PENDING_STATE = "pending"


def _as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Normalize GitHub timestamps to aware UTC datetimes."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class _NotPendingYet(Exception):
    """Raised while polling until a context reports pending."""


class GitHubPullRequestView(PullRequestView):
    """
    PullRequestView backed by the GitHub API.

    Commit statuses are fetched once and cached, so every decision made from
    one view sees the same snapshot. Waiting for a re-run always re-fetches.
    """

    def __init__(
        self,
        repo: Repository,
        number: int,
        bot_login: str,
        pending_timeout: int = 300,
        pending_poll: int = 10,
    ):
        """Initialize the view.

        Args:
            repo (Repository): Repository the pull request belongs to.
            number (int): Issue/pull request number.
            bot_login (str): Login the automation posts comments as.
            pending_timeout (int): Seconds to wait for a pending status.
            pending_poll (int): Seconds between status polls.
        """
        self.repo = repo
        self.issue: Issue = repo.get_issue(number)
        self.bot_login = bot_login
        self.pending_timeout = pending_timeout
        self.pending_poll = pending_poll
        self._pr: Optional[PullRequest] = None
        self._statuses: Optional[Dict[str, CommitStatus]] = None

    @property
    def number(self) -> int:
        return self.issue.number

    @property
    def pull(self) -> PullRequest:
        if self._pr is None:
            self._pr = self.repo.get_pull(self.issue.number)
        return self._pr

    def _fetch_statuses(self) -> Dict[str, CommitStatus]:
        # The combined status holds the latest status per context
        combined = self.repo.get_commit(self.pull.head.sha).get_combined_status()
        return {status.context: status for status in combined.statuses}

    def _get_statuses(self) -> Dict[str, CommitStatus]:
        if self._statuses is None:
            self._statuses = self._fetch_statuses()
        return self._statuses

    def is_pull_request(self) -> bool:
        return self.issue.pull_request is not None

    def has_label(self, name: str) -> bool:
        return any(label.name == name for label in self.issue.labels)

    def is_mergeable(self) -> bool:
        mergeable = self.pull.mergeable
        if mergeable is None:
            raise MergeableStateUnknown(
                f"GitHub has not computed mergeability of #{self.number}"
            )
        return bool(mergeable)

    def is_status_success(self, contexts: Sequence[str]) -> bool:
        statuses = self._get_statuses()
        for context in contexts:
            status = statuses.get(context)
            if status is None or status.state != SUCCESS_STATE:
                return False
        return True

    def get_status_time(self, context: str) -> Optional[datetime]:
        status = self._get_statuses().get(context)
        if status is None or status.state != SUCCESS_STATE:
            return None
        return _as_utc(status.updated_at)

    def _to_notification(self, comment: IssueComment) -> Notification:
        return Notification(
            comment_id=comment.id,
            author=comment.user.login if comment.user else "",
            body=comment.body or "",
            created_at=_as_utc(comment.created_at),
        )

    def list_comments(self) -> List[Notification]:
        return [self._to_notification(c) for c in self.issue.get_comments()]

    def is_bot_comment(self, comment: Notification) -> bool:
        return comment.author == self.bot_login

    async def write_comment(self, body: str) -> None:
        logger.info({"message": "Posting comment", "pr_number": self.number})
        self.issue.create_comment(body)

    async def delete_comment(self, comment: Notification) -> None:
        logger.info(
            {
                "message": "Deleting comment",
                "pr_number": self.number,
                "comment_id": comment.comment_id,
            }
        )
        self.issue.get_comment(comment.comment_id).delete()

    def _check_pending(self, contexts: Sequence[str]) -> None:
        statuses = self._fetch_statuses()
        if any(
            context in statuses and statuses[context].state == PENDING_STATE
            for context in contexts
        ):
            self._statuses = statuses
            return
        raise _NotPendingYet(f"no pending status yet on #{self.number}")

    async def wait_for_pending(self, contexts: Sequence[str]) -> None:
        try:
            async for attempt in AsyncRetrying(
                stop=stop_after_delay(self.pending_timeout),
                wait=wait_fixed(self.pending_poll),
                retry=retry_if_exception_type(_NotPendingYet),
            ):
                with attempt:
                    self._check_pending(contexts)
        except RetryError as e:
            raise PendingWaitError(
                f"#{self.number} did not start testing within "
                f"{self.pending_timeout} seconds"
            ) from e
        except GithubException as e:
            raise PendingWaitError(
                f"Failed polling statuses of #{self.number}: {e}"
            ) from e


class GitHubProvider:
    """
    GitHubProvider owns the GitHub client and hands out pull request views.
    """

    def __init__(
        self,
        github_token: Optional[str] = None,
        bot_login: Optional[str] = None,
        pending_timeout: Optional[int] = None,
        pending_poll: Optional[int] = None,
    ):
        """Initialize GitHub provider with authentication and configuration.

        Args:
            github_token (Optional[str]): GitHub API token for authentication.
            bot_login (Optional[str]): Login the automation posts comments as.
            pending_timeout (Optional[int]): Seconds to wait for a re-run to start.
            pending_poll (Optional[int]): Seconds between status polls.
        """
        if github_token is None and settings.github_token is not None:
            github_token = settings.github_token.get_secret_value()
        self.github = Github(auth=Auth.Token(github_token)) if github_token else Github()
        self.bot_login = bot_login or settings.bot_login
        self.pending_timeout = pending_timeout or settings.pending_timeout_seconds
        self.pending_poll = pending_poll or settings.pending_poll_seconds

    def _check_rate_limit(self, check_name: str = None) -> None:
        """
        Check and log the GitHub API rate limit status.

        Args:
            check_name (Optional[str]): Identifier for the rate limit check point.

        Raises:
            Exception: Raised when the rate limit is exhausted, indicating time until reset.
        """
        remaining, limit = self.github.rate_limiting
        reset_time = datetime.fromtimestamp(
            self.github.rate_limiting_resettime, tz=timezone.utc
        )
        now = datetime.now(timezone.utc)

        logger.debug(
            {
                "message": f"{check_name} API rate limit status",
                "remaining_points": remaining,
                "total_points": limit,
                "reset_time": reset_time.isoformat(),
            }
        )

        # If less than 10% of rate limit remains, log a warning
        if remaining < (limit * 0.1) and remaining > 0:
            logger.warning(
                {
                    "message": "GitHub API rate limit running low",
                    "remaining_points": remaining,
                    "reset_time": reset_time.isoformat(),
                }
            )

        if remaining == 0:
            wait_time = (reset_time - now).total_seconds()
            logger.critical(
                {
                    "message": "GitHub API rate limit exhausted",
                    "reset_time": reset_time.isoformat(),
                    "wait_time_seconds": wait_time,
                }
            )
            raise Exception(
                f"GitHub API rate limit exhausted. Resets in {wait_time/60:.1f} minutes"
            )

    def list_open_pull_requests(self, repo_name: str) -> List[int]:
        """
        List the numbers of all open pull requests of a repository.

        Args:
            repo_name (str): The full name of the repository (e.g., 'owner/repo').

        Returns:
            List[int]: Open pull request numbers, newest first.
        """
        self._check_rate_limit("Pull request listing")
        repo = self.github.get_repo(repo_name)
        return [pr.number for pr in repo.get_pulls(state="open")]

    def get_view(self, repo_name: str, number: int) -> GitHubPullRequestView:
        """
        Build a view over one pull request.

        Args:
            repo_name (str): The full name of the repository.
            number (int): Pull request number.

        Returns:
            GitHubPullRequestView: View bound to this provider's identity settings.
        """
        return GitHubPullRequestView(
            self.github.get_repo(repo_name),
            number,
            self.bot_login,
            self.pending_timeout,
            self.pending_poll,
        )
