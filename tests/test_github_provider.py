"""
GitHub Provider Test Suite.

This module contains tests for the PyGithub backed pull request view, covering:
- Label, mergeability and status reads
- Comment conversion and bot identity
- Waiting for CI to pick up a re-run
- Rate limit handling
"""

from datetime import datetime, timedelta, timezone
from unittest.mock import Mock, patch

import pytest
from github import GithubException

from mungers.models import Action
from mungers.stale_green_ci import StaleGreenCI
from providers.base import MergeableStateUnknown, PendingWaitError
from providers.github_provider import GitHubProvider, GitHubPullRequestView

UNIT = "Jenkins unit/integration"
E2E = "Jenkins GCE e2e"
SET_AT = datetime(2026, 3, 1, 8, 30, tzinfo=timezone.utc)


def make_status(context, state, updated_at=SET_AT):
    status = Mock()
    status.context = context
    status.state = state
    status.updated_at = updated_at
    return status


def make_label(name):
    label = Mock()
    label.name = name
    return label


def combined(*statuses):
    result = Mock()
    result.statuses = list(statuses)
    return result


@pytest.fixture
def mock_repo():
    """Mock PyGithub repository holding PR #5."""
    repo = Mock()
    issue = repo.get_issue.return_value
    issue.number = 5
    issue.labels = [make_label("lgtm"), make_label("size/S")]
    pull = repo.get_pull.return_value
    pull.mergeable = True
    pull.head.sha = "abc123"
    repo.get_commit.return_value.get_combined_status.return_value = combined(
        make_status(UNIT, "success"),
        make_status(E2E, "success", SET_AT + timedelta(hours=1)),
    )
    return repo


@pytest.fixture
def view(mock_repo):
    return GitHubPullRequestView(
        mock_repo, 5, "k8s-merge-robot", pending_timeout=60, pending_poll=0
    )


def test_reads_issue_state(view, mock_repo):
    """Test PR detection and labels."""
    assert view.number == 5
    assert view.is_pull_request() is True
    assert view.has_label("lgtm") is True
    assert view.has_label("do-not-merge") is False

    mock_repo.get_issue.return_value.pull_request = None
    assert view.is_pull_request() is False


def test_mergeable(view, mock_repo):
    """Test the three mergeability states."""
    assert view.is_mergeable() is True

    mock_repo.get_pull.return_value.mergeable = False
    assert view.is_mergeable() is False

    mock_repo.get_pull.return_value.mergeable = None
    with pytest.raises(MergeableStateUnknown):
        view.is_mergeable()


def test_status_success_and_times(view, mock_repo):
    """Test aggregate success and success timestamps."""
    assert view.is_status_success([UNIT, E2E]) is True
    assert view.get_status_time(UNIT) == SET_AT
    assert view.get_status_time(E2E) == SET_AT + timedelta(hours=1)
    assert view.get_status_time("unknown") is None
    mock_repo.get_commit.assert_called_once_with("abc123")


def test_failed_context_has_no_time(mock_repo):
    """Test that a non-success status is neither green nor timed."""
    mock_repo.get_commit.return_value.get_combined_status.return_value = combined(
        make_status(UNIT, "failure"), make_status(E2E, "success")
    )
    view = GitHubPullRequestView(mock_repo, 5, "k8s-merge-robot")

    assert view.is_status_success([UNIT, E2E]) is False
    assert view.is_status_success([E2E]) is True
    assert view.get_status_time(UNIT) is None


def test_naive_timestamps_are_utc(mock_repo):
    """Test that naive GitHub timestamps are treated as UTC."""
    mock_repo.get_commit.return_value.get_combined_status.return_value = combined(
        make_status(UNIT, "success", datetime(2026, 3, 1, 8, 30))
    )
    view = GitHubPullRequestView(mock_repo, 5, "k8s-merge-robot")

    assert view.get_status_time(UNIT) == SET_AT


def test_comments(view, mock_repo):
    """Test comment conversion and bot identity."""
    ours = Mock(id=1, body="hello", created_at=SET_AT)
    ours.user.login = "k8s-merge-robot"
    theirs = Mock(id=2, body=None, created_at=SET_AT)
    theirs.user.login = "reviewer"
    mock_repo.get_issue.return_value.get_comments.return_value = [ours, theirs]

    comments = view.list_comments()

    assert [c.comment_id for c in comments] == [1, 2]
    assert comments[1].body == ""
    assert view.is_bot_comment(comments[0]) is True
    assert view.is_bot_comment(comments[1]) is False


@pytest.mark.asyncio
async def test_write_and_delete_comment(view, mock_repo):
    """Test that writes go to the issue."""
    issue = mock_repo.get_issue.return_value
    await view.write_comment("@k8s-bot test this")
    issue.create_comment.assert_called_once_with("@k8s-bot test this")

    ours = Mock(id=9, body="x", created_at=SET_AT)
    ours.user.login = "k8s-merge-robot"
    issue.get_comments.return_value = [ours]
    await view.delete_comment(view.list_comments()[0])
    issue.get_comment.assert_called_once_with(9)
    issue.get_comment.return_value.delete.assert_called_once()


@pytest.mark.asyncio
async def test_wait_for_pending(view, mock_repo):
    """Test polling until CI reports a pending run."""
    mock_repo.get_commit.return_value.get_combined_status.side_effect = [
        combined(make_status(UNIT, "success"), make_status(E2E, "success")),
        combined(make_status(UNIT, "pending"), make_status(E2E, "success")),
    ]

    await view.wait_for_pending([UNIT, E2E])

    assert mock_repo.get_commit.return_value.get_combined_status.call_count == 2
    assert view.is_status_success([UNIT, E2E]) is False


@pytest.mark.asyncio
async def test_wait_for_pending_times_out(mock_repo):
    """Test that a re-run that never starts raises."""
    view = GitHubPullRequestView(
        mock_repo, 5, "k8s-merge-robot", pending_timeout=0, pending_poll=0
    )

    with pytest.raises(PendingWaitError):
        await view.wait_for_pending([UNIT, E2E])


@pytest.mark.asyncio
async def test_wait_for_pending_github_error(view, mock_repo):
    """Test that an API error while polling is reported as a wait failure."""
    mock_repo.get_commit.return_value.get_combined_status.side_effect = (
        GithubException(502, "Bad Gateway", None)
    )

    with pytest.raises(PendingWaitError):
        await view.wait_for_pending([UNIT, E2E])


@pytest.mark.asyncio
async def test_munge_survives_polling_error(view, mock_repo):
    """Test that a failing status poll keeps the re-test and its comment."""
    now = datetime.now(timezone.utc)
    mock_repo.get_commit.return_value.get_combined_status.side_effect = [
        combined(
            make_status(UNIT, "success", now - timedelta(hours=100)),
            make_status(E2E, "success", now - timedelta(hours=10)),
        ),
        GithubException(502, "Bad Gateway", None),
    ]

    action = await StaleGreenCI().munge(view)

    assert action is Action.TRIGGER_RETEST
    mock_repo.get_issue.return_value.create_comment.assert_called_once()


@patch("providers.github_provider.Github")
def test_list_open_pull_requests(mock_github):
    """Test listing open PR numbers."""
    client = mock_github.return_value
    client.rate_limiting = (4000, 5000)
    client.rate_limiting_resettime = int(datetime.now(timezone.utc).timestamp()) + 600
    client.get_repo.return_value.get_pulls.return_value = [Mock(number=3), Mock(number=1)]

    provider = GitHubProvider("token", bot_login="robot")

    assert provider.list_open_pull_requests("test/repo") == [3, 1]
    client.get_repo.return_value.get_pulls.assert_called_once_with(state="open")
    assert provider.get_view("test/repo", 3).bot_login == "robot"


@patch("providers.github_provider.Github")
def test_rate_limit_exhausted(mock_github):
    """Test that an exhausted rate limit stops listing."""
    client = mock_github.return_value
    client.rate_limiting = (0, 5000)
    client.rate_limiting_resettime = int(datetime.now(timezone.utc).timestamp()) + 600

    provider = GitHubProvider("token")

    with pytest.raises(Exception, match="rate limit exhausted"):
        provider.list_open_pull_requests("test/repo")
    client.get_repo.assert_not_called()
