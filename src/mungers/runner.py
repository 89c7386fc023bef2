"""
Munge Runner Module.

Runs one pass of every configured munger over the open pull requests of
every configured repository, and removes comments the mungers report as
obsolete. Errors are logged per pull request and never abort the pass.
"""

from typing import Dict, List

from config import logger
from mungers.base import Munger
from mungers.models import Action
from providers.base import PullRequestView
from providers.github_provider import GitHubProvider


def repo_name_from_url(repo_url: str) -> str:
    """Extract 'owner/repo' from a repository URL."""
    url = str(repo_url).strip().rstrip("/")
    if url.endswith(".git"):
        url = url[: -len(".git")]
    return "/".join(url.split("/")[-2:])


class MungeRunner:
    """
    Coordinates mungers across repositories and pull requests.

    Attributes:
        provider (GitHubProvider): Source of pull request views.
        mungers (List[Munger]): Rules applied to every pull request, in order.
        repository_urls (List[str]): Repositories to munge.
    """

    def __init__(
        self,
        provider: GitHubProvider,
        mungers: List[Munger],
        repository_urls: List[str],
    ):
        """Initialize the runner.

        Args:
            provider (GitHubProvider): Source of pull request views.
            mungers (List[Munger]): Rules applied to every pull request.
            repository_urls (List[str]): Repositories to munge.
        """
        self.provider = provider
        self.mungers = mungers
        self.repository_urls = repository_urls

    async def munge_pull_request(self, obj: PullRequestView) -> Action:
        """
        Run every munger on one pull request, then clean up stale comments.

        Returns:
            Action: TRIGGER_RETEST if any munger triggered one, else NOOP
        """
        result = Action.NOOP
        for munger in self.mungers:
            action = await munger.munge(obj)
            if action is not Action.NOOP:
                result = action

        try:
            comments = obj.list_comments()
            for munger in self.mungers:
                for comment in munger.stale_comments(obj, comments):
                    await obj.delete_comment(comment)
        except Exception as e:
            logger.error(
                {
                    "message": "Failed to clean up stale comments",
                    "pr_number": obj.number,
                    "error": str(e),
                }
            )
        return result

    async def run_once(self) -> Dict[str, Dict[int, Action]]:
        """
        Munge all open pull requests of all configured repositories.

        Returns:
            Dict[str, Dict[int, Action]]: Actions per pull request number,
                keyed by repository name.

        Note:
            A failing pull request or repository is logged and skipped.
        """
        results: Dict[str, Dict[int, Action]] = {}
        for repo_url in self.repository_urls:
            repo_name = repo_name_from_url(repo_url)
            logger.info({"message": "Munging repository", "repository": repo_name})
            try:
                numbers = self.provider.list_open_pull_requests(repo_name)
            except Exception as e:
                logger.error(
                    {
                        "message": "Failed to list pull requests",
                        "repository": repo_name,
                        "error": str(e),
                    }
                )
                continue

            actions: Dict[int, Action] = {}
            for number in numbers:
                try:
                    obj = self.provider.get_view(repo_name, number)
                    actions[number] = await self.munge_pull_request(obj)
                except Exception as e:
                    logger.error(
                        {
                            "message": "Failed to munge pull request",
                            "repository": repo_name,
                            "pr_number": number,
                            "error": str(e),
                        }
                    )
            results[repo_name] = actions

        return results
