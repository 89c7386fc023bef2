"""
Main Application Entry Point.

Runs a single munge pass over the configured repositories:
- Pull request discovery
- Stale green CI detection and re-test requests
- Cleanup of superseded re-test comments

Scheduling repeated passes is left to the process supervisor (cron, etc.).
"""

import asyncio

from config import settings, logger
from mungers.models import Action, StaleGreenCIConfig
from mungers.runner import MungeRunner
from mungers.stale_green_ci import StaleGreenCI
from providers.github_provider import GitHubProvider


async def main() -> None:
    """
    Execute one munge pass.

    Note:
        - Configured repositories are read from settings
        - Failures on individual pull requests are logged and skipped
    """
    if not settings.repository_urls:
        logger.warning("No repositories configured, nothing to do")
        return

    logger.debug("initializing github provider...")
    provider = GitHubProvider()

    mungers = [StaleGreenCI(StaleGreenCIConfig(ci_bot_name=settings.ci_bot_name))]
    runner = MungeRunner(provider, mungers, settings.repository_urls)

    logger.info("munging repositories...")
    results = await runner.run_once()

    for repo_name, actions in results.items():
        retested = [n for n, action in actions.items() if action is not Action.NOOP]
        logger.info(
            {
                "message": "Repository munged",
                "repository": repo_name,
                "pull_requests": len(actions),
                "retested": retested,
            }
        )

    logger.info("application finished")


if __name__ == "__main__":
    logger.info("Starting application ...")
    asyncio.run(main())
