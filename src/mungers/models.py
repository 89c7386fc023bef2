"""
Munger Data Models.

Defines the decision types and the configuration of the stale-green-ci rule.
"""

from datetime import timedelta
from enum import Enum
from typing import Tuple

from pydantic import BaseModel, ConfigDict, field_validator

JENKINS_BOT_NAME = "k8s-bot"
JENKINS_UNIT_CONTEXT = "Jenkins unit/integration"
JENKINS_E2E_CONTEXT = "Jenkins GCE e2e"
LGTM_LABEL = "lgtm"

GREEN_MSG_FORMAT = "@{bot} test this\n\nTests are more than {hours} hours old. Re-running tests."


class Action(Enum):
    """
    What a munger decided to do with a pull request.

    Attributes:
        NOOP: Leave the pull request alone
        TRIGGER_RETEST: Ask CI to run the required contexts again
    """

    NOOP = "noop"
    TRIGGER_RETEST = "trigger_retest"


class StalenessVerdict(Enum):
    """
    Classification of a pull request's CI evidence.

    Attributes:
        NOT_APPLICABLE: Preconditions failed or a fact could not be determined
        FRESH: Approved, mergeable, green and recently tested
        STALE: Approved, mergeable, green but tested too long ago
    """

    NOT_APPLICABLE = "not_applicable"
    FRESH = "fresh"
    STALE = "stale"

    @property
    def action(self) -> Action:
        return Action.TRIGGER_RETEST if self is StalenessVerdict.STALE else Action.NOOP


class StaleGreenCIConfig(BaseModel):
    """Fixed settings of the stale-green-ci munger."""

    model_config = ConfigDict(frozen=True)

    stale_hours: int = 96
    grace_minutes: int = 30
    required_contexts: Tuple[str, ...] = (JENKINS_UNIT_CONTEXT, JENKINS_E2E_CONTEXT)
    approval_label: str = LGTM_LABEL
    ci_bot_name: str = JENKINS_BOT_NAME

    @field_validator("required_contexts")
    def ensure_contexts(cls, v: Tuple[str, ...]) -> Tuple[str, ...]:
        if not v:
            raise ValueError("at least one required context is needed")
        return v

    @property
    def stale_after(self) -> timedelta:
        return timedelta(hours=self.stale_hours)

    @property
    def grace_window(self) -> timedelta:
        return timedelta(minutes=self.grace_minutes)

    @property
    def message_body(self) -> str:
        """The exact comment posted when tests are re-run."""
        return GREEN_MSG_FORMAT.format(bot=self.ci_bot_name, hours=self.stale_hours)
