"""
Pull Request Collaborator Data Models.

Defines the records the GitHub data access layer hands to mungers.
Uses Pydantic for validation and immutability.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict


class Notification(BaseModel):
    """A comment previously posted on a pull request."""

    model_config = ConfigDict(frozen=True)

    comment_id: int
    author: str
    body: str
    created_at: Optional[datetime]
