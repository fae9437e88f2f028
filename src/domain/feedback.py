"""Feedback domain models and enums."""

from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel, Field


class FeedbackType(StrEnum):
    """Kind of user report."""

    BUG = "bug"
    FEATURE = "feature"


class FeedbackStatus(StrEnum):
    """Review status, managed by operators outside the API."""

    PENDING = "pending"
    REVIEWED = "reviewed"
    RESOLVED = "resolved"
    REJECTED = "rejected"


class Feedback(BaseModel):
    """Feedback data transfer object."""

    id: str
    user: str
    type: FeedbackType
    title: str
    description: str
    status: FeedbackStatus = FeedbackStatus.PENDING
    created_at: datetime | None = None


class FeedbackCreate(BaseModel):
    """Fields accepted when submitting feedback."""

    type: FeedbackType = Field(..., description="bug or feature")
    title: str = Field(..., min_length=1, max_length=200, description="Short summary")
    description: str = Field(..., min_length=1, description="Details of the report")
