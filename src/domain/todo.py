"""Todo domain models and enums."""

from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel, Field, field_validator

from src.core.config import Constants


class Priority(StrEnum):
    """Todo priority."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


# Sort rank: higher is more urgent
PRIORITY_RANK = {Priority.HIGH: 3, Priority.MEDIUM: 2, Priority.LOW: 1}


class TodoStatus(StrEnum):
    """Derived todo status used for filtering."""

    COMPLETED = "completed"
    IN_PROGRESS = "in-progress"
    OVERDUE = "overdue"


class SortField(StrEnum):
    """Fields a todo list can be sorted by."""

    PRIORITY = "priority"
    DUE_DATE = "due_date"
    CREATED_AT = "created_at"


class SortOrder(StrEnum):
    """Sort direction."""

    ASC = "asc"
    DESC = "desc"


def clean_categories(values: list[str]) -> list[str]:
    """Strip entries, drop blanks and duplicates, keep first-seen order."""
    cleaned: list[str] = []
    for value in values:
        item = value.strip()
        if item and item not in cleaned:
            cleaned.append(item)
    return cleaned


class Todo(BaseModel):
    """Todo data transfer object."""

    id: str = Field(..., description="Unique todo ID from PocketBase")
    user: str = Field(..., description="Owning user ID")
    title: str = Field(..., description="Todo title")
    description: str = Field(default="", description="Free-form details, may be multi-line")
    created_at: datetime | None = Field(default=None, description="Creation timestamp")
    due_date: datetime | None = Field(default=None, description="Optional due date and time")
    priority: Priority = Field(default=Priority.MEDIUM, description="Todo priority")
    category: list[str] = Field(default_factory=list, description="Category labels")
    completed: bool = Field(default=False, description="Whether the todo is done")

    def is_overdue(self, now: datetime) -> bool:
        """Not completed and due before now."""
        return not self.completed and self.due_date is not None and self.due_date < now


class _TodoFieldsMixin(BaseModel):
    @field_validator("title", check_fields=False)
    @classmethod
    def validate_title(cls, v: str | None) -> str | None:
        """Trim the title and require 1..TITLE_MAX_LENGTH characters."""
        if v is None:
            return v
        v = v.strip()
        if not v:
            raise ValueError("Title cannot be empty")
        if len(v) > Constants.TITLE_MAX_LENGTH:
            raise ValueError(f"Title cannot exceed {Constants.TITLE_MAX_LENGTH} characters")
        return v

    @field_validator("category", check_fields=False)
    @classmethod
    def validate_category(cls, v: list[str] | None) -> list[str] | None:
        """Drop blank and duplicate categories."""
        if v is None:
            return v
        return clean_categories(v) or [Constants.DEFAULT_CATEGORY]


class TodoCreate(_TodoFieldsMixin):
    """Fields accepted when creating a todo."""

    title: str = Field(..., description="Todo title")
    description: str = Field(default="", description="Free-form details")
    due_date: datetime | None = Field(default=None, description="Optional due date and time")
    priority: Priority = Field(default=Priority.MEDIUM, description="Todo priority")
    category: list[str] = Field(default_factory=lambda: [Constants.DEFAULT_CATEGORY], description="Category labels")
    completed: bool = Field(default=False, description="Initial completion state")


class TodoUpdate(_TodoFieldsMixin):
    """Partial update; only explicitly set fields are written."""

    title: str | None = None
    description: str | None = None
    due_date: datetime | None = None
    priority: Priority | None = None
    category: list[str] | None = None
    completed: bool | None = None


class TodoFilter(BaseModel):
    """Search, filter and sort options for listing todos."""

    search: str | None = Field(default=None, description="Case-insensitive title substring")
    priorities: list[Priority] = Field(default_factory=list, description="Keep only these priorities")
    categories: list[str] = Field(default_factory=list, description="Keep todos having any of these categories")
    statuses: list[TodoStatus] = Field(default_factory=list, description="Keep todos matching any status")
    sort_by: SortField = Field(default=SortField.CREATED_AT)
    sort_order: SortOrder = Field(default=SortOrder.DESC)
