"""Pydantic models for pipeline and service return types.

These models give the AI pipelines and the overdue sweep typed inputs and
outputs. Field names on models that cross the HTTP boundary follow the wire
contract (`urgentTasks`, `sentCount`) rather than Python naming.
"""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from src.core.dates import parse_datetime
from src.domain.todo import Priority


class TodoParseOutput(BaseModel):
    """Structured output requested from the model for a free-text todo."""

    title: str = Field(..., description="할 일의 핵심 제목 (간결하게)")
    description: str | None = Field(default=None, description="추가 세부 사항, 각 항목은 • 로 시작하는 줄")
    due_date: str | None = Field(default=None, description="마감 날짜 YYYY-MM-DD, 없으면 null")
    due_time: str | None = Field(default=None, description="마감 시간 HH:MM (24시간), 없으면 null")
    priority: Literal["high", "medium", "low"] = Field(..., description="우선순위")
    category: list[str] = Field(..., description="카테고리 목록 (업무, 공부, 건강, 개인, 취미)")


class TodoParseDraft(BaseModel):
    """Repaired todo draft returned to the client for confirmation."""

    title: str
    description: str
    due_date: str | None
    due_time: str | None
    priority: Priority
    category: list[str]


class TodoLike(BaseModel):
    """Todo as submitted for analysis; unknown fields are ignored."""

    model_config = ConfigDict(extra="ignore")

    id: str = ""
    title: str
    completed: bool = False
    priority: Priority = Priority.MEDIUM
    due_date: datetime | None = None
    category: list[str] | None = None

    @field_validator("due_date", mode="before")
    @classmethod
    def parse_due_date(cls, v: str | datetime | None) -> datetime | None:
        """Accept ISO strings with or without offset; blanks mean no due date."""
        return parse_datetime(v)

    def is_overdue(self, now: datetime) -> bool:
        """Not completed and due before now."""
        return not self.completed and self.due_date is not None and self.due_date < now


class AnalysisResult(BaseModel):
    """Narrative analysis of a todo list."""

    summary: str = Field(..., description="전체 요약 (한 문장)")
    urgentTasks: list[str] = Field(..., description="긴급한 할 일 제목 (최대 5개, 지연된 것 우선)")  # noqa: N815
    insights: list[str] = Field(..., description="인사이트 문장 목록")
    recommendations: list[str] = Field(..., description="실행 가능한 추천 문장 목록")


class PriorityStats(BaseModel):
    """Counts for one priority bucket."""

    total: int
    completed: int
    completion_rate: int


class TodoStatistics(BaseModel):
    """Derived statistics embedded into the analysis prompt."""

    period: Literal["today", "week"]
    total: int
    completed: int
    completion_rate: int
    by_priority: dict[Priority, PriorityStats]
    overdue: int
    top_categories: list[tuple[str, int]]
    weekday_distribution: list[tuple[str, int]] = Field(default_factory=list)


class OverdueItem(BaseModel):
    """One line of the overdue digest email."""

    title: str
    due_date_formatted: str
    days_overdue: int


class SweepResult(BaseModel):
    """Outcome of one overdue sweep run."""

    success: bool = True
    message: str
    sentCount: int  # noqa: N815
    totalOverdueTodos: int | None = None  # noqa: N815
    errors: list[str] | None = None
