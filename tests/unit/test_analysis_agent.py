"""Unit tests for the todo analysis pipeline."""

from datetime import datetime
from zoneinfo import ZoneInfo

import pytest
from pydantic_ai import Agent
from pydantic_ai.messages import ModelMessage
from pydantic_ai.models.function import AgentInfo, FunctionModel
from pydantic_ai.models.test import TestModel

from src.agents.analysis_agent import (
    EMPTY_ANALYSIS,
    analyze_todos,
    build_analysis_prompt,
    completion_rate,
    compute_statistics,
    format_todo_line,
)
from src.core.errors import ErrorCode, UpstreamServiceError
from src.models.service_models import AnalysisResult, TodoLike


SEOUL = ZoneInfo("Asia/Seoul")
NOW = datetime(2026, 1, 10, 14, 0, tzinfo=SEOUL)


def _todo(**overrides) -> TodoLike:
    data = {"id": "t1", "title": "보고서 작성", "completed": False, "priority": "medium", "category": ["업무"]}
    data.update(overrides)
    return TodoLike.model_validate(data)


def _failing_agent() -> Agent[None, AnalysisResult]:
    def fail(_messages: list[ModelMessage], _info: AgentInfo):
        raise AssertionError("model must not be called")

    return Agent(FunctionModel(fail), output_type=AnalysisResult)


@pytest.mark.unit
class TestCompletionRate:
    """Tests for completion_rate."""

    @pytest.mark.parametrize(
        ("completed", "total", "expected"),
        [(0, 0, 0), (0, 4, 0), (4, 4, 100), (1, 3, 33), (2, 3, 67), (1, 8, 13), (5, 8, 63)],
    )
    def test_rounds_half_up(self, completed, total, expected):
        """Test integer percentages rounded half up."""
        assert completion_rate(completed, total) == expected


@pytest.mark.unit
class TestComputeStatistics:
    """Tests for compute_statistics."""

    def test_counts_and_priority_buckets(self):
        """Test totals, overdue count and per-priority completion."""
        todos = [
            _todo(id="1", priority="high", completed=True),
            _todo(id="2", priority="high", due_date="2026-01-08T09:00:00+09:00"),
            _todo(id="3", priority="low", due_date="2026-01-12T09:00:00+09:00"),
        ]

        stats = compute_statistics(todos, "today", NOW)

        assert stats.total == 3
        assert stats.completed == 1
        assert stats.completion_rate == 33
        assert stats.overdue == 1
        assert stats.by_priority["high"].total == 2
        assert stats.by_priority["high"].completion_rate == 50
        assert stats.by_priority["medium"].total == 0
        assert stats.by_priority["medium"].completion_rate == 0

    def test_completed_todos_are_never_overdue(self):
        """Test that a past due date on a completed todo is not counted."""
        stats = compute_statistics([_todo(completed=True, due_date="2026-01-01T00:00:00Z")], "today", NOW)

        assert stats.overdue == 0

    def test_top_categories_limited_to_three(self):
        """Test that only the three most frequent categories are kept."""
        todos = [
            _todo(id="1", category=["업무", "공부"]),
            _todo(id="2", category=["업무"]),
            _todo(id="3", category=["건강"]),
            _todo(id="4", category=["취미"]),
        ]

        stats = compute_statistics(todos, "today", NOW)

        assert stats.top_categories[0] == ("업무", 2)
        assert len(stats.top_categories) == 3

    def test_weekday_distribution_only_for_week(self):
        """Test that weekday counts are computed for the week period only."""
        todos = [_todo(due_date="2026-01-12T10:00:00+09:00"), _todo(id="2", due_date="2026-01-12T18:00:00+09:00")]

        assert compute_statistics(todos, "today", NOW).weekday_distribution == []
        assert compute_statistics(todos, "week", NOW).weekday_distribution == [("월요일", 2)]


@pytest.mark.unit
class TestPromptFormatting:
    """Tests for the digest line and prompt text."""

    def test_overdue_line(self):
        """Test the digest line of an overdue high-priority todo."""
        todo = _todo(title="세금 신고", priority="high", due_date="2026-01-05T09:00:00+09:00")

        line = format_todo_line(1, todo, NOW)

        assert line == "1. [미완료] 세금 신고 - 우선순위: 🔴높음, 마감일: 2026. 1. 5. ⚠️지연"

    def test_line_without_due_date(self):
        """Test the digest line of a completed todo with no due date."""
        line = format_todo_line(2, _todo(completed=True), NOW)

        assert line.startswith("2. [완료] 보고서 작성 - 우선순위: 🟡보통, 마감일: 기한 없음")
        assert "⚠️지연" not in line

    def test_prompt_mentions_period_and_statistics(self):
        """Test that the prompt embeds the period, statistics and todos."""
        todos = [_todo(completed=True), _todo(id="2", title="운동")]
        stats = compute_statistics(todos, "week", NOW)

        prompt = build_analysis_prompt(todos, stats, NOW)

        assert "분석 기간: 이번 주" in prompt
        assert "완료: 1개 (50%)" in prompt
        assert "2. [미완료] 운동" in prompt
        assert "2026년 1월 10일 토요일" in prompt


@pytest.mark.unit
class TestAnalyzeTodos:
    """Tests for analyze_todos."""

    async def test_empty_list_skips_model(self):
        """Test that an empty list returns the fixed result without a model call."""
        result = await analyze_todos([], "today", now=NOW, agent=_failing_agent())

        assert result == EMPTY_ANALYSIS
        assert result.summary == "아직 할 일이 없습니다."
        assert result.urgentTasks == []

    async def test_empty_result_is_a_copy(self):
        """Test that callers cannot mutate the shared empty result."""
        result = await analyze_todos([], "week", now=NOW)
        result.insights.append("changed")

        assert EMPTY_ANALYSIS.insights == ["할 일을 추가하여 생산성을 관리해보세요!"]

    async def test_returns_model_output(self):
        """Test that the structured model output is returned verbatim."""
        output = {
            "summary": "총 1개의 할 일 중 0개 완료 (0%)",
            "urgentTasks": ["보고서 작성"],
            "insights": ["a"],
            "recommendations": ["b"],
        }
        agent = Agent(TestModel(custom_output_args=output), output_type=AnalysisResult)

        result = await analyze_todos([_todo()], "today", now=NOW, agent=agent)

        assert result.urgentTasks == ["보고서 작성"]
        assert result.summary == output["summary"]

    async def test_failure_uses_analysis_fallback(self):
        """Test that an unrecognized failure maps to AI_ANALYSIS_ERROR."""

        def fail(_messages: list[ModelMessage], _info: AgentInfo):
            raise RuntimeError("model produced nonsense")

        agent = Agent(FunctionModel(fail), output_type=AnalysisResult)

        with pytest.raises(UpstreamServiceError) as exc_info:
            await analyze_todos([_todo()], "today", now=NOW, agent=agent)

        assert exc_info.value.code == ErrorCode.AI_ANALYSIS_ERROR
