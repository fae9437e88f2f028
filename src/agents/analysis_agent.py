"""Todo list analysis: statistics, prompt construction, and the model call."""

import logging
from collections import Counter
from datetime import datetime
from typing import Literal

from pydantic_ai import Agent

from src.agents.agent_instance import get_analysis_agent
from src.core.config import Constants
from src.core.dates import format_dotted, format_korean_long, local_now, to_local, weekday_ko
from src.core.errors import ModelOperation, classify_model_error
from src.core.logging import span
from src.domain.todo import Priority
from src.models.service_models import AnalysisResult, PriorityStats, TodoLike, TodoStatistics


logger = logging.getLogger(__name__)

Period = Literal["today", "week"]

EMPTY_ANALYSIS = AnalysisResult(
    summary="아직 할 일이 없습니다.",
    urgentTasks=[],
    insights=["할 일을 추가하여 생산성을 관리해보세요!"],
    recommendations=["새로운 할 일을 추가해보세요."],
)

_PRIORITY_LABELS = {Priority.HIGH: "🔴높음", Priority.MEDIUM: "🟡보통", Priority.LOW: "🟢낮음"}
_PRIORITY_NAMES = {Priority.HIGH: "높음", Priority.MEDIUM: "보통", Priority.LOW: "낮음"}


def completion_rate(completed: int, total: int) -> int:
    """Percentage rounded half up; 0 for an empty set."""
    if total == 0:
        return 0
    return (200 * completed + total) // (2 * total)


def compute_statistics(todos: list[TodoLike], period: Period, now: datetime) -> TodoStatistics:
    """Derive the aggregate numbers the analysis prompt is built from."""
    total = len(todos)
    completed = sum(1 for todo in todos if todo.completed)

    by_priority: dict[Priority, PriorityStats] = {}
    for priority in Priority:
        bucket = [todo for todo in todos if todo.priority == priority]
        done = sum(1 for todo in bucket if todo.completed)
        by_priority[priority] = PriorityStats(
            total=len(bucket), completed=done, completion_rate=completion_rate(done, len(bucket))
        )

    categories: Counter[str] = Counter()
    for todo in todos:
        categories.update(todo.category or [])

    weekdays: Counter[str] = Counter()
    if period == "week":
        weekdays.update(weekday_ko(to_local(todo.due_date).date()) for todo in todos if todo.due_date)

    return TodoStatistics(
        period=period,
        total=total,
        completed=completed,
        completion_rate=completion_rate(completed, total),
        by_priority=by_priority,
        overdue=sum(1 for todo in todos if todo.is_overdue(now)),
        # Counter.most_common keeps first-seen order among equal counts
        top_categories=categories.most_common(Constants.TOP_CATEGORY_COUNT),
        weekday_distribution=weekdays.most_common(),
    )


def format_todo_line(index: int, todo: TodoLike, now: datetime) -> str:
    """One digest line: `{i}. [완료] 제목 - 우선순위: 🔴높음, 마감일: 2026. 1. 5. ⚠️지연`."""
    status = "[완료]" if todo.completed else "[미완료]"
    due = format_dotted(to_local(todo.due_date).date()) if todo.due_date else "기한 없음"
    overdue = "⚠️지연" if todo.is_overdue(now) else ""
    return f"{index}. {status} {todo.title} - 우선순위: {_PRIORITY_LABELS[todo.priority]}, 마감일: {due} {overdue}"


def _format_counts(pairs: list[tuple[str, int]]) -> str:
    return ", ".join(f"{name}({count}개)" for name, count in pairs)


def build_analysis_prompt(todos: list[TodoLike], stats: TodoStatistics, now: datetime) -> str:
    """Embed the digest and statistics into the instructional template."""
    today = f"{format_korean_long(now.date())} {weekday_ko(now.date())}"
    is_week = stats.period == "week"
    period_text = "이번 주" if is_week else "오늘"
    todos_text = "\n".join(format_todo_line(i, todo, now) for i, todo in enumerate(todos, start=1))

    priority_lines = "\n".join(
        f"- {_PRIORITY_NAMES[p]}: {s.completed}/{s.total}개 ({s.completion_rate}%)" for p, s in stats.by_priority.items()
    )
    extra_lines = []
    if stats.top_categories:
        extra_lines.append(f"**📁 주요 카테고리:** {_format_counts(stats.top_categories)}")
    if stats.weekday_distribution:
        extra_lines.append(f"**📆 요일별 분포:** {_format_counts(stats.weekday_distribution)}")

    time_focus = "요일별 업무 분포의 균형" if is_week else "당일 시간대별 집중도"
    productivity_focus = "가장 생산적인 요일 추론" if is_week else "남은 시간과 미완료 작업량 평가"
    period_tips = (
        "- 주간 패턴 기반 다음 주 계획 제안\n   - 주말 활용 전략\n   - 평일 업무 분산 방법"
        if is_week
        else "- 오늘 남은 시간 활용법\n   - 당일 집중해야 할 작업 우선순위\n   - 내일로 미뤄도 되는 작업 식별"
    )

    return f"""당신은 생산성 전문가이자 친근한 AI 어시스턴트입니다.
사용자의 할 일 목록을 깊이 있게 분석하여 실질적인 인사이트와 추천사항을 제공하세요.

**📅 현재 정보:**
- 오늘 날짜: {today}
- 현재 시간: {now.strftime("%H:%M")}
- 분석 기간: {period_text}

**📊 전체 통계:**
- 전체 할 일: {stats.total}개
- 완료: {stats.completed}개 ({stats.completion_rate}%)
- 미완료: {stats.total - stats.completed}개
- 지연된 할 일: {stats.overdue}개 ⚠️

**🎯 우선순위별 완료율:**
{priority_lines}

{chr(10).join(extra_lines)}

**📝 할 일 목록:**
{todos_text}

---

**🔍 상세 분석 요청사항:**

1. **📈 요약 (summary)**:
   - 전체 할 일 개수, 완료 개수, 완료율을 간결하게 요약
   - 예: "총 8개의 할 일 중 5개 완료 (62.5%)"
   - 한 문장으로 작성

2. **🚨 긴급 할 일 (urgentTasks)**:
   - 지연된 할 일(⚠️표시) 우선 추출
   - 마감일이 임박했거나 우선순위가 높은 미완료 할 일
   - 제목만 나열 (최대 {Constants.MAX_URGENT_TASKS}개, 중요도 순)
   - 없으면 빈 배열 반환

3. **💡 인사이트 (insights)** - 4-6개 제공:
   - 전체 완료율({stats.completion_rate}%)과 우선순위별 완료 패턴 평가
   - 마감일 준수율 평가 (지연된 할 일 {stats.overdue}개 기준)
   - {time_focus}
   - {productivity_focus}
   - 사용자가 잘하고 있는 부분을 구체적으로 강조하고 격려
   - 각 인사이트는 데이터를 근거로 한 문장으로 작성

4. **✨ 추천사항 (recommendations)** - 4-6개 제공:
   - 구체적인 시간 관리 팁과 우선순위 조정 제안
   {period_tips}
   - 작업량이 많다면 분산 전략과 휴식 시간 확보 권장
   - "~하세요", "~해보세요" 등 바로 실천할 수 있는 행동 지향적 문구

**📌 중요 원칙:**
- 한국어로 자연스럽게 작성
- 친근하고 격려하는 톤 유지
- 긍정적인 부분 먼저 언급, 개선점은 부드럽게 제시
- 데이터를 기반으로 정확하고 구체적인 분석"""


async def analyze_todos(
    todos: list[TodoLike],
    period: Period,
    *,
    now: datetime | None = None,
    agent: Agent[None, AnalysisResult] | None = None,
) -> AnalysisResult:
    """Produce a narrative analysis of a todo list for the given period.

    An empty list short-circuits to a fixed result without touching the model.

    Raises:
        UpstreamServiceError: When the model is unconfigured or the call fails
    """
    if not todos:
        return EMPTY_ANALYSIS.model_copy(deep=True)

    current = now or local_now()
    analysis_agent = agent or get_analysis_agent()
    stats = compute_statistics(todos, period, current)
    prompt = build_analysis_prompt(todos, stats, current)

    with span("analysis_agent.analyze_todos"):
        try:
            result = await analysis_agent.run(prompt)
        except Exception as e:
            error = classify_model_error(e, operation=ModelOperation.ANALYSIS)
            logger.error(
                "analyze_todos_failed",
                extra={"error_code": error.code, "error": str(e), "period": period, "todo_count": len(todos)},
            )
            raise error from e

    logger.info(
        "analyze_todos_succeeded",
        extra={"period": period, "todo_count": stats.total, "completion_rate": stats.completion_rate},
    )
    return result.output
