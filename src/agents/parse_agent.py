"""Natural-language todo parsing: prompt, model call, and output repair."""

import logging
from collections.abc import Mapping
from datetime import date, datetime
from typing import Any

from pydantic_ai import Agent

from src.agents.agent_instance import get_parse_agent
from src.core.config import Constants
from src.core.dates import format_korean_long, local_now, weekday_ko
from src.core.errors import ModelOperation, classify_model_error
from src.core.logging import span
from src.domain.todo import Priority, clean_categories
from src.models.service_models import TodoParseDraft, TodoParseOutput


logger = logging.getLogger(__name__)


PARSE_PROMPT_TEMPLATE = """당신은 한국어 자연어를 할 일(TODO) 데이터로 변환하는 AI 어시스턴트입니다.

현재 정보:
- 오늘 날짜: {today}
- 현재 시간: {current_time}

사용자 입력: "{user_input}"

위 입력을 분석하여 다음 규칙에 따라 구조화된 할 일 데이터로 변환하세요:

1. **제목 (title)**: 핵심 행동을 간결하게 추출 (예: "팀 회의 준비", "보고서 작성")

2. **설명 (description)**:
   - 제목에 포함되지 않은 중요한 세부 사항이나 단계들을 추출
   - 여러 항목이 있을 경우 bullet point(•)를 사용하여 정리
   - 각 항목은 줄바꿈으로 구분
   - 추가 정보가 없으면 빈 문자열

3. **마감일 (due_date)**:
   - "오늘" → 오늘 날짜
   - "내일" → 오늘 + 1일
   - "모레" → 오늘 + 2일
   - "다음 주 월요일" → 다음 월요일 날짜
   - 명시적 날짜 → 해당 날짜
   - 날짜 정보 없음 → null
   - 형식: YYYY-MM-DD

4. **마감 시간 (due_time)**:
   - 명시된 시간 추출 (예: "오후 3시" → "15:00", "저녁 7시" → "19:00")
   - 시간 정보 없고 날짜만 있으면 → "{default_time}" (기본값)
   - 날짜도 시간도 없으면 → null
   - 형식: HH:MM (24시간)

5. **우선순위 (priority)**:
   - "긴급", "중요", "빨리", "시급", "마감 임박" → "high"
   - "보통", "일반" → "medium"
   - "여유", "천천히", "나중에" → "low"
   - 명시되지 않았다면 문맥으로 판단 (회의, 발표, 제출 등 → high, 일상적인 일 → medium)

6. **카테고리 (category)**:
   - 업무 관련 → ["업무"]
   - 공부/학습 → ["공부"]
   - 운동/건강 → ["건강"]
   - 개인적인 일 → ["개인"]
   - 취미/여가 → ["취미"]
   - 여러 카테고리 가능 (예: ["업무", "공부"])
   - 명확하지 않으면 문맥으로 추론

**중요**: 날짜 계산 시 오늘({today})을 기준으로 정확히 계산하세요."""


def build_parse_prompt(user_input: str, now: datetime) -> str:
    """Render the extraction prompt for a validated input at a given moment."""
    today = f"{format_korean_long(now.date())} {weekday_ko(now.date())}"
    return PARSE_PROMPT_TEMPLATE.format(
        today=today,
        current_time=now.strftime("%H:%M"),
        user_input=user_input,
        default_time=Constants.DEFAULT_DUE_TIME,
    )


def _repair_title(value: Any) -> str:
    title = value.strip() if isinstance(value, str) else ""
    if len(title) > Constants.TITLE_MAX_LENGTH:
        cut = Constants.TITLE_MAX_LENGTH - len(Constants.TITLE_ELLIPSIS)
        title = title[:cut] + Constants.TITLE_ELLIPSIS
    if len(title) < Constants.TITLE_MIN_LENGTH:
        return Constants.DEFAULT_TODO_TITLE
    return title


def _parse_due_date(value: Any) -> date | None:
    if not isinstance(value, str):
        return None
    try:
        return datetime.strptime(value.strip(), "%Y-%m-%d").date()
    except ValueError:
        return None


def _parse_due_time(value: Any) -> str | None:
    if not isinstance(value, str):
        return None
    try:
        return datetime.strptime(value.strip(), "%H:%M").strftime("%H:%M")
    except ValueError:
        return None


def _repair_category(value: Any) -> list[str]:
    if not isinstance(value, list):
        return [Constants.DEFAULT_CATEGORY]
    cleaned = clean_categories([item for item in value if isinstance(item, str)])
    return cleaned or [Constants.DEFAULT_CATEGORY]


def repair_draft(raw: Mapping[str, Any] | TodoParseOutput, today: date) -> TodoParseDraft:
    """Coerce a model output into a valid draft.

    Pure and idempotent: repairing an already repaired draft returns it unchanged.
    A due date before `today` is dropped together with its time, not clamped.
    """
    data = raw.model_dump() if isinstance(raw, TodoParseOutput) else dict(raw)

    description = data.get("description")
    due_date: str | None = None
    due_time: str | None = None
    parsed_due = _parse_due_date(data.get("due_date"))
    if parsed_due is not None and parsed_due >= today:
        due_date = parsed_due.isoformat()
        due_time = _parse_due_time(data.get("due_time"))

    priority = data.get("priority")
    return TodoParseDraft(
        title=_repair_title(data.get("title")),
        description=description.strip() if isinstance(description, str) else "",
        due_date=due_date,
        due_time=due_time,
        priority=priority if priority in tuple(Priority) else Priority.MEDIUM,
        category=_repair_category(data.get("category")),
    )


async def parse_todo(
    text: str,
    *,
    now: datetime | None = None,
    agent: Agent[None, TodoParseOutput] | None = None,
) -> TodoParseDraft:
    """Turn validated free text into a repaired todo draft.

    Args:
        text: Input already normalized and validated by input_validation
        now: Reference time for relative dates, defaults to the local wall clock
        agent: Agent override for tests

    Raises:
        UpstreamServiceError: When the model is unconfigured or the call fails
    """
    current = now or local_now()
    parse_agent = agent or get_parse_agent()
    prompt = build_parse_prompt(text, current)

    with span("parse_agent.parse_todo"):
        try:
            result = await parse_agent.run(prompt)
        except Exception as e:
            error = classify_model_error(e, operation=ModelOperation.PARSE)
            logger.error(
                "parse_todo_failed",
                extra={"error_code": error.code, "error": str(e), "error_type": type(e).__name__},
            )
            raise error from e

    draft = repair_draft(result.output, current.date())
    logger.info(
        "parse_todo_succeeded",
        extra={"priority": draft.priority, "has_due_date": draft.due_date is not None},
    )
    return draft
