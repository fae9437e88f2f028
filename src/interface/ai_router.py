"""AI endpoints: natural-language todo parsing and todo list analysis."""

import json
import logging
from typing import Any, cast

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from pydantic import TypeAdapter, ValidationError

from src.agents.agent_instance import get_analysis_agent, get_parse_agent
from src.agents.analysis_agent import Period, analyze_todos
from src.agents.input_validation import prepare_input
from src.agents.parse_agent import parse_todo
from src.core.errors import ErrorCode, RequestValidationFailure
from src.models.service_models import TodoLike


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/ai", tags=["ai"])

_todo_list_adapter = TypeAdapter(list[TodoLike])
_PERIODS = ("today", "week")


async def _read_json(request: Request) -> Any:
    """Decode the raw body, mapping malformed JSON to INVALID_REQUEST_FORMAT."""
    try:
        return await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise RequestValidationFailure(ErrorCode.INVALID_REQUEST_FORMAT, "잘못된 요청 형식입니다.") from e


@router.post("/parse-todo")
async def parse_todo_endpoint(request: Request) -> JSONResponse:
    """Convert free text into a structured todo draft."""
    body = await _read_json(request)
    text = prepare_input(body)

    draft = await parse_todo(text, agent=get_parse_agent())
    return JSONResponse(content={"success": True, "data": draft.model_dump(mode="json")})


def _validate_analysis_body(body: Any) -> tuple[list[TodoLike], Period]:
    if not isinstance(body, dict):
        raise RequestValidationFailure(ErrorCode.INVALID_REQUEST_FORMAT, "잘못된 요청 형식입니다.")

    todos = body.get("todos")
    if not isinstance(todos, list):
        raise RequestValidationFailure(ErrorCode.MISSING_TODOS, "할 일 목록이 필요합니다.")

    period = body.get("period")
    if period not in _PERIODS:
        raise RequestValidationFailure(ErrorCode.INVALID_PERIOD, "분석 기간이 올바르지 않습니다. (today 또는 week)")

    try:
        parsed = _todo_list_adapter.validate_python(todos)
    except ValidationError as e:
        logger.info("analyze_todos_invalid_items", extra={"error_count": e.error_count()})
        raise RequestValidationFailure(ErrorCode.INVALID_REQUEST_FORMAT, "잘못된 요청 형식입니다.") from e
    return parsed, cast(Period, period)


@router.post("/analyze-todos")
async def analyze_todos_endpoint(request: Request) -> JSONResponse:
    """Summarize a todo list for today or this week."""
    body = await _read_json(request)
    todos, period = _validate_analysis_body(body)

    # Empty lists never need the model, so a missing key must not fail them
    agent = get_analysis_agent() if todos else None
    result = await analyze_todos(todos, period, agent=agent)
    return JSONResponse(content={"success": True, "data": result.model_dump(mode="json")})
