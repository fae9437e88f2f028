"""Lazily constructed structured-generation agents.

Both pipelines share one OpenRouter model configuration. Agents are built on
first use so that importing the application never requires an API key.
"""

import logging

from pydantic_ai import Agent
from pydantic_ai.models.openrouter import OpenRouterModel, OpenRouterModelSettings
from pydantic_ai.providers.openrouter import OpenRouterProvider

from src.core.config import settings
from src.core.errors import ErrorCode, build_upstream_error
from src.models.service_models import AnalysisResult, TodoParseOutput


logger = logging.getLogger(__name__)


class _AgentState:
    """Singleton state for agent instances."""

    parse_agent: Agent[None, TodoParseOutput] | None = None
    analysis_agent: Agent[None, AnalysisResult] | None = None


def _create_model() -> OpenRouterModel:
    """Build the OpenRouter model, failing with SERVICE_UNAVAILABLE when no key is configured."""
    if not settings.openrouter_api_key:
        logger.error("openrouter_api_key_missing")
        raise build_upstream_error(ErrorCode.SERVICE_UNAVAILABLE)

    provider = OpenRouterProvider(api_key=settings.openrouter_api_key)

    model_settings = OpenRouterModelSettings(timeout=settings.llm_timeout_seconds)
    if settings.model_provider:
        model_settings["openrouter_provider"] = {"only": [settings.model_provider]}

    return OpenRouterModel(
        model_name=settings.model_id,
        provider=provider,
        settings=model_settings,
    )


def get_parse_agent() -> Agent[None, TodoParseOutput]:
    """Get or create the free-text todo parsing agent."""
    if _AgentState.parse_agent is None:
        # No retries: a failed call surfaces once to the caller
        _AgentState.parse_agent = Agent(model=_create_model(), output_type=TodoParseOutput, retries=0)
        logger.info("Created parse agent", extra={"model_id": settings.model_id})
    return _AgentState.parse_agent


def get_analysis_agent() -> Agent[None, AnalysisResult]:
    """Get or create the todo analysis agent."""
    if _AgentState.analysis_agent is None:
        _AgentState.analysis_agent = Agent(model=_create_model(), output_type=AnalysisResult, retries=0)
        logger.info("Created analysis agent", extra={"model_id": settings.model_id})
    return _AgentState.analysis_agent


def reset_agents() -> None:
    """Drop cached agents so the next call rebuilds them from current settings."""
    _AgentState.parse_agent = None
    _AgentState.analysis_agent = None
