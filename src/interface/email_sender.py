"""Transactional email sender using the Resend REST API."""

import logging

import httpx
from jinja2 import Environment, FileSystemLoader, select_autoescape

from src.core.config import constants, settings
from src.core.errors import DeliveryError
from src.models.service_models import OverdueItem


logger = logging.getLogger(__name__)


_environment = Environment(
    loader=FileSystemLoader(str(constants.TEMPLATES_DIR)),
    autoescape=select_autoescape(["html"]),
)


def overdue_subject(count: int) -> str:
    """Subject line for an overdue digest with `count` items."""
    return f"[긴급] {count}개의 중요한 할 일이 지연되었습니다"


def render_overdue_digest(*, user_name: str, items: list[OverdueItem]) -> str:
    """Render the HTML body of the overdue digest."""
    template = _environment.get_template("email/overdue_digest.html")
    return template.render(
        user_name=user_name,
        items=items,
        app_url=settings.app_url,
        threshold_hours=settings.overdue_threshold_hours,
    )


async def send_overdue_digest(*, to: str, user_name: str, items: list[OverdueItem]) -> str | None:
    """Send one overdue digest email. No retries.

    Args:
        to: Recipient email address
        user_name: Name used in the greeting
        items: Overdue todos to list

    Returns:
        Provider message ID when the response carries one

    Raises:
        DeliveryError: Missing API key, transport failure, or non-2xx response
    """
    try:
        api_key = settings.require_credential("resend_api_key", "Resend")
    except ValueError as e:
        raise DeliveryError(str(e)) from e

    payload = {
        "from": settings.email_from,
        "to": [to],
        "subject": overdue_subject(len(items)),
        "html": render_overdue_digest(user_name=user_name, items=items),
    }
    headers = {"Authorization": f"Bearer {api_key}"}

    try:
        async with httpx.AsyncClient(timeout=constants.API_TIMEOUT_SECONDS) as client:
            response = await client.post(f"{settings.resend_base_url}/emails", json=payload, headers=headers)
    except httpx.HTTPError as e:
        logger.error("overdue_email_transport_failed", extra={"error": str(e)})
        raise DeliveryError(f"Email delivery failed: {e}") from e

    if not response.is_success:
        logger.error(
            "overdue_email_rejected",
            extra={"status": response.status_code, "body": response.text[:500]},
        )
        raise DeliveryError(f"Email provider returned {response.status_code}: {response.text}")

    message_id = response.json().get("id")
    logger.info("overdue_email_sent", extra={"message_id": message_id, "item_count": len(items)})
    return message_id
