"""Overdue sweep: email each user a digest of their long-overdue high-priority todos."""

import logging
from datetime import UTC, datetime, timedelta
from typing import Any

from src.core import db_client
from src.core.config import settings
from src.core.dates import format_korean_long, parse_datetime, to_local
from src.core.logging import span
from src.domain.todo import Priority
from src.interface import email_sender
from src.models.service_models import OverdueItem, SweepResult
from src.services import auth_service


logger = logging.getLogger(__name__)

COLLECTION = "todos"
NO_OVERDUE_MESSAGE = "지연된 중요 할 일이 없습니다."


def build_overdue_filter(cutoff: datetime) -> str:
    """Incomplete high-priority todos due strictly before `cutoff`."""
    return (
        f'priority = "{Priority.HIGH}" && completed = false && due_date != "" '
        f'&& due_date < "{db_client.format_datetime(cutoff)}"'
    )


async def find_overdue_todos(*, now: datetime, threshold_hours: int) -> list[dict[str, Any]]:
    """Query all users' overdue high-priority todos, ordered by owner.

    Raises:
        db_client.DatabaseError: If the query fails
    """
    cutoff = now - timedelta(hours=threshold_hours)
    return await db_client.list_all_records(
        collection=COLLECTION,
        filter_query=build_overdue_filter(cutoff),
        sort="user",
    )


def group_by_owner(records: list[dict[str, Any]]) -> dict[str, list[dict[str, Any]]]:
    """Group records by owner, keeping first-seen owner order."""
    grouped: dict[str, list[dict[str, Any]]] = {}
    for record in records:
        owner = record.get("user")
        if not owner:
            continue
        grouped.setdefault(owner, []).append(record)
    return grouped


def build_overdue_item(record: dict[str, Any], now: datetime) -> OverdueItem:
    """Format one todo for the digest: Korean long date and whole days overdue."""
    due = parse_datetime(record["due_date"])
    return OverdueItem(
        title=record.get("title", ""),
        due_date_formatted=format_korean_long(to_local(due).date()),
        days_overdue=int((now - due) / timedelta(days=1)),
    )


async def _notify_owner(*, owner: str, records: list[dict[str, Any]], now: datetime) -> bool:
    """Send one digest to `owner`. Returns False when the owner is skipped."""
    user = await auth_service.get_user_by_id(user_id=owner)
    if user is None:
        logger.warning("overdue_owner_not_found", extra={"user_id": owner})
        return False
    if not user.email_notification_enabled:
        logger.info("overdue_notifications_disabled", extra={"user_id": owner})
        return False
    if not user.email:
        logger.info("overdue_owner_without_email", extra={"user_id": owner})
        return False

    items = [build_overdue_item(record, now) for record in records]
    await email_sender.send_overdue_digest(to=user.email, user_name=user.display_name, items=items)
    logger.info("overdue_digest_sent", extra={"user_id": owner, "item_count": len(items)})
    return True


async def run_overdue_sweep(*, now: datetime | None = None, threshold_hours: int | None = None) -> SweepResult:
    """Run one sweep over all users.

    Owners are processed sequentially; a failure for one owner is recorded as
    "{owner}: {message}" and never stops the rest.

    Raises:
        db_client.DatabaseError: If the overdue query itself fails
    """
    with span("overdue_sweep.run_overdue_sweep"):
        current = now or datetime.now(UTC)
        hours = settings.overdue_threshold_hours if threshold_hours is None else threshold_hours

        records = await find_overdue_todos(now=current, threshold_hours=hours)
        if not records:
            logger.info("overdue_sweep_nothing_to_send")
            return SweepResult(message=NO_OVERDUE_MESSAGE, sentCount=0)

        sent_count = 0
        errors: list[str] = []
        for owner, owner_records in group_by_owner(records).items():
            try:
                if await _notify_owner(owner=owner, records=owner_records, now=current):
                    sent_count += 1
            except Exception as e:
                logger.error("overdue_digest_failed", extra={"user_id": owner, "error": str(e)})
                errors.append(f"{owner}: {e}")

        logger.info(
            "overdue_sweep_completed",
            extra={"sent_count": sent_count, "total_overdue": len(records), "error_count": len(errors)},
        )
        return SweepResult(
            message=f"{sent_count}명에게 알림 이메일 발송 완료",
            sentCount=sent_count,
            totalOverdueTodos=len(records),
            errors=errors or None,
        )
