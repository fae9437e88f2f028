"""Feedback service for bug reports and feature requests."""

import logging
from typing import Any

from src.core import db_client
from src.core.dates import parse_datetime
from src.core.logging import span
from src.domain.feedback import Feedback, FeedbackCreate, FeedbackStatus


logger = logging.getLogger(__name__)

COLLECTION = "feedback"


def _record_to_feedback(record: dict[str, Any]) -> Feedback:
    return Feedback(
        id=record["id"],
        user=record.get("user", ""),
        type=record["type"],
        title=record.get("title", ""),
        description=record.get("description", ""),
        status=record.get("status") or FeedbackStatus.PENDING,
        created_at=parse_datetime(record.get("created")),
    )


async def create_feedback(*, owner: str, fields: FeedbackCreate) -> Feedback:
    """Store a new report from `owner` with status pending."""
    with span("feedback_service.create_feedback"):
        data = {**fields.model_dump(), "user": owner, "status": FeedbackStatus.PENDING}
        record = await db_client.create_record(collection=COLLECTION, data=data)
        logger.info("feedback_created", extra={"feedback_id": record["id"], "user_id": owner, "type": fields.type})
        return _record_to_feedback(record)


async def list_feedback(*, owner: str) -> list[Feedback]:
    """List the owner's reports, newest first."""
    with span("feedback_service.list_feedback"):
        records = await db_client.list_all_records(
            collection=COLLECTION,
            filter_query=f'user = "{db_client.sanitize_param(owner)}"',
            sort="-created",
        )
        return [_record_to_feedback(r) for r in records]
