"""Todo service: owner-scoped CRUD, filtering, and sorting."""

import logging
from datetime import UTC, datetime
from typing import Any

from src.core import db_client
from src.core.dates import parse_datetime
from src.core.logging import span
from src.domain.todo import (
    PRIORITY_RANK,
    Priority,
    SortField,
    SortOrder,
    Todo,
    TodoCreate,
    TodoFilter,
    TodoStatus,
    TodoUpdate,
)


logger = logging.getLogger(__name__)

COLLECTION = "todos"


def record_to_todo(record: dict[str, Any]) -> Todo:
    """Convert a stored record into a Todo, normalizing dates and categories."""
    category = record.get("category")
    return Todo(
        id=record["id"],
        user=record.get("user", ""),
        title=record.get("title", ""),
        description=record.get("description") or "",
        created_at=parse_datetime(record.get("created")),
        due_date=parse_datetime(record.get("due_date")),
        priority=record.get("priority") or Priority.MEDIUM,
        category=category if isinstance(category, list) else [],
        completed=bool(record.get("completed", False)),
    )


def _to_storage(fields: dict[str, Any]) -> dict[str, Any]:
    """Map model fields onto stored fields; a cleared due date is stored as empty."""
    data = dict(fields)
    if "due_date" in data and data["due_date"] is None:
        data["due_date"] = ""
    return data


def _build_filter(owner: str, todo_filter: TodoFilter) -> str:
    """Build the PocketBase filter for the parts the backend can evaluate exactly."""
    clauses = [f'user = "{db_client.sanitize_param(owner)}"']
    if todo_filter.search:
        # PocketBase `~` is a case-insensitive LIKE
        clauses.append(f'title ~ "{db_client.sanitize_param(todo_filter.search)}"')
    if todo_filter.priorities:
        options = " || ".join(f'priority = "{db_client.sanitize_param(p)}"' for p in todo_filter.priorities)
        clauses.append(f"({options})")
    return " && ".join(clauses)


def _matches_status(todo: Todo, statuses: list[TodoStatus], now: datetime) -> bool:
    """Selected statuses combine as a union."""
    if not statuses:
        return True
    checks = {
        TodoStatus.COMPLETED: todo.completed,
        TodoStatus.IN_PROGRESS: not todo.completed,
        TodoStatus.OVERDUE: todo.is_overdue(now),
    }
    return any(checks[status] for status in statuses)


def _matches_category(todo: Todo, categories: list[str]) -> bool:
    return not categories or any(cat in todo.category for cat in categories)


def sort_todos(todos: list[Todo], sort_by: SortField, sort_order: SortOrder) -> list[Todo]:
    """Sort by rank for priority, by value otherwise; todos without a value go last."""
    reverse = sort_order == SortOrder.DESC

    if sort_by == SortField.PRIORITY:
        return sorted(todos, key=lambda t: PRIORITY_RANK[t.priority], reverse=reverse)

    attr = "due_date" if sort_by == SortField.DUE_DATE else "created_at"
    present = [t for t in todos if getattr(t, attr) is not None]
    missing = [t for t in todos if getattr(t, attr) is None]
    return sorted(present, key=lambda t: getattr(t, attr), reverse=reverse) + missing


async def list_todos(*, owner: str, todo_filter: TodoFilter | None = None, now: datetime | None = None) -> list[Todo]:
    """List an owner's todos with search, filters and sorting applied.

    Args:
        owner: Owning user ID
        todo_filter: Search/filter/sort options, defaults to newest first
        now: Reference time for the overdue status

    Returns:
        Matching todos in the requested order
    """
    with span("todo_service.list_todos"):
        todo_filter = todo_filter or TodoFilter()
        current = now or datetime.now(UTC)

        records = await db_client.list_all_records(
            collection=COLLECTION,
            filter_query=_build_filter(owner, todo_filter),
            sort="-created",
        )
        todos = [
            todo
            for todo in (record_to_todo(r) for r in records)
            if _matches_category(todo, todo_filter.categories) and _matches_status(todo, todo_filter.statuses, current)
        ]
        return sort_todos(todos, todo_filter.sort_by, todo_filter.sort_order)


async def get_todo(*, todo_id: str, owner: str) -> Todo:
    """Fetch one of the owner's todos.

    Raises:
        db_client.RecordNotFoundError: If the todo does not exist or belongs to someone else
    """
    with span("todo_service.get_todo"):
        record = await db_client.get_record(collection=COLLECTION, record_id=todo_id)
        if record.get("user") != owner:
            logger.warning("todo_owner_mismatch", extra={"todo_id": todo_id, "user_id": owner})
            raise db_client.RecordNotFoundError(f"Todo not found: {todo_id}")
        return record_to_todo(record)


async def create_todo(*, owner: str, fields: TodoCreate) -> Todo:
    """Create a todo owned by `owner`."""
    with span("todo_service.create_todo"):
        data = _to_storage({**fields.model_dump(), "user": owner})
        record = await db_client.create_record(collection=COLLECTION, data=data)
        logger.info("todo_created", extra={"todo_id": record["id"], "user_id": owner})
        return record_to_todo(record)


async def update_todo(*, todo_id: str, owner: str, fields: TodoUpdate) -> Todo:
    """Apply a partial update to one of the owner's todos.

    Only fields explicitly present in `fields` are written. `due_date` is the
    only field an explicit null clears; nulls for the other fields are ignored.
    An empty update returns the todo unchanged.
    """
    with span("todo_service.update_todo"):
        current = await get_todo(todo_id=todo_id, owner=owner)
        changes = fields.model_dump(exclude_unset=True, exclude_none=True)
        if "due_date" in fields.model_fields_set:
            changes["due_date"] = fields.due_date
        if not changes:
            return current

        record = await db_client.update_record(collection=COLLECTION, record_id=todo_id, data=_to_storage(changes))
        logger.info("todo_updated", extra={"todo_id": todo_id, "user_id": owner, "fields": sorted(changes)})
        return record_to_todo(record)


async def toggle_completed(*, todo_id: str, owner: str, completed: bool) -> Todo:
    """Set the completion flag of one of the owner's todos."""
    with span("todo_service.toggle_completed"):
        await get_todo(todo_id=todo_id, owner=owner)
        record = await db_client.update_record(
            collection=COLLECTION, record_id=todo_id, data={"completed": completed}
        )
        logger.info("todo_completion_changed", extra={"todo_id": todo_id, "completed": completed})
        return record_to_todo(record)


async def delete_todo(*, todo_id: str, owner: str) -> None:
    """Delete one of the owner's todos."""
    with span("todo_service.delete_todo"):
        await get_todo(todo_id=todo_id, owner=owner)
        await db_client.delete_record(collection=COLLECTION, record_id=todo_id)
        logger.info("todo_deleted", extra={"todo_id": todo_id, "user_id": owner})


async def delete_all_for_owner(*, owner: str) -> int:
    """Delete every todo owned by `owner` and return how many were removed."""
    with span("todo_service.delete_all_for_owner"):
        deleted = 0
        while records := await db_client.list_records(
            collection=COLLECTION, filter_query=f'user = "{db_client.sanitize_param(owner)}"'
        ):
            for record in records:
                await db_client.delete_record(collection=COLLECTION, record_id=record["id"])
                deleted += 1
        logger.info("todos_deleted_for_owner", extra={"user_id": owner, "count": deleted})
        return deleted
