"""Todo REST endpoints, scoped to the signed-in user."""

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel

from src.domain.todo import Priority, SortField, SortOrder, Todo, TodoCreate, TodoFilter, TodoStatus, TodoUpdate
from src.domain.user import User
from src.interface.dependencies import get_current_user
from src.services import todo_service


router = APIRouter(prefix="/api/todos", tags=["todos"])


class CompletedUpdate(BaseModel):
    """Body of the completion toggle."""

    completed: bool


@router.get("")
async def list_todos(
    user: User = Depends(get_current_user),
    search: str | None = Query(default=None),
    priority: list[Priority] = Query(default=[]),
    category: list[str] = Query(default=[]),
    status_filter: list[TodoStatus] = Query(default=[], alias="status"),
    sort_by: SortField = Query(default=SortField.CREATED_AT),
    sort_order: SortOrder = Query(default=SortOrder.DESC),
) -> list[Todo]:
    """List the user's todos with search, filters and sorting."""
    todo_filter = TodoFilter(
        search=search,
        priorities=priority,
        categories=category,
        statuses=status_filter,
        sort_by=sort_by,
        sort_order=sort_order,
    )
    return await todo_service.list_todos(owner=user.id, todo_filter=todo_filter)


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_todo(fields: TodoCreate, user: User = Depends(get_current_user)) -> Todo:
    """Create a todo."""
    return await todo_service.create_todo(owner=user.id, fields=fields)


@router.get("/{todo_id}")
async def get_todo(todo_id: str, user: User = Depends(get_current_user)) -> Todo:
    """Fetch one todo."""
    return await todo_service.get_todo(todo_id=todo_id, owner=user.id)


@router.patch("/{todo_id}")
async def update_todo(todo_id: str, fields: TodoUpdate, user: User = Depends(get_current_user)) -> Todo:
    """Partially update a todo."""
    return await todo_service.update_todo(todo_id=todo_id, owner=user.id, fields=fields)


@router.patch("/{todo_id}/completed")
async def toggle_completed(todo_id: str, body: CompletedUpdate, user: User = Depends(get_current_user)) -> Todo:
    """Set a todo's completion flag."""
    return await todo_service.toggle_completed(todo_id=todo_id, owner=user.id, completed=body.completed)


@router.delete("/{todo_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_todo(todo_id: str, user: User = Depends(get_current_user)) -> None:
    """Delete a todo."""
    await todo_service.delete_todo(todo_id=todo_id, owner=user.id)
