from src.services import (
    auth_service,
    feedback_service,
    overdue_sweep,
    todo_service,
)


__all__ = [
    "auth_service",
    "feedback_service",
    "overdue_sweep",
    "todo_service",
]
