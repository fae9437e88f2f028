"""Domain models and DTOs."""

from src.domain.feedback import Feedback, FeedbackCreate, FeedbackStatus, FeedbackType
from src.domain.todo import Priority, SortField, SortOrder, Todo, TodoCreate, TodoFilter, TodoStatus, TodoUpdate
from src.domain.user import ProfileUpdate, Session, User


__all__ = [
    "Feedback",
    "FeedbackCreate",
    "FeedbackStatus",
    "FeedbackType",
    "Priority",
    "ProfileUpdate",
    "Session",
    "SortField",
    "SortOrder",
    "Todo",
    "TodoCreate",
    "TodoFilter",
    "TodoStatus",
    "TodoUpdate",
    "User",
]
