"""Feedback endpoints for bug reports and feature requests."""

from fastapi import APIRouter, Depends, status

from src.domain.feedback import Feedback, FeedbackCreate
from src.domain.user import User
from src.interface.dependencies import get_current_user
from src.services import feedback_service


router = APIRouter(prefix="/api/feedback", tags=["feedback"])


@router.post("", status_code=status.HTTP_201_CREATED)
async def submit_feedback(fields: FeedbackCreate, user: User = Depends(get_current_user)) -> Feedback:
    """Submit a bug report or feature request."""
    return await feedback_service.create_feedback(owner=user.id, fields=fields)


@router.get("")
async def list_feedback(user: User = Depends(get_current_user)) -> list[Feedback]:
    """List the user's own submissions, newest first."""
    return await feedback_service.list_feedback(owner=user.id)
