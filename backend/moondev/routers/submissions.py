from fastapi import APIRouter, Depends
from typing import List
from ..dependencies import get_current_user, get_store, require_evaluator
from ..errors import NotFoundError, UnauthorizedError
from ..models.models import Role
from ..schemas.submission import (
    SubmissionCreate,
    SubmissionDecision,
    SubmissionRecord,
)
from ..schemas.user import UserRecord
from ..store import SubmissionStore

router = APIRouter(prefix="/submissions", tags=["Submissions"])


@router.get("", response_model=List[SubmissionRecord])
def list_submissions(
    _: UserRecord = Depends(require_evaluator),
    store: SubmissionStore = Depends(get_store),
):
    """Get all submissions, newest first"""
    return store.list_submissions()


@router.post("", response_model=SubmissionRecord, status_code=201)
def create_submission(
    submission: SubmissionCreate,
    current_user: UserRecord = Depends(get_current_user),
    store: SubmissionStore = Depends(get_store),
):
    """Create a submission owned by the calling developer"""
    if current_user.role != Role.DEVELOPER:
        raise UnauthorizedError()
    return store.create(user_id=current_user.id, **submission.model_dump())


@router.get("/{submission_id}", response_model=SubmissionRecord)
def get_submission(
    submission_id: str,
    current_user: UserRecord = Depends(get_current_user),
    store: SubmissionStore = Depends(get_store),
):
    submission = store.get(submission_id)
    if not submission:
        raise NotFoundError("Submission not found")
    if (
        current_user.role != Role.EVALUATOR
        and submission.user_id != current_user.id
    ):
        raise NotFoundError("Submission not found")
    return submission


@router.patch("/{submission_id}", response_model=SubmissionRecord)
def decide_submission(
    submission_id: str,
    decision: SubmissionDecision,
    _: UserRecord = Depends(require_evaluator),
    store: SubmissionStore = Depends(get_store),
):
    """Accept or reject a pending submission; feedback is required"""
    return store.update_decision(
        submission_id, decision.status, decision.feedback
    )
