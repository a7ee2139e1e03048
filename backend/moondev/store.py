import logging
from datetime import datetime
from typing import List, Optional, Tuple

from sqlalchemy import select, update
from sqlalchemy.orm import sessionmaker

from .errors import ConflictError, NotFoundError, ValidationError
from .models.models import Submission, SubmissionStatus, User
from .realtime import ChangeEvent, ChangeFeed
from .schemas.submission import SubmissionRecord
from .schemas.user import UserRecord

logger = logging.getLogger(__name__)

TABLE = "submissions"


class SubmissionStore:
    """Submission rows plus the user lookups needed to authorize access to them.

    Every committed write is echoed on ``feed`` so that listeners see the
    same data the database now holds.
    """

    def __init__(self, session_factory: sessionmaker, feed: ChangeFeed):
        self._session_factory = session_factory
        self.feed = feed

    def create(
        self,
        user_id: str,
        full_name: str,
        email: str,
        source_code_url: str,
        created_at: Optional[datetime] = None,
        **profile,
    ) -> SubmissionRecord:
        submission = Submission(
            user_id=user_id,
            full_name=full_name,
            email=email,
            source_code_url=source_code_url,
            **profile,
        )
        if created_at is not None:
            submission.created_at = created_at

        with self._session_factory() as db:
            db.add(submission)
            db.commit()
            db.refresh(submission)
            record = SubmissionRecord.model_validate(submission)

        self.feed.publish(
            ChangeEvent(
                event="INSERT", table=TABLE, new=record.model_dump(mode="json")
            )
        )
        return record

    def list_submissions(self) -> List[SubmissionRecord]:
        """All submissions, newest first"""
        with self._session_factory() as db:
            rows = db.scalars(
                select(Submission).order_by(Submission.created_at.desc())
            ).all()
            return [SubmissionRecord.model_validate(row) for row in rows]

    def list_for_user(self, user_id: str) -> List[SubmissionRecord]:
        with self._session_factory() as db:
            rows = db.scalars(
                select(Submission)
                .filter(Submission.user_id == user_id)
                .order_by(Submission.created_at.desc())
            ).all()
            return [SubmissionRecord.model_validate(row) for row in rows]

    def get(self, submission_id: str) -> Optional[SubmissionRecord]:
        with self._session_factory() as db:
            row = db.get(Submission, submission_id)
            return SubmissionRecord.model_validate(row) if row else None

    def get_with_developer(
        self, submission_id: str
    ) -> Optional[Tuple[SubmissionRecord, Optional[UserRecord]]]:
        with self._session_factory() as db:
            row = db.execute(
                select(Submission, User)
                .outerjoin(User, User.id == Submission.user_id)
                .filter(Submission.id == submission_id)
            ).first()
            if row is None:
                return None
            submission, user = row
            return (
                SubmissionRecord.model_validate(submission),
                UserRecord.model_validate(user) if user else None,
            )

    def update_decision(
        self, submission_id: str, status: str, feedback: Optional[str]
    ) -> SubmissionRecord:
        """Move a pending submission to ``status`` and store the feedback with it.

        Raises ``ValidationError`` for blank feedback or an unknown status,
        ``NotFoundError`` when the id does not exist, and ``ConflictError`` when
        another decision already landed.
        """
        if status not in SubmissionStatus.DECISIONS:
            raise ValidationError(f"Invalid status: {status}")
        if not feedback or not feedback.strip():
            raise ValidationError(
                "Please provide feedback before making a decision"
            )

        with self._session_factory() as db:
            old = db.get(Submission, submission_id)
            if old is None:
                raise NotFoundError("Submission not found")
            old_record = SubmissionRecord.model_validate(old)

            # conditional update so two evaluators cannot both decide
            result = db.execute(
                update(Submission)
                .where(
                    Submission.id == submission_id,
                    Submission.status == SubmissionStatus.PENDING,
                )
                .values(status=status, feedback=feedback)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount == 0:
                db.rollback()
                raise ConflictError("Submission has already been decided")
            db.commit()

            db.refresh(old)
            record = SubmissionRecord.model_validate(old)

        logger.info("Submission %s marked %s", submission_id, status)
        self.feed.publish(
            ChangeEvent(
                event="UPDATE",
                table=TABLE,
                new=record.model_dump(mode="json"),
                old=old_record.model_dump(mode="json"),
            )
        )
        return record

    def get_user(self, user_id: str) -> Optional[UserRecord]:
        with self._session_factory() as db:
            user = db.get(User, user_id)
            return UserRecord.model_validate(user) if user else None

    def get_role(self, user_id: str) -> Optional[str]:
        user = self.get_user(user_id)
        return user.role if user else None
