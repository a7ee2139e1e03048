"""Evaluator-side list of submissions.

``EvaluationList`` holds what an evaluator's screen shows: every submission,
kept current by the change feed, plus the feedback drafts typed per record.
Mount it with ``with EvaluationList(...) as view:`` so the feed subscription
is released however the block ends.
"""

import logging
import re
import threading
from pathlib import Path
from typing import Dict, List, Literal, Optional, Tuple

import requests
from pydantic import BaseModel

from .errors import DownstreamError, MoonDevError
from .models.models import SubmissionStatus
from .realtime import ChangeEvent, ChangeFeed, Subscription
from .schemas.submission import SubmissionRecord
from .store import TABLE, SubmissionStore

logger = logging.getLogger(__name__)

NOTIFICATIONS_PATH = "/api/notifications"


def source_archive_name(full_name: str) -> str:
    slug = re.sub(r"\s+", "-", full_name)
    return f"{slug}-source.zip"


class Toasts:
    """Transient messages for the user, newest last."""

    def __init__(self) -> None:
        self.messages: List[Tuple[str, str]] = []

    def success(self, message: str) -> None:
        self.messages.append(("success", message))

    def error(self, message: str) -> None:
        self.messages.append(("error", message))

    @property
    def last(self) -> Optional[Tuple[str, str]]:
        return self.messages[-1] if self.messages else None


class NotificationClient:
    """Calls the notification endpoint as the signed-in evaluator."""

    def __init__(
        self, http=None, base_url: str = "", token: Optional[str] = None
    ):
        self.http = http or requests
        self.base_url = base_url.rstrip("/")
        self.token = token

    def notify(self, submission_id: str, action: str, feedback: str) -> dict:
        headers = {"Content-Type": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        try:
            response = self.http.post(
                f"{self.base_url}{NOTIFICATIONS_PATH}",
                json={
                    "submissionId": submission_id,
                    "action": action,
                    "feedback": feedback,
                },
                headers=headers,
            )
            if 200 <= response.status_code < 300:
                return response.json()
        except (requests.RequestException, ValueError) as e:
            raise DownstreamError("Failed to send notification") from e

        logger.error(
            "Notification for %s failed with %s",
            submission_id,
            response.status_code,
        )
        raise DownstreamError("Failed to send notification")


class Card(BaseModel):
    submission: SubmissionRecord
    download_name: str
    # only meaningful while the submission is pending
    feedback_draft: str = ""

    @property
    def editable(self) -> bool:
        return self.submission.status == SubmissionStatus.PENDING


class ListView(BaseModel):
    state: Literal["loading", "empty", "ready"]
    cards: List[Card] = []


class EvaluationList:
    def __init__(
        self,
        store: SubmissionStore,
        feed: ChangeFeed,
        notifications: NotificationClient,
        http=None,
        toasts: Optional[Toasts] = None,
        download_dir: str = "./downloads",
    ):
        self.store = store
        self.feed = feed
        self.notifications = notifications
        self.http = http or requests
        self.toasts = toasts or Toasts()
        self.download_dir = Path(download_dir)

        self.submissions: List[SubmissionRecord] = []
        self.feedback: Dict[str, str] = {}
        self.loading = True
        self._lock = threading.Lock()
        self._subscription: Optional[Subscription] = None
        # changes that arrive while the initial fetch is running
        self._early: List[SubmissionRecord] = []

    def mount(self) -> None:
        with self._lock:
            self.loading = True
            self._early = []
        self._subscription = self.feed.subscribe(TABLE, self.on_change)
        try:
            submissions = self.store.list_submissions()
        except Exception as e:
            logger.error("Error: %s", e)
            self.toasts.error("Failed to load submissions")
            submissions = []

        with self._lock:
            self.submissions = submissions
            for record in self._early:
                self._replace(record)
            self._early = []
            self.loading = False

    def unmount(self) -> None:
        if self._subscription is not None:
            self._subscription.cancel()
            self._subscription = None

    def __enter__(self) -> "EvaluationList":
        self.mount()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.unmount()

    def on_change(self, event: ChangeEvent) -> None:
        if not event.new:
            return
        record = SubmissionRecord.model_validate(event.new)
        with self._lock:
            if self.loading:
                self._early.append(record)
            else:
                self._replace(record)

    def _replace(self, record: SubmissionRecord) -> None:
        self.submissions = [
            record if sub.id == record.id else sub for sub in self.submissions
        ]

    def set_feedback(self, submission_id: str, text: str) -> None:
        self.feedback[submission_id] = text

    def download(self, source_url: str, name: str) -> Optional[Path]:
        """Save the source archive at ``source_url`` as ``name`` in the download dir."""
        try:
            response = self.http.get(source_url, timeout=30)
            response.raise_for_status()
            content = response.content
            self.download_dir.mkdir(parents=True, exist_ok=True)
            target = self.download_dir / Path(name).name
            target.write_bytes(content)
        except (requests.RequestException, OSError) as e:
            logger.warning("Download of %s failed: %s", source_url, e)
            self.toasts.error("Failed to download file")
            return None
        return target

    def decide(self, submission_id: str, status: str) -> bool:
        feedback = self.feedback.get(submission_id, "")
        if not feedback.strip():
            self.toasts.error(
                "Please provide feedback before making a decision"
            )
            return False

        try:
            self.store.update_decision(submission_id, status, feedback)
            # the store write is not undone if this call fails
            self.notifications.notify(submission_id, status, feedback)
        except MoonDevError as e:
            self.toasts.error(e.message or "Failed to update submission")
            return False
        except Exception as e:
            logger.exception("Decision on %s failed", submission_id)
            self.toasts.error(str(e) or "Failed to update submission")
            return False

        verb = "accepted" if status == SubmissionStatus.ACCEPTED else "rejected"
        self.toasts.success(f"Candidate {verb} successfully")
        return True

    def render(self) -> ListView:
        if self.loading:
            return ListView(state="loading")
        with self._lock:
            submissions = list(self.submissions)
        if not submissions:
            return ListView(state="empty")
        return ListView(
            state="ready",
            cards=[
                Card(
                    submission=sub,
                    download_name=source_archive_name(sub.full_name),
                    feedback_draft=self.feedback.get(sub.id, ""),
                )
                for sub in submissions
            ],
        )
