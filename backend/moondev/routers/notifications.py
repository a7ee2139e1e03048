import logging

import pydantic
from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from ..config import Settings
from ..dependencies import (
    get_mail_client,
    get_settings,
    get_store,
    require_evaluator,
)
from ..errors import NotFoundError, ValidationError
from ..mail import MailClient, decision_email, decision_subject
from ..schemas.notification import NotificationRequest, NotificationResponse
from ..schemas.user import UserRecord
from ..store import SubmissionStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Notifications"])


async def notification_payload(
    request: Request,
    _: UserRecord = Depends(require_evaluator),
) -> NotificationRequest:
    # read only once the caller is known to be an evaluator
    try:
        data = await request.json()
    except ValueError:
        raise ValidationError("Invalid JSON body")
    try:
        return NotificationRequest.model_validate(data)
    except pydantic.ValidationError as e:
        raise ValidationError(
            "; ".join(str(err.get("msg")) for err in e.errors())
        )


@router.post("/notifications")
def send_notification(
    payload: NotificationRequest = Depends(notification_payload),
    store: SubmissionStore = Depends(get_store),
    settings: Settings = Depends(get_settings),
    mail_client: MailClient = Depends(get_mail_client),
):
    """Email the candidate the evaluator's decision"""
    logger.info(
        "Notification requested: submission=%s action=%s",
        payload.submission_id,
        payload.action,
    )
    try:
        found = store.get_with_developer(payload.submission_id)
        if found is None:
            raise NotFoundError("Submission not found")
        submission, developer = found
        full_name = submission.full_name or (
            developer.full_name if developer else ""
        )

        email_result = mail_client.send(
            sender=settings.mail_from,
            to=[submission.email],
            subject=decision_subject(payload.action),
            html_body=decision_email(
                payload.action, full_name, payload.feedback
            ),
        )
        logger.info("Email sent successfully: %s", email_result)
    except NotFoundError as e:
        return JSONResponse(
            status_code=e.status_code, content={"error": e.message}
        )
    except Exception as e:
        logger.exception("Notification error")
        return JSONResponse(status_code=500, content={"error": str(e)})

    return NotificationResponse(
        success=True, email_result=email_result
    ).model_dump(by_alias=True)
