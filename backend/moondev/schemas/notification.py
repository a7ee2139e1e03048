from pydantic import BaseModel, Field
from typing import Any, Dict, Optional


class NotificationRequest(BaseModel):
    submission_id: str = Field(alias="submissionId")
    # anything other than "accepted" gets the rejection wording
    action: str
    feedback: str = ""

    model_config = {"populate_by_name": True}


class NotificationResponse(BaseModel):
    success: bool
    email_result: Optional[Dict[str, Any]] = Field(
        default=None, serialization_alias="emailResult"
    )
