from pydantic import BaseModel
from datetime import datetime
from typing import Literal, Optional


class SubmissionCreate(BaseModel):
    full_name: str
    email: str
    phone_number: str = ""
    location: str = ""
    hobbies: str = ""
    profile_picture_url: str = ""
    source_code_url: str


class SubmissionDecision(BaseModel):
    status: Literal["accepted", "rejected"]
    feedback: str


class SubmissionRecord(BaseModel):
    id: str
    user_id: str
    full_name: str
    email: str
    phone_number: str = ""
    location: str = ""
    hobbies: str = ""
    profile_picture_url: str = ""
    source_code_url: str
    status: Literal["pending", "accepted", "rejected"] = "pending"
    feedback: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True
