from pydantic import BaseModel
from datetime import datetime
from typing import Literal, Optional


class UserCreate(BaseModel):
    email: str
    password: str
    full_name: str = ""


class UserLogin(BaseModel):
    email: str
    password: str


class UserRecord(BaseModel):
    id: str
    email: str
    full_name: str = ""
    role: Literal["developer", "evaluator"]
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class Token(BaseModel):
    access_token: str
    token_type: str
