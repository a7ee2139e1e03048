import html
import logging
from typing import Any, Dict, List, Optional

import requests

from .errors import MailError

logger = logging.getLogger(__name__)

ACCEPTED = "accepted"


class MailClient:
    """Thin client for a Resend-style transactional mail API."""

    def __init__(
        self,
        api_key: Optional[str],
        api_url: str = "https://api.resend.com",
        http: Optional[requests.Session] = None,
        timeout: float = 10.0,
    ):
        self.api_key = api_key
        self.api_url = api_url.rstrip("/")
        self.http = http or requests.Session()
        self.timeout = timeout

    def send(
        self, sender: str, to: List[str], subject: str, html_body: str
    ) -> Dict[str, Any]:
        if not self.api_key:
            raise MailError("Mail API key is not configured")

        try:
            response = self.http.post(
                f"{self.api_url}/emails",
                json={
                    "from": sender,
                    "to": to,
                    "subject": subject,
                    "html": html_body,
                },
                headers={"Authorization": f"Bearer {self.api_key}"},
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise MailError(f"Mail service unreachable: {e}") from e

        if not response.ok:
            raise MailError(
                f"Mail service returned {response.status_code}: {response.text}"
            )
        return response.json()


def decision_subject(action: str) -> str:
    if action == ACCEPTED:
        return "Welcome to the Team!"
    return "Your MoonDev Application"


def decision_email(action: str, full_name: str, feedback: str) -> str:
    """HTML body for the decision email; any action but "accepted" reads as a rejection"""
    accepted = action == ACCEPTED
    color = "#10B981" if accepted else "#EF4444"
    heading = (
        "Congratulations! 🎉"
        if accepted
        else "Thank You for Your Application"
    )
    closing = (
        "We are excited to welcome you to our team!"
        if accepted
        else "Thank you for your interest in MoonDev."
    )
    return f"""
        <div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto; padding: 20px;">
          <h1 style="color: {color};">{heading}</h1>
          <p>Dear {html.escape(full_name)},</p>
          <p>{html.escape(feedback)}</p>
          <p>{closing}</p>
          <p>Best regards,<br>MoonDev Team</p>
        </div>
    """
