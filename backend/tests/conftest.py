from datetime import datetime, timedelta

import pytest
from fastapi.testclient import TestClient

from moondev.config import Settings
from moondev.errors import MailError
from moondev.mail import MailClient
from moondev.main import create_app
from moondev.models.models import User
from moondev.utils.security import create_access_token, get_password_hash


class FakeMailClient(MailClient):
    def __init__(self):
        super().__init__(api_key="test-key", api_url="http://mail.test")
        self.sent = []
        self.fail_with = None

    def send(self, sender, to, subject, html_body):
        if self.fail_with:
            raise MailError(self.fail_with)
        self.sent.append(
            {"from": sender, "to": to, "subject": subject, "html": html_body}
        )
        return {"id": f"email-{len(self.sent)}"}


@pytest.fixture
def settings(tmp_path):
    return Settings(
        database_url="sqlite://",
        secret_key="test-secret",
        backend_url="http://testserver",
        evaluator_emails=["eva@example.com"],
        mail_api_key="test-key",
        download_dir=str(tmp_path / "downloads"),
    )


@pytest.fixture
def mail():
    return FakeMailClient()


@pytest.fixture
def app(settings, mail):
    return create_app(settings, mail_client=mail)


@pytest.fixture
def client(app):
    client = TestClient(app)
    app.state.notification_http = client
    return client


@pytest.fixture
def store(app):
    return app.state.store


@pytest.fixture
def make_user(app, settings):
    """Insert a user and return ``(user_id, token)``."""
    counter = {"n": 0}

    def _make(role="developer", full_name="Test User"):
        counter["n"] += 1
        user = User(
            email=f"{role}{counter['n']}@example.com",
            full_name=full_name,
            password_hash=get_password_hash("secret123"),
            role=role,
        )
        with app.state.session_factory() as db:
            db.add(user)
            db.commit()
            db.refresh(user)
        token = create_access_token({"sub": user.id}, settings=settings)
        return user.id, token

    return _make


@pytest.fixture
def evaluator(make_user):
    return make_user("evaluator", full_name="Eva Luator")


@pytest.fixture
def developer(make_user):
    return make_user("developer", full_name="Ada Lovelace")


@pytest.fixture
def make_submission(store, developer):
    base = datetime(2024, 1, 1, 12, 0, 0)
    counter = {"n": 0}

    def _make(**overrides):
        counter["n"] += 1
        fields = {
            "user_id": developer[0],
            "full_name": "Ada Lovelace",
            "email": "ada@example.com",
            "phone_number": "555-0100",
            "location": "London",
            "hobbies": "Engines",
            "profile_picture_url": "http://testserver/pictures/ada.png",
            "source_code_url": "http://testserver/code/ada.zip",
            "created_at": base + timedelta(minutes=counter["n"]),
        }
        fields.update(overrides)
        return store.create(**fields)

    return _make
