def auth(token):
    return {"Authorization": f"Bearer {token}"}


def test_notification_requires_session(client, mail, make_submission):
    submission = make_submission()
    response = client.post(
        "/api/notifications",
        json={
            "submissionId": submission.id,
            "action": "accepted",
            "feedback": "Great work",
        },
    )
    assert response.status_code == 401
    assert response.json() == {"error": "Unauthorized"}
    assert mail.sent == []


def test_notification_rejects_invalid_token(client, mail, make_submission):
    submission = make_submission()
    response = client.post(
        "/api/notifications",
        json={"submissionId": submission.id, "action": "accepted"},
        headers=auth("not-a-token"),
    )
    assert response.status_code == 401
    assert mail.sent == []


def test_notification_requires_evaluator_role(
    client, mail, developer, make_submission
):
    submission = make_submission()
    response = client.post(
        "/api/notifications",
        json={
            "submissionId": submission.id,
            "action": "accepted",
            "feedback": "Great work",
        },
        headers=auth(developer[1]),
    )
    assert response.status_code == 401
    assert mail.sent == []


def test_notification_unknown_submission(client, mail, evaluator):
    response = client.post(
        "/api/notifications",
        json={
            "submissionId": "does-not-exist",
            "action": "accepted",
            "feedback": "Great work",
        },
        headers=auth(evaluator[1]),
    )
    assert response.status_code == 404
    assert response.json() == {"error": "Submission not found"}
    assert mail.sent == []


def test_accept_sends_welcome_email(client, mail, evaluator, make_submission):
    submission = make_submission()
    response = client.post(
        "/api/notifications",
        json={
            "submissionId": submission.id,
            "action": "accepted",
            "feedback": "Great work",
        },
        headers=auth(evaluator[1]),
    )
    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["emailResult"] == {"id": "email-1"}

    assert len(mail.sent) == 1
    email = mail.sent[0]
    assert email["to"] == ["ada@example.com"]
    assert email["subject"] == "Welcome to the Team!"
    assert "Congratulations" in email["html"]
    assert "Dear Ada Lovelace" in email["html"]
    assert "Great work" in email["html"]
    assert email["from"].startswith("MoonDev")


def test_any_other_action_reads_as_rejection(
    client, mail, evaluator, make_submission
):
    submission = make_submission()
    for action in ("rejected", "something-else"):
        response = client.post(
            "/api/notifications",
            json={
                "submissionId": submission.id,
                "action": action,
                "feedback": "Not this time",
            },
            headers=auth(evaluator[1]),
        )
        assert response.status_code == 200

    assert [m["subject"] for m in mail.sent] == [
        "Your MoonDev Application",
        "Your MoonDev Application",
    ]
    assert "Thank You for Your Application" in mail.sent[0]["html"]


def test_notification_is_not_idempotent(
    client, mail, evaluator, make_submission
):
    submission = make_submission()
    payload = {
        "submissionId": submission.id,
        "action": "accepted",
        "feedback": "Great work",
    }
    for _ in range(2):
        client.post("/api/notifications", json=payload, headers=auth(evaluator[1]))
    assert len(mail.sent) == 2


def test_mail_failure_returns_500_with_message(
    client, mail, evaluator, make_submission
):
    submission = make_submission()
    mail.fail_with = "Mail service returned 503: unavailable"
    response = client.post(
        "/api/notifications",
        json={
            "submissionId": submission.id,
            "action": "accepted",
            "feedback": "Great work",
        },
        headers=auth(evaluator[1]),
    )
    assert response.status_code == 500
    assert response.json() == {"error": "Mail service returned 503: unavailable"}


def test_feedback_is_escaped_in_email(client, mail, evaluator, make_submission):
    submission = make_submission(full_name="<b>Ada</b>")
    client.post(
        "/api/notifications",
        json={
            "submissionId": submission.id,
            "action": "accepted",
            "feedback": "<script>x</script>",
        },
        headers=auth(evaluator[1]),
    )
    html_body = mail.sent[0]["html"]
    assert "<script>" not in html_body
    assert "&lt;b&gt;Ada&lt;/b&gt;" in html_body


def test_missing_session_is_checked_before_the_body(client, mail):
    response = client.post("/api/notifications", json={"action": "accepted"})
    assert response.status_code == 401
    assert response.json() == {"error": "Unauthorized"}

    response = client.post(
        "/api/notifications",
        content="not json",
        headers={"Content-Type": "application/json"},
    )
    assert response.status_code == 401
    assert mail.sent == []


def test_evaluator_with_incomplete_body_gets_400(client, mail, evaluator):
    response = client.post(
        "/api/notifications",
        json={"action": "accepted"},
        headers=auth(evaluator[1]),
    )
    assert response.status_code == 400
    assert "error" in response.json()
    assert mail.sent == []


def test_self_registered_account_cannot_notify(client, mail, make_submission):
    submission = make_submission()
    registered = client.post(
        "/register",
        json={
            "email": "mallory@example.com",
            "password": "secret123",
            "role": "evaluator",
        },
    )
    assert registered.status_code == 201
    assert registered.json()["role"] == "developer"

    login = client.post(
        "/login", json={"email": "mallory@example.com", "password": "secret123"}
    )
    response = client.post(
        "/api/notifications",
        json={
            "submissionId": submission.id,
            "action": "accepted",
            "feedback": "Great work",
        },
        headers=auth(login.json()["access_token"]),
    )
    assert response.status_code == 401
    assert mail.sent == []
