from fastapi.testclient import TestClient


def auth(token):
    return {"Authorization": f"Bearer {token}"}


NEW_SUBMISSION = {
    "full_name": "Ada Lovelace",
    "email": "ada@example.com",
    "phone_number": "555-0100",
    "location": "London",
    "hobbies": "Engines",
    "profile_picture_url": "http://testserver/pictures/ada.png",
    "source_code_url": "http://testserver/code/ada.zip",
}


def test_register_and_login_sets_session_cookie(app):
    client = TestClient(app)
    response = client.post(
        "/register",
        json={
            "email": "eva@example.com",
            "password": "secret123",
            "full_name": "Eva",
        },
    )
    assert response.status_code == 201
    assert response.json()["role"] == "evaluator"

    duplicate = client.post(
        "/register",
        json={"email": "eva@example.com", "password": "other"},
    )
    assert duplicate.status_code == 400

    bad = client.post(
        "/login", json={"email": "eva@example.com", "password": "wrong"}
    )
    assert bad.status_code == 401

    login = client.post(
        "/login", json={"email": "eva@example.com", "password": "secret123"}
    )
    assert login.status_code == 200
    assert login.json()["token_type"] == "bearer"
    assert "access_token" in login.cookies

    # the cookie alone is enough for page navigation
    response = client.get("/submit", follow_redirects=False)
    assert response.headers["location"] == "/evaluate"

    me = client.get("/me")
    assert me.json()["email"] == "eva@example.com"


def test_developer_creates_submission(client, developer):
    response = client.post(
        "/submissions", json=NEW_SUBMISSION, headers=auth(developer[1])
    )
    assert response.status_code == 201
    body = response.json()
    assert body["status"] == "pending"
    assert body["feedback"] is None
    assert body["user_id"] == developer[0]


def test_evaluator_cannot_create_submission(client, evaluator):
    response = client.post(
        "/submissions", json=NEW_SUBMISSION, headers=auth(evaluator[1])
    )
    assert response.status_code == 401


def test_listing_is_for_evaluators_newest_first(
    client, evaluator, developer, make_submission
):
    make_submission(full_name="Older")
    make_submission(full_name="Newer")

    assert client.get("/submissions", headers=auth(developer[1])).status_code == 401

    response = client.get("/submissions", headers=auth(evaluator[1]))
    assert response.status_code == 200
    assert [s["full_name"] for s in response.json()] == ["Newer", "Older"]


def test_owner_and_evaluator_can_read_submission(
    client, make_user, evaluator, developer, make_submission
):
    submission = make_submission()
    stranger = make_user("developer")

    url = f"/submissions/{submission.id}"
    assert client.get(url, headers=auth(developer[1])).status_code == 200
    assert client.get(url, headers=auth(evaluator[1])).status_code == 200
    assert client.get(url, headers=auth(stranger[1])).status_code == 404


def test_decision_requires_feedback(client, evaluator, make_submission):
    submission = make_submission()
    response = client.patch(
        f"/submissions/{submission.id}",
        json={"status": "accepted", "feedback": "  "},
        headers=auth(evaluator[1]),
    )
    assert response.status_code == 400
    assert response.json() == {
        "error": "Please provide feedback before making a decision"
    }


def test_decision_rejects_unknown_status(client, evaluator, make_submission):
    submission = make_submission()
    response = client.patch(
        f"/submissions/{submission.id}",
        json={"status": "pending", "feedback": "back to start"},
        headers=auth(evaluator[1]),
    )
    assert response.status_code == 400
    assert "error" in response.json()


def test_decision_is_terminal(client, evaluator, make_submission):
    submission = make_submission()
    url = f"/submissions/{submission.id}"
    first = client.patch(
        url,
        json={"status": "accepted", "feedback": "Great work"},
        headers=auth(evaluator[1]),
    )
    assert first.status_code == 200
    assert first.json()["status"] == "accepted"

    second = client.patch(
        url,
        json={"status": "rejected", "feedback": "Changed my mind"},
        headers=auth(evaluator[1]),
    )
    assert second.status_code == 409


def test_decision_on_missing_submission(client, evaluator):
    response = client.patch(
        "/submissions/nope",
        json={"status": "accepted", "feedback": "Great work"},
        headers=auth(evaluator[1]),
    )
    assert response.status_code == 404


def test_evaluate_page_decision_notifies(
    client, mail, evaluator, make_submission, store
):
    submission = make_submission()
    response = client.post(
        f"/evaluate/{submission.id}/decision",
        json={"status": "accepted", "feedback": "Great work"},
        headers=auth(evaluator[1]),
    )
    assert response.status_code == 200
    assert response.json() == {
        "ok": True,
        "level": "success",
        "message": "Candidate accepted successfully",
    }
    assert store.get(submission.id).status == "accepted"
    assert len(mail.sent) == 1


def test_evaluate_page_decision_without_feedback(
    client, mail, evaluator, make_submission, store
):
    submission = make_submission()
    response = client.post(
        f"/evaluate/{submission.id}/decision",
        json={"status": "accepted", "feedback": ""},
        headers=auth(evaluator[1]),
    )
    assert response.json()["ok"] is False
    assert store.get(submission.id).status == "pending"
    assert mail.sent == []
