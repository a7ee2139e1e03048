from html import escape
from typing import List
from urllib.parse import urlparse

from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse
from pydantic import BaseModel

from ..authorization import EVALUATE_PATH, HOME_PATH, SUBMIT_PATH, token_from
from ..config import Settings
from ..dependencies import (
    get_settings,
    get_store,
    page_user,
    require_evaluator,
)
from ..evaluation import Card, EvaluationList, ListView, NotificationClient
from ..models.models import Role
from ..schemas.user import UserRecord
from ..store import SubmissionStore

router = APIRouter(tags=["Pages"])


def page(title: str, body: str) -> str:
    return f"""<!doctype html>
<html>
<head>
  <meta charset='utf-8'/>
  <title>{escape(title)} · MoonDev</title>
</head>
<body>
  <nav><a href='{HOME_PATH}'>Home</a> · <a href='{SUBMIT_PATH}'>Submit</a> · <a href='{EVALUATE_PATH}'>Evaluate</a></nav>
  <main>
{body}
  </main>
</body>
</html>
"""


def picture_allowed(url: str, hosts: List[str]) -> bool:
    return bool(url) and urlparse(url).hostname in hosts


def render_card(card: Card, image_hosts: List[str]) -> str:
    sub = card.submission
    picture = ""
    if picture_allowed(sub.profile_picture_url, image_hosts):
        picture = f"<img src='{escape(sub.profile_picture_url)}' alt='{escape(sub.full_name)}' width='192' height='192'/>"

    if card.editable:
        decision = f"""
      <form class='decision-form' data-submission='{escape(sub.id)}'>
        <textarea name='feedback' required placeholder='Enter your feedback for the candidate...'>{escape(card.feedback_draft)}</textarea>
        <button type='button' data-status='accepted'>Welcome to the Team</button>
        <button type='button' data-status='rejected'>We Are Sorry</button>
      </form>"""
    else:
        decision = f"""
      <div class='decision {escape(sub.status)}'>
        <p><strong>Status: {escape(sub.status.capitalize())}</strong></p>
        <p>Feedback: {escape(sub.feedback or '')}</p>
      </div>"""

    return f"""
    <section class='card' id='submission-{escape(sub.id)}'>
      {picture}
      <h3>{escape(sub.full_name)}</h3>
      <p><strong>Email:</strong> {escape(sub.email)}</p>
      <p><strong>Phone:</strong> {escape(sub.phone_number)}</p>
      <p><strong>Location:</strong> {escape(sub.location)}</p>
      <p><strong>Hobbies:</strong> {escape(sub.hobbies)}</p>
      <a href='{escape(sub.source_code_url)}' download='{escape(card.download_name)}'>Download Source Code</a>
      {decision}
    </section>"""


def render_list(view: ListView, image_hosts: List[str]) -> str:
    if view.state == "loading":
        return "<div class='spinner'>Loading…</div>"
    if view.state == "empty":
        return "<p class='muted'>No submissions found</p>"
    return "\n".join(render_card(card, image_hosts) for card in view.cards)


@router.get(HOME_PATH, response_class=HTMLResponse)
def home(user=Depends(page_user)):
    if user is None:
        body = """
    <h1>MoonDev</h1>
    <form id='login'>
      <input name='email' type='email' placeholder='Email'/>
      <input name='password' type='password' placeholder='Password'/>
      <button>Sign in</button>
    </form>
    <script>
      document.getElementById('login').addEventListener('submit', async (e) => {
        e.preventDefault();
        const form = new FormData(e.target);
        const res = await fetch('/login', {
          method: 'POST',
          headers: {'Content-Type': 'application/json'},
          body: JSON.stringify(Object.fromEntries(form)),
        });
        if (res.ok) window.location.reload();
      });
    </script>"""
    else:
        target = EVALUATE_PATH if user.role == Role.EVALUATOR else SUBMIT_PATH
        body = f"""
    <h1>Welcome back, {escape(user.full_name or user.email)}</h1>
    <p><a href='{target}'>Continue</a></p>"""
    return page("Home", body)


EVALUATE_SCRIPT = """
    <script>
      document.querySelectorAll('.decision-form button').forEach((button) => {
        button.addEventListener('click', async () => {
          const form = button.closest('form');
          const res = await fetch(`/evaluate/${form.dataset.submission}/decision`, {
            method: 'POST',
            headers: {'Content-Type': 'application/json'},
            body: JSON.stringify({
              status: button.dataset.status,
              feedback: form.querySelector('textarea').value,
            }),
          });
          const toast = await res.json();
          window.alert(toast.message);
        });
      });
      const feed = new WebSocket(`${location.protocol === 'https:' ? 'wss' : 'ws'}://${location.host}/ws/submissions`);
      feed.onmessage = (message) => {
        const change = JSON.parse(message.data);
        if (!change.new || change.new.status === 'pending') return;
        const card = document.getElementById(`submission-${change.new.id}`);
        const form = card && card.querySelector('.decision-form');
        if (!form) return;
        const decision = document.createElement('div');
        decision.className = `decision ${change.new.status}`;
        const status = document.createElement('p');
        status.innerHTML = '<strong></strong>';
        status.firstChild.textContent = 'Status: ' + change.new.status.charAt(0).toUpperCase() + change.new.status.slice(1);
        const feedback = document.createElement('p');
        feedback.textContent = 'Feedback: ' + (change.new.feedback || '');
        decision.append(status, feedback);
        form.replaceWith(decision);
      };
    </script>"""


class DecisionForm(BaseModel):
    status: str
    feedback: str = ""


def evaluation_list(
    request: Request,
    store: SubmissionStore = Depends(get_store),
    settings: Settings = Depends(get_settings),
) -> EvaluationList:
    notifications = NotificationClient(
        request.app.state.notification_http,
        base_url=settings.backend_url,
        token=token_from(request),
    )
    return EvaluationList(
        store, store.feed, notifications, download_dir=settings.download_dir
    )


@router.get(EVALUATE_PATH, response_class=HTMLResponse)
def evaluate(
    _: UserRecord = Depends(page_user),
    view: EvaluationList = Depends(evaluation_list),
    settings: Settings = Depends(get_settings),
):
    with view:
        listing = render_list(view.render(), settings.image_hosts)
    return page(
        "Evaluate", f"<h1>Submissions</h1>\n{listing}\n{EVALUATE_SCRIPT}"
    )


@router.post(EVALUATE_PATH + "/{submission_id}/decision")
def decide(
    submission_id: str,
    form: DecisionForm,
    _: UserRecord = Depends(require_evaluator),
    view: EvaluationList = Depends(evaluation_list),
):
    """Record a decision from the evaluate page and notify the candidate"""
    with view:
        view.set_feedback(submission_id, form.feedback)
        ok = view.decide(submission_id, form.status)
    level, message = view.toasts.last
    return {"ok": ok, "level": level, "message": message}


@router.get(SUBMIT_PATH, response_class=HTMLResponse)
def submit(
    user: UserRecord = Depends(page_user),
    store: SubmissionStore = Depends(get_store),
):
    rows = []
    for sub in store.list_for_user(user.id):
        rows.append(
            f"<li>{escape(sub.full_name)}: {escape(sub.status)}"
            + (f" ({escape(sub.feedback)})" if sub.feedback else "")
            + "</li>"
        )
    listing = (
        f"<ul>{''.join(rows)}</ul>"
        if rows
        else "<p class='muted'>You have not submitted an application yet.</p>"
    )
    return page("Your application", f"<h1>Your application</h1>\n{listing}")
