import asyncio
import logging

from fastapi import APIRouter, WebSocket, WebSocketDisconnect, status
from starlette.concurrency import run_in_threadpool

from ..authorization import session_user
from ..models.models import Role
from ..realtime import ChangeEvent
from ..store import TABLE

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Realtime"])


@router.websocket("/ws/submissions")
async def submission_changes(websocket: WebSocket):
    """Relay submission change events to an evaluator's browser"""
    app_state = websocket.app.state
    user = await run_in_threadpool(
        session_user, websocket, app_state.store, app_state.settings
    )
    if user is None or user.role != Role.EVALUATOR:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    loop = asyncio.get_running_loop()
    queue: asyncio.Queue = asyncio.Queue()

    def enqueue(event: ChangeEvent) -> None:
        # publishers run on worker threads
        loop.call_soon_threadsafe(queue.put_nowait, event)

    async def pump():
        while True:
            event = await queue.get()
            await websocket.send_json(event.model_dump(mode="json"))

    async def drain():
        # returns once the client goes away
        try:
            while True:
                await websocket.receive_text()
        except WebSocketDisconnect:
            pass

    # subscribe before the handshake completes
    with app_state.feed.subscribe(TABLE, enqueue):
        await websocket.accept()
        tasks = [asyncio.create_task(pump()), asyncio.create_task(drain())]
        try:
            done, _ = await asyncio.wait(
                tasks, return_when=asyncio.FIRST_COMPLETED
            )
        finally:
            for task in tasks:
                task.cancel()
        for task in done:
            if not task.cancelled() and task.exception() is not None:
                logger.error(
                    "Submission change relay for %s stopped: %s",
                    user.id,
                    task.exception(),
                )
    logger.info("Evaluator %s left the submission feed", user.id)
