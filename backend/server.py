import asyncio
import json
import logging
import sys
import os
import time
from contextlib import asynccontextmanager
from pathlib import Path

# Add current directory to path so we can import backend modules
sys.path.append(os.path.dirname(os.path.abspath(__file__)))

from typing import Any, Dict, Optional, Set
from fastapi import FastAPI, HTTPException, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse
from pydantic import BaseModel, ConfigDict, Field

from config import CONFIG
from economy import Economy, GameError, UnknownActionError, UnknownEntityError
from run_game import create_game
from view import build_state_payload

# Setup logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

UI_INDEX = Path(__file__).resolve().parent.parent / "ui" / "index.html"
NO_CACHE_HEADERS = {
    "Cache-Control": "no-cache, no-store, must-revalidate",
    "Pragma": "no-cache",
    "Expires": "0",
}


class ActionRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    action: str = Field(..., description="PURCHASE, UPGRADE, BUY or SELL")
    target_id: str = Field(..., alias="targetId", description="Asset or stock id")


class ActionResponse(BaseModel):
    applied: bool
    state: Dict[str, Any]


class GameManager:
    """
    Owns the single Economy and serializes every mutation of it.

    Ticks and player actions both mutate under `lock`. The resulting state
    is published under `publish_lock`, which is taken before `lock` is
    released, so views receive states in mutation order while the next
    mutation is free to run. Each send is bounded by `send_timeout`; a view
    that cannot keep up is dropped.
    """

    def __init__(self, economy: Optional[Economy] = None, tick_seconds: Optional[float] = None,
                 autostart: bool = True, send_timeout: Optional[float] = None):
        self.economy = economy or create_game()
        self.tick_seconds = tick_seconds if tick_seconds is not None else CONFIG.time.tick_seconds
        self.send_timeout = send_timeout if send_timeout is not None else CONFIG.server.send_timeout
        self.autostart = autostart
        self.lock = asyncio.Lock()
        self.publish_lock = asyncio.Lock()
        self.connections: Set[WebSocket] = set()
        self.loop_task: Optional[asyncio.Task] = None

    @property
    def is_running(self) -> bool:
        return self.loop_task is not None and not self.loop_task.done()

    def state_message(self) -> Dict[str, Any]:
        return {"type": "STATE", **build_state_payload(self.economy)}

    async def send_json_safe(self, websocket: WebSocket, payload: Dict[str, Any]) -> None:
        try:
            await asyncio.wait_for(websocket.send_json(payload), timeout=self.send_timeout)
        except asyncio.TimeoutError:
            logger.warning(f"Dropping connection: send took longer than {self.send_timeout}s")
            self.connections.discard(websocket)
        except Exception as e:
            logger.warning(f"Dropping connection after failed send: {e}")
            self.connections.discard(websocket)

    async def broadcast(self, payload: Dict[str, Any]) -> None:
        await asyncio.gather(*(self.send_json_safe(ws, payload) for ws in list(self.connections)))

    async def publish(self, message: Dict[str, Any], origin: Optional[WebSocket] = None,
                      origin_message: Optional[Dict[str, Any]] = None) -> None:
        """Send queued messages; the caller must already hold publish_lock."""
        try:
            if origin is not None and origin_message is not None:
                await self.send_json_safe(origin, origin_message)
            await self.broadcast(message)
        finally:
            self.publish_lock.release()

    async def connect(self, websocket: WebSocket) -> None:
        """Register a view and publish the current state to it."""
        async with self.lock:
            self.connections.add(websocket)
            message = self.state_message()
            await self.publish_lock.acquire()
        try:
            await self.send_json_safe(websocket, message)
        finally:
            self.publish_lock.release()
        logger.info(f"WebSocket connected ({len(self.connections)} open)")
        # The timer only starts once a view has rendered the initial state
        if self.autostart:
            self.ensure_running()

    async def send_state(self, websocket: WebSocket) -> None:
        async with self.lock:
            message = self.state_message()
            await self.publish_lock.acquire()
        try:
            await self.send_json_safe(websocket, message)
        finally:
            self.publish_lock.release()

    def disconnect(self, websocket: WebSocket) -> None:
        self.connections.discard(websocket)
        logger.info(f"Client disconnected ({len(self.connections)} open)")

    def ensure_running(self) -> None:
        if not self.is_running:
            self.loop_task = asyncio.create_task(self.run_loop())

    async def stop(self) -> None:
        if self.loop_task is None:
            return
        self.loop_task.cancel()
        try:
            await self.loop_task
        except asyncio.CancelledError:
            pass
        self.loop_task = None

    async def tick(self) -> Dict[str, Any]:
        """Run one economy step and publish the resulting state."""
        async with self.lock:
            self.economy.step()
            message = self.state_message()
            await self.publish_lock.acquire()
        await self.publish(message)
        return message

    async def run_loop(self) -> None:
        logger.info(f"Starting game loop ({self.tick_seconds}s per tick)")
        loop = asyncio.get_running_loop()
        try:
            while True:
                start_time = loop.time()
                try:
                    await self.tick()
                except Exception:
                    logger.exception(f"Tick {self.economy.current_tick} failed")

                # Fixed period regardless of how long the tick took
                elapsed = loop.time() - start_time
                await asyncio.sleep(max(0.0, self.tick_seconds - elapsed))
        finally:
            logger.info(f"Game loop stopped at tick {self.economy.current_tick}")

    async def dispatch(self, action: str, target_id: str,
                       origin: Optional[WebSocket] = None) -> tuple[bool, Dict[str, Any]]:
        """
        Apply one player action and publish the resulting state.

        Raises:
            GameError: unknown action or target id (state untouched)
        """
        rejection = None
        async with self.lock:
            applied = self.economy.apply_action(action, target_id)
            if not applied:
                logger.debug(f"Rejected {action} on {target_id}: preconditions not met")
                rejection = {"type": "ACTION_REJECTED", "action": action, "targetId": target_id}
            message = self.state_message()
            await self.publish_lock.acquire()
        await self.publish(message, origin=origin, origin_message=rejection)
        return applied, message


async def handle_command(manager: GameManager, websocket: WebSocket, data: Dict[str, Any]) -> None:
    command = str(data.get("command") or "").upper()

    if not command:
        await manager.send_json_safe(websocket, {
            "type": "ERROR",
            "code": "unknown_command",
            "message": "command is required",
        })
    elif command == "PING":
        await manager.send_json_safe(websocket, {"type": "PONG", "ts": time.time()})
    elif command == "STATE":
        await manager.send_state(websocket)
    else:
        target_id = data.get("targetId")
        if not isinstance(target_id, str):
            await manager.send_json_safe(websocket, {
                "type": "ERROR",
                "code": "missing_target",
                "message": "targetId is required",
            })
            return
        try:
            await manager.dispatch(command, target_id, origin=websocket)
        except UnknownActionError as e:
            await manager.send_json_safe(websocket, {"type": "ERROR", "code": "unknown_command", "message": str(e)})
        except UnknownEntityError as e:
            await manager.send_json_safe(websocket, {"type": "ERROR", "code": "unknown_target", "message": str(e)})


def create_app(manager: Optional[GameManager] = None) -> FastAPI:
    manager = manager or GameManager()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        await manager.stop()

    app = FastAPI(title="Business Tycoon Simulator", version="1.0", lifespan=lifespan)
    app.state.manager = manager

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/")
    async def serve_ui():
        return FileResponse(UI_INDEX, headers=NO_CACHE_HEADERS)

    @app.get("/health")
    async def health():
        return {"status": "ok"}

    @app.get("/api/state")
    async def get_state():
        async with manager.lock:
            return build_state_payload(manager.economy)

    @app.post("/api/actions", response_model=ActionResponse)
    async def post_action(request: ActionRequest):
        try:
            applied, message = await manager.dispatch(request.action, request.target_id)
        except UnknownEntityError as e:
            raise HTTPException(status_code=404, detail=str(e))
        except GameError as e:
            raise HTTPException(status_code=400, detail=str(e))
        state = {k: v for k, v in message.items() if k != "type"}
        return ActionResponse(applied=applied, state=state)

    @app.websocket("/ws")
    async def websocket_endpoint(websocket: WebSocket):
        await websocket.accept()
        await manager.connect(websocket)

        try:
            # A view dropped for failing to keep up is closed on return
            while websocket in manager.connections:
                raw = await websocket.receive_text()
                try:
                    data = json.loads(raw)
                except json.JSONDecodeError:
                    await manager.send_json_safe(websocket, {"type": "ERROR", "code": "bad_json", "message": "Invalid JSON"})
                    continue
                if not isinstance(data, dict):
                    await manager.send_json_safe(websocket, {"type": "ERROR", "code": "bad_message", "message": "Expected an object"})
                    continue
                await handle_command(manager, websocket, data)

        except WebSocketDisconnect:
            pass
        finally:
            manager.disconnect(websocket)

    return app


app = create_app()
