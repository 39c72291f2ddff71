"""
Log WebSocket Management Module
================================

Real-time log streaming over the /logs WebSocket. Services call
log_from_thread() for warnings and errors that operators should see live,
such as failed counter propagation after a trip completion or a fuel-state
update that could not be applied.

Sync endpoints run on FastAPI's threadpool, so log_from_thread() hands the
payload to the main event loop instead of sending it directly.

Message Format:
--------------
    {
        "msg_type": "log" | "error" | "warning",
        "message": "The log message content",
        "timestamp": "2025-12-01T10:30:00+00:00"
    }

Usage Example:
-------------
    from ridelog.Core import log_ws

    log_ws.log_from_thread("[TRIPS] Rider counters not updated for trip 12", "error")
"""

import asyncio
import json
import threading
from typing import Any, Dict, Optional, Set

from fastapi import WebSocket

from ridelog.Core.timeutils import utcnow


class LogWebSocketManager:
    """
    Tracks /logs listeners and delivers log payloads to them.

    Listeners are read-only; anything they send is echoed to the console.
    """

    def __init__(self):
        self._listeners: Set[WebSocket] = set()
        self._lock = threading.Lock()
        self.main_loop: Optional[asyncio.AbstractEventLoop] = None

    def set_main_loop(self, loop: asyncio.AbstractEventLoop):
        self.main_loop = loop

    @property
    def has_clients(self) -> bool:
        with self._lock:
            return bool(self._listeners)

    async def register(self, ws: WebSocket):
        # Listed before accept() so nothing is missed once the handshake completes
        with self._lock:
            self._listeners.add(ws)

        try:
            await ws.accept()
        except Exception:
            self.unregister(ws)
            raise

        print(f"[LOG-WS] Listener connected ({len(self._listeners)} total)")

    def unregister(self, ws: WebSocket):
        with self._lock:
            if ws not in self._listeners:
                return
            self._listeners.discard(ws)
            remaining = len(self._listeners)

        print(f"[LOG-WS] Listener disconnected ({remaining} left)")

    async def handle_message(self, ws: WebSocket, message: str):
        print(f"[LOG-WS] Received message from client: {message}")

    async def deliver(self, payload: Dict[str, Any]):
        """Send one payload to every listener; listeners that fail are dropped."""
        with self._lock:
            listeners = list(self._listeners)

        text = json.dumps(payload, default=str)
        for ws in listeners:
            try:
                await ws.send_text(text)
            except Exception as e:
                print(f"[LOG-WS] Dropping listener after failed send: {e}")
                self.unregister(ws)


def log_from_thread(message: str, msg_type: str = "log"):
    """
    Stream a log line to /logs listeners from any thread.

    Args:
        message: The log message content
        msg_type: "log" (default), "error" or "warning"

    Prints to the console instead when nobody is listening or the event loop
    has not been handed over yet.
    """
    loop = log_ws_manager.main_loop

    if not log_ws_manager.has_clients or loop is None or loop.is_closed():
        print(f"[LOG-BROADCAST] No log clients connected. Message: {message}")
        return

    payload: Dict[str, Any] = {
        "msg_type": msg_type,
        "message": str(message),
        "timestamp": utcnow().isoformat(),
    }
    asyncio.run_coroutine_threadsafe(log_ws_manager.deliver(payload), loop)


# ============================================================
# GLOBAL LOG WEBSOCKET MANAGER INSTANCE
# ============================================================
log_ws_manager = LogWebSocketManager()
