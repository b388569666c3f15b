# arena_server/services/broadcast_service.py
"""World state fan-out to every connected client."""

import asyncio
import logging
from typing import Any, Dict, List, Optional, Set, Union

from fastapi import WebSocketDisconnect

from arena_server.config.settings import SEND_TIMEOUT
from arena_server.models.protocol import ProtocolError, encode_message
from arena_server.services.world_store import WorldStore

logger = logging.getLogger(__name__)


class ClientConnection:
    """
    One client channel.

    All writes go through ``send_lock`` so concurrent broadcasts never
    interleave on the same channel. Broadcast payloads go through a single
    latest-wins slot drained by one sender task, so a client that stops
    reading holds at most one undelivered snapshot.
    """

    def __init__(self, channel: Any, send_timeout: float = SEND_TIMEOUT):
        self.channel = channel
        self.send_timeout = send_timeout
        self.send_lock = asyncio.Lock()
        self.player_id: Optional[str] = None
        self._latest: Optional[str] = None
        self._sender: Optional[asyncio.Task] = None

    async def receive_frame(self) -> Union[str, bytes]:
        """Wait for the next text or binary frame."""
        message = await self.channel.receive()
        if message["type"] == "websocket.disconnect":
            raise WebSocketDisconnect(message.get("code", 1000))
        if message.get("text") is not None:
            return message["text"]
        if message.get("bytes") is not None:
            return message["bytes"]
        raise ProtocolError("empty frame")

    async def send_text(self, payload: str) -> None:
        async with self.send_lock:
            await self.send_text_locked(payload)

    async def send_text_locked(self, payload: str) -> None:
        """
        Write without taking the send lock. Caller must hold it.

        A write that outlives ``send_timeout`` is reported but not cancelled:
        cancelling mid-frame could leave a partial payload on the channel.
        """
        write = asyncio.ensure_future(self.channel.send_text(payload))
        try:
            await asyncio.wait_for(asyncio.shield(write), timeout=self.send_timeout)
        except asyncio.TimeoutError:
            logger.warning(f"Timeout sending to player {self.player_id}, still writing")
            await write
        except asyncio.CancelledError:
            write.cancel()
            raise

    async def send_json(self, message: Dict[str, Any]) -> None:
        await self.send_text(encode_message(message))

    def queue(self, payload: str) -> asyncio.Task:
        """Replace any undelivered payload and make sure a sender is running."""
        self._latest = payload
        if self._sender is None or self._sender.done():
            self._sender = asyncio.create_task(self._send_latest())
        return self._sender

    @property
    def has_queued(self) -> bool:
        return self._latest is not None

    async def _send_latest(self) -> None:
        while self._latest is not None:
            payload, self._latest = self._latest, None
            try:
                await self.send_text(payload)
            except Exception as e:
                # The client's own read loop notices a dead channel
                logger.warning(f"Error sending message to player {self.player_id}: {e}")

    async def close(self) -> None:
        try:
            await self.channel.close()
        except Exception as e:
            # Already closed by the peer or the server
            logger.debug(f"Close failed for player {self.player_id}: {e}")


class BroadcastService:
    """Serializes one snapshot per broadcast and delivers it to every client."""

    def __init__(self, store: WorldStore):
        self.store = store
        self._pending: Set[asyncio.Task] = set()

    async def broadcast(self) -> List[asyncio.Task]:
        """
        Send the current world state to every connected client.

        Each client has its own sender task so a slow client only delays
        itself. Returns the sender task of every recipient.
        """
        snapshot, recipients = await self.store.snapshot_with_recipients()
        payload = encode_message(snapshot.to_message())

        tasks = []
        for connection in recipients:
            task = connection.queue(payload)
            if task not in self._pending:
                self._pending.add(task)
                task.add_done_callback(self._pending.discard)
            tasks.append(task)
        return tasks

    @property
    def pending(self) -> int:
        return len(self._pending)

    async def drain(self, timeout: Optional[float] = None) -> None:
        """Wait for every sender to finish; cancel those still busy after timeout."""
        while self._pending:
            tasks = list(self._pending)
            _, busy = await asyncio.wait(tasks, timeout=timeout)
            if busy:
                for task in busy:
                    task.cancel()
                await asyncio.gather(*busy, return_exceptions=True)
                logger.warning(f"Cancelled {len(busy)} stalled deliveries")
                return
