"""Async inbound channels for a capture session.

Interaction, navigation and network notifications arrive independently
and possibly concurrently. Each source gets its own channel; all channels
feed one queue that a single consumer drains, so the session sees every
notification fully processed before the next one starts.
"""

import asyncio
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional, Union

import structlog

from src.utils.logging import LogContext

from .models import Header, InteractionEvent, TransactionInitiation
from .session import CaptureSession

logger = structlog.get_logger()


class ChannelKind(str, Enum):
    """Inbound notification sources."""

    INTERACTION = "interaction"
    NAVIGATION = "navigation"
    NETWORK = "network"


@dataclass
class NavigationSignal:
    url: str
    timestamp: float
    tab_id: Optional[int] = None


@dataclass
class RequestStarted:
    initiation: TransactionInitiation


@dataclass
class HeadersSent:
    transaction_id: str
    headers: list[Header] = field(default_factory=list)


@dataclass
class RequestCompleted:
    transaction_id: str
    status: int
    end_timestamp: float
    headers: list[Header] = field(default_factory=list)


@dataclass
class RequestFailed:
    transaction_id: str
    error: str
    end_timestamp: float


NetworkSignal = Union[RequestStarted, HeadersSent, RequestCompleted, RequestFailed]

_STOP = object()


class InboundChannel:
    """Producer handle for one notification source."""

    def __init__(self, kind: ChannelKind, queue: asyncio.Queue):
        self.kind = kind
        self._queue = queue

    async def send(self, payload: Any) -> None:
        await self._queue.put((self.kind, payload))

    def send_nowait(self, payload: Any) -> None:
        self._queue.put_nowait((self.kind, payload))


class SessionActor:
    """Single consumer that applies notifications to a session in arrival order.

    Example:
        async with SessionActor(session) as actor:
            await actor.interactions.send(event)
            await actor.network.send(RequestStarted(initiation))
            await actor.drain()
    """

    def __init__(self, session: CaptureSession, max_queue_size: int = 0):
        """Initialize the actor.

        Args:
            session: Session receiving the notifications
            max_queue_size: Queue bound shared by all channels (0 = unbounded)
        """
        self.session = session
        self.log = logger.bind(component="session_actor")
        self._queue: asyncio.Queue = asyncio.Queue(maxsize=max_queue_size)
        self._task: Optional[asyncio.Task] = None
        self.processed = 0
        self.failed = 0

        self.interactions = InboundChannel(ChannelKind.INTERACTION, self._queue)
        self.navigations = InboundChannel(ChannelKind.NAVIGATION, self._queue)
        self.network = InboundChannel(ChannelKind.NETWORK, self._queue)

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def start(self) -> None:
        if not self.running:
            self._task = asyncio.create_task(self.run())

    async def run(self) -> None:
        """Consume notifications until closed."""
        while True:
            item = await self._queue.get()
            try:
                if item is _STOP:
                    break
                kind, payload = item
                with LogContext(channel=kind.value):
                    self._dispatch(kind, payload)
                self.processed += 1
            except Exception as e:
                self.failed += 1
                self.log.error("Notification processing failed", error=str(e), exc_info=True)
            finally:
                self._queue.task_done()

    async def drain(self) -> None:
        """Wait until every queued notification has been processed."""
        await self._queue.join()

    async def close(self) -> None:
        """Process what is queued, then stop the consumer."""
        if self._task is None:
            return
        await self._queue.put(_STOP)
        await self._task
        self._task = None

    async def __aenter__(self) -> "SessionActor":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    def _dispatch(self, kind: ChannelKind, payload: Any) -> None:
        if kind == ChannelKind.INTERACTION:
            if isinstance(payload, dict):
                payload = InteractionEvent.from_dict(payload)
            self.session.record_interaction(payload)

        elif kind == ChannelKind.NAVIGATION:
            self.session.record_navigation(payload.url, payload.timestamp, payload.tab_id)

        elif kind == ChannelKind.NETWORK:
            self._dispatch_network(payload)

    def _dispatch_network(self, signal: NetworkSignal) -> None:
        if isinstance(signal, RequestStarted):
            self.session.on_request_started(signal.initiation)
        elif isinstance(signal, HeadersSent):
            self.session.on_headers_sent(signal.transaction_id, signal.headers)
        elif isinstance(signal, RequestCompleted):
            self.session.on_completed(
                signal.transaction_id,
                status=signal.status,
                end_timestamp=signal.end_timestamp,
                headers=signal.headers,
            )
        elif isinstance(signal, RequestFailed):
            self.session.on_error(
                signal.transaction_id,
                error=signal.error,
                end_timestamp=signal.end_timestamp,
            )
        else:
            raise TypeError(f"Unsupported network signal: {type(signal).__name__}")
