"""
Session registry.

Binds each long-lived connection to a transcript session and drives the
connection through its lifecycle::

    OPEN --fragment--> STREAMING --finalize--> OPEN --...--> CLOSED

``CLOSED`` is terminal for the connection; the transcript session stays
queryable until it is pruned or deleted. The registry is also the chunk
aggregator's result sink: results are always recorded in the transcript log
and emitted to the client only while its connection is live.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Awaitable, Dict, List, Optional

from .aggregator import ChunkAggregator, StreamError, StreamTranscript
from .errors import InvalidTransitionError
from .interfaces import ConnectionState, EventType, OutboundChannel
from .messages import error_message, transcript_message
from .models import utc_now
from .retention import RetentionPolicy
from .transcript_log import TranscriptLog

logger = logging.getLogger(__name__)

_TRANSITIONS = {
    ConnectionState.OPEN: {ConnectionState.STREAMING, ConnectionState.CLOSED},
    ConnectionState.STREAMING: {ConnectionState.OPEN, ConnectionState.CLOSED},
    ConnectionState.CLOSED: set(),
}


@dataclass
class Connection:
    """One client connection and the transcript session it writes to."""

    connection_id: str
    session_id: str
    channel: OutboundChannel
    state: ConnectionState = ConnectionState.OPEN
    connected_at: datetime = field(default_factory=utc_now)

    @property
    def is_live(self) -> bool:
        return self.state != ConnectionState.CLOSED and self.channel.is_connected

    def transition(self, new_state: ConnectionState) -> None:
        if new_state == self.state:
            return
        if new_state not in _TRANSITIONS[self.state]:
            raise InvalidTransitionError(
                f"Connection {self.connection_id}: {self.state.value} -> {new_state.value} not allowed"
            )
        logger.debug(f"Connection {self.connection_id}: {self.state.value} -> {new_state.value}")
        self.state = new_state


class SessionRegistry:
    """Keyed map of live connections."""

    def __init__(
        self,
        log: TranscriptLog,
        aggregator: ChunkAggregator,
        retention: Optional[RetentionPolicy] = None,
        finalize_on_disconnect: bool = False
    ):
        self.log = log
        self.aggregator = aggregator
        self.aggregator.sink = self
        self.retention = retention
        self.finalize_on_disconnect = finalize_on_disconnect
        self._connections: Dict[str, Connection] = {}

    async def connect(
        self,
        connection_id: str,
        channel: OutboundChannel,
        session_id: Optional[str] = None
    ) -> Connection:
        """Register a connection and start its transcript session."""
        if connection_id in self._connections:
            raise InvalidTransitionError(f"Connection {connection_id} already registered")

        connection = Connection(
            connection_id=connection_id,
            session_id=session_id or connection_id,
            channel=channel,
        )
        self._connections[connection_id] = connection

        self.log.record_start(connection.session_id)
        if self.retention is not None:
            self.retention.schedule()

        logger.info(f"Connection {connection_id} opened (session {connection.session_id})")
        return connection

    def get(self, connection_id: str) -> Optional[Connection]:
        return self._connections.get(connection_id)

    def push_fragment(self, connection_id: str, data: bytes) -> None:
        """Buffer an audio fragment; the first one moves the connection to STREAMING."""
        connection = self._require(connection_id)
        if not data:
            return
        connection.transition(ConnectionState.STREAMING)
        self.aggregator.push_fragment(connection_id, data, session_id=connection.session_id)

    def end_capture(self, connection_id: str) -> Awaitable[StreamTranscript]:
        """
        Close the current capture segment and return to OPEN right away.

        Fragments pushed after this call belong to the next segment. The
        returned awaitable runs the final transcription of the closed one.
        """
        connection = self._require(connection_id)
        state = self.aggregator.detach(connection_id, session_id=connection.session_id)
        if connection.state == ConnectionState.STREAMING:
            connection.transition(ConnectionState.OPEN)
        return self.aggregator.complete(connection_id, state)

    async def finalize(self, connection_id: str) -> StreamTranscript:
        """End the current capture segment and wait for its final transcript."""
        return await self.end_capture(connection_id)

    async def disconnect(self, connection_id: str) -> Optional[Connection]:
        """
        Close a connection: stop its timer, drop or finalize its buffer and end
        its transcript session. Unknown ids are ignored.
        """
        connection = self._connections.pop(connection_id, None)
        if connection is None:
            return None

        was_streaming = connection.state == ConnectionState.STREAMING
        connection.transition(ConnectionState.CLOSED)

        if self.finalize_on_disconnect and self.aggregator.is_streaming(connection_id):
            await self.aggregator.finalize(connection_id, session_id=connection.session_id)
        else:
            dropped = self.aggregator.discard(connection_id)
            if was_streaming:
                logger.debug(f"Connection {connection_id} closed mid-stream, {dropped} bytes dropped")

        self.log.record_end(connection.session_id)
        logger.info(f"Connection {connection_id} closed (session {connection.session_id})")
        return connection

    async def close_all(self) -> None:
        """Disconnect every registered connection."""
        for connection_id in list(self._connections):
            await self.disconnect(connection_id)

    @property
    def connections(self) -> List[Connection]:
        return list(self._connections.values())

    @property
    def active_count(self) -> int:
        return len(self._connections)

    def _require(self, connection_id: str) -> Connection:
        connection = self._connections.get(connection_id)
        if connection is None:
            raise InvalidTransitionError(f"Connection {connection_id} is not open")
        return connection

    # StreamSink

    async def on_transcript(self, result: StreamTranscript) -> None:
        self.log.record(
            result.session_id,
            result.event_type,
            text=result.text,
            provider=result.provider,
        )

        connection = self._connections.get(result.connection_id)
        if connection is not None and connection.is_live:
            connection.channel.send(transcript_message(result.text, result.provider, result.is_final))

    async def on_stream_error(self, error: StreamError) -> None:
        self.log.record(
            error.session_id,
            EventType.ERROR,
            stage=error.error.stage.value,
            error=error.error.message,
            provider=error.error.provider,
        )

        connection = self._connections.get(error.connection_id)
        if connection is not None and connection.is_live:
            connection.channel.send(error_message(error.error.stage, error.error.message))
