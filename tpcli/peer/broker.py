from __future__ import annotations

import asyncio
import codecs
from pathlib import Path
from typing import Callable, Optional, Tuple

from tpcli.core.logger import get_logger
from tpcli.peer.messages import (
    INBOUND_TYPES,
    JSONStreamDecoder,
    PeerMessage,
    PeerMessageType,
    PeerProtocolError,
)

logger = get_logger(__name__)

READ_CHUNK = 4096


def parse_tcp_address(text: str) -> Tuple[str, int]:
    """Split 'host:port' (or '[v6]:port') into host and port"""
    host, sep, port = text.rpartition(":")

    if not sep or not port.isdigit() or not 0 < int(port) < 65536:
        raise ValueError(f"({text}) cannot be used as a bind address")

    host = host.strip("[]") or "localhost"
    return host, int(port)


def _describe(writer: asyncio.StreamWriter) -> str:
    peer = writer.get_extra_info("peername")
    return str(peer) if peer else "local peer"


class PeerCommunicationBroker:
    """
    Relays messages between the UI and a single remote peer over a TCP or
    Unix stream socket. Messages are JSON objects {"type": ..., "message": ...}.

    Only one peer may be connected at a time; further connections are
    closed straight away.
    """

    def __init__(self, tcp_address: Optional[Tuple[str, int]] = None, unix_socket_path: Optional[Path] = None):
        if (tcp_address is None) == (unix_socket_path is None):
            raise ValueError("exactly one of tcp_address or unix_socket_path is required")

        self.tcp_address = tcp_address
        self.unix_socket_path = Path(unix_socket_path) if unix_socket_path else None

        self._server: Optional[asyncio.AbstractServer] = None
        self._peer_writer: Optional[asyncio.StreamWriter] = None
        self._stopped = asyncio.Event()

        self._on_accept: Callable[[PeerCommunicationBroker, str], None] = lambda broker, peer: None
        self._on_closure: Callable[[PeerCommunicationBroker, str], None] = lambda broker, peer: None
        self._on_peer_error: Callable[[PeerCommunicationBroker, str, Exception], None] = lambda broker, peer, err: None
        self._on_general_error: Callable[[PeerCommunicationBroker, Exception], None] = lambda broker, err: None
        self._on_message: Callable[[PeerCommunicationBroker, PeerMessage], None] = lambda broker, msg: None

    @classmethod
    def using_tcp(cls, host: str, port: int) -> PeerCommunicationBroker:
        return cls(tcp_address=(host, port))

    @classmethod
    def using_unix_socket(cls, path) -> PeerCommunicationBroker:
        return cls(unix_socket_path=path)

    # -----------------------------
    # Handlers (chainable)
    # -----------------------------
    def on_incoming_peer_accept(self, callback) -> PeerCommunicationBroker:
        self._on_accept = callback
        return self

    def on_peer_closure(self, callback) -> PeerCommunicationBroker:
        self._on_closure = callback
        return self

    def on_peer_communication_error(self, callback) -> PeerCommunicationBroker:
        self._on_peer_error = callback
        return self

    def on_general_communication_error(self, callback) -> PeerCommunicationBroker:
        self._on_general_error = callback
        return self

    def on_message(self, callback) -> PeerCommunicationBroker:
        self._on_message = callback
        return self

    @property
    def is_peer_connected(self) -> bool:
        return self._peer_writer is not None

    @property
    def bind_description(self) -> str:
        if self.unix_socket_path:
            return f"unix:{self.unix_socket_path}"
        return f"tcp:{self.tcp_address[0]}:{self.tcp_address[1]}"

    # -----------------------------
    # Lifecycle
    # -----------------------------
    async def start_listening(self) -> None:
        """Bind and serve peers until terminate() is called"""
        try:
            if self.unix_socket_path:
                # stale socket file from an earlier run would block the bind
                if self.unix_socket_path.exists():
                    self.unix_socket_path.unlink()

                self._server = await asyncio.start_unix_server(
                    self._handle_peer, path=str(self.unix_socket_path)
                )
            else:
                host, port = self.tcp_address
                self._server = await asyncio.start_server(self._handle_peer, host=host, port=port)

        except OSError as e:
            logger.debug(f"Bind failed for {self.bind_description}: {e}")
            self._on_general_error(self, e)
            return

        logger.info(f"Listening for peer on {self.bind_description}")

        async with self._server:
            await self._stopped.wait()

    async def terminate(self) -> None:
        self._stopped.set()

        writer, self._peer_writer = self._peer_writer, None
        if writer:
            writer.close()
            try:
                await writer.wait_closed()
            except (ConnectionError, OSError) as e:
                logger.debug(f"Error closing peer connection: {e}")

        if self._server:
            self._server.close()
            await self._server.wait_closed()
            self._server = None

        if self.unix_socket_path and self.unix_socket_path.exists():
            self.unix_socket_path.unlink()

    # -----------------------------
    # Sending
    # -----------------------------
    async def send_message_to_peer(self, message: PeerMessage) -> bool:
        writer = self._peer_writer
        if writer is None:
            logger.debug(f"Dropping {message.type.value} message, no peer connected")
            return False

        try:
            writer.write((message.to_json() + "\n").encode("utf-8"))
            await writer.drain()
        except (ConnectionError, OSError) as e:
            self._on_peer_error(self, _describe(writer), e)
            return False

        return True

    # -----------------------------
    # Receiving
    # -----------------------------
    async def _handle_peer(self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
        peer = _describe(writer)

        if self._peer_writer is not None:
            logger.warning(f"Rejecting connection from {peer}, a peer is already connected")
            writer.close()
            try:
                await writer.wait_closed()
            except (ConnectionError, OSError) as e:
                logger.debug(f"Error closing rejected connection: {e}")
            return

        self._peer_writer = writer
        self._on_accept(self, peer)

        decoder = JSONStreamDecoder()
        # multibyte characters may straddle reads
        text_decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")

        try:
            while True:
                chunk = await reader.read(READ_CHUNK)
                if not chunk:
                    break

                await self._dispatch(decoder, text_decoder.decode(chunk), peer)

        except (ConnectionError, OSError) as e:
            self._on_peer_error(self, peer, e)

        finally:
            if self._peer_writer is writer:
                self._peer_writer = None
                writer.close()
                self._on_closure(self, peer)

    async def _dispatch(self, decoder: JSONStreamDecoder, text: str, peer: str) -> None:
        try:
            for obj in decoder.feed(text):
                await self._handle_object(obj, peer)

        except PeerProtocolError as e:
            self._on_peer_error(self, peer, e)
            await self.send_message_to_peer(PeerMessage(PeerMessageType.PROTOCOL_ERROR, str(e)))

    async def _handle_object(self, obj, peer: str) -> None:
        try:
            message = PeerMessage.from_dict(obj)
        except PeerProtocolError as e:
            self._on_peer_error(self, peer, e)
            await self.send_message_to_peer(PeerMessage(PeerMessageType.PROTOCOL_ERROR, str(e)))
            return

        if message.type not in INBOUND_TYPES:
            await self.send_message_to_peer(
                PeerMessage(PeerMessageType.PROTOCOL_ERROR, f"invalid type ({message.type.value})")
            )
            return

        logger.debug(f"From {peer}: {message.type.value}")
        self._on_message(self, message)
