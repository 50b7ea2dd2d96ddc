import asyncio
import json

import pytest

from tpcli.peer.broker import PeerCommunicationBroker, parse_tcp_address
from tpcli.peer.messages import PeerMessage, PeerMessageType


class TestParseTcpAddress:
    def test_host_and_port(self):
        assert parse_tcp_address("127.0.0.1:6000") == ("127.0.0.1", 6000)

    def test_missing_host_means_localhost(self):
        assert parse_tcp_address(":7000") == ("localhost", 7000)

    def test_ipv6(self):
        assert parse_tcp_address("[::1]:6000") == ("::1", 6000)

    @pytest.mark.parametrize("text", ["localhost", "localhost:", "localhost:http", "host:70000"])
    def test_invalid(self, text):
        with pytest.raises(ValueError, match="cannot be used as a bind address"):
            parse_tcp_address(text)


class TestConstruction:
    def test_needs_exactly_one_endpoint(self, tmp_path):
        with pytest.raises(ValueError):
            PeerCommunicationBroker()
        with pytest.raises(ValueError):
            PeerCommunicationBroker(tcp_address=("localhost", 1), unix_socket_path=tmp_path / "s")

    def test_send_without_peer(self, tmp_path):
        broker = PeerCommunicationBroker.using_unix_socket(tmp_path / "peer.sock")
        sent = asyncio.run(broker.send_message_to_peer(PeerMessage(PeerMessageType.USER_EXITED)))
        assert sent is False


async def _wait_for(predicate, timeout=2.0):
    deadline = asyncio.get_running_loop().time() + timeout
    while not predicate():
        if asyncio.get_running_loop().time() > deadline:
            raise AssertionError("condition not met in time")
        await asyncio.sleep(0.01)


async def _read_json_line(reader):
    line = await asyncio.wait_for(reader.readline(), timeout=2.0)
    return json.loads(line)


class TestUnixSocketPeer:
    def test_exchange_with_single_peer(self, tmp_path):
        socket_path = tmp_path / "peer.sock"
        socket_path.write_text("stale")  # left over from an earlier run

        events = []
        messages = []

        async def scenario():
            broker = (
                PeerCommunicationBroker.using_unix_socket(socket_path)
                .on_incoming_peer_accept(lambda b, peer: events.append("accept"))
                .on_peer_closure(lambda b, peer: events.append("closed"))
                .on_peer_communication_error(lambda b, peer, err: events.append(f"error: {err}"))
                .on_message(lambda b, msg: messages.append(msg))
            )
            server = asyncio.create_task(broker.start_listening())

            await _wait_for(lambda: broker._server is not None)
            reader, writer = await asyncio.open_unix_connection(str(socket_path))
            await _wait_for(lambda: broker.is_peer_connected)

            # concatenated objects in one write
            writer.write(b'{"type": "general_output", "message": "hello"}{"type": "error_output", "message": "oops"}')
            await writer.drain()
            await _wait_for(lambda: len(messages) == 2)

            # peers may not send commands to us
            writer.write(b'{"type": "input_command_received", "message": "x"}\n')
            await writer.drain()
            reply = await _read_json_line(reader)
            assert reply == {"type": "protocol_error", "message": "invalid type (input_command_received)"}

            # unknown type
            writer.write(b'{"type": "nonsense"}\n')
            await writer.drain()
            reply = await _read_json_line(reader)
            assert reply["type"] == "protocol_error"

            # a second peer is turned away
            other_reader, other_writer = await asyncio.open_unix_connection(str(socket_path))
            assert await asyncio.wait_for(other_reader.read(), timeout=2.0) == b""
            other_writer.close()

            # outbound
            assert await broker.send_message_to_peer(
                PeerMessage(PeerMessageType.INPUT_COMMAND_RECEIVED, "show version")
            )
            assert await _read_json_line(reader) == {"type": "input_command_received", "message": "show version"}

            writer.close()
            await _wait_for(lambda: "closed" in events)
            assert not broker.is_peer_connected

            await broker.terminate()
            await asyncio.wait_for(server, timeout=2.0)

        asyncio.run(scenario())

        assert messages == [
            PeerMessage(PeerMessageType.GENERAL_OUTPUT, "hello"),
            PeerMessage(PeerMessageType.ERROR_OUTPUT, "oops"),
        ]
        assert events[0] == "accept"
        assert any(e.startswith("error: Invalid type (nonsense)") for e in events)
        assert not socket_path.exists()

    def test_bind_failure_reported(self, tmp_path):
        errors = []
        broker = (
            PeerCommunicationBroker.using_unix_socket(tmp_path / "missing-dir" / "peer.sock")
            .on_general_communication_error(lambda b, err: errors.append(err))
        )
        asyncio.run(broker.start_listening())
        assert len(errors) == 1
        assert isinstance(errors[0], OSError)

    def test_multibyte_character_split_between_reads(self, tmp_path):
        socket_path = tmp_path / "peer.sock"
        messages = []

        async def scenario():
            broker = PeerCommunicationBroker.using_unix_socket(socket_path).on_message(
                lambda b, msg: messages.append(msg)
            )
            server = asyncio.create_task(broker.start_listening())
            await _wait_for(lambda: broker._server is not None)

            reader, writer = await asyncio.open_unix_connection(str(socket_path))
            await _wait_for(lambda: broker.is_peer_connected)

            data = '{"type": "general_output", "message": "café"}\n'.encode("utf-8")
            cut = data.index("é".encode("utf-8")) + 1
            writer.write(data[:cut])
            await writer.drain()
            await asyncio.sleep(0.05)
            writer.write(data[cut:])
            await writer.drain()
            await _wait_for(lambda: len(messages) == 1)

            writer.close()
            await broker.terminate()
            await asyncio.wait_for(server, timeout=2.0)

        asyncio.run(scenario())
        assert messages == [PeerMessage(PeerMessageType.GENERAL_OUTPUT, "café")]

    def test_reset_by_rejected_peer_is_contained(self, tmp_path):
        socket_path = tmp_path / "peer.sock"
        unhandled = []

        async def scenario():
            asyncio.get_running_loop().set_exception_handler(lambda loop, context: unhandled.append(context))
            broker = PeerCommunicationBroker.using_unix_socket(socket_path)
            server = asyncio.create_task(broker.start_listening())
            await _wait_for(lambda: broker._server is not None)

            _, writer = await asyncio.open_unix_connection(str(socket_path))
            await _wait_for(lambda: broker.is_peer_connected)

            _, other_writer = await asyncio.open_unix_connection(str(socket_path))
            other_writer.transport.abort()
            await asyncio.sleep(0.05)

            assert broker.is_peer_connected
            writer.close()
            await broker.terminate()
            await asyncio.wait_for(server, timeout=2.0)

        asyncio.run(scenario())
        assert unhandled == []
