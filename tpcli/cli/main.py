from __future__ import annotations
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from tpcli.core.runtime import RuntimeContext

import asyncio
from tpcli.core.logger import get_logger, route_errors_to_general_panel
from tpcli.core.config import settings
from tpcli.core.lifecycle import graceful_shutdown
from tpcli.peer.broker import PeerCommunicationBroker
from tpcli.peer.messages import PeerMessage, PeerMessageType
from .ui import CLIApp

logger = get_logger(__name__)


def wire_broker(broker: PeerCommunicationBroker, app: CLIApp) -> PeerCommunicationBroker:
    """Route broker events and peer messages into the UI panels"""

    def on_message(_broker, message: PeerMessage):
        if message.type is PeerMessageType.GENERAL_OUTPUT:
            app.add_to_general_output(message.message)

        elif message.type is PeerMessageType.ERROR_OUTPUT:
            app.add_to_error_output(message.message)

        elif message.type is PeerMessageType.INPUT_COMMAND_REPLACEMENT:
            app.replace_command_string(message.message)

        elif message.type is PeerMessageType.PROTOCOL_ERROR:
            app.add_to_error_output(f"Peer reports protocol error: {message.message}")

    return (
        broker
        .on_incoming_peer_accept(lambda _b, peer: logger.info(f"Incoming connection from ({peer})"))
        .on_peer_closure(lambda _b, peer: logger.info(f"Connection closed for peer ({peer})"))
        .on_general_communication_error(lambda _b, err: logger.error(f"General error: {err}"))
        .on_peer_communication_error(
            lambda _b, peer, err: logger.error(f"Peer communication error with peer ({peer}): {err}")
        )
        .on_message(on_message)
    )


async def run_cli(ctx: RuntimeContext):
    app = CLIApp(ctx)

    if ctx.uses_history_panel():
        route_errors_to_general_panel()

    logger.info(f"Starting {settings.app_name} v{settings.version}")
    logger.info("Type '/help'")

    if ctx.broker:
        wire_broker(ctx.broker, app)
        ctx.scheduler.spawn("broker", ctx.broker.start_listening())

    updater = asyncio.create_task(app.update_ui())

    try:
        await app.app.run_async()

    finally:
        updater.cancel()

        # ui closed without going through shutdown (e.g. terminal hangup)
        if not ctx.state.get("shutdown_in_progress"):
            await graceful_shutdown(ctx=ctx, force=True)

    return 0
