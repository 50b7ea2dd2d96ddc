from __future__ import annotations
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from tpcli.core.runtime import RuntimeContext

import inspect

from tpcli.commands.processor import CommandProcessor, CommandNotUnderstood
from tpcli.core.lifecycle import graceful_shutdown
from tpcli.core.logger import get_logger
from tpcli.peer.messages import PeerMessage, PeerMessageType
from tpcli.ui.log_buffer import general_buffer, error_buffer, history_buffer

logger = get_logger(__name__)

HELP_TEXT = """Commands:
    /help
        Display this help message.

    /clear [output|error|history]
        Clears a panel (default: output).

    /quit [now], /exit [now]
        Quit the program ('now' skips the grace period).

Anything else is sent to the connected peer.
Up/Down browse previously entered commands, Tab switches panels,
Esc or Ctrl-Q exits."""


# -------------------------
# Command implementations
# -------------------------

async def cmd_help(groups, ctx: RuntimeContext = None):
    logger.info("Showing help...")
    general_buffer.write(HELP_TEXT)


async def cmd_clear(groups, ctx: RuntimeContext = None):
    target = groups[1] or "output"

    buffers = {
        "output": general_buffer,
        "error": error_buffer,
        "history": history_buffer,
    }

    buffers[target].clear()
    logger.debug(f"Cleared {target} panel")  # file log only


async def cmd_quit(groups, ctx: RuntimeContext = None):
    await graceful_shutdown(ctx=ctx, force=groups[1] == "now")


async def relay_to_peer(text: str, ctx: RuntimeContext = None) -> bool:
    if not ctx or not ctx.broker or not ctx.broker.is_peer_connected:
        logger.error("No peer connected, command not sent")
        return False

    sent = await ctx.broker.send_message_to_peer(
        PeerMessage(PeerMessageType.INPUT_COMMAND_RECEIVED, text)
    )

    if not sent:
        logger.error("Could not send command to peer")

    return sent


def build_command_processor(ctx: RuntimeContext = None) -> CommandProcessor:
    return (
        CommandProcessor()
        .when_command_matches(r"^/help$", lambda groups: cmd_help(groups, ctx))
        .when_command_matches(r"^/clear(?:\s+(output|error|history))?$", lambda groups: cmd_clear(groups, ctx))
        .when_command_matches(r"^/(?:quit|exit)(?:\s+(now))?$", lambda groups: cmd_quit(groups, ctx))
    )


# --------------------
# command handler
# --------------------

async def handle_command(text, ctx: RuntimeContext = None):
    text = text.strip()

    if not text:
        return

    processor = build_command_processor(ctx)

    try:
        result = processor.process_command_string(text)
    except CommandNotUnderstood:
        if text.startswith("/"):
            logger.warning("Unknown command, type '/help'")
            return

        await relay_to_peer(text, ctx)
        return

    logger.debug(f"cmd='{text}'")

    if inspect.isawaitable(result):
        await result

    if ctx:
        ctx.state["force_scroll"] = True
