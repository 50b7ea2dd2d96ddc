from __future__ import annotations
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from tpcli.core.runtime import RuntimeContext

from tpcli.core.logger import get_logger
from tpcli.core.config import settings
from tpcli.peer.messages import PeerMessage, PeerMessageType

logger = get_logger(__name__)

async def graceful_shutdown(ctx: RuntimeContext, force=False, grace_period=settings.shutdown_grace_period):
    """
    Graceful lifecycle shutdown manager.

    Tells the peer the user left, closes the broker, gives background
    workers grace_period seconds to finish (skipped with force), cancels
    what is left and finally exits the UI.
    """

    if ctx.state.get("shutdown_in_progress", None):
        logger.debug("shutdown already in progress, returning")
        return

    ctx.state["shutdown_in_progress"] = True
    logger.info("Shutdown initiated")

    # --------------------------------------------------
    # Peer notification
    # --------------------------------------------------

    if ctx.broker:
        await ctx.broker.send_message_to_peer(PeerMessage(PeerMessageType.USER_EXITED, ""))
        await ctx.broker.terminate()

    # --------------------------------------------------
    # Graceful wait phase
    # --------------------------------------------------

    if not force:
        pending = await ctx.scheduler.wait_all(timeout=grace_period)
        if pending:
            logger.warning("Graceful shutdown timeout reached")

    # --------------------------------------------------
    # Force cancel remaining tasks
    # --------------------------------------------------

    for task in ctx.scheduler.running_tasks():
        logger.warning(f"Force cancelling task {task.get_name()}")

    await ctx.scheduler.stop_all(timeout=grace_period)

    # --------------------------------------------------
    # Exit hooks
    # --------------------------------------------------

    if ctx.on_exit:
        try:
            ctx.on_exit()
        except Exception:
            logger.exception("Exit hook failed")

    if ctx.interactive and ctx.app_cli:
        try:
            ctx.app_cli.exit()
        except Exception:
            logger.exception("CLI shutdown failed")

    logger.info("Shutdown completed")
