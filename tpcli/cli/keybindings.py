from __future__ import annotations
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .ui import CLIApp

import asyncio
from prompt_toolkit.filters import Condition
from prompt_toolkit.key_binding import KeyBindings
from tpcli.commands.commands import handle_command
from tpcli.core.lifecycle import graceful_shutdown


def build_keybindings(app: CLIApp):
    kb = KeyBindings()

    input_focused = Condition(lambda: app.app.layout.has_focus(app.input_field))

    @kb.add("enter", filter=input_focused)
    def _(event):
        text = app.submit_command()

        if not text:
            return

        asyncio.create_task(
            handle_command(text=text, ctx=app.ctx)
        )

    # readline-style history
    @kb.add("up", filter=input_focused)
    def _(event):
        app.history_up()

    @kb.add("down", filter=input_focused)
    def _(event):
        app.history_down()

    # panel focus cycling, output panels scroll with the arrow keys
    @kb.add("tab")
    def _(event):
        app.focus_next()

    @kb.add("s-tab")
    def _(event):
        app.focus_previous()

    @kb.add("pageup")
    def _(event):
        app.scroll_output(-20)

    @kb.add("pagedown")
    def _(event):
        app.scroll_output(20)

    @kb.add("escape", eager=True)
    @kb.add("c-q")
    @kb.add("c-c")
    def _(event):
        asyncio.create_task(graceful_shutdown(ctx=app.ctx, force=True))

    return kb
