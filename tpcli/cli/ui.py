from __future__ import annotations
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from tpcli.core.runtime import RuntimeContext

import asyncio
import time
from datetime import datetime

from prompt_toolkit.layout import Layout, WindowAlign
from prompt_toolkit.layout.containers import HSplit, Window
from prompt_toolkit.layout.controls import FormattedTextControl
from prompt_toolkit.widgets import Frame, TextArea
from prompt_toolkit.document import Document
from prompt_toolkit.application import Application

from tpcli.ui.log_buffer import LogBuffer, general_buffer, error_buffer, history_buffer
from tpcli.ui.panels import PanelKind
from tpcli.core.config import settings
from tpcli.utils.history import HistoryNavigator

from .keybindings import build_keybindings

PANEL_TITLES = {
    PanelKind.OUTPUT: "Output",
    PanelKind.ERROR: "Errors",
    PanelKind.HISTORY: "Command history",
}

PANEL_BUFFERS = {
    PanelKind.OUTPUT: general_buffer,
    PanelKind.ERROR: error_buffer,
    PanelKind.HISTORY: history_buffer,
}


class TitleBar:
    def __init__(self):
        self.text = f"00:00:00 | {settings.app_name} v{settings.version} | no peer"
        self.control = FormattedTextControl(self.get_text, focusable=False)

    def get_text(self):
        return [("class:title", f" {self.text} ")]

    def update(self, peer_connected: bool):
        clock = datetime.now().strftime("%H:%M:%S")
        peer = "peer connected" if peer_connected else "no peer"
        self.text = f"{clock} | {settings.app_name} v{settings.version} | {peer}"


class OutputPanel:
    """Read-only, scrollable text area mirroring one LogBuffer"""

    def __init__(self, kind: PanelKind, source: LogBuffer):
        self.kind = kind
        self.source = source
        self.last_snapshot = ""

        self.text_area = TextArea(
            text="",
            scrollbar=True,
            focusable=True,
            wrap_lines=True,
            read_only=True,
            multiline=True
        )
        self.container = Frame(self.text_area, title=PANEL_TITLES[kind])

    def refresh(self, force_scroll: bool = False) -> bool:
        snapshot = self.source.get_text()
        if snapshot == self.last_snapshot:
            return False

        buf = self.text_area.buffer
        doc = buf.document

        at_bottom = doc.cursor_position >= max(len(doc.text) - 5, 0)

        if force_scroll or at_bottom:
            cursor = len(snapshot)
        else:
            cursor = doc.cursor_position

        buf.set_document(
            Document(
                snapshot,
                cursor_position=min(cursor, len(snapshot))
            ),
            bypass_readonly=True
        )

        self.last_snapshot = snapshot
        return True


class CLIApp:
    def __init__(self, ctx: RuntimeContext):
        ctx.app_cli = self
        self.ctx = ctx

        # command history (Up/Down in the input field)
        self.history = HistoryNavigator(ctx.history_max_entries)
        self.prompt_text = settings.prompt + " "

        # Widgets
        self.panels: dict[PanelKind, OutputPanel] = {}
        for kind in ctx.panel_order:
            if kind is not PanelKind.COMMAND:
                self.panels[kind] = OutputPanel(kind, PANEL_BUFFERS[kind])

        self.input_field = TextArea(
            height=1,
            prompt=lambda: self.prompt_text,
            multiline=False,
        )

        # Title bar
        self.title_bar = TitleBar()
        self.title_bar_widget = Window(
            height=1,
            content=self.title_bar.control,
            style="reverse",
            align=WindowAlign.CENTER
        )

        # panels top to bottom, in the configured stacking order
        stacked = []
        self.focus_order = []
        for kind in ctx.panel_order:
            if kind is PanelKind.COMMAND:
                stacked.append(Frame(self.input_field))
                self.focus_order.append(self.input_field)
            else:
                stacked.append(self.panels[kind].container)
                self.focus_order.append(self.panels[kind].text_area)

        self.layout = Layout(
            HSplit([self.title_bar_widget, *stacked]),
            focused_element=self.input_field
        )

        # Application
        kb = build_keybindings(self)
        self.app = Application(
            layout=self.layout,
            key_bindings=kb,
            mouse_support=True,
            full_screen=True
        )

    # --------------------------------------------------
    # Command entry panel
    # --------------------------------------------------

    @property
    def command_text(self) -> str:
        return self.input_field.text

    def replace_command_string(self, text: str):
        self.input_field.buffer.set_document(Document(text, cursor_position=len(text)))

    def clear_command_text(self):
        self.replace_command_string("")

    def set_prompt(self, text: str):
        self.prompt_text = text + " "

    def submit_command(self) -> str:
        """Take the entered text, record it in history and clear the field"""
        text = self.input_field.text
        self.clear_command_text()

        if not text.strip():
            return ""

        self.history.submit(text)
        if PanelKind.HISTORY in self.panels:
            history_buffer.write(text)

        return text.strip(" \n")

    def history_up(self):
        self.replace_command_string(self.history.up())

    def history_down(self):
        self.replace_command_string(self.history.down())

    # --------------------------------------------------
    # Output panels
    # --------------------------------------------------

    def add_to_general_output(self, text: str):
        general_buffer.write(text)

    def add_to_error_output(self, text: str):
        # with the history panel in place of the error panel errors share the output panel
        if PanelKind.ERROR in self.panels:
            error_buffer.write(text)
        else:
            general_buffer.write(text)

    # --------------------------------------------------
    # Focus
    # --------------------------------------------------

    def focus_next(self, step: int = 1):
        current = self.app.layout.current_control
        index = 0
        for i, widget in enumerate(self.focus_order):
            if widget.control is current:
                index = i
                break

        target = self.focus_order[(index + step) % len(self.focus_order)]
        self.app.layout.focus(target)

    def focus_previous(self):
        self.focus_next(step=-1)

    def scroll_output(self, lines: int):
        """Scroll the focused output panel, or the general output while typing"""
        buf = self.app.current_buffer
        if buf is self.input_field.buffer:
            panel = self.panels.get(PanelKind.OUTPUT)
            if panel is None:
                return
            buf = panel.text_area.buffer

        if lines < 0:
            buf.cursor_up(count=-lines)
        else:
            buf.cursor_down(count=lines)

    def exit(self):
        if self.app.is_running:
            self.app.exit()

    # --------------------------------------------------
    # UI Update Loop
    # --------------------------------------------------

    def refresh_panels(self) -> bool:
        force = self.ctx.state.get("force_scroll", False)
        changed = False

        for panel in self.panels.values():
            changed = panel.refresh(force_scroll=force) or changed

        self.ctx.state["force_scroll"] = False
        return changed

    async def update_ui(self, title_sleep=1.0, main_sleep=0.2):
        title_timer = 0.0

        while True:
            now = time.monotonic()

            if now - title_timer >= title_sleep:
                broker = self.ctx.broker
                self.title_bar.update(bool(broker and broker.is_peer_connected))
                title_timer = now

            self.refresh_panels()
            self.app.invalidate()
            await asyncio.sleep(main_sleep)
