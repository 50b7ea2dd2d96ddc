from __future__ import annotations
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from tpcli.cli.ui import CLIApp
    from tpcli.peer.broker import PeerCommunicationBroker

from dataclasses import dataclass, field
from typing import Callable
from tpcli.core.scheduler import Scheduler
from tpcli.ui.panels import PanelKind

@dataclass(slots=True)
class RuntimeContext:
    interactive: bool = False
    panel_order: list[PanelKind] = field(default_factory=lambda: [PanelKind.OUTPUT, PanelKind.ERROR, PanelKind.COMMAND])
    history_max_entries: int = 200
    app_cli: CLIApp | None = None
    broker: PeerCommunicationBroker | None = None
    on_exit: Callable[[], None] | None = None
    scheduler: Scheduler = field(default_factory=Scheduler)
    state: dict = field(default_factory=dict)

    def uses_history_panel(self) -> bool:
        return PanelKind.HISTORY in self.panel_order
