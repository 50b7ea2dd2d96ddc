from enum import Enum


class PanelOrderError(ValueError):
    """Invalid panel stacking order"""


class PanelKind(Enum):
    OUTPUT = "o"
    ERROR = "e"
    HISTORY = "h"
    COMMAND = "c"


def parse_panel_order(text: str) -> list[PanelKind]:
    """
    Parse a stacking order such as 'oec' (top to bottom).

    o = general output, e = error output, h = command history, c = command entry.
    Exactly one of 'e' or 'h' is allowed, since they share the third panel slot.
    """
    if len(text) != 3:
        raise PanelOrderError("order must be exactly three letters")

    order: list[PanelKind] = []
    for letter in text:
        try:
            kind = PanelKind(letter)
        except ValueError:
            raise PanelOrderError("in order, only 'o', 'h', 'e', and 'c' are allowed") from None

        if kind in order:
            raise PanelOrderError("in order, a single letter cannot be provided more than once")

        order.append(kind)

    if PanelKind.ERROR in order and PanelKind.HISTORY in order:
        raise PanelOrderError("order must have exactly one of 'h' or 'e', but cannot have both")

    # three distinct letters without both 'e' and 'h' always include 'o' and 'c'
    return order


def uses_history_panel(order: list[PanelKind]) -> bool:
    return PanelKind.HISTORY in order
