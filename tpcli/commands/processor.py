import re
from dataclasses import dataclass
from typing import Any, Callable, Pattern, Union


class CommandNotUnderstood(Exception):
    """No registered pattern matched the command string"""


@dataclass
class _Matcher:
    pattern: Pattern[str]
    callback: Callable[[list[str]], Any]


class CommandProcessor:
    """
    Dispatches command strings to callbacks by regular expression.

    Matchers are tried in the order they were added; the first pattern
    found anywhere in the command string wins. The callback receives the
    match groups as a list, full match first.
    """

    def __init__(self):
        self._matchers: list[_Matcher] = []

    def when_command_matches(
        self,
        pattern: Union[str, Pattern[str]],
        callback: Callable[[list[str]], Any],
    ) -> "CommandProcessor":
        if isinstance(pattern, str):
            pattern = re.compile(pattern)

        elif not isinstance(pattern, re.Pattern):
            raise TypeError(
                f"pattern must be a str or compiled regex, not {type(pattern).__name__}"
            )

        self._matchers.append(_Matcher(pattern=pattern, callback=callback))
        return self

    def process_command_string(self, command: str) -> Any:
        for matcher in self._matchers:
            match = matcher.pattern.search(command)

            if match:
                groups = [match.group(0)] + [g or "" for g in match.groups()]
                return matcher.callback(groups)

        raise CommandNotUnderstood("command not understood")

    def __len__(self):
        return len(self._matchers)
