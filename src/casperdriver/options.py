"""Command-line option collection for the engine executable.

Options are rendered as ``--name=value`` tokens, the form casperjs/phantomjs
accept for engine flags such as ``--proxy`` or ``--ignore-ssl-errors``.

Usage:
    options = OptionCollection()
    options.add_option("proxy", "1.2.3.4:8080")
    options.add_option("ignore-ssl-errors", True)
    options.build()    # "--proxy=1.2.3.4:8080 --ignore-ssl-errors=true"
    options.to_args()  # ["--proxy=1.2.3.4:8080", "--ignore-ssl-errors=true"]
"""

import logging
import shlex
from typing import Any, Dict, List, Mapping, Optional, Sequence

logger = logging.getLogger(__name__)


def _flag_name(name: Any) -> str:
    return str(name).lstrip("-")


def _format_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (list, tuple)):
        return ",".join(_format_value(v) for v in value)
    return str(value)


class OptionCollection:
    """Mapping of engine flag name to value; last write wins."""

    def __init__(self, options: Optional[Mapping[str, Any]] = None):
        self._options: Dict[str, str] = {}
        for name, value in (options or {}).items():
            self.add_option(name, value)

    def add_option(self, name: str, value: Any) -> "OptionCollection":
        """Insert or overwrite an option.

        Args:
            name: Flag name, with or without the leading dashes
            value: str, int, bool, or a sequence (joined with commas).
                ``None`` removes the option.
        """
        name = _flag_name(name)
        if value is None:
            self._options.pop(name, None)
            return self
        self._options[name] = _format_value(value)
        return self

    def remove_option(self, name: str) -> "OptionCollection":
        self._options.pop(_flag_name(name), None)
        return self

    def get(self, name: str) -> Optional[str]:
        return self._options.get(_flag_name(name))

    def __contains__(self, name: object) -> bool:
        return _flag_name(name) in self._options

    def __len__(self) -> int:
        return len(self._options)

    def to_args(self) -> List[str]:
        """Return the options as an argument vector (no shell quoting)."""
        return [f"--{name}={value}" for name, value in self._options.items()]

    def build(self) -> str:
        """Serialize to a shell-safe argument string.

        Each token is quoted with shlex so values containing whitespace or
        shell metacharacters survive as a single argument. Empty collection
        yields an empty string.
        """
        return " ".join(shlex.quote(arg) for arg in self.to_args())

    @staticmethod
    def parse(option_string: str) -> Sequence[str]:
        """Split a string produced by build() back into arguments."""
        return shlex.split(option_string) if option_string else []
