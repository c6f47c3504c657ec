"""Parsing of tagged engine output into an ExecutionResult.

The generated script communicates with the orchestrating process through
stdout lines carrying one of three fixed prefixes:

    CURRENT_URL:<url>
    PAGE_CONTENT:<json-encoded html>   (raw html is accepted too)
    TIMEOUT:"<selector>" not found after <N> ms   (json-encoded selector)
    TIMEOUT:after waiting <N> ms

Every other line is kept as an untagged diagnostic.
"""

import json
import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, List, Optional, Tuple

logger = logging.getLogger(__name__)


class OutputTag(str, Enum):
    """Line prefixes of the output protocol. Must match byte-for-byte."""

    CURRENT_URL = "CURRENT_URL:"
    PAGE_CONTENT = "PAGE_CONTENT:"
    TIMEOUT = "TIMEOUT:"


_TIMEOUT_RE = re.compile(
    r"^(?P<subject>.*?)\s*(?:not\s+found\s+)?after\s+(?:waiting\s+)?(?P<ms>\d+)\s*ms\s*$",
    re.IGNORECASE,
)
_LEGACY_SELECTOR_RE = re.compile(r"^\$\((?P<selector>.*)\)$")


@dataclass(frozen=True)
class TimeoutNotice:
    """A wait or wait_for_selector step that elapsed."""

    raw: str
    timeout_ms: Optional[int] = None
    selector: Optional[str] = None

    def to_dict(self) -> dict:
        return {"selector": self.selector, "timeout_ms": self.timeout_ms, "raw": self.raw}


@dataclass(frozen=True)
class ExecutionResult:
    """Outcome of a single Driver.run() call."""

    output: Tuple[str, ...]
    current_url: Optional[str] = None
    page_content: Optional[str] = None
    timeouts: Tuple[TimeoutNotice, ...] = ()
    diagnostics: Tuple[str, ...] = ()
    return_code: Optional[int] = None
    stderr: str = field(default="", repr=False)

    @property
    def has_timeout(self) -> bool:
        return bool(self.timeouts)

    def to_dict(self) -> dict:
        return {
            "current_url": self.current_url,
            "page_content": self.page_content,
            "timeouts": [t.to_dict() for t in self.timeouts],
            "diagnostics": list(self.diagnostics),
            "return_code": self.return_code,
        }


def _decode_selector(subject: str) -> str:
    legacy = _LEGACY_SELECTOR_RE.match(subject)
    if legacy:
        return legacy.group("selector")
    if subject.startswith('"'):
        try:
            decoded = json.loads(subject)
        except json.JSONDecodeError:
            return subject
        if isinstance(decoded, str):
            return decoded
    return subject


def parse_timeout(payload: str) -> TimeoutNotice:
    """Parse the text following the TIMEOUT tag.

    Accepts ``"<selector>" not found after N ms`` (JSON-encoded selector),
    ``<selector> not found after N ms``, ``<selector> after N ms``,
    ``$(<selector>) not found after N ms`` and ``after waiting N ms``. Text that
    matches none of these is kept as ``raw`` with no structured fields.
    """
    text = payload.strip()
    match = _TIMEOUT_RE.match(text)
    if not match:
        return TimeoutNotice(raw=text)

    subject = _decode_selector(match.group("subject").strip())
    return TimeoutNotice(
        raw=text,
        timeout_ms=int(match.group("ms")),
        selector=subject or None,
    )


def _decode_content(payload: str) -> str:
    if payload.startswith('"'):
        try:
            decoded = json.loads(payload)
        except json.JSONDecodeError:
            logger.debug("PAGE_CONTENT payload looked JSON-encoded but did not decode; keeping raw")
            return payload
        if isinstance(decoded, str):
            return decoded
    return payload


class OutputParser:
    """Classifies captured stdout lines by tag prefix."""

    def parse(
        self,
        lines: Iterable[str],
        return_code: Optional[int] = None,
        stderr: str = "",
    ) -> ExecutionResult:
        """Build an ExecutionResult from the captured lines.

        Duplicate CURRENT_URL/PAGE_CONTENT lines: the last one wins. Missing
        tags are not an error; the run may have stopped before the closing
        step.
        """
        output: List[str] = []
        diagnostics: List[str] = []
        timeouts: List[TimeoutNotice] = []
        current_url: Optional[str] = None
        page_content: Optional[str] = None

        for line in lines:
            line = line.rstrip("\r\n")
            output.append(line)

            if line.startswith(OutputTag.CURRENT_URL.value):
                current_url = line[len(OutputTag.CURRENT_URL.value):].strip()
            elif line.startswith(OutputTag.PAGE_CONTENT.value):
                page_content = _decode_content(line[len(OutputTag.PAGE_CONTENT.value):])
            elif line.startswith(OutputTag.TIMEOUT.value):
                notice = parse_timeout(line[len(OutputTag.TIMEOUT.value):])
                logger.info(f"Engine reported timeout: {notice.raw}")
                timeouts.append(notice)
            else:
                diagnostics.append(line)

        return ExecutionResult(
            output=tuple(output),
            current_url=current_url,
            page_content=page_content,
            timeouts=tuple(timeouts),
            diagnostics=tuple(diagnostics),
            return_code=return_code,
            stderr=stderr,
        )
