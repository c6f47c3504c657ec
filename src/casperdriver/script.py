"""CasperJS script assembly.

ScriptAssembler translates automation intents into an ordered list of script
fragments. Nothing is executed here; fragments are emitted in call order and
the engine applies its own step queueing when the script runs.

Usage:
    assembler = ScriptAssembler()
    (assembler
        .set_viewport(1280, 720)
        .start("https://example.com")
        .wait_for_selector("#content", 5000)
        .click("a.next"))
    print(assembler.get_script())
"""

import json
import logging
from pathlib import Path
from typing import Any, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

from .escaping import js_int, js_string, js_value
from .output import OutputTag

logger = logging.getLogger(__name__)

PREAMBLE = """
var casper = require('casper').create({
  verbose: true,
  logLevel: 'debug',
  colorizerType: 'Dummy'
});

"""

# Emits the final URL and the HTML (JSON-encoded so it stays on one line)
CLOSING = f"""
casper.then(function() {{
    this.echo('{OutputTag.CURRENT_URL.value}' + this.getCurrentUrl());
    this.echo('{OutputTag.PAGE_CONTENT.value}' + JSON.stringify(this.getHTML()));
}});
casper.run();
"""

# Never forwarded: the engine cannot decode compressed bodies
SUPPRESSED_HEADERS = frozenset({"accept-encoding"})

CookieRecord = Mapping[str, Any]
HeaderValue = Union[str, Sequence[str]]


class ScriptAssembler:
    """Accumulates CasperJS fragments; every builder returns ``self``."""

    def __init__(self) -> None:
        self._fragments: List[str] = [PREAMBLE]

    @property
    def fragments(self) -> Tuple[str, ...]:
        """Fragments in emission order, preamble first."""
        return tuple(self._fragments)

    def _append(self, fragment: str) -> "ScriptAssembler":
        self._fragments.append(fragment)
        return self

    def start(self, url: str, options: Optional[Mapping[str, Any]] = None) -> "ScriptAssembler":
        """Open ``url`` once the engine has started.

        Args:
            url: Address to navigate to
            options: casper ``open()`` settings (method, data, headers...).
                ``None`` is emitted as ``null``; an empty mapping as ``{}``.
        """
        rendered = js_value(dict(options)) if options is not None else js_value(None)
        return self._append(
            f"""
casper.start().then(function() {{
    this.open({js_string(url)}, {rendered});
}});
"""
        )

    def set_user_agent(self, agent: str) -> "ScriptAssembler":
        return self._append(f"casper.userAgent({js_string(agent)});\n")

    def evaluate(self, code: str) -> "ScriptAssembler":
        """Run ``code`` inside the page context.

        ``code`` is trusted script text and is inserted verbatim.
        """
        return self._append(
            f"""
casper.then(function() {{
    casper.evaluate(function() {{
        {code}
    }});
}});
"""
        )

    def wait_for_selector(self, selector: str, timeout_ms: int) -> "ScriptAssembler":
        """Wait up to ``timeout_ms`` for ``selector``; emit a TIMEOUT line on expiry."""
        timeout = js_int(timeout_ms, "timeout_ms")
        literal = js_string(selector)
        return self._append(
            f"""
casper.waitForSelector(
    {literal},
    function () {{
        this.echo('found selector ' + JSON.stringify({literal}));
    }},
    function () {{
        this.echo('{OutputTag.TIMEOUT.value}' + JSON.stringify({literal}) + ' not found after {timeout} ms');
    }},
    {timeout}
);
"""
        )

    def set_viewport(self, width: int, height: int) -> "ScriptAssembler":
        w = js_int(width, "width", minimum=1)
        h = js_int(height, "height", minimum=1)
        return self._append(
            f"""
casper.then(function () {{
    this.viewport({w}, {h});
}});
"""
        )

    def wait(self, timeout_ms: int) -> "ScriptAssembler":
        timeout = js_int(timeout_ms, "timeout_ms")
        return self._append(
            f"""
casper.wait(
    {timeout},
    function () {{
        this.echo('{OutputTag.TIMEOUT.value}after waiting {timeout} ms');
    }}
);
"""
        )

    def click(self, selector: str) -> "ScriptAssembler":
        return self._append(
            f"""
casper.then(function() {{
    this.click({js_string(selector)});
}});
"""
        )

    def set_accept_language(self, languages: Union[str, Sequence[str]]) -> "ScriptAssembler":
        return self.set_headers({"Accept-Language": languages})

    def set_cookies(
        self, cookies: Union[Sequence[CookieRecord], CookieRecord, None]
    ) -> "ScriptAssembler":
        """Replace the engine's cookie jar.

        An empty cookie set leaves the script untouched. A single mapping is
        treated as a one-record set.
        """
        if not cookies:
            logger.debug("No cookies supplied; cookie jar left untouched")
            return self
        if isinstance(cookies, Mapping):
            records = [dict(cookies)]
        else:
            records = [dict(c) for c in cookies]
        return self._append(f"\nphantom.cookies = {js_value(records)};\n")

    def load_cookies(self, path: Union[str, Path]) -> "ScriptAssembler":
        """Load a JSON cookie file and pass it to set_cookies().

        A missing, unreadable, malformed or empty file is a no-op.
        """
        path = Path(path)
        try:
            if not path.is_file():
                logger.debug(f"Cookie file {path} does not exist; skipping")
                return self
            cookies = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError) as e:
            logger.warning(f"Could not read cookie file {path}: {e}")
            return self
        except json.JSONDecodeError as e:
            logger.warning(f"Cookie file {path} is not valid JSON: {e}")
            return self

        if not cookies:
            logger.debug(f"Cookie file {path} is empty; skipping")
            return self
        if not isinstance(cookies, (list, dict)):
            logger.warning(f"Cookie file {path} does not hold a cookie list; skipping")
            return self
        if isinstance(cookies, list) and not all(isinstance(c, dict) for c in cookies):
            logger.warning(f"Cookie file {path} contains non-object entries; skipping")
            return self

        return self.set_cookies(cookies)

    def save_cookies(self, path: Union[str, Path]) -> "ScriptAssembler":
        """Write the live cookie jar to ``path`` on the engine's filesystem."""
        return self._append(
            f"""
casper.then(function() {{
    var fs = require('fs');
    var cookies = JSON.stringify(phantom.cookies);
    fs.write({js_string(str(path))}, cookies, 'w');
}});
"""
        )

    def set_headers(self, headers: Mapping[str, HeaderValue]) -> "ScriptAssembler":
        """Replace the custom request headers.

        List values are joined with commas. Accept-Encoding is always dropped.
        An empty mapping still emits an (empty) header object.
        """
        lines = []
        for name, value in headers.items():
            if str(name).lower() in SUPPRESSED_HEADERS:
                logger.debug(f"Dropping unsupported header {name}")
                continue
            if not isinstance(value, str) and isinstance(value, Iterable):
                value = ",".join(str(v) for v in value)
            lines.append(f"    {js_string(name)}: {js_string(value)}")

        body = ",\n".join(lines) + "\n" if lines else ""
        return self._append(f"\ncasper.page.customHeaders = {{\n{body}}};\n")

    def append_to_script(self, code: str) -> "ScriptAssembler":
        """Append raw script text, uninterpreted."""
        return self._append(f"{code}\n")

    def get_script(self) -> str:
        """Current script text, without the closing fragment."""
        return "".join(self._fragments)
