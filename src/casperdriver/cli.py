"""casperdriver CLI - fetch pages through CasperJS from the command line.

Usage:
    casperdriver fetch https://example.com --wait-for "#main" --timeout 5000
    casperdriver fetch https://example.com --json --save-cookies cookies.json
    casperdriver script https://example.com --click "a.next"
"""

from __future__ import annotations

import json
import logging
import sys
from typing import Callable, Optional, Tuple

import click

from .driver import Driver
from .exceptions import CasperDriverError, ConfigurationError
from .logging_config import configure_logging

logger = logging.getLogger(__name__)


def _parse_viewport(ctx, param, value: Optional[str]) -> Optional[Tuple[int, int]]:
    if value is None:
        return None
    try:
        width, height = (int(part) for part in value.lower().split("x", 1))
    except ValueError:
        raise click.BadParameter("expected WIDTHxHEIGHT, e.g. 1280x720")
    if width <= 0 or height <= 0:
        raise click.BadParameter("width and height must be positive")
    return width, height


def _split_pairs(values: Tuple[str, ...], separator: str, label: str) -> dict:
    pairs = {}
    for item in values:
        if separator not in item:
            raise click.BadParameter(f"expected NAME{separator}VALUE, got {item!r}", param_hint=label)
        name, value = item.split(separator, 1)
        pairs[name.strip()] = value.strip()
    return pairs


_BUILDER_OPTIONS = [
    click.argument("url"),
    click.option("--command", "engine", default=None, help="Engine executable (default: casperjs)"),
    click.option("--user-agent", default=None, help="User-Agent string"),
    click.option("--viewport", callback=_parse_viewport, default=None, help="WIDTHxHEIGHT"),
    click.option("--header", "headers", multiple=True, help="NAME:VALUE (repeatable)"),
    click.option("--accept-language", "languages", multiple=True, help="Language tag (repeatable)"),
    click.option("--load-cookies", type=click.Path(dir_okay=False), default=None, help="Cookie JSON to load"),
    click.option("--save-cookies", type=click.Path(dir_okay=False), default=None, help="Write cookies here after the run"),
    click.option("--wait-for", "wait_for", default=None, help="CSS selector to wait for"),
    click.option("--timeout", type=click.IntRange(min=0), default=5000, show_default=True, help="Timeout for --wait-for (ms)"),
    click.option("--wait", "wait_ms", type=click.IntRange(min=0), default=None, help="Unconditional wait (ms)"),
    click.option("--click", "clicks", multiple=True, help="CSS selector to click (repeatable)"),
    click.option("--proxy", default=None, help="Proxy host:port"),
    click.option("--option", "engine_options", multiple=True, help="Engine flag NAME=VALUE (repeatable)"),
    click.option("--log-level", default=None, help="DEBUG, INFO, WARNING, ERROR"),
]


def builder_options(func: Callable) -> Callable:
    """Options shared by `fetch` and `script`."""
    for decorator in reversed(_BUILDER_OPTIONS):
        func = decorator(func)
    return func


def build_driver(
    url: str,
    engine: Optional[str] = None,
    user_agent: Optional[str] = None,
    viewport: Optional[Tuple[int, int]] = None,
    headers: Tuple[str, ...] = (),
    languages: Tuple[str, ...] = (),
    load_cookies: Optional[str] = None,
    save_cookies: Optional[str] = None,
    wait_for: Optional[str] = None,
    timeout: int = 5000,
    wait_ms: Optional[int] = None,
    clicks: Tuple[str, ...] = (),
    proxy: Optional[str] = None,
    engine_options: Tuple[str, ...] = (),
) -> Driver:
    """Translate CLI flags into driver calls, in a fixed order."""
    driver = Driver(command=engine)

    for name, value in _split_pairs(engine_options, "=", "--option").items():
        driver.add_option(name, value)
    if proxy:
        driver.use_proxy(proxy)

    if load_cookies:
        driver.load_cookies(load_cookies)
    if user_agent:
        driver.set_user_agent(user_agent)
    if headers:
        driver.set_headers(_split_pairs(headers, ":", "--header"))
    if languages:
        driver.set_accept_language(list(languages))
    if viewport:
        driver.set_viewport(*viewport)

    driver.start(url)

    if wait_for:
        driver.wait_for_selector(wait_for, timeout)
    for selector in clicks:
        driver.click(selector)
    if wait_ms is not None:
        driver.wait(wait_ms)
    if save_cookies:
        driver.save_cookies(save_cookies)

    return driver


def _make_driver(kwargs: dict) -> Driver:
    try:
        configure_logging(log_level=kwargs.pop("log_level", None))
    except ValueError as e:
        raise click.BadParameter(str(e), param_hint="--log-level")

    try:
        return build_driver(**kwargs)
    except ConfigurationError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(2)


@click.group()
@click.version_option(package_name="casperdriver", prog_name="casperdriver")
def cli() -> None:
    """casperdriver - run CasperJS automation from Python.

    Run `casperdriver <command> --help` for command-specific help.
    """
    pass


@cli.command(name="fetch")
@builder_options
@click.option("--json", "as_json", is_flag=True, help="Print the full result as JSON")
def fetch(as_json: bool, **kwargs):
    """Open URL in the engine and print the final page HTML."""
    driver = _make_driver(kwargs)

    try:
        result = driver.run()
    except CasperDriverError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        return

    for notice in result.timeouts:
        click.echo(f"timeout: {notice.raw}", err=True)
    if result.page_content is None:
        click.echo("Error: engine produced no page content", err=True)
        sys.exit(1)
    click.echo(result.page_content)


@cli.command(name="script")
@builder_options
def script(**kwargs):
    """Print the generated script without running it."""
    driver = _make_driver(kwargs)
    click.echo(driver.build_script(), nl=False)
    if driver.option_string:
        click.echo(f"// options: {driver.option_string}", err=True)

