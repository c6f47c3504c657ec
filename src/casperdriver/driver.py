"""Driver: the fluent façade over script assembly, options and execution.

Usage:
    from casperdriver import Driver

    result = (
        Driver()
        .set_user_agent("Mozilla/5.0 (X11; Linux x86_64)")
        .start("https://example.com")
        .wait_for_selector("#main", 5000)
        .run()
    )
    if result.has_timeout:
        ...
    print(result.current_url)
    print(result.page_content)
"""

import logging
from typing import Any, Optional

from .config import Settings, get_settings
from .options import OptionCollection
from .output import ExecutionResult, OutputParser
from .runner import ProcessRunner
from .script import CLOSING, ScriptAssembler

logger = logging.getLogger(__name__)


class Driver(ScriptAssembler):
    """Builds a CasperJS script and runs it through the engine.

    The engine executable is resolved on construction; a missing executable
    raises ConfigurationError before any script is built. Instances are not
    safe for concurrent mutation; use one Driver per concurrent run.
    """

    def __init__(
        self,
        command: Optional[str] = None,
        settings: Optional[Settings] = None,
        runner: Optional[ProcessRunner] = None,
        parser: Optional[OutputParser] = None,
    ):
        """Initialize the driver.

        Args:
            command: Engine executable (default from settings, ``casperjs``)
            settings: Settings instance (loaded from the environment if omitted)
            runner: Pre-built ProcessRunner; ``command``/``settings`` are then unused
            parser: Output parser (default OutputParser())
        """
        self._runner = runner or ProcessRunner(command, settings or get_settings())
        super().__init__()
        self._options = OptionCollection()
        self._parser = parser or OutputParser()

    @property
    def command(self) -> str:
        return self._runner.command

    @property
    def options(self) -> OptionCollection:
        return self._options

    @property
    def option_string(self) -> str:
        return self._options.build()

    def add_option(self, name: str, value: Any) -> "Driver":
        self._options.add_option(name, value)
        return self

    def use_proxy(self, proxy: str) -> "Driver":
        """Route engine traffic through ``proxy`` (``host:port``)."""
        return self.add_option("proxy", proxy)

    def build_script(self) -> str:
        """The finalized script: current fragments plus the closing fragment."""
        return self.get_script() + CLOSING

    def run(self) -> ExecutionResult:
        """Execute the script and parse the engine output.

        Blocks until the engine exits. There is no retry; rebuild and call
        again if needed.

        Raises:
            ResourceError: If the transient script cannot be written
            InvocationError: If the engine process cannot be started
        """
        logger.info(f"Running {len(self.fragments) - 1} script step(s) with {self.command}")
        process = self._runner.run(self.build_script(), self.option_string)
        result = self._parser.parse(
            process.lines,
            return_code=process.returncode,
            stderr=process.stderr,
        )
        if result.current_url is None:
            logger.warning("Engine output had no CURRENT_URL line; the run did not complete")
        return result
