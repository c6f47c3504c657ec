"""
casperdriver: drive CasperJS from Python.

Builds a CasperJS script through a fluent API, runs it with the ``casperjs``
executable and parses the tagged output into a structured result.

Installation:
    pip install casperdriver   # casperjs and phantomjs must be on PATH

Usage:
    from casperdriver import Driver

    driver = Driver()
    result = driver.start("https://example.com").wait(1000).run()
    print(result.current_url, len(result.page_content or ""))
"""

from .config import Settings, get_settings
from .driver import Driver
from .exceptions import (CasperDriverError, ConfigurationError,
                         InvocationError, ResourceError)
from .options import OptionCollection
from .output import ExecutionResult, OutputParser, OutputTag, TimeoutNotice
from .runner import ProcessOutput, ProcessRunner
from .script import ScriptAssembler

__version__ = "0.1.0"

__all__ = [
    # Driver
    "Driver",
    "ScriptAssembler",
    "OptionCollection",
    # Execution
    "ProcessRunner",
    "ProcessOutput",
    "OutputParser",
    "OutputTag",
    "ExecutionResult",
    "TimeoutNotice",
    # Config
    "Settings",
    "get_settings",
    # Errors
    "CasperDriverError",
    "ConfigurationError",
    "InvocationError",
    "ResourceError",
]
