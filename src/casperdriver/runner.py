"""Execution of a finalized script through the engine executable.

The script is written to a uniquely named transient file, the engine is invoked
as ``<command> <script-path> <options...>``, and stdout is captured line by
line. The transient file is removed on every exit path.

Usage:
    runner = ProcessRunner("casperjs")   # ConfigurationError if not on PATH
    process = runner.run(script_text, "--proxy=1.2.3.4:8080")
    for line in process.lines:
        ...
"""

import logging
import os
import shutil
import subprocess
import tempfile
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, List, Optional, Tuple, Union

from .config import Settings, get_settings
from .exceptions import ConfigurationError, InvocationError, ResourceError
from .options import OptionCollection

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProcessOutput:
    """Raw result of one engine invocation."""

    lines: Tuple[str, ...]
    returncode: int
    command: Tuple[str, ...]
    stderr: str = ""


def resolve_executable(command: str) -> str:
    """Locate ``command`` via PATH (or verify it, if it is a path).

    Raises:
        ConfigurationError: If the command is missing or not executable
    """
    resolved = shutil.which(command)
    if resolved is None:
        raise ConfigurationError(
            f"Unable to execute {command}. Ensure the file exists in $PATH and is executable.",
            command=command,
        )
    return resolved


@contextmanager
def transient_script(
    script: str,
    directory: Optional[Union[str, Path]] = None,
    prefix: str = "casperdriver-",
) -> Iterator[Path]:
    """Write ``script`` to a fresh file and remove it when the block exits.

    Raises:
        ResourceError: If the file cannot be created or written
    """
    try:
        fd, name = tempfile.mkstemp(prefix=prefix, suffix=".js", dir=directory)
    except OSError as e:
        raise ResourceError(f"Could not create transient script file: {e}") from e

    os.close(fd)
    path = Path(name)
    try:
        try:
            path.write_text(script, encoding="utf-8")
        except OSError as e:
            raise ResourceError(f"Could not write script to {path}: {e}", path=str(path)) from e

        yield path
    finally:
        try:
            path.unlink()
        except FileNotFoundError:
            pass
        except OSError as e:
            # Leaks a temp file but must not mask the primary outcome
            logger.warning(f"Failed to remove transient script {path}: {e}")


class ProcessRunner:
    """Runs finalized scripts through the engine executable."""

    def __init__(self, command: Optional[str] = None, settings: Optional[Settings] = None):
        """Resolve the engine executable.

        Args:
            command: Engine executable name or path (defaults to settings.command)
            settings: Settings instance (loaded from the environment if omitted)

        Raises:
            ConfigurationError: If the executable cannot be found
        """
        self._settings = settings or get_settings()
        self.command = command or self._settings.command
        self.executable = resolve_executable(self.command)
        logger.debug(f"Resolved engine {self.command!r} to {self.executable}")

    def build_command(self, script_path: Path, option_string: str = "") -> List[str]:
        return [self.executable, str(script_path), *OptionCollection.parse(option_string)]

    def run(self, script: str, option_string: str = "") -> ProcessOutput:
        """Persist ``script``, execute it and capture stdout.

        A non-zero exit status is recorded on the result, not raised.

        Raises:
            ResourceError: If the transient script cannot be written
            InvocationError: If the process cannot be started
        """
        with transient_script(
            script,
            directory=self._settings.script_dir,
            prefix=self._settings.script_prefix,
        ) as script_path:
            command = self.build_command(script_path, option_string)
            logger.debug(f"Running engine: {' '.join(command)}")

            try:
                process = subprocess.run(
                    command,
                    stdout=subprocess.PIPE,
                    stderr=subprocess.PIPE,
                    encoding="utf-8",
                    errors="replace",
                )
            except OSError as e:
                raise InvocationError(
                    f"Failed to start {self.command}: {e}", command=command
                ) from e

        lines = tuple((process.stdout or "").splitlines())
        stderr = process.stderr or ""
        logger.debug(f"Engine exited with {process.returncode}; captured {len(lines)} lines")
        if stderr:
            logger.debug(f"Engine stderr:\n{stderr}")
        if process.returncode != 0:
            logger.info(f"Engine {self.command} exited with status {process.returncode}")

        return ProcessOutput(
            lines=lines,
            returncode=process.returncode,
            command=tuple(command),
            stderr=stderr,
        )
