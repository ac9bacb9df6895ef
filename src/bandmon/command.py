"""
Run the user's command when the band changes
"""
import logging
import subprocess
from typing import Optional

from bandmon import BandmonError

logger = logging.getLogger(__name__)


class NotifyError(BandmonError):
    """The band change command could not be run or failed"""


class CommandNotifier:
    """
    Run `command <band>` and wait for it to finish.

    The command's stdout/stderr go straight to ours. timeout is None by
    default, so a command that never exits blocks the monitor.
    """

    def __init__(self, command: str, timeout: Optional[float] = None):
        self.command = command
        self.timeout = timeout

    def __repr__(self):
        return f"CommandNotifier({self.command!r}, timeout={self.timeout!r})"

    def __call__(self, band: str) -> None:
        args = [self.command, band]
        logger.debug(f"Running {args}")
        try:
            subprocess.run(args, check=True, timeout=self.timeout)
        except subprocess.CalledProcessError as e:
            raise NotifyError(f"{self.command} exited with status {e.returncode}") from e
        except subprocess.TimeoutExpired as e:
            raise NotifyError(f"{self.command} did not finish within {self.timeout}s") from e
        except OSError as e:
            raise NotifyError(f"cannot run {self.command}: {e}") from e
