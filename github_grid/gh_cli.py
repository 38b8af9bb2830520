import asyncio
import logging

from github_grid.errors import CLIError
from github_grid.errors import CLITimeoutError
from github_grid.errors import ExecutableNotFoundError
from github_grid.errors import NonZeroExitError


logger = logging.getLogger(__name__)


class GitHubCLI:
    """Runs the `gh` executable and returns its standard output.

    Arguments are passed as an argv vector, never through a shell. Every call
    is bounded by `timeout_seconds`; the child process is killed and reaped on
    every exit path, including timeouts and task cancellation.
    """

    def __init__(self, executable: str = "gh", timeout_seconds: float = 30.0) -> None:
        self.executable = executable
        self.timeout_seconds = timeout_seconds

    async def run(self, *args: str) -> str:
        try:
            process = await asyncio.create_subprocess_exec(
                self.executable,
                *args,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except FileNotFoundError as exc:
            raise ExecutableNotFoundError(
                f"GitHub CLI ({self.executable}) not found"
            ) from exc
        except OSError as exc:
            raise CLIError(
                f"GitHub CLI ({self.executable}) could not be started: {exc}"
            ) from exc

        try:
            stdout, stderr = await asyncio.wait_for(
                process.communicate(), timeout=self.timeout_seconds
            )
        except TimeoutError as exc:
            raise CLITimeoutError(
                f"GitHub CLI did not finish within {self.timeout_seconds:g} seconds"
            ) from exc
        finally:
            if process.returncode is None:
                logger.debug("Killing gh process %s", process.pid)
                try:
                    process.kill()
                except ProcessLookupError:
                    pass
                await process.wait()

        output = stdout.decode("utf-8", errors="replace")
        if process.returncode != 0:
            error = stderr.decode("utf-8", errors="replace").strip()
            raise NonZeroExitError(process.returncode, error or output.strip())

        return output
