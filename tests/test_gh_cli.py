import sys
import time

import pytest

from github_grid.errors import CLIError
from github_grid.errors import CLITimeoutError
from github_grid.errors import ExecutableNotFoundError
from github_grid.errors import NonZeroExitError
from github_grid.gh_cli import GitHubCLI


pytestmark = pytest.mark.anyio


async def test_run_returns_stdout() -> None:
    cli = GitHubCLI(executable=sys.executable, timeout_seconds=10)

    output = await cli.run("-c", "print('octocat')")

    assert output.strip() == "octocat"


async def test_run_raises_with_stderr_detail() -> None:
    cli = GitHubCLI(executable=sys.executable, timeout_seconds=10)

    with pytest.raises(NonZeroExitError) as exc_info:
        await cli.run(
            "-c", "import sys; print('ignored'); sys.stderr.write('bad'); sys.exit(3)"
        )

    assert exc_info.value.returncode == 3
    assert exc_info.value.detail == "bad"


async def test_run_falls_back_to_stdout_when_stderr_empty() -> None:
    cli = GitHubCLI(executable=sys.executable, timeout_seconds=10)

    with pytest.raises(NonZeroExitError) as exc_info:
        await cli.run("-c", "import sys; print('gh: Not Found'); sys.exit(1)")

    assert exc_info.value.detail == "gh: Not Found"


async def test_run_raises_when_executable_missing() -> None:
    cli = GitHubCLI(executable="gh-executable-that-does-not-exist")

    with pytest.raises(ExecutableNotFoundError):
        await cli.run("api", "user")


async def test_run_times_out_and_kills_process() -> None:
    cli = GitHubCLI(executable=sys.executable, timeout_seconds=0.5)

    started = time.monotonic()
    with pytest.raises(CLITimeoutError) as exc_info:
        await cli.run("-c", "import time; time.sleep(30)")

    assert time.monotonic() - started < 10
    assert isinstance(exc_info.value, TimeoutError)


async def test_run_reports_executable_that_cannot_start(tmp_path) -> None:
    script = tmp_path / "gh"
    script.write_text("#!/bin/sh\necho octocat\n")
    script.chmod(0o644)
    cli = GitHubCLI(executable=str(script))

    with pytest.raises(CLIError) as exc_info:
        await cli.run("api", "user")

    assert not isinstance(exc_info.value, ExecutableNotFoundError)
    assert isinstance(exc_info.value.__cause__, PermissionError)
