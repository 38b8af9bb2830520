class GitHubGridError(Exception):
    """Base class for every failure raised by the contribution pipeline."""


class CLIError(GitHubGridError):
    """Raised when the GitHub CLI invocation itself fails."""


class ExecutableNotFoundError(CLIError):
    """Raised when the GitHub CLI executable does not exist."""


class CLITimeoutError(CLIError, TimeoutError):
    """Raised when the GitHub CLI does not finish before the deadline."""


class NonZeroExitError(CLIError):
    """Raised when the GitHub CLI exits with a failure status."""

    def __init__(self, returncode: int, detail: str) -> None:
        super().__init__(f"gh exited with status {returncode}: {detail}")
        self.returncode = returncode
        self.detail = detail


class AuthenticationError(GitHubGridError):
    """Raised when the authenticated GitHub user cannot be resolved."""


class InvalidIdentifierError(GitHubGridError, ValueError):
    """Raised when a GitHub username does not match the login grammar."""


class MalformedResponseError(GitHubGridError, ValueError):
    """Raised when a GitHub response lacks the expected structure."""
