"""Errors raised by sandbox providers and handles."""

from ..utils.retry import NonRetryableError


class SandboxUnavailableError(NonRetryableError):
    """The sandbox is unknown to the provider or has expired.

    Expired sandboxes are never recreated under the same id; a new run has to
    acquire a fresh one.
    """

    def __init__(self, sandbox_id: str, reason: str = "not found or expired"):
        self.sandbox_id = sandbox_id
        self.reason = reason
        super().__init__(f"Sandbox {sandbox_id} is unavailable: {reason}")


class CommandFailedError(Exception):
    """A command ran in the sandbox but exited with a non-zero status."""

    def __init__(
        self,
        exit_code: int,
        stdout: str = "",
        stderr: str = "",
        error: str | None = None,
    ):
        self.exit_code = exit_code
        self.stdout = stdout
        self.stderr = stderr
        self.error = error
        message = f"Command exited with code {exit_code}"
        if error:
            message += f" and error:\n{error}"
        super().__init__(message)
