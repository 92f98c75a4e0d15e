"""Structured error types for the diagnostic pipeline."""

from typing import Optional


class WhatError(Exception):
    """Base error for all pipeline operations."""
    pass


class MissingEnvironmentError(WhatError):
    """A required environment variable or execution context is absent."""

    def __init__(self, what: str, hint: str = ""):
        self.what = what
        message = f"{what} is not available"
        if hint:
            message = f"{message}: {hint}"
        super().__init__(message)


class UnsupportedShellError(WhatError):
    """Raised when the prompt of the active shell cannot be obtained."""

    def __init__(self, shell: str):
        self.shell = shell
        super().__init__(f"unsupported shell to get prompt from `{shell}`")


class ProcessError(WhatError):
    """A subprocess failed to spawn or exited with an unexpected status."""

    def __init__(self, program: str, message: str, returncode: Optional[int] = None):
        self.program = program
        self.returncode = returncode
        super().__init__(f"{program}: {message}")


class EmptyCaptureError(WhatError):
    """Nothing was captured, so there is nothing to diagnose."""

    def __init__(self, message: str = "couldn't capture anything from the terminal"):
        super().__init__(message)


class ProtocolError(WhatError):
    """Malformed or unexpected payload on the completion event stream."""
    pass


class RemoteServiceError(WhatError):
    """The completion endpoint answered with an error status."""

    def __init__(self, status: Optional[int], message: str):
        self.status = status
        self.message = message
        if status is None:
            super().__init__(message)
        else:
            super().__init__(f"[{status}] {message}")


class ConfigurationError(WhatError):
    """Missing or unparseable credential configuration."""
    pass
