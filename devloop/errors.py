from __future__ import annotations


class OrchestratorError(RuntimeError):
    """Base class for session-fatal errors."""


class MissingRepositoryError(OrchestratorError):
    pass


class OracleResponseError(OrchestratorError):
    """The oracle returned nothing at a point where the session cannot continue."""


class PlanningError(OrchestratorError):
    pass


class VersionControlError(OrchestratorError):
    pass


class CommandTimeoutError(OrchestratorError):
    def __init__(self, command: str, timeout: float) -> None:
        super().__init__(f"Command timed out after {timeout:g}s: {command}")
        self.command = command
        self.timeout = timeout
