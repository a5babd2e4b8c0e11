class DepiBenchError(Exception):
    """Base class for every error raised by depi_bench."""


class RegistrationError(DepiBenchError):
    pass


class RegistrationNotFoundError(DepiBenchError):
    """Raised when a name has no registration in the collection."""

    def __init__(self, name: str, requested_by: str = None):
        self.name = name
        self.requested_by = requested_by
        if requested_by:
            message = f"Failed to locate registration for '{name}' while instantiating '{requested_by}'"
        else:
            message = f"Failed to locate registration for '{name}'"
        super().__init__(message)


class ScopeRequiredError(DepiBenchError):
    pass


class CyclicDependencyError(DepiBenchError):
    pass


class ConfigurationError(DepiBenchError):
    pass


class ActionFailedError(DepiBenchError):
    """An issued request's action raised; the run is aborted."""

    def __init__(self, request_number: int):
        self.request_number = request_number
        super().__init__(f"Action for request {request_number} failed")
