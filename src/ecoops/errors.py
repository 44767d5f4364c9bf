"""Exception types raised across the aggregation pipeline."""


class EcoOpsError(Exception):
    """Base exception for eco-ops errors."""
    pass


class ConfigurationError(EcoOpsError):
    """A required credential or endpoint is missing."""
    pass


class UpstreamError(EcoOpsError):
    """A remote data source call failed or timed out."""

    def __init__(self, source: str, reason: str):
        self.source = source
        self.reason = reason
        super().__init__(f"{source}: {reason}")


class StorageError(EcoOpsError):
    """The hour entry store could not be read or written."""
    pass


class CalculationError(EcoOpsError):
    """Stats could not be derived from the given inputs."""
    pass
