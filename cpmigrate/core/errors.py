"""
Exception types for checkpoint migration.
"""


class CheckpointToolError(Exception):
    """Base class for all checkpoint migration failures."""
    pass


class MalformedRecord(CheckpointToolError):
    """Raised when a checkpoint key or value cannot be decoded."""
    pass


class TopologyMismatch(CheckpointToolError):
    """Raised when the checkpoint topic is missing or not single-partition."""
    pass


class PersistFailure(CheckpointToolError):
    """
    Raised when writing to a file or topic fails midway.

    Attributes:
        written: Number of records persisted before the failure
    """

    def __init__(self, message: str, written: int = 0) -> None:
        super().__init__(message)
        self.written = written


class TransportFailure(CheckpointToolError):
    """Raised when the broker connection or a broker request fails."""
    pass


class ConfigError(CheckpointToolError):
    """Raised when a migration config is incomplete."""
    pass


class ReadFailure(CheckpointToolError):
    """Raised when an input file exists but cannot be read."""
    pass
