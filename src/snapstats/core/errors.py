"""Exception hierarchy for snapstats.

Data-quality problems (unparseable payloads, duplicate keys, unknown
statistics) are logged and absorbed. Only the conditions below are raised.
"""


class SnapstatsError(Exception):
    """Base class for all snapstats errors."""


class ConfigurationError(SnapstatsError):
    """Invalid hosts, ports, parallelism or filter settings."""


class SnapshotError(SnapstatsError):
    """Base class for snapshot store failures."""


class SnapshotNotFoundError(SnapshotError):
    """A snapshot number, or a label within a snapshot, does not exist."""

    def __init__(self, number: int, label: str | None = None) -> None:
        self.number = number
        self.label = label
        if label is None:
            message = f"Unable to find snapshot number: {number}"
        else:
            message = f"Unable to find '{label}' data in snapshot number: {number}"
        super().__init__(message)


class SnapshotStorageError(SnapshotError):
    """The snapshot store cannot be created, opened or written."""


class DiffStateError(SnapstatsError):
    """A diff was driven out of order (see TwoPhaseDiff)."""
