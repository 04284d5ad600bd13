"""Benchmark service exception hierarchy."""


class BenchmarkError(Exception):
    """Base exception for all benchmark-related errors."""


class StorageError(BenchmarkError):
    """The data store is unreachable or was lost during a run."""


class StorageUnavailable(StorageError):
    """The data store could not be opened or initialized at startup."""

    def __init__(self, database_path: str, message: str):
        self.database_path = database_path
        super().__init__(f"Database unavailable ({database_path}): {message}")


class OperationFailure(BenchmarkError):
    """A single workload operation failed and is not counted."""

    def __init__(self, operation: str, message: str):
        self.operation = operation
        super().__init__(f"[{operation}] {message}")
