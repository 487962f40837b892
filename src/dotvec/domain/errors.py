from __future__ import annotations


class VectorStoreError(Exception):
    """Base error for the vector store."""


class InvalidDimension(VectorStoreError):
    pass


class DimensionMismatch(VectorStoreError):
    """
    A vector's length disagrees with the configured dimension.
    """

    def __init__(self, message: str, *, expected: int, actual: int) -> None:
        super().__init__(message)
        self.expected = expected
        self.actual = actual


class NotConnected(VectorStoreError):
    pass


class PersistenceFailure(VectorStoreError):
    """
    The backing store rejected a read or write. The underlying exception is kept on `cause`.
    """

    def __init__(self, message: str, *, cause: BaseException | None = None) -> None:
        super().__init__(message)
        self.cause = cause


class EmbeddingError(VectorStoreError):
    pass
