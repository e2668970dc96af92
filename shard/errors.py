class VectorError(Exception):
    """Base class for every error raised by the store and the ranking engine."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message
        self.query_id: str | None = None

    def __str__(self):
        if self.query_id is not None:
            return f"search failed for query {self.query_id}: {self.message}"
        return self.message


class UnsupportedTypeError(VectorError):
    pass


class EmptyVectorError(VectorError):
    def __init__(self, message: str = "vector data cannot be empty"):
        super().__init__(message)


class DimensionMismatchError(VectorError):
    def __init__(self, expected: int, actual: int, message: str | None = None):
        super().__init__(message or f"query vector dimension {expected} does not match stored vector dimension {actual}")
        self.expected = expected
        self.actual = actual


class NonFiniteValueError(VectorError):
    pass


class InvalidVectorIdError(VectorError):
    def __init__(self, message: str = "vector ID cannot be empty"):
        super().__init__(message)


class VectorNotFoundError(VectorError):
    def __init__(self, vector_id: str):
        super().__init__(f"vector with ID {vector_id} not found")
        self.vector_id = vector_id


class EmptyBatchError(VectorError):
    def __init__(self, message: str = "no vectors provided"):
        super().__init__(message)
