"""
Exceptions for the semantic search core.

Only DimensionMismatch escapes to callers. The provider errors are raised
internally by embedding providers and recovered inside VectorCodec.
"""


class SemanticSearchError(Exception):
    """Base exception for all semantic search errors."""
    pass


class ProviderUnavailable(SemanticSearchError):
    """
    Error communicating with the text-generation provider or vector store.

    Raised when:
    - Provider is unreachable
    - Request times out
    - Provider returns an error response (including rate limiting)
    """

    def __init__(self, message: str, provider: str = None, status_code: int = None):
        super().__init__(message)
        self.provider = provider
        self.status_code = status_code

    @property
    def is_rate_limited(self) -> bool:
        return self.status_code == 429


class MalformedEmbeddingResponse(SemanticSearchError):
    """
    Provider replied, but the reply is not a usable embedding.

    Raised when:
    - Number of parsed components differs from the configured dimension
    - A component is not a finite number
    """

    def __init__(self, message: str, parsed_count: int = None):
        super().__init__(message)
        self.parsed_count = parsed_count


class DimensionMismatch(SemanticSearchError, ValueError):
    """Two vectors of different length were compared."""

    def __init__(self, left: int, right: int):
        super().__init__(f"Vectors must be of same length (got {left} and {right})")
        self.left = left
        self.right = right
