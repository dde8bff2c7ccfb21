"""
Embedding providers and the VectorCodec that turns text into fixed-length vectors.

The codec never raises: any provider failure yields the all-zero vector so
callers can fall back to keyword search.
"""

from abc import ABC, abstractmethod
import asyncio
import hashlib
import math
import random
import re
from typing import Optional

import httpx
import ollama

from util.logging import logger
from ..core.exceptions import MalformedEmbeddingResponse, ProviderUnavailable
from .types import EmbeddingVector, zero_vector, is_degraded

EMBEDDING_PROMPT = """Convert the following text into a comma-separated list of exactly {dimension} floating point numbers
representing its embedding vector. Each number must be between -1 and 1.
The numbers should capture the semantic meaning of the text.

Text: "{text}"

Output only the comma-separated numbers without any explanation:"""


class ITextGenerator(ABC):
    """Abstract text-generation capability (an LLM behind some API)."""

    name = "abstract"

    @abstractmethod
    async def generate(self, prompt: str, max_output_tokens: int) -> str:
        """Return generated text. Raises ProviderUnavailable on any provider failure."""
        pass


class OllamaTextGenerator(ITextGenerator):
    """Text generation through an Ollama server."""

    name = "ollama"

    def __init__(self, model_name: str, host: Optional[str] = None, client: Optional[ollama.AsyncClient] = None):
        self.model_name = model_name
        self.client = client or ollama.AsyncClient(host=host)

    async def generate(self, prompt: str, max_output_tokens: int) -> str:
        try:
            response = await self.client.chat(
                model=self.model_name,
                messages=[{'role': 'user', 'content': prompt}],
                options={
                    'num_predict': max_output_tokens,
                    'temperature': 0,
                }
            )
        except ollama.ResponseError as e:
            raise ProviderUnavailable(f"Ollama model error: {e.error}", provider=self.name, status_code=e.status_code) from e
        except (httpx.HTTPError, ConnectionError) as e:
            raise ProviderUnavailable(f"Ollama unreachable: {e}", provider=self.name) from e

        content = response['message']['content'] or ''
        if not content.strip():
            raise ProviderUnavailable("Ollama returned an empty response", provider=self.name)
        return content


class IEmbeddingProvider(ABC):
    """Abstract interface for embedding providers."""

    name = "abstract"

    @abstractmethod
    async def embed_text(self, text: str) -> EmbeddingVector:
        """Generate embedding vector for given text.

        Raises ProviderUnavailable or MalformedEmbeddingResponse on failure.
        """
        pass

    @abstractmethod
    def get_dimension(self) -> int:
        """Get the dimension of the embedding vectors."""
        pass


def parse_embedding_response(raw: str, dimension: int) -> EmbeddingVector:
    """Parse a comma-separated list of numbers into a vector of exactly `dimension` floats."""
    parts = [part.strip() for part in raw.strip().split(",")]
    try:
        numbers = [float(part) for part in parts]
    except ValueError as e:
        raise MalformedEmbeddingResponse(f"Non-numeric embedding component: {e}", parsed_count=len(parts)) from e

    if len(numbers) != dimension:
        raise MalformedEmbeddingResponse(
            f"Expected {dimension} components, got {len(numbers)}", parsed_count=len(numbers)
        )
    if not all(math.isfinite(x) for x in numbers):
        raise MalformedEmbeddingResponse("Embedding contains NaN or infinite values", parsed_count=len(numbers))
    return numbers


class PromptedEmbeddingProvider(IEmbeddingProvider):
    """Asks a text generator to emit the embedding as comma-separated numbers.

    This is unreliable by nature (parsing failures, non-deterministic output);
    any other IEmbeddingProvider can replace it without changing callers.
    """

    name = "prompt"

    def __init__(self, text_generator: ITextGenerator, dimension: int = 384, max_output_tokens: int = 2000):
        self.text_generator = text_generator
        self.dimension = dimension
        self.max_output_tokens = max_output_tokens

    async def embed_text(self, text: str) -> EmbeddingVector:
        prompt = EMBEDDING_PROMPT.format(dimension=self.dimension, text=text)
        raw = await self.text_generator.generate(prompt, self.max_output_tokens)
        return parse_embedding_response(raw, self.dimension)

    def get_dimension(self) -> int:
        return self.dimension


_TOKEN_RE = re.compile(r"[a-z0-9']+")
_STOPWORDS = frozenset({
    "a", "an", "and", "by", "in", "of", "on", "or", "the", "to",
    "title", "author", "description",
})


class DeterministicHashEmbedding(IEmbeddingProvider):
    """Deterministic hashed bag-of-words embedding for development and tests.

    Each word is hashed into one of `dimension` buckets, so texts sharing
    words point in similar directions. No model or network needed.
    """

    name = "hash"

    def __init__(self, dimension: int = 384):
        self.dimension = dimension

    async def embed_text(self, text: str) -> EmbeddingVector:
        vector = [0.0] * self.dimension
        for token in _TOKEN_RE.findall(text.lower()):
            if token in _STOPWORDS:
                continue
            hex_dig = hashlib.md5(token.encode()).hexdigest()
            vector[int(hex_dig[:8], 16) % self.dimension] += 1.0

        norm = math.sqrt(sum(x * x for x in vector))
        if norm == 0:
            return vector
        return [x / norm for x in vector]

    def get_dimension(self) -> int:
        return self.dimension


def item_text(title: str, author: str, description: Optional[str] = None) -> str:
    """Single text blob used to embed a book."""
    return (
        f"Title: {title}\n"
        f"Author: {author}\n"
        f"Description: {description or 'No description available'}"
    )


class VectorCodec:
    """
    Text -> fixed-length vector, with timeout, bounded retry and zero-vector fallback.

    Rate limiting and unavailability are retried with exponential backoff;
    malformed output and timeouts are not. When everything fails the caller
    receives zero_vector(dimension); use is_degraded() to detect it.
    """

    def __init__(self, provider: IEmbeddingProvider, dimension: int = 384, timeout: float = 30.0,
                 max_attempts: int = 3, backoff_initial: float = 0.25, backoff_max: float = 2.0):
        self.provider = provider
        self.dimension = dimension
        self.timeout = timeout
        self.max_attempts = max(1, max_attempts)
        self.backoff_initial = backoff_initial
        self.backoff_max = backoff_max

    def _backoff_delay(self, attempt: int) -> float:
        delay = min(self.backoff_initial * (2 ** attempt), self.backoff_max)
        # ±25% jitter
        return delay * (0.75 + random.random() * 0.5)

    def _validate(self, vector: EmbeddingVector) -> EmbeddingVector:
        if len(vector) != self.dimension:
            raise MalformedEmbeddingResponse(
                f"Expected {self.dimension} components, got {len(vector)}", parsed_count=len(vector)
            )
        if not all(math.isfinite(x) for x in vector):
            raise MalformedEmbeddingResponse("Embedding contains NaN or infinite values", parsed_count=len(vector))
        return [float(x) for x in vector]

    async def embed(self, text: str) -> EmbeddingVector:
        """Embed text, returning the zero vector on any failure."""
        for attempt in range(1, self.max_attempts + 1):
            try:
                vector = await asyncio.wait_for(self.provider.embed_text(text), self.timeout)
                vector = self._validate(vector)
            except asyncio.TimeoutError:
                logger.log_embedding("failed", len(text), attempt, reason=f"timed out after {self.timeout}s")
                break
            except MalformedEmbeddingResponse as e:
                logger.log_embedding("failed", len(text), attempt, reason=str(e))
                break
            except ProviderUnavailable as e:
                if attempt >= self.max_attempts:
                    logger.log_embedding("failed", len(text), attempt, reason=str(e))
                    break
                delay = self._backoff_delay(attempt - 1)
                logger.debug(f"embedding attempt {attempt} failed ({e}); retrying in {delay:.2f}s")
                await asyncio.sleep(delay)
                continue
            except Exception as e:
                logger.log_embedding("failed", len(text), attempt, reason=f"{type(e).__name__}: {e}")
                break

            logger.log_embedding("success", len(text), attempt)
            return vector

        return zero_vector(self.dimension)

    async def embed_item(self, book) -> EmbeddingVector:
        """Embed a book-like object with title, author and optional description."""
        return await self.embed(item_text(book.title, book.author, getattr(book, "description", None)))

    def is_degraded(self, vector: EmbeddingVector) -> bool:
        return is_degraded(vector)
