"""
Shared fixtures: a three-book catalog, hash-based codecs and fake text generators.
"""

import re

import pytest

from src.core.catalog import InMemoryCatalog
from src.core.exceptions import ProviderUnavailable
from src.core.schema import BookRecord
from src.vector.embeddings import (
    DeterministicHashEmbedding,
    ITextGenerator,
    PromptedEmbeddingProvider,
    VectorCodec,
)
from src.vector.index import SimpleInMemoryVectorStore

DIM = 384

_PROMPT_TEXT_RE = re.compile(r'Text: "(.*)"\n\nOutput only', re.DOTALL)


class HashBackedTextGenerator(ITextGenerator):
    """Answers embedding prompts with a hashed bag-of-words vector, other prompts with fixed text."""

    name = "fake"

    def __init__(self, dimension: int = DIM, reply: str = "A generated summary."):
        self.hasher = DeterministicHashEmbedding(dimension)
        self.reply = reply
        self.prompts = []

    async def generate(self, prompt: str, max_output_tokens: int) -> str:
        self.prompts.append(prompt)
        match = _PROMPT_TEXT_RE.search(prompt)
        if match is None:
            return self.reply
        vector = await self.hasher.embed_text(match.group(1))
        return ", ".join(f"{x:.6f}" for x in vector)


class FailingTextGenerator(ITextGenerator):
    """Every call fails as if the provider were down or rate limited."""

    name = "failing"

    def __init__(self, status_code: int = 429):
        self.status_code = status_code
        self.calls = 0

    async def generate(self, prompt: str, max_output_tokens: int) -> str:
        self.calls += 1
        raise ProviderUnavailable("provider down", provider=self.name, status_code=self.status_code)


class BrokenTextGenerator(ITextGenerator):
    """Fails with an error outside the provider error hierarchy."""

    name = "broken"

    def __init__(self):
        self.calls = 0

    async def generate(self, prompt: str, max_output_tokens: int) -> str:
        self.calls += 1
        raise RuntimeError("unexpected provider failure")


@pytest.fixture
def books():
    return [
        BookRecord(id="1", title="1984", author="George Orwell", description="dystopian surveillance"),
        BookRecord(id="2", title="The Great Gatsby", author="F. Scott Fitzgerald", description="Jazz Age wealth"),
        BookRecord(id="3", title="To Kill a Mockingbird", author="Harper Lee", description="racial injustice trial"),
    ]


@pytest.fixture
def catalog(books):
    return InMemoryCatalog(books)


@pytest.fixture
def store():
    return SimpleInMemoryVectorStore()


@pytest.fixture
def hash_codec():
    return VectorCodec(DeterministicHashEmbedding(DIM), dimension=DIM, backoff_initial=0)


@pytest.fixture
def prompted_codec():
    """Codec going through the full prompt -> text -> parse path."""
    provider = PromptedEmbeddingProvider(HashBackedTextGenerator(DIM), dimension=DIM)
    return VectorCodec(provider, dimension=DIM, backoff_initial=0)


@pytest.fixture
def failing_codec():
    provider = PromptedEmbeddingProvider(FailingTextGenerator(), dimension=DIM)
    return VectorCodec(provider, dimension=DIM, max_attempts=2, backoff_initial=0)
