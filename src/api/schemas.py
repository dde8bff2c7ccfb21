"""
Request and response models for the search, indexing and recommendation API.
"""

from pydantic import BaseModel, Field, field_validator
from typing import Optional, List


class BookResponse(BaseModel):
    id: str
    title: str
    author: str
    description: Optional[str] = None
    year: Optional[int] = None
    genre: Optional[str] = None
    cover_image: Optional[str] = None


class SemanticSearchRequest(BaseModel):
    query: str
    limit: int = Field(default=5, ge=1, le=100)

    @field_validator('query')
    @classmethod
    def query_must_not_be_empty(cls, v):
        if not v.strip():
            raise ValueError('query cannot be empty')
        return v


class SemanticSearchResponse(BaseModel):
    books: List[BookResponse]
    mode: str


class IndexRequest(BaseModel):
    id: str
    title: str
    author: str
    description: Optional[str] = None

    @field_validator('id', 'title', 'author')
    @classmethod
    def must_not_be_empty(cls, v):
        if not v.strip():
            raise ValueError('field cannot be empty')
        return v


class IndexResponse(BaseModel):
    success: bool
    id: str


class IndexResult(BaseModel):
    id: str
    title: str
    success: bool


class IndexAllResponse(BaseModel):
    message: str
    results: List[IndexResult]


class RecommendationResponse(BaseModel):
    books: List[BookResponse]


class SummaryResponse(BaseModel):
    book_id: str
    summary: str
    cached: bool


class HealthResponse(BaseModel):
    status: str
    version: str
    vector_store: str
    vector_store_available: bool
    embedding_provider: str
