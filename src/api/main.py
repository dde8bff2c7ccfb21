"""
HTTP surface for semantic search, indexing, recommendations and summaries.
Handlers stay thin; all behavior lives in the core services.
"""

from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Optional

from fastapi import FastAPI, HTTPException, Depends, Query, Request

from util.logging import logger
from .schemas import (
    BookResponse,
    SemanticSearchRequest,
    SemanticSearchResponse,
    IndexRequest,
    IndexResponse,
    IndexResult,
    IndexAllResponse,
    RecommendationResponse,
    SummaryResponse,
    HealthResponse,
)
from ..core import config
from ..core.catalog import ICatalogProvider, SqliteCatalog
from ..core.recommendation_service import RecommendationService
from ..core.schema import BookRecord, book_to_dict
from ..core.search_service import SemanticSearchService
from ..core.summary_service import SummaryService, TTLCache
from ..vector.embeddings import ITextGenerator, VectorCodec
from ..vector.index import IVectorStore


@dataclass
class Services:
    catalog: ICatalogProvider
    vector_store: IVectorStore
    text_generator: ITextGenerator
    codec: VectorCodec
    search: SemanticSearchService
    recommendations: RecommendationService
    summaries: SummaryService


def build_services(catalog=None, vector_store: Optional[IVectorStore] = None,
                   text_generator: Optional[ITextGenerator] = None, embedding_provider=None) -> Services:
    """Wire the core services from configuration; any piece can be injected."""
    catalog = catalog or SqliteCatalog()
    vector_store = vector_store or config.get_vector_store()
    text_generator = text_generator or config.get_text_generator()
    codec = config.get_vector_codec(embedding_provider or config.get_embedding_provider(text_generator))

    return Services(
        catalog=catalog,
        vector_store=vector_store,
        text_generator=text_generator,
        codec=codec,
        search=SemanticSearchService(codec, vector_store, catalog, index_concurrency=config.RECOMMEND_FANOUT),
        recommendations=RecommendationService(codec, vector_store, catalog, catalog, fanout=config.RECOMMEND_FANOUT),
        summaries=SummaryService(
            text_generator, catalog, catalog,
            TTLCache(config.SUMMARY_CACHE_TTL_SEC),
            max_output_tokens=config.SUMMARY_MAX_OUTPUT_TOKENS,
            timeout=config.SUMMARY_TIMEOUT_SEC,
        ),
    )


def _book_response(book: BookRecord) -> BookResponse:
    return BookResponse(**book_to_dict(book))


def get_services(request: Request) -> Services:
    return request.app.state.services


def create_app(services: Optional[Services] = None) -> FastAPI:

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if getattr(app.state, "services", None) is None:
            for issue in config.validate_vector_config():
                logger.warning(f"Config issue: {issue}")
            app.state.services = build_services()
        yield
        close = getattr(app.state.services.vector_store, "close", None)
        if close is not None:
            await close()

    app = FastAPI(
        title="Book Semantic Search API",
        version=config.VERSION,
        description="Semantic search and recommendations over the book catalog",
        docs_url="/docs" if config.debug_enabled() else None,
        redoc_url="/redoc" if config.debug_enabled() else None,
        lifespan=lifespan,
    )
    app.state.services = services

    @app.get("/health", response_model=HealthResponse)
    async def health_check_endpoint(svc: Services = Depends(get_services)):
        """Check vector store availability and report configured providers."""
        available = await svc.vector_store.is_available()
        return HealthResponse(
            status="healthy" if available else "degraded",
            version=config.VERSION,
            vector_store=svc.vector_store.name,
            vector_store_available=available,
            embedding_provider=svc.codec.provider.name,
        )

    @app.post("/semantic-search", response_model=SemanticSearchResponse)
    async def semantic_search_endpoint(req: SemanticSearchRequest, svc: Services = Depends(get_services)):
        outcome = await svc.search.semantic_search(req.query, req.limit)
        return SemanticSearchResponse(
            books=[_book_response(b) for b in outcome.books],
            mode=outcome.mode,
        )

    # Define /index/all before /index/{book_id}
    @app.post("/index/all", response_model=IndexAllResponse)
    async def index_all_endpoint(svc: Services = Depends(get_services)):
        results = await svc.search.index_all()
        return IndexAllResponse(
            message="Books indexed",
            results=[IndexResult(**r) for r in results],
        )

    @app.post("/index", response_model=IndexResponse)
    async def index_book_endpoint(req: IndexRequest, svc: Services = Depends(get_services)):
        book = BookRecord(id=req.id, title=req.title, author=req.author, description=req.description)
        success = await svc.search.index_book(book)
        return IndexResponse(success=success, id=req.id)

    @app.delete("/index/{book_id}", response_model=IndexResponse)
    async def remove_book_endpoint(book_id: str, svc: Services = Depends(get_services)):
        success = await svc.search.remove_book(book_id)
        return IndexResponse(success=success, id=book_id)

    @app.get("/recommendations", response_model=RecommendationResponse)
    async def recommendations_endpoint(
        user_id: str = Query(..., min_length=1),
        limit: int = Query(5, ge=1, le=50),
        svc: Services = Depends(get_services),
    ):
        books = await svc.recommendations.recommend_for_user(user_id, limit)
        return RecommendationResponse(books=[_book_response(b) for b in books])

    @app.get("/books/{book_id}/summary", response_model=SummaryResponse)
    async def book_summary_endpoint(book_id: str, svc: Services = Depends(get_services)):
        result = await svc.summaries.get_summary(book_id)
        if result is None:
            raise HTTPException(status_code=404, detail="Book not found")
        return SummaryResponse(book_id=book_id, summary=result.summary, cached=result.cached)

    return app


app = create_app()
