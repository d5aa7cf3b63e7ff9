"""Knowledge Base server - FastAPI application.

Serves the MCP gateway on ``POST /mcp`` and a JSON API for browsing,
searching and managing articles.
"""

import uuid
from contextlib import asynccontextmanager
from typing import Any, Optional

from fastapi import Depends, FastAPI, Query, Request, status
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from shared.config import Settings, get_settings
from shared.errors import ArticleNotFoundError, InvalidRequestError, KnowledgeBaseError
from shared.logging import bind_context, clear_context, get_logger, setup_logging
from shared.models import ArticleFilters
from knowledge_base.search import QueryEngine
from knowledge_base.services import ArticleService, sanitize_input
from knowledge_base.sqlite import SQLiteArticleStore
from mcp_server.gateway import McpGateway

logger = get_logger(__name__)


# Request/Response Models
class ArticleCreateRequest(BaseModel):
    """Request to create an article."""
    title: Optional[str] = None
    content: Optional[str] = None
    author: Optional[str] = None
    category: Optional[str] = None
    tags: Optional[str] = Field(default=None, description="Comma-separated tags")
    is_published: bool = False


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    version: str
    article_count: int


def create_app(settings: Optional[Settings] = None, store: Optional[SQLiteArticleStore] = None) -> FastAPI:
    """
    Build the application.

    Args:
        settings: Application settings (defaults to the cached settings)
        store: Article store to serve; one is opened from settings if omitted
    """
    settings = settings or get_settings()
    owns_store = store is None
    store = store or SQLiteArticleStore(
        settings.store.database_path,
        full_text=settings.store.full_text_search
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        setup_logging(settings.log_level, json_output=settings.environment == "production")
        store.initialize()
        logger.info(
            "Knowledge Base server started",
            environment=settings.environment,
            db_path=store.db_path
        )

        yield

        logger.info("Shutting down Knowledge Base server")
        if owns_store:
            store.close()

    app = FastAPI(
        title=settings.gateway.server_name,
        description="Knowledge base articles over MCP and a JSON API",
        version=settings.gateway.server_version,
        lifespan=lifespan
    )

    app.state.settings = settings
    app.state.store = store
    app.state.query_engine = QueryEngine(store)
    app.state.articles = ArticleService(store)
    app.state.gateway = McpGateway(store, settings.gateway)

    @app.middleware("http")
    async def bind_request_context(request: Request, call_next):
        clear_context()
        bind_context(request_id=str(uuid.uuid4()), path=request.url.path)
        try:
            return await call_next(request)
        finally:
            clear_context()

    @app.exception_handler(KnowledgeBaseError)
    async def knowledge_base_error_handler(request: Request, exc: KnowledgeBaseError):
        if exc.status_code >= 500:
            logger.error("Request failed", error_code=exc.error_code, error=exc.message)
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(Exception)
    async def unexpected_error_handler(request: Request, exc: Exception):
        logger.error("Unexpected error", error=str(exc), exc_info=True)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "error": "internal_error",
                "message": "An unexpected error occurred",
                "details": str(exc),
            },
        )

    _register_routes(app)
    return app


# Dependencies
def get_gateway(request: Request) -> McpGateway:
    return request.app.state.gateway


def get_store(request: Request) -> SQLiteArticleStore:
    return request.app.state.store


def get_query_engine(request: Request) -> QueryEngine:
    return request.app.state.query_engine


def get_article_service(request: Request) -> ArticleService:
    return request.app.state.articles


def _page(result) -> dict[str, Any]:
    return {
        "articles": [a.to_api() for a in result.articles],
        "meta": result.meta.model_dump(),
    }


def _register_routes(app: FastAPI) -> None:
    settings: Settings = app.state.settings

    @app.post("/mcp", tags=["MCP"])
    async def mcp_endpoint(request: Request, gateway: McpGateway = Depends(get_gateway)):
        """
        MCP protocol endpoint.

        Always answers HTTP 200; protocol errors travel in the envelope.
        """
        body = await request.body()
        response = await run_in_threadpool(gateway.handle, body)
        return JSONResponse(content=response)

    @app.get("/", tags=["System"])
    def index():
        """Service information and endpoint index."""
        return {
            "name": settings.gateway.server_name,
            "version": settings.gateway.server_version,
            "endpoints": {
                "mcp": "POST /mcp",
                "api": {
                    "articles": "GET /api/articles",
                    "article": "GET /api/articles/{id}",
                    "search": "GET /api/search?q=query",
                    "create": "POST /api/articles",
                    "publish": "POST /api/articles/{id}/publish",
                    "unpublish": "POST /api/articles/{id}/unpublish",
                    "delete": "DELETE /api/articles/{id}",
                    "restore": "POST /api/articles/{id}/restore",
                },
                "health": "GET /health",
            },
        }

    @app.get("/health", response_model=HealthResponse, tags=["System"])
    def health_check(store: SQLiteArticleStore = Depends(get_store)):
        """Health check endpoint."""
        return HealthResponse(
            status="healthy",
            version=settings.gateway.server_version,
            article_count=store.count(ArticleFilters())
        )

    @app.get("/api/articles", tags=["Articles"])
    def list_articles(
        page: int = Query(default=1),
        per_page: int = Query(default=20),
        category: Optional[str] = None,
        engine: QueryEngine = Depends(get_query_engine)
    ):
        """List published articles, newest first."""
        return _page(engine.list_all(category=category, page=page, per_page=per_page))

    @app.get("/api/articles/{article_id}", tags=["Articles"])
    def get_article(article_id: int, store: SQLiteArticleStore = Depends(get_store)):
        """Get one published article."""
        if article_id <= 0:
            raise InvalidRequestError("Invalid article ID")

        article = store.get_by_id(article_id)
        if article is None or not article.is_visible:
            raise ArticleNotFoundError(f"Article with ID {article_id} not found or not published")
        return article.to_api()

    @app.get("/api/search", tags=["Articles"])
    def search_articles(
        q: Optional[str] = None,
        category: Optional[str] = None,
        page: int = Query(default=1),
        per_page: int = Query(default=20),
        engine: QueryEngine = Depends(get_query_engine)
    ):
        """Full-text search over published articles."""
        query = sanitize_input(q)
        if not query:
            raise InvalidRequestError('Query parameter "q" is required and cannot be empty')
        if len(query) > settings.gateway.max_query_length:
            raise InvalidRequestError(
                f"Query parameter must be at most {settings.gateway.max_query_length} characters"
            )
        return _page(engine.search(query, category=category, page=page, per_page=per_page))

    @app.post("/api/articles", status_code=status.HTTP_201_CREATED, tags=["Articles"])
    def create_article(
        payload: ArticleCreateRequest,
        service: ArticleService = Depends(get_article_service)
    ):
        """Create an article."""
        article = service.create(**payload.model_dump())
        return article.to_api()

    @app.post("/api/articles/{article_id}/publish", tags=["Articles"])
    def publish_article(article_id: int, service: ArticleService = Depends(get_article_service)):
        return service.publish(article_id).to_api()

    @app.post("/api/articles/{article_id}/unpublish", tags=["Articles"])
    def unpublish_article(article_id: int, service: ArticleService = Depends(get_article_service)):
        return service.unpublish(article_id).to_api()

    @app.delete("/api/articles/{article_id}", tags=["Articles"])
    def delete_article(article_id: int, service: ArticleService = Depends(get_article_service)):
        """Soft-delete an article."""
        article = service.soft_delete(article_id)
        return {"id": article.id, "deleted": True}

    @app.post("/api/articles/{article_id}/restore", tags=["Articles"])
    def restore_article(article_id: int, service: ArticleService = Depends(get_article_service)):
        return service.restore(article_id).to_api()


def main():
    """Run the Knowledge Base server."""
    import uvicorn

    settings = get_settings()

    uvicorn.run(
        "mcp_server.main:create_app",
        factory=True,
        host=settings.server.host,
        port=settings.server.port,
        reload=settings.environment == "development",
        log_config=None
    )


if __name__ == "__main__":
    main()
