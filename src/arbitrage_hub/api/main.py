"""
FastAPI application for Arbitrage Hub.

Provides REST endpoints for exchanges, assets, market pairs and arbitrage
strategies, plus strategy suggestions between two exchanges. Every response
uses the {"message", "data"} envelope; service errors are mapped to status
codes in one exception handler.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Annotated, AsyncIterator, Optional

from fastapi import APIRouter, Depends, FastAPI, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from arbitrage_hub import __version__
from arbitrage_hub.api.schemas import (
    ApiResponse,
    AssetRequest,
    ExchangeRequest,
    HealthResponse,
    MarketPairPage,
    MarketPairRequest,
    StrategyPage,
    StrategyRequest,
    Suggestions,
    envelope,
)
from arbitrage_hub.arbitrage.models import ArbitrageType
from arbitrage_hub.arbitrage.suggestion import SuggestionEngine
from arbitrage_hub.config import settings
from arbitrage_hub.errors import ArbitrageHubError, ValidationError
from arbitrage_hub.storage.database import Database, DatabaseConfig
from arbitrage_hub.storage.repositories import (
    ArbitrageStrategyRepository,
    AssetRepository,
    ExchangeRepository,
    MarketPairFilter,
    MarketPairRepository,
)
from arbitrage_hub.storage.schema import apply_schema

logger = logging.getLogger(__name__)


# =============================================================================
# Dependency Injection
# =============================================================================


# Global instances, set up by the lifespan in production and overridden in tests
_database: Optional[Database] = None
_exchange_repo: Optional[ExchangeRepository] = None
_asset_repo: Optional[AssetRepository] = None
_market_pair_repo: Optional[MarketPairRepository] = None
_strategy_repo: Optional[ArbitrageStrategyRepository] = None
_suggestion_engine: Optional[SuggestionEngine] = None


def get_database() -> Database:
    if _database is None:
        raise RuntimeError("Database not initialized")
    return _database


def get_exchange_repo() -> ExchangeRepository:
    if _exchange_repo is None:
        raise RuntimeError("Exchange repository not initialized")
    return _exchange_repo


def get_asset_repo() -> AssetRepository:
    if _asset_repo is None:
        raise RuntimeError("Asset repository not initialized")
    return _asset_repo


def get_market_pair_repo() -> MarketPairRepository:
    """Get the market pair repository instance.

    This is a dependency that can be overridden in tests.
    """
    if _market_pair_repo is None:
        raise RuntimeError("Market pair repository not initialized")
    return _market_pair_repo


def get_strategy_repo() -> ArbitrageStrategyRepository:
    if _strategy_repo is None:
        raise RuntimeError("Arbitrage strategy repository not initialized")
    return _strategy_repo


def get_suggestion_engine() -> SuggestionEngine:
    if _suggestion_engine is None:
        raise RuntimeError("Suggestion engine not initialized")
    return _suggestion_engine


def set_repositories(db: Database) -> None:
    """Build every repository over one database and register them."""
    global _database, _exchange_repo, _asset_repo, _market_pair_repo, _strategy_repo, _suggestion_engine
    _database = db
    _exchange_repo = ExchangeRepository(db)
    _asset_repo = AssetRepository(db)
    _market_pair_repo = MarketPairRepository(db, settings.max_per_page)
    _strategy_repo = ArbitrageStrategyRepository(db, _market_pair_repo, settings.max_per_page)
    _suggestion_engine = SuggestionEngine(_market_pair_repo)


# =============================================================================
# Error handling
# =============================================================================


async def service_error_handler(request: Request, exc: ArbitrageHubError) -> JSONResponse:
    logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    return JSONResponse(
        status_code=exc.status_code,
        content=envelope(exc.message).model_dump(),
    )


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    problems = "; ".join(
        f"{'.'.join(str(part) for part in err.get('loc', ()))}: {err.get('msg', 'invalid')}"
        for err in exc.errors()
    )
    logger.error(f"{request.method} {request.url.path} rejected: {problems}")
    return JSONResponse(status_code=400, content=envelope(problems).model_dump())


def install_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ArbitrageHubError, service_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)


# =============================================================================
# Endpoints
# =============================================================================

router = APIRouter()


@router.get("/health", response_model=HealthResponse)
async def health_check(db: Annotated[Database, Depends(get_database)]) -> HealthResponse:
    """Health check endpoint. Reports degraded while the database is unreachable."""
    database_ok = await db.health_check()
    return HealthResponse(
        status="healthy" if database_ok else "degraded",
        version=__version__,
        database=database_ok,
    )


# -----------------------------------------------------------------------------
# Arbitrage strategies
# -----------------------------------------------------------------------------


@router.post("/arbitrage-strategies", response_model=ApiResponse)
async def create_strategy(
    body: StrategyRequest,
    repo: Annotated[ArbitrageStrategyRepository, Depends(get_strategy_repo)],
) -> ApiResponse:
    """Validate and store a new strategy."""
    strategy = await repo.create(body.to_strategy())
    return envelope("Arbitrage strategy created successfully", strategy)


@router.get("/arbitrage-strategies", response_model=ApiResponse)
async def list_strategies(
    repo: Annotated[ArbitrageStrategyRepository, Depends(get_strategy_repo)],
    page: Annotated[int, Query(ge=1, description="Page number")] = 1,
    per_page: Annotated[int, Query(ge=1, description="Items per page")] = settings.default_per_page,
    arbitrage_type: Annotated[Optional[ArbitrageType], Query()] = None,
) -> ApiResponse:
    """List strategies with every pair resolved, oldest first."""
    try:
        result = await repo.list_populated(page=page, per_page=per_page, arbitrage_type=arbitrage_type)
    except ValueError as e:
        raise ValidationError(str(e)) from e
    return envelope(
        "Arbitrage strategies retrieved successfully",
        StrategyPage(
            strategies=result.items,
            total=result.total,
            page=result.page,
            per_page=result.per_page,
            total_pages=result.total_pages,
        ),
    )


@router.get("/arbitrage-strategies/suggested", response_model=ApiResponse)
async def suggest_strategies(
    engine: Annotated[SuggestionEngine, Depends(get_suggestion_engine)],
    exchange1: Annotated[str, Query(description="Exchange whose pairs are scanned")],
    exchange2: Annotated[str, Query(description="Exchange searched for counterparts")],
    strategy_type: Annotated[str, Query()] = ArbitrageType.GEOGRAPHIC.value,
) -> ApiResponse:
    """Suggest draft strategies between two exchanges."""
    strategies = await engine.suggest(exchange1, exchange2, strategy_type)
    return envelope(
        "Suggested arbitrage strategies retrieved successfully",
        Suggestions(strategies=strategies),
    )


@router.get("/arbitrage-strategies/{strategy_id}", response_model=ApiResponse)
async def get_strategy(
    strategy_id: str,
    repo: Annotated[ArbitrageStrategyRepository, Depends(get_strategy_repo)],
    populate: Annotated[bool, Query(description="Expand market pair references")] = False,
) -> ApiResponse:
    """Get a strategy by id, optionally with its pairs resolved."""
    if populate:
        strategy = await repo.get_populated(strategy_id)
    else:
        strategy = await repo.get(strategy_id)
    return envelope("Arbitrage strategy retrieved successfully", strategy)


@router.put("/arbitrage-strategies/{strategy_id}", response_model=ApiResponse)
async def update_strategy(
    strategy_id: str,
    body: StrategyRequest,
    repo: Annotated[ArbitrageStrategyRepository, Depends(get_strategy_repo)],
    expected_version: Annotated[Optional[int], Query(ge=1)] = None,
) -> ApiResponse:
    """Replace a strategy; with expected_version the write only lands on that version."""
    strategy = await repo.update(strategy_id, body.to_strategy(), expected_version=expected_version)
    return envelope("Arbitrage strategy updated successfully", strategy)


@router.delete("/arbitrage-strategies/{strategy_id}", response_model=ApiResponse)
async def delete_strategy(
    strategy_id: str,
    repo: Annotated[ArbitrageStrategyRepository, Depends(get_strategy_repo)],
) -> ApiResponse:
    await repo.delete(strategy_id)
    return envelope("Arbitrage strategy deleted successfully")


# -----------------------------------------------------------------------------
# Exchanges and assets
# -----------------------------------------------------------------------------


@router.post("/exchanges", response_model=ApiResponse)
async def create_exchange(
    body: ExchangeRequest,
    repo: Annotated[ExchangeRepository, Depends(get_exchange_repo)],
) -> ApiResponse:
    exchange = await repo.create(body.to_exchange())
    return envelope("Exchange created successfully", exchange)


@router.get("/exchanges", response_model=ApiResponse)
async def list_exchanges(
    repo: Annotated[ExchangeRepository, Depends(get_exchange_repo)],
) -> ApiResponse:
    return envelope("Exchanges retrieved successfully", await repo.list_all())


@router.get("/exchanges/{exchange_id}", response_model=ApiResponse)
async def get_exchange(
    exchange_id: str,
    repo: Annotated[ExchangeRepository, Depends(get_exchange_repo)],
) -> ApiResponse:
    return envelope("Exchange retrieved successfully", await repo.get(exchange_id))


@router.get("/exchanges/{exchange_id}/assets", response_model=ApiResponse)
async def list_exchange_assets(
    exchange_id: str,
    repo: Annotated[AssetRepository, Depends(get_asset_repo)],
) -> ApiResponse:
    return envelope("Assets retrieved successfully", await repo.get_by_exchange(exchange_id))


@router.post("/assets", response_model=ApiResponse)
async def create_asset(
    body: AssetRequest,
    repo: Annotated[AssetRepository, Depends(get_asset_repo)],
) -> ApiResponse:
    asset = await repo.create(body.to_asset())
    return envelope("Asset created successfully", asset)


@router.get("/assets/{asset_id}", response_model=ApiResponse)
async def get_asset(
    asset_id: str,
    repo: Annotated[AssetRepository, Depends(get_asset_repo)],
) -> ApiResponse:
    return envelope("Asset retrieved successfully", await repo.get(asset_id))


# -----------------------------------------------------------------------------
# Market pairs
# -----------------------------------------------------------------------------


@router.post("/market-pairs", response_model=ApiResponse)
async def create_market_pair(
    body: MarketPairRequest,
    repo: Annotated[MarketPairRepository, Depends(get_market_pair_repo)],
) -> ApiResponse:
    pair = await repo.create(body.to_market_pair())
    return envelope("Market pair created successfully", pair)


@router.get("/market-pairs", response_model=ApiResponse)
async def list_market_pairs(
    repo: Annotated[MarketPairRepository, Depends(get_market_pair_repo)],
    page: Annotated[int, Query(ge=1, description="Page number")] = 1,
    per_page: Annotated[int, Query(ge=1, description="Items per page")] = settings.default_per_page,
    exchange_id: Annotated[Optional[str], Query()] = None,
    search: Annotated[Optional[str], Query(min_length=1, max_length=50, description="Ticker substring")] = None,
) -> ApiResponse:
    """List resolvable market pairs with filtering and pagination."""
    try:
        result = await repo.resolve_many(
            MarketPairFilter(exchange_id=exchange_id, search=search),
            page=page,
            per_page=per_page,
        )
    except ValueError as e:
        raise ValidationError(str(e)) from e
    return envelope(
        "Market pairs retrieved successfully",
        MarketPairPage(
            market_pairs=result.items,
            total=result.total,
            page=result.page,
            per_page=result.per_page,
            total_pages=result.total_pages,
        ),
    )


@router.get("/market-pairs/conversion", response_model=ApiResponse)
async def get_conversion_pairs(
    repo: Annotated[MarketPairRepository, Depends(get_market_pair_repo)],
    pair1: Annotated[str, Query()],
    pair2: Annotated[str, Query()],
) -> ApiResponse:
    """Pairs bridging the quote assets of two given pairs."""
    pairs = await repo.find_conversion_pairs(pair1, pair2)
    return envelope("Conversion pairs retrieved successfully", pairs)


@router.get("/market-pairs/conversion-for-arbitrage", response_model=ApiResponse)
async def get_conversion_pairs_for_arbitrage(
    repo: Annotated[MarketPairRepository, Depends(get_market_pair_repo)],
    quote_asset1: Annotated[str, Query(min_length=1)],
    quote_asset2: Annotated[str, Query(min_length=1)],
) -> ApiResponse:
    """Pairs trading any equivalent of either quote ticker."""
    pairs = await repo.find_conversion_pairs_for_symbols(quote_asset1, quote_asset2)
    return envelope("Conversion pairs retrieved successfully", pairs)


@router.get("/market-pairs/by-exchange/{exchange_id}", response_model=ApiResponse)
async def get_market_pairs_by_exchange(
    exchange_id: str,
    repo: Annotated[MarketPairRepository, Depends(get_market_pair_repo)],
) -> ApiResponse:
    pairs = await repo.resolve_by_exchange(exchange_id)
    return envelope("Market pairs retrieved successfully", pairs)


@router.get("/market-pairs/{pair_id}", response_model=ApiResponse)
async def get_market_pair(
    pair_id: str,
    repo: Annotated[MarketPairRepository, Depends(get_market_pair_repo)],
) -> ApiResponse:
    return envelope("Market pair retrieved successfully", await repo.get(pair_id))


@router.get("/market-pairs/{pair_id}/populated", response_model=ApiResponse)
async def get_populated_market_pair(
    pair_id: str,
    repo: Annotated[MarketPairRepository, Depends(get_market_pair_repo)],
) -> ApiResponse:
    return envelope("Market pair retrieved successfully", await repo.resolve(pair_id))


@router.put("/market-pairs/{pair_id}", response_model=ApiResponse)
async def update_market_pair(
    pair_id: str,
    body: MarketPairRequest,
    repo: Annotated[MarketPairRepository, Depends(get_market_pair_repo)],
) -> ApiResponse:
    pair = await repo.update(pair_id, body.to_market_pair())
    return envelope("Market pair updated successfully", pair)


@router.delete("/market-pairs/{pair_id}", response_model=ApiResponse)
async def delete_market_pair(
    pair_id: str,
    repo: Annotated[MarketPairRepository, Depends(get_market_pair_repo)],
) -> ApiResponse:
    await repo.delete(pair_id)
    return envelope("Market pair deleted successfully")


# =============================================================================
# FastAPI App
# =============================================================================


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan: startup and shutdown."""
    # Startup
    db = Database(DatabaseConfig.from_settings(settings))
    await db.initialize()
    if settings.apply_schema:
        await apply_schema(db)
    set_repositories(db)
    yield
    # Shutdown
    await db.close()


def create_app() -> FastAPI:
    application = FastAPI(
        title="Arbitrage Hub API",
        description="Exchanges, market pairs and arbitrage strategy management",
        version=__version__,
        lifespan=lifespan,
    )

    # CORS middleware
    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    install_error_handlers(application)
    application.include_router(router)
    return application


app = create_app()
