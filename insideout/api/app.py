"""FastAPI query service: authenticated top5 leaderboard endpoint."""

import asyncio
import json
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import UTC, datetime
from pathlib import Path
from typing import Any
from uuid import uuid4

from fastapi import APIRouter, Depends, FastAPI, Request
from fastapi.responses import JSONResponse

from insideout.adapters.clickhouse_warehouse import ClickHouseWarehouse
from insideout.adapters.sql_templates import SqlTemplateStore
from insideout.config.logging_config import bind_context, clear_context, get_logger
from insideout.config.settings import Settings
from insideout.domain.exceptions import (
    InsideOutError,
    QueryExecutionError,
    ValidationError,
)
from insideout.domain.models import TIE_BREAK_NOTE, AggregateResponse, Top5Request
from insideout.services.request_auth import SIGNATURE_HEADER, verify_signature
from insideout.services.request_validation import parse_top5_request
from insideout.use_cases.query_executor import QueryExecutor
from insideout.use_cases.top5_fanout import Top5Orchestrator

logger = get_logger(__name__)


async def require_signature(request: Request) -> None:
    """Reject requests whose X-Signature does not cover the raw body."""
    settings: Settings = request.app.state.settings
    secret = (
        settings.hmac_secret_shared.get_secret_value()
        if settings.hmac_secret_shared
        else None
    )
    verify_signature(await request.body(), request.headers.get(SIGNATURE_HEADER), secret)


async def get_top5_request(request: Request) -> Top5Request:
    try:
        payload = json.loads(await request.body())
    except ValueError as exc:
        raise ValidationError("Request body must be valid JSON") from exc
    return parse_top5_request(payload)


def get_executor(request: Request) -> QueryExecutor:
    executor: QueryExecutor | None = request.app.state.executor
    if executor is None:
        raise InsideOutError("Query executor is not initialized")
    return executor


api_router = APIRouter(prefix="/api", dependencies=[Depends(require_signature)])


@api_router.post("/top5")
async def top5(
    top5_request: Top5Request = Depends(get_top5_request),
    executor: QueryExecutor = Depends(get_executor),
) -> dict[str, Any]:
    """Return the top-5 leaderboard for a month and category selector."""
    category = str(getattr(top5_request.category, "value", top5_request.category))
    bind_context(request_id=str(uuid4()), month=top5_request.month, category=category)
    try:
        logger.info("top5_request_received")

        orchestrator = Top5Orchestrator(executor)
        try:
            results, last_updated = await asyncio.gather(
                orchestrator.query_top5(top5_request.period, top5_request.category),
                asyncio.to_thread(executor.fetch_last_updated),
            )
        except InsideOutError:
            raise
        except Exception as exc:
            raise QueryExecutionError(f"Top5 query failed: {exc}") from exc

        response = AggregateResponse(
            period=top5_request.month,
            results=results,
            notes=[TIE_BREAK_NOTE],
            last_updated=last_updated,
        )
        logger.info("top5_request_processed", result_count=len(results))
        return response.to_payload()
    finally:
        clear_context()


async def health() -> dict[str, str]:
    """Liveness check (unauthenticated)."""
    return {"status": "ok", "timestamp": datetime.now(UTC).isoformat()}


async def handle_app_error(request: Request, exc: InsideOutError) -> JSONResponse:
    """Render application errors as ``{"error": ...}`` with their status code."""
    if exc.status_code >= 500:
        logger.error(
            "request_failed",
            path=request.url.path,
            error_type=type(exc).__name__,
            error=str(exc),
        )
    return JSONResponse(status_code=exc.status_code, content={"error": exc.public_message})


def create_app(settings: Settings, executor: QueryExecutor | None = None) -> FastAPI:
    """Build the query service application.

    Args:
        settings: Application settings
        executor: Preconstructed executor; when omitted one is built at
            startup from a ClickHouse connection that is closed on shutdown

    Returns:
        Configured FastAPI app
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        if not settings.hmac_secret_shared:
            logger.error("hmac_secret_not_configured")

        warehouse: ClickHouseWarehouse | None = None
        if app.state.executor is None:
            warehouse = ClickHouseWarehouse.from_settings(settings)
            warehouse.connect()
            templates = SqlTemplateStore(Path(settings.sql_dir))
            app.state.executor = QueryExecutor(warehouse, templates)

        logger.info("query_service_started")
        try:
            yield
        finally:
            if warehouse is not None:
                warehouse.close()
            logger.info("query_service_stopped")

    app = FastAPI(title="InsideOut Query Service", lifespan=lifespan)
    app.state.settings = settings
    app.state.executor = executor

    app.add_api_route("/health", health, methods=["GET"])
    app.include_router(api_router)
    app.add_exception_handler(InsideOutError, handle_app_error)  # type: ignore[arg-type]
    return app
