"""
Stock Ticker Aggregator: Query API
==================================

Read-only HTTP views over the AggregationStore.

Endpoints:
- GET /aggregate            -> stats for every symbol
- GET /raw                  -> price history for every symbol
- GET /aggregate/{symbol}   -> stats for one symbol (404 if never seen)
- GET /raw/{symbol}         -> price history for one symbol (404 if never seen)
- GET /health               -> store summary and ingestion status

When an AuthorizationGate is configured, the data endpoints require an
`email` query parameter and consult the gate before reading the store.

Usage:
    python main.py aggregator
"""
import logging
from contextlib import asynccontextmanager
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, HTTPException, Query

from api.auth_gate import AuthorizationGate
from data_layer.aggregator.aggregation_store import AggregationStore
from data_layer.aggregator.ingestion_worker import IngestionWorker

logger = logging.getLogger(__name__)


def create_app(store: AggregationStore,
               auth_gate: Optional[AuthorizationGate] = None,
               ingestion_worker: Optional[IngestionWorker] = None) -> FastAPI:
    """
    Build the query API around an explicitly constructed store.

    Args:
        store: The store shared with the ingestion worker
        auth_gate: Optional gate consulted on every data request
        ingestion_worker: Optional worker started and stopped with the app

    Returns:
        FastAPI application
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if ingestion_worker is not None:
            ingestion_worker.start()
        yield
        if ingestion_worker is not None:
            logger.info("Shutting down ingestion worker")
            ingestion_worker.stop()

    app = FastAPI(
        title="Stock Ticker Aggregator API",
        version="0.1.0",
        description="Read-only statistics and history for streamed stock prices",
        lifespan=lifespan
    )

    # =========================================================================
    # AUTHORIZATION
    # =========================================================================

    def authorize(email: Optional[str]) -> None:
        # Runs before any store access; the gate call never holds the store lock
        if auth_gate is None:
            return
        if not email:
            raise HTTPException(status_code=401, detail="Missing identity: pass ?email=")
        try:
            authorized = auth_gate.is_authorized(email)
        except Exception as e:
            # An erroring gate counts as a denial
            logger.error(f"Authorization gate failed for {email}: {e}")
            authorized = False
        if not authorized:
            logger.info(f"Access denied for {email}")
            raise HTTPException(status_code=403, detail=f"Access denied for {email}")

    # =========================================================================
    # ENDPOINTS
    # =========================================================================

    @app.get("/health")
    def health_check() -> Dict[str, Any]:
        return {
            "status": "ok",
            "store": store.get_summary(),
            "ingestion": ingestion_worker.get_status() if ingestion_worker is not None else None,
        }

    @app.get("/aggregate")
    def get_stats(email: Optional[str] = Query(None)) -> Dict[str, Any]:
        authorize(email)
        return {symbol: stats.model_dump() for symbol, stats in store.get_all_stats().items()}

    @app.get("/raw")
    def get_raw(email: Optional[str] = Query(None)) -> Dict[str, List[Dict[str, Any]]]:
        authorize(email)
        return {
            symbol: [price.to_wire() for price in prices]
            for symbol, prices in store.get_all_history().items()
        }

    @app.get("/aggregate/{symbol}")
    def get_stats_for_symbol(symbol: str, email: Optional[str] = Query(None)) -> Dict[str, Any]:
        authorize(email)
        stats = store.get_stats(symbol)
        if stats is None:
            raise HTTPException(status_code=404, detail=f"No data for symbol {symbol}")
        return stats.model_dump()

    @app.get("/raw/{symbol}")
    def get_raw_for_symbol(symbol: str, email: Optional[str] = Query(None)) -> List[Dict[str, Any]]:
        authorize(email)
        prices = store.get_history(symbol)
        if prices is None:
            raise HTTPException(status_code=404, detail=f"No data for symbol {symbol}")
        return [price.to_wire() for price in prices]

    return app
