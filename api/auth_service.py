"""
Authorization service: a registry of emails allowed to read prices.

Endpoints:
- POST /register        -> add an email
- GET  /is-authorized   -> JSON boolean for ?email=
- GET  /list-emails     -> every registered email
"""
import logging
import threading
from typing import List, Optional, Set

from fastapi import FastAPI, Query
from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)


class Registration(BaseModel):
    email: str = Field(..., min_length=1)


class EmailRegistry:
    """Thread-safe set of authorized emails"""

    def __init__(self):
        self._lock = threading.Lock()
        self._emails: Set[str] = set()

    def register(self, email: str) -> None:
        with self._lock:
            self._emails.add(email)

    def contains(self, email: str) -> bool:
        with self._lock:
            return email in self._emails

    def list_emails(self) -> List[str]:
        with self._lock:
            return sorted(self._emails)


def create_auth_app(registry: Optional[EmailRegistry] = None) -> FastAPI:
    registry = registry or EmailRegistry()

    app = FastAPI(title="Stock Ticker Auth Service", version="0.1.0")

    @app.post("/register")
    def register(payload: Registration) -> str:
        registry.register(payload.email)
        logger.info(f"Registered {payload.email}")
        return "Registered"

    @app.get("/is-authorized")
    def is_authorized(email: str = Query(...)) -> bool:
        return registry.contains(email)

    @app.get("/list-emails")
    def list_emails() -> List[str]:
        return registry.list_emails()

    return app
