from pydantic_settings import BaseSettings
from dotenv import load_dotenv
import os
from typing import List

load_dotenv()

DEFAULT_SYMBOLS = ["AAPL", "GOOGL", "AMZN", "MSFT", "TSLA"]


class Settings(BaseSettings):
    redis_url: str = os.environ.get("REDIS_URL", "redis://localhost:6379/0")
    price_channel: str = os.environ.get("PRICE_CHANNEL", "stock_prices")
    api_host: str = os.environ.get("API_HOST", "127.0.0.1")
    api_port: int = int(os.environ.get("API_PORT", 3002))
    auth_service_url: str = os.environ.get("AUTH_SERVICE_URL", "http://localhost:3001")
    auth_host: str = os.environ.get("AUTH_HOST", "127.0.0.1")
    auth_port: int = int(os.environ.get("AUTH_PORT", 3001))
    auth_timeout_seconds: float = float(os.environ.get("AUTH_TIMEOUT_SECONDS", 5.0))
    require_authorization: bool = os.environ.get("REQUIRE_AUTHORIZATION", "true").lower() == "true"
    log_level: str = os.environ.get("LOG_LEVEL", "INFO")
    publish_interval_seconds: float = float(os.environ.get("PUBLISH_INTERVAL_SECONDS", 2.0))
    publish_symbols: List[str] = DEFAULT_SYMBOLS

    class Config:
        env_file = ".env"
        case_sensitive = False
        extra = "allow"


settings = Settings()
