import sys
import logging
import argparse
import signal
from typing import Optional

import redis
import uvicorn

from config.settings import settings

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

# Import modules
from api.auth_gate import AuthorizationGate, HttpAuthorizationGate
from api.auth_service import create_auth_app
from api.query_service import create_app
from data_layer.aggregator import AggregationStore, IngestionWorker
from data_layer.market_stream import (
    PriceSimulator,
    PriceWatcher,
    RedisChannelPublisher,
    RedisChannelSubscription,
)


def build_auth_gate() -> Optional[AuthorizationGate]:
    if not settings.require_authorization:
        logger.warning("Authorization disabled: query endpoints are open")
        return None
    return HttpAuthorizationGate(settings.auth_service_url, timeout=settings.auth_timeout_seconds)


def run_aggregator() -> int:
    """Ingest prices from the channel and serve the query API"""
    store = AggregationStore()
    subscription = RedisChannelSubscription()

    try:
        subscription.connect()
    except redis.RedisError as e:
        logger.error(f"Cannot subscribe to the price channel, aborting: {e}")
        return 1

    worker = IngestionWorker(subscription, store)
    app = create_app(store, auth_gate=build_auth_gate(), ingestion_worker=worker)

    logger.info(f"Aggregator service running on http://{settings.api_host}:{settings.api_port}")
    try:
        uvicorn.run(app, host=settings.api_host, port=settings.api_port, log_level=settings.log_level.lower())
    except SystemExit as e:
        # uvicorn exits this way when it cannot bind the port
        logger.error(f"Query service failed to start: exit code {e.code}")
        return 1
    finally:
        worker.stop()
        subscription.disconnect()

    return 0


def run_publisher(rounds: Optional[int], interval: Optional[float]) -> int:
    """Publish simulated prices until interrupted"""
    try:
        publisher = RedisChannelPublisher()
    except redis.RedisError as e:
        logger.error(f"Cannot connect publisher to Redis, aborting: {e}")
        return 1

    simulator = PriceSimulator(
        publisher,
        symbols=settings.publish_symbols,
        interval_seconds=interval if interval is not None else settings.publish_interval_seconds
    )

    def signal_handler(sig, frame):
        logger.info("Stopping publisher due to signal")
        simulator.stop()

    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)

    with publisher:
        simulator.run(max_rounds=rounds)
        logger.info(f"Publisher stats: {publisher.get_stats()}")
    return 0


def run_auth_service() -> int:
    """Serve the email registry used by the authorization gate"""
    logger.info(f"Auth service running on http://{settings.auth_host}:{settings.auth_port}")
    try:
        uvicorn.run(create_auth_app(), host=settings.auth_host, port=settings.auth_port,
                    log_level=settings.log_level.lower())
    except SystemExit as e:
        logger.error(f"Auth service failed to start: exit code {e.code}")
        return 1
    return 0


def run_watch(email: str) -> int:
    """Print live prices for an authorized email"""
    gate = HttpAuthorizationGate(settings.auth_service_url, timeout=settings.auth_timeout_seconds)
    watcher = PriceWatcher(RedisChannelSubscription(), gate, email)

    def signal_handler(sig, frame):
        logger.info("Stopping watcher due to signal")
        watcher.stop()

    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)

    try:
        granted = watcher.run()
    except redis.RedisError as e:
        logger.error(f"Cannot subscribe to the price channel, aborting: {e}")
        return 1

    if not granted:
        print(f"Access denied for {email}")
        return 2
    return 0


def main(argv=None) -> int:
    """Main entry point for the CLI"""
    parser = argparse.ArgumentParser(description="Stock ticker aggregation services")

    subparsers = parser.add_subparsers(dest="command", help="Command to execute")

    subparsers.add_parser("aggregator", help="Ingest prices and serve the query API")

    publish_parser = subparsers.add_parser("publish", help="Publish simulated prices")
    publish_parser.add_argument("--rounds", type=int, default=None, help="Stop after this many rounds")
    publish_parser.add_argument("--interval", type=float, default=None, help="Seconds between rounds")

    subparsers.add_parser("auth-service", help="Serve the email authorization registry")

    watch_parser = subparsers.add_parser("watch", help="Print live prices for an authorized email")
    watch_parser.add_argument("email", help="Registered email")

    args = parser.parse_args(argv)

    if args.command == "aggregator":
        return run_aggregator()
    elif args.command == "publish":
        return run_publisher(args.rounds, args.interval)
    elif args.command == "auth-service":
        return run_auth_service()
    elif args.command == "watch":
        return run_watch(args.email)

    parser.print_help()
    return 1


if __name__ == "__main__":
    sys.exit(main())
