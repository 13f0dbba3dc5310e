import logging
import threading
import traceback
from datetime import datetime
from typing import Dict, Any, Iterator, Optional, Protocol, Union

from data_layer.aggregator.aggregation_store import AggregationStore
from data_layer.market_stream.models import StockPriceDecodeError, decode_stock_price

logger = logging.getLogger(__name__)


class PriceSubscription(Protocol):
    def messages(self) -> Iterator[bytes]: ...

    def close(self) -> None: ...


class IngestionWorker:

    def __init__(self, subscription: PriceSubscription, store: AggregationStore, name: str = "ingestion_worker"):
        self.subscription = subscription
        self.store = store
        self.name = name
        self.worker_thread: Optional[threading.Thread] = None
        self.running = False
        self.processed_count = 0
        self.decode_error_count = 0
        self.last_decode_error: Optional[str] = None
        self.last_processed_time: Optional[datetime] = None
        self.started_at: Optional[datetime] = None
        self.worker_status = "idle"
        self._status_lock = threading.Lock()

    def start(self) -> bool:
        if self.running:
            logger.warning("Worker is already running")
            return False
        self.running = True
        self.started_at = datetime.now()
        self.worker_thread = threading.Thread(target=self._worker_loop, daemon=True, name=self.name)
        self.worker_thread.start()
        logger.info(f"Ingestion worker thread '{self.name}' started")
        return True

    def is_alive(self) -> bool:
        return self.worker_thread is not None and self.worker_thread.is_alive()

    def stop(self, timeout: float = 5.0):
        if not self.running and not self.is_alive():
            return

        self.running = False
        self.subscription.close()

        if self.worker_thread and self.worker_thread.is_alive() and self.worker_thread is not threading.current_thread():
            self.worker_thread.join(timeout=timeout)
            if self.worker_thread.is_alive():
                logger.warning("Worker thread did not terminate gracefully")

        logger.info(f"Ingestion worker stopped. Stats: processed={self.processed_count}, decode_errors={self.decode_error_count}")

    def process_message(self, raw: Union[bytes, str]) -> bool:
        """Decode one raw message and apply it to the store. Malformed messages are counted, not raised."""
        try:
            price = decode_stock_price(raw)
        except StockPriceDecodeError as e:
            with self._status_lock:
                self.decode_error_count += 1
                self.last_decode_error = str(e)
            logger.warning(f"Skipping malformed message ({self.decode_error_count} so far): {e}")
            return False

        self.store.apply(price)
        with self._status_lock:
            self.processed_count += 1
            self.last_processed_time = datetime.now()
        return True

    def get_status(self) -> Dict[str, Any]:
        with self._status_lock:
            return {
                "name": self.name,
                "running": self.running,
                "status": self.worker_status,
                "processed_count": self.processed_count,
                "decode_error_count": self.decode_error_count,
                "last_decode_error": self.last_decode_error,
                "last_processed": self.last_processed_time.isoformat() if self.last_processed_time else None,
                "started_at": self.started_at.isoformat() if self.started_at else None,
            }

    def _set_status(self, status: str) -> None:
        with self._status_lock:
            self.worker_status = status

    def _worker_loop(self):
        self._set_status("waiting")
        try:
            for raw in self.subscription.messages():
                self._set_status("processing")
                self.process_message(raw)
                if not self.running:
                    break
                self._set_status("waiting")
            self._set_status("stopped")
        except Exception as e:
            self._set_status("failed")
            logger.error(f"Price subscription failed, ingestion stopping: {e}")
            logger.error(traceback.format_exc())
        finally:
            self.running = False

        logger.info(f"Ingestion worker thread '{self.name}' finished with status '{self.get_status()['status']}'")
