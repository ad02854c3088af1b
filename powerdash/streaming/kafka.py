"""
Kafka stream client.

Wraps aiokafka behind the synchronous StreamClient interface. The consumer
and producer live on a private asyncio event loop running in a daemon
thread; handlers are invoked from that thread.
"""

import asyncio
import json
import threading
from typing import Any, Dict, List, Optional

from aiokafka import AIOKafkaConsumer, AIOKafkaProducer

from powerdash.config_models import StreamConfig
from powerdash.interfaces import MessageHandler, StreamClient, StreamError, Unsubscribe
from powerdash.logging_config import get_logger

logger = get_logger(__name__)


def decode_message(value: Optional[bytes]) -> Optional[Dict[str, Any]]:
    """Decode a record value into a message mapping, or None if undecodable."""
    if value is None:
        return None
    try:
        data = json.loads(value.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        logger.warning(f"Discarding undecodable Kafka record: {e}")
        return None
    if not isinstance(data, dict):
        logger.warning(f"Discarding Kafka record that is not an object: {data!r}")
        return None
    return data


class KafkaStreamClient(StreamClient):
    """StreamClient backed by a Kafka consumer group."""

    def __init__(self, config: StreamConfig):
        self.config = config
        self.logger = get_logger(__name__)

        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._thread: Optional[threading.Thread] = None
        self._consumer: Optional[AIOKafkaConsumer] = None
        self._producer: Optional[AIOKafkaProducer] = None
        self._consume_future = None
        self._handlers: List[MessageHandler] = []
        self._lock = threading.Lock()

    @property
    def is_connected(self) -> bool:
        return self._consumer is not None

    def connect(self) -> None:
        if self.is_connected:
            return

        self._start_loop()
        try:
            self._consumer = self._run(self._start_consumer())
        except Exception as e:
            self._stop_loop()
            raise StreamError(f"Failed to connect to Kafka at {self.config.bootstrap_servers}: {e}") from e

        self.logger.info(
            f"Kafka consumer connected to {self.config.bootstrap_servers} "
            f"(topic={self.config.topic}, group={self.config.group_id})"
        )

    def subscribe(self, handler: MessageHandler) -> Unsubscribe:
        if not self.is_connected:
            raise StreamError("Kafka consumer is not connected")

        with self._lock:
            self._handlers.append(handler)
            if self._consume_future is None:
                self._consume_future = asyncio.run_coroutine_threadsafe(self._consume(), self._loop)
                self._consume_future.add_done_callback(self._on_consume_done)

        def unsubscribe() -> None:
            with self._lock:
                if handler in self._handlers:
                    self._handlers.remove(handler)

        return unsubscribe

    def publish(self, metric_type: str, value: float) -> None:
        if self._loop is None:
            raise StreamError("Kafka client is not connected")

        payload = json.dumps({"type": metric_type, "value": value}).encode("utf-8")
        try:
            if self._producer is None:
                self._producer = self._run(self._start_producer())
            self._run(self._producer.send_and_wait(self.config.topic, payload))
        except Exception as e:
            raise StreamError(f"Failed to publish to Kafka topic {self.config.topic}: {e}") from e

    def disconnect(self) -> None:
        if self._loop is None:
            return

        with self._lock:
            self._handlers.clear()
            future, self._consume_future = self._consume_future, None
        if future is not None:
            future.cancel()

        for client in (self._consumer, self._producer):
            if client is None:
                continue
            try:
                self._run(client.stop())
            except Exception as e:
                self.logger.warning(f"Error stopping Kafka client: {e}")

        self._consumer = None
        self._producer = None
        self._stop_loop()
        self.logger.info("Kafka consumer disconnected")

    async def _start_consumer(self) -> AIOKafkaConsumer:
        consumer = AIOKafkaConsumer(
            self.config.topic,
            bootstrap_servers=self.config.bootstrap_servers,
            group_id=self.config.group_id,
            client_id=self.config.client_id,
        )
        try:
            await consumer.start()
        except Exception:
            await consumer.stop()
            raise
        return consumer

    async def _start_producer(self) -> AIOKafkaProducer:
        producer = AIOKafkaProducer(
            bootstrap_servers=self.config.bootstrap_servers,
            client_id=self.config.client_id,
        )
        await producer.start()
        return producer

    async def _consume(self) -> None:
        try:
            async for record in self._consumer:
                message = decode_message(record.value)
                if message is None:
                    continue
                with self._lock:
                    handlers = list(self._handlers)
                for handler in handlers:
                    try:
                        handler(message)
                    except Exception as e:
                        self.logger.error(f"Subscriber failed on Kafka message {message}: {e}")
        except asyncio.CancelledError:
            self.logger.info(f"Kafka consumer loop cancelled for {self.config.topic}")
            raise
        except Exception as e:
            self.logger.error(f"Kafka consumer loop error for {self.config.topic}: {e}")
            raise

    def _on_consume_done(self, future) -> None:
        if future.cancelled() or future.exception() is None:
            return
        self.report_error(StreamError(f"Kafka consumer stopped: {future.exception()}"))

    def _run(self, coro: Any) -> Any:
        future = asyncio.run_coroutine_threadsafe(coro, self._loop)
        return future.result(timeout=self.config.connect_timeout_seconds)

    def _start_loop(self) -> None:
        self._loop = asyncio.new_event_loop()
        self._thread = threading.Thread(target=self._loop.run_forever, daemon=True, name="KafkaStreamLoop")
        self._thread.start()

    def _stop_loop(self) -> None:
        loop, thread = self._loop, self._thread
        self._loop = None
        self._thread = None
        if loop is None:
            return
        loop.call_soon_threadsafe(loop.stop)
        if thread is not None:
            thread.join(timeout=5)
        loop.close()
