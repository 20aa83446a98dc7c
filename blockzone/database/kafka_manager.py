import asyncio
import json
from aiokafka import AIOKafkaProducer

from ..config import kafka
from ..logger import get_logger

logger = get_logger(__name__)


class ScoreEventPublisher:
    """Publishes verified score records to Kafka when the stream is enabled"""

    def __init__(self, producer: AIOKafkaProducer = None, enabled: bool = None, topic: str = None):
        self.producer = producer
        self.enabled = kafka.enabled if enabled is None else enabled
        self.topic = topic or kafka.topic
        self.max_retries = kafka.max_retries
        self.retry_delay = kafka.retry_delay
        self._initialized = producer is not None
        self._init_lock = asyncio.Lock()

    async def initialize(self):
        """Initialize Kafka producer"""
        if not self.enabled or self._initialized:
            return

        async with self._init_lock:
            if self._initialized:  # Double check after acquiring lock
                return

            retry_count = 0
            while retry_count < self.max_retries:
                try:
                    self.producer = AIOKafkaProducer(
                        bootstrap_servers=kafka.bootstrap_servers,
                        value_serializer=lambda v: json.dumps(v).encode('utf-8'),
                        request_timeout_ms=1000,
                        retry_backoff_ms=100,
                        client_id=kafka.client_id
                    )
                    await self.producer.start()
                    self._initialized = True
                    logger.info("Kafka producer initialized successfully")
                    return
                except Exception as e:
                    retry_count += 1
                    logger.error(f"Failed to initialize Kafka producer (attempt {retry_count}/{self.max_retries}): {e}")
                    if retry_count < self.max_retries:
                        await asyncio.sleep(self.retry_delay * retry_count)
                    else:
                        logger.error("Max retries reached for Kafka producer initialization")
                        raise

    async def publish(self, value: dict) -> bool:
        """Send a score event; the submission is already committed, so failures are only logged"""
        if not self.enabled:
            return False
        if not self._initialized:
            try:
                await self.initialize()
            except Exception as e:
                logger.error(f"Score event for {value.get('id')} not published: {e}")
                return False

        retry_count = 0
        while retry_count < self.max_retries:
            try:
                await self.producer.send(self.topic, value=value)
                return True
            except Exception as e:
                retry_count += 1
                logger.error(f"Kafka error (attempt {retry_count}/{self.max_retries}): {e}")
                if retry_count < self.max_retries:
                    await asyncio.sleep(self.retry_delay * retry_count)
        logger.error(f"Dropped score event {value.get('id')} after {retry_count} attempts")
        return False

    async def close(self):
        """Close Kafka producer"""
        if self.producer:
            await self.producer.stop()
        self._initialized = False
