"""
Report transports: the hand-off boundary to error storage.

The report assembler calls ``send(report)`` once per report and expects no
result. Delivery guarantees and retries belong to the transport.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from contextlib import asynccontextmanager
from typing import Optional

import redis.asyncio as redis
from redis.asyncio.connection import ConnectionPool
from redis.exceptions import RedisError, ConnectionError, TimeoutError

from symbolicator.models.report import ResolvedErrorReport


logger = logging.getLogger(__name__)


class TransportError(Exception):
    """Raised when a report cannot be delivered."""
    pass


class ReportTransport(ABC):
    """Base interface for report storage transports."""

    @abstractmethod
    async def send(self, report: ResolvedErrorReport) -> None:
        """
        Deliver a resolved report.

        Args:
            report: Report to deliver

        Raises:
            TransportError: If the report could not be delivered
        """
        pass

    async def initialize(self) -> None:
        """Open connections. Called on application startup."""
        pass

    async def close(self) -> None:
        """Release connections. Called on application shutdown."""
        pass


class LoggingTransport(ReportTransport):
    """Writes each report as a structured log record."""

    def __init__(self, logger_name: str = "symbolicator.reports"):
        self._logger = logging.getLogger(logger_name)

    async def send(self, report: ResolvedErrorReport) -> None:
        self._logger.info(
            f"Error report: {report.message}",
            extra={
                "event_id": report.event_id,
                "origin": report.origin.value,
                "report": report.model_dump(mode="json"),
            }
        )


class RedisReportTransport(ReportTransport):
    """
    Pushes each report as JSON onto a Redis list consumed by error storage.

    Connection resets and timeouts are retried with exponential backoff; any
    other Redis error fails the delivery at once.
    """

    REPORT_QUEUE_KEY = "error_reports:resolved"
    POOL_SIZE = 10

    def __init__(
        self,
        redis_url: str,
        queue_key: Optional[str] = None,
        max_retries: int = 3,
        retry_delay: float = 0.5,
        connection_timeout: int = 5
    ):
        """
        Args:
            redis_url: Redis holding the report queue
            queue_key: List key reports are pushed onto
            max_retries: Delivery attempts when Redis is unreachable
            retry_delay: Delay before the second attempt, doubled for each one after
            connection_timeout: Socket timeout in seconds
        """
        self._redis_url = redis_url
        self._queue_key = queue_key or self.REPORT_QUEUE_KEY
        self._pool: Optional[ConnectionPool] = None
        self._client: Optional[redis.Redis] = None
        self._max_retries = max_retries
        self._retry_delay = retry_delay
        self._connection_timeout = connection_timeout

    @property
    def queue_key(self) -> str:
        return self._queue_key

    async def initialize(self) -> None:
        """
        Open the connection pool and check the report queue is reachable.

        Raises:
            TransportError: If Redis does not answer
        """
        self._pool = ConnectionPool.from_url(
            self._redis_url,
            max_connections=self.POOL_SIZE,
            decode_responses=True,
            socket_timeout=self._connection_timeout,
            socket_connect_timeout=self._connection_timeout,
        )
        self._client = redis.Redis(connection_pool=self._pool)

        try:
            await self._client.ping()
        except RedisError as e:
            logger.error(f"Report queue unreachable: {e}")
            raise TransportError(f"Cannot reach the report queue: {e}") from e

        logger.info(f"Reports will be queued on '{self._queue_key}'")

    async def close(self) -> None:
        if self._client:
            await self._client.aclose()
        if self._pool:
            await self._pool.disconnect()
        logger.info("Report queue connection closed")

    @asynccontextmanager
    async def _get_client(self):
        if not self._client:
            raise RuntimeError("Redis transport not initialized. Call initialize() first.")
        yield self._client

    async def _retry_operation(self, operation):
        """
        Run a queue command, retrying while Redis is unreachable.

        Raises:
            TransportError: If Redis rejects the command, or stays
                unreachable for every attempt
        """
        delay = self._retry_delay
        for attempt in range(1, self._max_retries + 1):
            try:
                return await operation()
            except (ConnectionError, TimeoutError) as e:
                if attempt == self._max_retries:
                    raise TransportError(
                        f"Report queue unreachable after {self._max_retries} retries: {e}"
                    ) from e
                logger.warning(f"Report queue unreachable ({attempt}/{self._max_retries}), retrying in {delay}s: {e}")
                await asyncio.sleep(delay)
                delay *= 2
            except RedisError as e:
                raise TransportError(f"Report queue rejected the command: {e}") from e

        raise TransportError(f"Report queue called with max_retries={self._max_retries}")

    async def send(self, report: ResolvedErrorReport) -> None:
        async def _push():
            async with self._get_client() as client:
                await client.lpush(self._queue_key, report.model_dump_json())

        await self._retry_operation(_push)
        logger.debug(f"Report {report.event_id} queued", extra={"event_id": report.event_id})

    async def pending_count(self) -> int:
        """Number of reports waiting in the queue."""
        async def _length():
            async with self._get_client() as client:
                return await client.llen(self._queue_key)

        return await self._retry_operation(_length)
