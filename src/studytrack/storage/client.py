"""MongoDB storage client for StudyTrack.

Provides connection management, retry logic, and repository access.
"""

import logging
import time
from collections.abc import Callable
from datetime import UTC, datetime
from functools import wraps
from typing import TYPE_CHECKING, Any, TypeVar

from pymongo import MongoClient
from pymongo.database import Database
from pymongo.errors import ConnectionFailure, ServerSelectionTimeoutError

if TYPE_CHECKING:
    from .progress import MongoRollupCache
    from .sessions import MongoSessionRepository
    from .tasks import MongoTaskRepository

logger = logging.getLogger(__name__)

T = TypeVar("T")


def retry_on_connection_failure(
    max_retries: int = 5,
    base_delay: float = 1.0,
) -> Callable[[Callable[..., T]], Callable[..., T]]:
    """Decorator for exponential backoff retry on connection failures.

    Args:
        max_retries: Maximum number of retry attempts.
        base_delay: Base delay in seconds (doubles each retry).

    Returns:
        Decorated function with retry logic.
    """

    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        @wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> T:
            last_exception: Exception | None = None

            for attempt in range(max_retries):
                try:
                    return func(*args, **kwargs)
                except (ConnectionFailure, ServerSelectionTimeoutError) as e:
                    last_exception = e
                    if attempt < max_retries - 1:
                        delay = base_delay * (2**attempt)
                        logger.warning(
                            "Connection failed (attempt %d/%d), retrying in %.1fs: %s",
                            attempt + 1,
                            max_retries,
                            delay,
                            str(e),
                        )
                        time.sleep(delay)
                    else:
                        logger.error(
                            "Connection failed after %d attempts: %s",
                            max_retries,
                            str(e),
                        )

            if last_exception:
                raise last_exception
            raise RuntimeError("Unexpected retry loop exit")

        return wrapper

    return decorator


def to_naive_utc(value: datetime | None) -> datetime | None:
    """Normalize a datetime for BSON storage and queries (naive UTC)."""
    if value is None:
        return None
    if value.tzinfo is not None:
        value = value.astimezone(UTC).replace(tzinfo=None)
    return value


class MongoStorageClient:
    """High-level MongoDB storage client.

    Manages connection and provides access to repositories.
    """

    def __init__(
        self,
        uri: str = "mongodb://localhost:27017",
        database_name: str = "studytrack",
        max_pool_size: int = 50,
        min_pool_size: int = 10,
        connect_timeout_ms: int = 5000,
        server_selection_timeout_ms: int = 5000,
        cache_ttl_seconds: float = 300.0,
        client_factory: Callable[..., Any] = MongoClient,
    ) -> None:
        """Initialize the storage client.

        Args:
            uri: MongoDB connection URI.
            database_name: Name of the database to use.
            max_pool_size: Maximum connection pool size.
            min_pool_size: Minimum connection pool size.
            connect_timeout_ms: Connection timeout in milliseconds.
            server_selection_timeout_ms: Server selection timeout in milliseconds.
            cache_ttl_seconds: Freshness window of cached daily rollups.
            client_factory: Callable creating the driver client (MongoClient).
        """
        self._uri = uri
        self._database_name = database_name
        self._client: Any | None = None
        self._db: Database[dict[str, Any]] | None = None

        self._max_pool_size = max_pool_size
        self._min_pool_size = min_pool_size
        self._connect_timeout_ms = connect_timeout_ms
        self._server_selection_timeout_ms = server_selection_timeout_ms
        self._cache_ttl_seconds = cache_ttl_seconds
        self._client_factory = client_factory

        self._tasks: "MongoTaskRepository | None" = None
        self._sessions: "MongoSessionRepository | None" = None
        self._daily_progress: "MongoRollupCache | None" = None

        self._connected = False

    def connect(self) -> None:
        """Connect to MongoDB.

        Raises:
            ConnectionFailure: If connection fails.
        """
        if self._connected:
            return

        from .progress import MongoRollupCache
        from .sessions import MongoSessionRepository
        from .tasks import MongoTaskRepository

        try:
            self._client = self._client_factory(
                self._uri,
                maxPoolSize=self._max_pool_size,
                minPoolSize=self._min_pool_size,
                connectTimeoutMS=self._connect_timeout_ms,
                serverSelectionTimeoutMS=self._server_selection_timeout_ms,
            )

            # Verify connection
            self._client.admin.command("ping")

            self._db = self._client[self._database_name]
            self._tasks = MongoTaskRepository(self._db["learning_tasks"])
            self._sessions = MongoSessionRepository(self._db["learning_sessions"])
            self._daily_progress = MongoRollupCache(
                self._db["daily_progress"], ttl_seconds=self._cache_ttl_seconds
            )
            self._connected = True

            logger.info("Connected to MongoDB at %s", self._uri)

        except (ConnectionFailure, ServerSelectionTimeoutError) as e:
            logger.error("Failed to connect to MongoDB: %s", str(e))
            self._connected = False
            raise

    def disconnect(self) -> None:
        """Disconnect from MongoDB."""
        if self._client is not None:
            self._client.close()
            self._client = None
            self._db = None
            self._tasks = None
            self._sessions = None
            self._daily_progress = None
            self._connected = False
            logger.info("Disconnected from MongoDB")

    def is_connected(self) -> bool:
        """Check if connected to MongoDB.

        Returns:
            True if connected, False otherwise.
        """
        if not self._connected or self._client is None:
            return False

        try:
            self._client.admin.command("ping")
            return True
        except (ConnectionFailure, ServerSelectionTimeoutError):
            self._connected = False
            return False

    def health_check(self) -> bool:
        """Perform a health check on the database.

        Returns:
            True if healthy, False otherwise.
        """
        return self.is_connected()

    def _require(self, repository: Any) -> Any:
        if repository is None:
            raise RuntimeError("Not connected to MongoDB. Call connect() first.")
        return repository

    @property
    def tasks(self) -> "MongoTaskRepository":
        """Get the task repository.

        Raises:
            RuntimeError: If not connected.
        """
        return self._require(self._tasks)

    @property
    def sessions(self) -> "MongoSessionRepository":
        """Get the learning session repository.

        Raises:
            RuntimeError: If not connected.
        """
        return self._require(self._sessions)

    @property
    def daily_progress(self) -> "MongoRollupCache":
        """Get the cached daily rollup store.

        Raises:
            RuntimeError: If not connected.
        """
        return self._require(self._daily_progress)

    @property
    def database(self) -> Database[dict[str, Any]]:
        """Get the database instance.

        Raises:
            RuntimeError: If not connected.
        """
        return self._require(self._db)

    def __enter__(self) -> "MongoStorageClient":
        """Context manager entry."""
        self.connect()
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Context manager exit."""
        self.disconnect()


__all__ = [
    "MongoStorageClient",
    "retry_on_connection_failure",
    "to_naive_utc",
]
