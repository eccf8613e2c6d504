"""
Async SQLAlchemy 連線管理

提供 PostgreSQL 資料庫的非同步連線管理，支援：
- 連線重試（線性退避）
- 連線池管理
- Context manager 封裝的 session 管理（一個 session = 一筆交易）

注意：資料庫 schema 遷移由 Alembic 管理，請使用：
  orgmind-db upgrade head
"""
import asyncio
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from loguru import logger
from sqlalchemy import text
from sqlalchemy.engine import make_url
from sqlalchemy.exc import DBAPIError, InterfaceError, OperationalError, SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from orgmind.core.config import Settings
from orgmind.core.exceptions import (
    DataAccessError,
    DatabaseConnectionError,
    PersistenceError,
)


def is_connectivity_error(exc: BaseException) -> bool:
    """
    判斷例外是否代表連線中斷（而非約束違反等單筆資料錯誤）。

    Args:
        exc: 任意例外

    Returns:
        True 如果是連線層級的錯誤
    """
    if isinstance(exc, (OperationalError, InterfaceError)):
        return True
    return isinstance(exc, DBAPIError) and bool(exc.connection_invalidated)


def translate_write_error(
    exc: SQLAlchemyError,
    message: str,
    user_id: Optional[str] = None,
) -> DataAccessError:
    """
    將寫入時的 SQLAlchemy 例外轉換為 OrgMind 例外。

    連線中斷轉為 DatabaseConnectionError（致命），
    其餘（約束違反、資料錯誤等）轉為 PersistenceError。
    """
    if is_connectivity_error(exc):
        return DatabaseConnectionError(f"{message}: {exc}")
    return PersistenceError(f"{message}: {exc}", user_id=user_id)


class Database:
    """
    資料庫連線。

    持有 AsyncEngine 與 session factory，由 CLI 建立後明確傳給各元件。

    Example:
        database = Database(settings)
        await database.connect()
        async with database.session() as session:
            repo = GraphRepository(session)
            ...
        await database.close()
    """

    def __init__(self, settings: Settings):
        self.settings = settings
        self._engine: Optional[AsyncEngine] = None
        self._session_factory: Optional[async_sessionmaker[AsyncSession]] = None

    def _create_engine(self) -> AsyncEngine:
        url = self.settings.async_database_url
        options = {
            "echo": self.settings.database_echo,
            "pool_pre_ping": True,
        }
        # SQLite 等使用 StaticPool/NullPool，不接受連線池大小參數
        if make_url(url).get_backend_name() == "postgresql":
            options.update(
                pool_size=self.settings.database_pool_size,
                max_overflow=self.settings.database_max_overflow,
                pool_recycle=self.settings.database_pool_recycle,
            )
        return create_async_engine(url, **options)

    async def connect(self) -> None:
        """
        初始化連線池並驗證連線。

        失敗時依 database_connect_retries 重試，第 n 次重試前等待
        database_connect_retry_delay * n 秒。

        Raises:
            DatabaseConnectionError: 所有嘗試都失敗時
        """
        if self._engine is not None:
            logger.debug("資料庫連線池已存在")
            return

        attempts = max(1, self.settings.database_connect_retries)
        logger.info(f"正在連線到資料庫: {self.settings.display_database_url}")

        last_error: Optional[Exception] = None
        for attempt in range(1, attempts + 1):
            engine: Optional[AsyncEngine] = None
            try:
                engine = self._create_engine()
                async with engine.begin() as conn:
                    await conn.execute(text("SELECT 1"))
            except (SQLAlchemyError, OSError) as e:
                last_error = e
                if engine is not None:
                    await engine.dispose()
                if attempt < attempts:
                    wait = self.settings.database_connect_retry_delay * attempt
                    logger.warning(
                        f"資料庫連線失敗 (attempt {attempt}/{attempts}): {e}. "
                        f"{wait:.1f} 秒後重試..."
                    )
                    await asyncio.sleep(wait)
                continue

            self._engine = engine
            self._session_factory = async_sessionmaker(
                bind=engine,
                class_=AsyncSession,
                expire_on_commit=False,
                autoflush=False,
            )
            logger.info("資料庫連線池已初始化")
            return

        raise DatabaseConnectionError(
            f"資料庫連線失敗（已嘗試 {attempts} 次）: {last_error}"
        ) from last_error

    async def close(self) -> None:
        """關閉資料庫連線，釋放所有連線資源。"""
        if self._engine is not None:
            await self._engine.dispose()
            self._engine = None
            self._session_factory = None
            logger.info("資料庫連線池已關閉")

    @property
    def engine(self) -> AsyncEngine:
        """
        取得資料庫引擎。

        Raises:
            RuntimeError: 尚未呼叫 connect() 時
        """
        if self._engine is None:
            raise RuntimeError("資料庫未初始化，請先呼叫 connect()")
        return self._engine

    @property
    def is_postgres(self) -> bool:
        return self.engine.dialect.name == "postgresql"

    def _factory(self) -> async_sessionmaker[AsyncSession]:
        if self._session_factory is None:
            raise RuntimeError("資料庫未初始化，請先呼叫 connect()")
        return self._session_factory

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """
        取得讀寫 Session（單一交易）。

        - 正常結束時自動 commit
        - 發生例外時自動 rollback 並重新拋出

        Example:
            async with database.session() as session:
                session.add(graph)
        """
        async with self._factory()() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    @asynccontextmanager
    async def read_session(self) -> AsyncGenerator[AsyncSession, None]:
        """
        取得唯讀 Session，不會提交任何變更。

        結束時只關閉 session：未提交的交易隨連線歸還而回滾，
        已載入的物件保持可讀（不會被 expire）。
        """
        async with self._factory()() as session:
            yield session

    async def health_check(self) -> None:
        """
        驗證資料庫連線是否存活。

        Raises:
            DatabaseConnectionError: 連線失敗時
        """
        try:
            async with self.engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
        except SQLAlchemyError as e:
            raise DatabaseConnectionError(f"資料庫健康檢查失敗: {e}") from e
