"""
孤兒文件擁有者掃描

找出擁有 graph_id 為 NULL 文件的使用者，決定遷移的處理順序。
"""

from typing import Optional, Sequence

from loguru import logger
from sqlalchemy.exc import SQLAlchemyError

from orgmind.core.exceptions import DataAccessError, DatabaseConnectionError
from orgmind.db.connection import Database, is_connectivity_error
from orgmind.db.repositories import DocumentRepository, UserRepository
from orgmind.models.sqlalchemy import User


class UserScanner:
    """
    使用者掃描器。

    只使用唯讀 session，不會寫入任何資料。
    """

    def __init__(self, database: Database):
        self.database = database

    async def scan(self, user_ids: Optional[Sequence[str]] = None) -> list[User]:
        """
        找出至少擁有一份孤兒文件的使用者。

        Args:
            user_ids: 只掃描指定的使用者（用於重跑失敗的使用者）

        Returns:
            依帳號建立時間由舊到新排序的 User 列表

        Raises:
            DataAccessError: 查詢無法執行時
        """
        try:
            async with self.database.read_session() as session:
                users = await UserRepository(session).list_with_orphaned_documents(user_ids)
        except SQLAlchemyError as e:
            raise self._wrap(e, "查詢待遷移使用者失敗") from e

        logger.debug(f"掃描到 {len(users)} 位待遷移使用者")
        return list(users)

    async def count_orphaned_documents(self, user_id: str) -> int:
        """
        計算使用者的孤兒文件數。

        Raises:
            DataAccessError: 查詢無法執行時
        """
        try:
            async with self.database.read_session() as session:
                return await DocumentRepository(session).count_orphaned(user_id)
        except SQLAlchemyError as e:
            raise self._wrap(e, f"計算使用者 {user_id} 的文件數失敗") from e

    @staticmethod
    def _wrap(exc: SQLAlchemyError, message: str) -> DataAccessError:
        if is_connectivity_error(exc):
            return DatabaseConnectionError(f"{message}: {exc}")
        return DataAccessError(f"{message}: {exc}")
