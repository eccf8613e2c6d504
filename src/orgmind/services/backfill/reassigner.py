"""
孤兒文件重新指派

將使用者 graph_id 為 NULL 的文件指向新 Graph，並同步 document_count。
"""

from datetime import datetime, timezone
from typing import Optional

from loguru import logger
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from orgmind.db.connection import translate_write_error
from orgmind.db.repositories import DocumentRepository, GraphRepository


class DocumentReassigner:
    """文件重新指派器，使用呼叫端的 session。"""

    async def reassign(
        self,
        session: AsyncSession,
        user_id: str,
        graph_id: str,
        now: Optional[datetime] = None,
    ) -> int:
        """
        將使用者所有孤兒文件指向 graph_id。

        第一次成功後再執行，查詢不會匹配任何文件，返回 0。

        Returns:
            受影響的文件數

        Raises:
            PersistenceError: 寫入失敗
            DatabaseConnectionError: 連線中斷
        """
        try:
            moved = await DocumentRepository(session).assign_orphans_to_graph(
                user_id,
                graph_id,
                now or datetime.now(timezone.utc),
            )
        except SQLAlchemyError as e:
            raise translate_write_error(e, "更新文件 graph_id 失敗", user_id=user_id) from e

        logger.debug(f"已重新指派 {moved} 份文件到 Graph {graph_id}")
        return moved

    async def update_document_count(
        self,
        session: AsyncSession,
        graph_id: str,
        count: int,
        now: Optional[datetime] = None,
    ) -> None:
        """
        更新 Graph 的 document_count；count 為 0 時不做任何事。

        Raises:
            PersistenceError: 寫入失敗
            DatabaseConnectionError: 連線中斷
        """
        if count <= 0:
            return
        try:
            await GraphRepository(session).set_document_count(
                graph_id,
                count,
                now or datetime.now(timezone.utc),
            )
        except SQLAlchemyError as e:
            raise translate_write_error(e, "更新 document_count 失敗") from e
