"""
文件 Repository - PostgreSQL CRUD 操作

提供文件資料存取的封裝層。
"""

from datetime import datetime
from typing import Optional, Sequence

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from orgmind.models.sqlalchemy import Document


class DocumentRepository:
    """
    文件 Repository。

    Example:
        async with database.session() as session:
            repo = DocumentRepository(session)
            moved = await repo.assign_orphans_to_graph(user_id, graph_id, now)
    """

    def __init__(self, session: AsyncSession):
        """
        初始化 Repository。

        Args:
            session: SQLAlchemy AsyncSession
        """
        self.session = session

    async def get_by_id(self, document_id: str) -> Optional[Document]:
        result = await self.session.execute(
            select(Document).where(Document.id == document_id)
        )
        return result.scalar_one_or_none()

    async def create(self, document: Document) -> Document:
        self.session.add(document)
        await self.session.flush()
        return document

    async def count_orphaned(self, user_id: str) -> int:
        """
        計算使用者 graph_id 為 NULL 的文件數。

        Args:
            user_id: 使用者 ID

        Returns:
            孤兒文件數
        """
        result = await self.session.execute(
            select(func.count())
            .select_from(Document)
            .where(Document.user_id == user_id, Document.graph_id.is_(None))
        )
        return result.scalar_one()

    async def assign_orphans_to_graph(
        self,
        user_id: str,
        graph_id: str,
        updated_at: datetime,
    ) -> int:
        """
        將使用者所有孤兒文件指向指定 Graph。

        已有 graph_id 的文件不受影響，因此重複執行是安全的。

        Args:
            user_id: 使用者 ID
            graph_id: 目標 Graph ID
            updated_at: 更新時間

        Returns:
            受影響的文件數
        """
        result = await self.session.execute(
            update(Document)
            .where(Document.user_id == user_id, Document.graph_id.is_(None))
            .values(graph_id=graph_id, updated_at=updated_at)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    async def count_by_graph(self, graph_id: str) -> int:
        result = await self.session.execute(
            select(func.count())
            .select_from(Document)
            .where(Document.graph_id == graph_id)
        )
        return result.scalar_one()

    async def list_by_user(self, user_id: str) -> Sequence[Document]:
        result = await self.session.execute(
            select(Document)
            .where(Document.user_id == user_id)
            .order_by(Document.created_at.asc())
        )
        return result.scalars().all()

    async def count(self) -> int:
        result = await self.session.execute(select(func.count()).select_from(Document))
        return result.scalar_one()
