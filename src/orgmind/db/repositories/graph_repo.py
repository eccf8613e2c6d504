"""
Graph Repository - PostgreSQL CRUD 操作

封裝 Graph 與 GraphMembership 的資料庫操作。
"""

from datetime import datetime
from typing import Optional, Sequence

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from orgmind.core.constants import MembershipRole
from orgmind.models.sqlalchemy import Graph, GraphMembership


class GraphRepository:
    """
    Graph Repository。

    寫入操作只 flush 不 commit，交易邊界由呼叫端的 session 決定。

    Example:
        async with database.session() as session:
            repo = GraphRepository(session)
            graph = await repo.create(Graph(...))
            await repo.add_membership(GraphMembership(...))
    """

    def __init__(self, session: AsyncSession):
        """
        初始化 Repository。

        Args:
            session: SQLAlchemy AsyncSession
        """
        self.session = session

    async def get_by_id(self, graph_id: str) -> Optional[Graph]:
        result = await self.session.execute(select(Graph).where(Graph.id == graph_id))
        return result.scalar_one_or_none()

    async def create(self, graph: Graph) -> Graph:
        """
        建立新 Graph。

        Args:
            graph: Graph 實例

        Returns:
            建立的 Graph 實例
        """
        self.session.add(graph)
        await self.session.flush()
        return graph

    async def add_membership(self, membership: GraphMembership) -> GraphMembership:
        """
        建立成員關係。

        Args:
            membership: GraphMembership 實例

        Returns:
            建立的 GraphMembership 實例
        """
        self.session.add(membership)
        await self.session.flush()
        return membership

    async def set_document_count(
        self,
        graph_id: str,
        count: int,
        updated_at: datetime,
    ) -> bool:
        """
        更新 Graph 的 document_count。

        Args:
            graph_id: Graph ID
            count: 文件數
            updated_at: 更新時間

        Returns:
            True 如果更新成功
        """
        result = await self.session.execute(
            update(Graph)
            .where(Graph.id == graph_id)
            .values(document_count=count, updated_at=updated_at)
        )
        return result.rowcount > 0

    async def list_by_creator(self, creator_id: str) -> Sequence[Graph]:
        result = await self.session.execute(
            select(Graph)
            .where(Graph.creator_id == creator_id)
            .order_by(Graph.created_at.asc())
        )
        return result.scalars().all()

    async def list_memberships(
        self,
        user_id: str,
        role: Optional[MembershipRole] = None,
    ) -> Sequence[GraphMembership]:
        """
        列出使用者的成員關係。

        Args:
            user_id: 使用者 ID
            role: 只列出指定角色（None 表示全部）

        Returns:
            GraphMembership 列表
        """
        stmt = select(GraphMembership).where(GraphMembership.user_id == user_id)
        if role is not None:
            stmt = stmt.where(GraphMembership.role == role.value)
        result = await self.session.execute(stmt)
        return result.scalars().all()

    async def count(self) -> int:
        result = await self.session.execute(select(func.count()).select_from(Graph))
        return result.scalar_one()

    async def count_memberships(self) -> int:
        result = await self.session.execute(
            select(func.count()).select_from(GraphMembership)
        )
        return result.scalar_one()
