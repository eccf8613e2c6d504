"""
預設 Graph 佈建

為單一使用者建立預設 Graph 與 owner 成員關係。
兩筆寫入都使用呼叫端的 session，與文件重新指派在同一筆交易中，
不會出現「有 Graph 沒有成員關係」的狀態被提交。
"""

from datetime import datetime, timezone
from typing import Optional

from loguru import logger
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from orgmind.core.constants import (
    DEFAULT_GRAPH_DESCRIPTION,
    DEFAULT_GRAPH_NAME,
    MembershipRole,
)
from orgmind.db.connection import translate_write_error
from orgmind.db.repositories import GraphRepository
from orgmind.models.sqlalchemy import Graph, GraphMembership, User, new_uuid
from orgmind.services.graph_store import GraphStoreClient


class GraphProvisioner:
    """
    Graph 佈建器。

    Example:
        provisioner = GraphProvisioner(graph_store)
        async with database.session() as session:
            graph, membership = await provisioner.provision(session, user)
    """

    def __init__(
        self,
        graph_store: GraphStoreClient,
        graph_name: str = DEFAULT_GRAPH_NAME,
        graph_description: Optional[str] = DEFAULT_GRAPH_DESCRIPTION,
    ):
        """
        Args:
            graph_store: 用於產生外部參考 ID 的 Zep 客戶端
            graph_name: 預設 Graph 名稱
            graph_description: 預設 Graph 描述
        """
        self.graph_store = graph_store
        self.graph_name = graph_name
        self.graph_description = graph_description

    async def create_graph(
        self,
        session: AsyncSession,
        user: User,
        now: Optional[datetime] = None,
    ) -> Graph:
        """
        建立預設 Graph，document_count 初始為 0。

        Raises:
            PersistenceError: 違反約束（例如 zep_graph_id 重複）或寫入失敗
            DatabaseConnectionError: 連線中斷
        """
        now = now or datetime.now(timezone.utc)
        graph_id = new_uuid()
        graph = Graph(
            id=graph_id,
            creator_id=user.id,
            zep_graph_id=self.graph_store.mint_reference_id(graph_id),
            name=self.graph_name,
            description=self.graph_description,
            document_count=0,
            created_at=now,
            updated_at=now,
        )
        try:
            await GraphRepository(session).create(graph)
        except SQLAlchemyError as e:
            raise translate_write_error(e, "建立 Graph 失敗", user_id=user.id) from e

        logger.debug(f"已建立 Graph {graph.id} (zep: {graph.zep_graph_id})")
        return graph

    async def create_owner_membership(
        self,
        session: AsyncSession,
        graph: Graph,
        user: User,
        now: Optional[datetime] = None,
    ) -> GraphMembership:
        """
        建立 owner 成員關係。

        Raises:
            PersistenceError: 違反約束或寫入失敗
            DatabaseConnectionError: 連線中斷
        """
        membership = GraphMembership(
            id=new_uuid(),
            graph_id=graph.id,
            user_id=user.id,
            role=MembershipRole.OWNER.value,
            created_at=now or datetime.now(timezone.utc),
        )
        try:
            await GraphRepository(session).add_membership(membership)
        except SQLAlchemyError as e:
            raise translate_write_error(e, "建立成員關係失敗", user_id=user.id) from e

        logger.debug(f"已建立 owner 成員關係 {membership.id}")
        return membership

    async def provision(
        self,
        session: AsyncSession,
        user: User,
        now: Optional[datetime] = None,
    ) -> tuple[Graph, GraphMembership]:
        """建立預設 Graph 與 owner 成員關係。"""
        graph = await self.create_graph(session, user, now)
        membership = await self.create_owner_membership(session, graph, user, now)
        return graph, membership
