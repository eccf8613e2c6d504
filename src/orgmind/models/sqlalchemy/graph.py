"""
Graph SQLAlchemy 模型

包含：
- Graph: 知識圖譜容器，對應 Zep Cloud 上的一個 graph
- GraphMembership: 使用者與 Graph 的多對多關係（含角色）
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import (
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column

from orgmind.core.constants import MembershipRole
from orgmind.models.sqlalchemy.base import Base, TimestampMixin, UUIDString, new_uuid


class Graph(Base, TimestampMixin):
    """
    知識圖譜模型。

    document_count 必須等於目前指向此 Graph 的文件數量。
    """

    __tablename__ = "graphs"

    id: Mapped[str] = mapped_column(UUIDString, primary_key=True, default=new_uuid)
    creator_id: Mapped[str] = mapped_column(
        UUIDString,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    zep_graph_id: Mapped[str] = mapped_column(
        String(255),
        unique=True,
        nullable=False,
        comment="External graph id in Zep Cloud",
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    document_count: Mapped[int] = mapped_column(Integer, default=0, server_default="0")
    gemini_store_id: Mapped[Optional[str]] = mapped_column(
        String(255),
        nullable=True,
        comment="Gemini File Search store id",
    )

    __table_args__ = (
        Index("idx_graphs_creator_id", "creator_id"),
        Index("idx_graphs_zep_graph_id", "zep_graph_id"),
        Index("idx_graphs_gemini_store_id", "gemini_store_id"),
    )

    def __repr__(self) -> str:
        return f"<Graph(id={self.id}, name={self.name}, documents={self.document_count})>"


class GraphMembership(Base):
    """
    Graph 成員關係模型。

    每個 (graph_id, user_id) 只能有一筆。
    """

    __tablename__ = "graph_memberships"

    id: Mapped[str] = mapped_column(UUIDString, primary_key=True, default=new_uuid)
    graph_id: Mapped[str] = mapped_column(
        UUIDString,
        ForeignKey("graphs.id", ondelete="CASCADE"),
        nullable=False,
    )
    user_id: Mapped[str] = mapped_column(
        UUIDString,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    role: Mapped[str] = mapped_column(
        String(50),
        default=MembershipRole.MEMBER.value,
        server_default=MembershipRole.MEMBER.value,
        comment="owner, editor, viewer, member",
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    __table_args__ = (
        UniqueConstraint("graph_id", "user_id", name="uq_graph_memberships_graph_user"),
        Index("idx_graph_memberships_graph_id", "graph_id"),
        Index("idx_graph_memberships_user_id", "user_id"),
        Index("idx_graph_memberships_lookup", "user_id", "graph_id"),
    )

    def __repr__(self) -> str:
        return f"<GraphMembership(graph_id={self.graph_id}, user_id={self.user_id}, role={self.role})>"
