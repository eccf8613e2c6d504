"""
文件 SQLAlchemy 模型

文件內容存放在 S3，此表只保存 metadata 與處理狀態。
"""

from typing import Optional

from sqlalchemy import BigInteger, ForeignKey, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from orgmind.core.constants import DocumentStatus
from orgmind.models.sqlalchemy.base import Base, TimestampMixin, UUIDString, new_uuid


class Document(Base, TimestampMixin):
    """
    文件 metadata 模型。

    每份文件屬於一位使用者，最多屬於一個 Graph。
    graph_id 為 NULL 的文件即為「孤兒文件」，是遷移的對象。
    """

    __tablename__ = "documents"

    id: Mapped[str] = mapped_column(UUIDString, primary_key=True, default=new_uuid)
    user_id: Mapped[str] = mapped_column(
        UUIDString,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    graph_id: Mapped[Optional[str]] = mapped_column(
        UUIDString,
        ForeignKey("graphs.id", ondelete="CASCADE"),
        nullable=True,
    )

    filename: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    content_type: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    storage_key: Mapped[str] = mapped_column(
        String(500),
        nullable=False,
        comment="S3 object key",
    )
    size_bytes: Mapped[Optional[int]] = mapped_column(BigInteger, nullable=True)
    source: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        comment="editor or upload",
    )

    status: Mapped[str] = mapped_column(
        String(50),
        default=DocumentStatus.PROCESSING.value,
        server_default=DocumentStatus.PROCESSING.value,
        comment="processing, completed, failed",
    )
    error_message: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    gemini_file_id: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    __table_args__ = (
        Index("idx_documents_user", "user_id"),
        Index("idx_documents_graph_id", "graph_id"),
        Index("idx_documents_status", "status"),
        Index("idx_documents_gemini_file_id", "gemini_file_id"),
    )

    def __repr__(self) -> str:
        return f"<Document(id={self.id}, user_id={self.user_id}, graph_id={self.graph_id})>"
