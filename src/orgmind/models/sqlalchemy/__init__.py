"""
OrgMind SQLAlchemy 模型

遷移工具讀寫的四張資料表：
- users
- graphs、graph_memberships
- documents
"""

from orgmind.models.sqlalchemy.base import (
    Base,
    TimestampMixin,
    new_uuid,
)
from orgmind.models.sqlalchemy.user import User
from orgmind.models.sqlalchemy.graph import Graph, GraphMembership
from orgmind.models.sqlalchemy.document import Document

__all__ = [
    # ==================== 基礎 ====================
    "Base",
    "TimestampMixin",
    "new_uuid",
    # ==================== 資料表 ====================
    "User",
    "Graph",
    "GraphMembership",
    "Document",
]
