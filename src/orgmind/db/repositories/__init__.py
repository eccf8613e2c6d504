"""
OrgMind Repository 層

提供資料存取層，封裝 SQLAlchemy ORM 操作。

Repositories:
    - UserRepository: 使用者查詢與 advisory lock
    - GraphRepository: Graph 與成員關係 CRUD
    - DocumentRepository: 文件查詢與孤兒文件重新指派
"""

from orgmind.db.repositories.document_repo import DocumentRepository
from orgmind.db.repositories.graph_repo import GraphRepository
from orgmind.db.repositories.user_repo import UserRepository

__all__ = ["DocumentRepository", "GraphRepository", "UserRepository"]
