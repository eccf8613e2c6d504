"""
使用者 Repository - PostgreSQL 查詢操作
"""

from typing import Optional, Sequence

from sqlalchemy import func, select, text
from sqlalchemy.ext.asyncio import AsyncSession

from orgmind.core.constants import ADVISORY_LOCK_NAMESPACE
from orgmind.models.sqlalchemy import Document, User


class UserRepository:
    """
    使用者 Repository。

    Example:
        async with database.read_session() as session:
            repo = UserRepository(session)
            users = await repo.list_with_orphaned_documents()
    """

    def __init__(self, session: AsyncSession):
        """
        初始化 Repository。

        Args:
            session: SQLAlchemy AsyncSession
        """
        self.session = session

    async def get_by_id(self, user_id: str) -> Optional[User]:
        result = await self.session.execute(select(User).where(User.id == user_id))
        return result.scalar_one_or_none()

    async def list_with_orphaned_documents(
        self,
        user_ids: Optional[Sequence[str]] = None,
    ) -> Sequence[User]:
        """
        列出至少擁有一份 graph_id 為 NULL 文件的使用者。

        每位使用者只出現一次，依帳號建立時間由舊到新排序，
        建立時間相同時以 ID 排序。

        Args:
            user_ids: 只查詢指定的使用者（None 表示全部）

        Returns:
            User 列表
        """
        orphan_owners = select(Document.user_id).where(Document.graph_id.is_(None))
        stmt = select(User).where(User.id.in_(orphan_owners))
        if user_ids is not None:
            stmt = stmt.where(User.id.in_(list(user_ids)))
        result = await self.session.execute(
            stmt.order_by(User.created_at.asc(), User.id.asc())
        )
        return result.scalars().all()

    async def acquire_backfill_lock(self, user_id: str) -> None:
        """
        取得以使用者 ID 為鍵的交易層級 advisory lock（僅 PostgreSQL）。

        鎖在交易 commit 或 rollback 時自動釋放。
        同時執行兩個遷移程序時，第二個程序會在此等待第一個提交。
        """
        await self.session.execute(
            text("SELECT pg_advisory_xact_lock(hashtext(:lock_key))"),
            {"lock_key": f"{ADVISORY_LOCK_NAMESPACE}:{user_id}"},
        )

    async def count(self) -> int:
        result = await self.session.execute(select(func.count()).select_from(User))
        return result.scalar_one()
