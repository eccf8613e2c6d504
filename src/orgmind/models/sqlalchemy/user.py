"""
使用者 SQLAlchemy 模型
"""

from typing import Optional

from sqlalchemy import Index, String
from sqlalchemy.orm import Mapped, mapped_column

from orgmind.models.sqlalchemy.base import Base, TimestampMixin, UUIDString, new_uuid


class User(Base, TimestampMixin):
    """
    使用者模型。

    建立後除了個人資料欄位之外不會變更。
    OAuth 使用者沒有 password_hash。
    """

    __tablename__ = "users"

    id: Mapped[str] = mapped_column(UUIDString, primary_key=True, default=new_uuid)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    password_hash: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    first_name: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    last_name: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    oauth_provider: Mapped[Optional[str]] = mapped_column(
        String(50),
        nullable=True,
        comment="google, okta, office365 or NULL",
    )
    oauth_id: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    __table_args__ = (
        Index("idx_users_email", "email"),
        Index("idx_users_oauth", "oauth_provider", "oauth_id"),
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email={self.email})>"
