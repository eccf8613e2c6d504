"""
SQLAlchemy 基礎配置

定義所有 SQLAlchemy 模型的宣告式基礎類別和通用 Mixin。

包含：
- Base: 宣告式基礎類別
- TimestampMixin: created_at/updated_at 時間戳記
- new_uuid: 產生字串形式的 UUID 主鍵
"""

import uuid
from datetime import datetime

from sqlalchemy import DateTime, Uuid, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

# PostgreSQL 使用原生 UUID，其他資料庫以 CHAR(32) 儲存；Python 端一律為字串
UUIDString = Uuid(as_uuid=False)


def new_uuid() -> str:
    """產生新的 UUID 字串。"""
    return str(uuid.uuid4())


class Base(DeclarativeBase):
    """所有模型的 SQLAlchemy 宣告式基礎類別。"""

    type_annotation_map = {
        datetime: DateTime(timezone=True),
    }


class TimestampMixin:
    """
    created_at 和 updated_at 時間戳記的 Mixin。
    """

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )
