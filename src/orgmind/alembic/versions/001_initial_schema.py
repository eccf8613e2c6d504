"""Initial schema - users, graphs, graph_memberships, documents

Revision ID: 001
Revises:
Create Date: 2025-11-19

Tables:
- users
- graphs, graph_memberships (Knowledge graphs and membership roles)
- documents (graph_id 可為 NULL：舊資料尚未遷移)
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _uuid_pk() -> sa.Column:
    return sa.Column(
        "id",
        postgresql.UUID(as_uuid=False),
        primary_key=True,
        server_default=sa.text("gen_random_uuid()"),
    )


def _timestamp(name: str) -> sa.Column:
    return sa.Column(name, sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False)


def upgrade() -> None:
    """建立 OrgMind 資料表"""

    op.execute('CREATE EXTENSION IF NOT EXISTS "pgcrypto"')

    # ==================== users ====================
    op.create_table(
        "users",
        _uuid_pk(),
        sa.Column("email", sa.String(255), nullable=False, unique=True),
        sa.Column("password_hash", sa.String(255), nullable=True),
        sa.Column("first_name", sa.String(100), nullable=True),
        sa.Column("last_name", sa.String(100), nullable=True),
        sa.Column("oauth_provider", sa.String(50), nullable=True),
        sa.Column("oauth_id", sa.String(255), nullable=True),
        _timestamp("created_at"),
        _timestamp("updated_at"),
    )
    op.create_index("idx_users_email", "users", ["email"])
    op.create_index("idx_users_oauth", "users", ["oauth_provider", "oauth_id"])

    # ==================== graphs ====================
    op.create_table(
        "graphs",
        _uuid_pk(),
        sa.Column(
            "creator_id",
            postgresql.UUID(as_uuid=False),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("zep_graph_id", sa.String(255), nullable=False, unique=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("document_count", sa.Integer, server_default="0"),
        sa.Column("gemini_store_id", sa.String(255), nullable=True),
        _timestamp("created_at"),
        _timestamp("updated_at"),
    )
    op.create_index("idx_graphs_creator_id", "graphs", ["creator_id"])
    op.create_index("idx_graphs_zep_graph_id", "graphs", ["zep_graph_id"])
    op.create_index("idx_graphs_gemini_store_id", "graphs", ["gemini_store_id"])

    # ==================== graph_memberships ====================
    op.create_table(
        "graph_memberships",
        _uuid_pk(),
        sa.Column(
            "graph_id",
            postgresql.UUID(as_uuid=False),
            sa.ForeignKey("graphs.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "user_id",
            postgresql.UUID(as_uuid=False),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("role", sa.String(50), server_default="member"),
        _timestamp("created_at"),
        sa.UniqueConstraint("graph_id", "user_id", name="uq_graph_memberships_graph_user"),
    )
    op.create_index("idx_graph_memberships_graph_id", "graph_memberships", ["graph_id"])
    op.create_index("idx_graph_memberships_user_id", "graph_memberships", ["user_id"])
    op.create_index("idx_graph_memberships_lookup", "graph_memberships", ["user_id", "graph_id"])

    # ==================== documents ====================
    op.create_table(
        "documents",
        _uuid_pk(),
        sa.Column(
            "user_id",
            postgresql.UUID(as_uuid=False),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "graph_id",
            postgresql.UUID(as_uuid=False),
            sa.ForeignKey("graphs.id", ondelete="CASCADE"),
            nullable=True,
        ),
        sa.Column("filename", sa.String(255), nullable=True),
        sa.Column("content_type", sa.String(100), nullable=True),
        sa.Column("storage_key", sa.String(500), nullable=False),
        sa.Column("size_bytes", sa.BigInteger, nullable=True),
        sa.Column("source", sa.String(50), nullable=False),
        sa.Column("status", sa.String(50), server_default="processing"),
        sa.Column("error_message", sa.Text, nullable=True),
        sa.Column("gemini_file_id", sa.String(255), nullable=True),
        _timestamp("created_at"),
        _timestamp("updated_at"),
    )
    op.create_index("idx_documents_user", "documents", ["user_id"])
    op.create_index("idx_documents_graph_id", "documents", ["graph_id"])
    op.create_index("idx_documents_status", "documents", ["status"])
    op.create_index("idx_documents_gemini_file_id", "documents", ["gemini_file_id"])


def downgrade() -> None:
    """刪除所有 OrgMind 資料表"""
    op.drop_table("documents")
    op.drop_table("graph_memberships")
    op.drop_table("graphs")
    op.drop_table("users")
