"""Pytest configuration and shared fixtures."""

from datetime import datetime, timedelta, timezone
from typing import Optional

import pytest
import pytest_asyncio

from orgmind.core.config import Settings
from orgmind.core.constants import DocumentSource
from orgmind.db.connection import Database
from orgmind.db.repositories import DocumentRepository, GraphRepository
from orgmind.models.sqlalchemy import Base, Document, User, new_uuid
from orgmind.services.graph_store import GraphStoreClient

BASE_TIME = datetime(2024, 1, 1, tzinfo=timezone.utc)


def make_settings(database_url: str, **overrides) -> Settings:
    """Build settings that ignore any local .env file."""
    values = {
        "database_url": database_url,
        "database_connect_retries": 1,
        "database_connect_retry_delay": 0,
        "zep_api_key": "test-zep-key",
        "zep_api_url": "http://zep.test/api/v2",
        "log_to_console": False,
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


@pytest.fixture
def database_url(tmp_path):
    """SQLite database file unique to each test."""
    return f"sqlite+aiosqlite:///{tmp_path / 'orgmind.db'}"


@pytest.fixture
def settings(database_url):
    return make_settings(database_url)


@pytest.fixture
def graph_store(settings):
    return GraphStoreClient.from_settings(settings)


@pytest_asyncio.fixture
async def database(settings):
    """Connected database with all tables created."""
    db = Database(settings)
    await db.connect()
    async with db.engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield db
    await db.close()


class DataFactory:
    """Inserts users and documents and reads back table state."""

    def __init__(self, database: Database):
        self.database = database
        self._users = 0

    async def user(self, email: Optional[str] = None, created_at: Optional[datetime] = None) -> User:
        self._users += 1
        user = User(
            id=new_uuid(),
            email=email or f"user{self._users}@example.com",
            created_at=created_at or BASE_TIME + timedelta(days=self._users),
            updated_at=created_at or BASE_TIME + timedelta(days=self._users),
        )
        async with self.database.session() as session:
            session.add(user)
        return user

    async def documents(self, user: User, count: int, graph_id: Optional[str] = None) -> list[Document]:
        docs = [
            Document(
                id=new_uuid(),
                user_id=user.id,
                graph_id=graph_id,
                filename=f"doc-{i}.md",
                storage_key=f"users/{user.id}/doc-{i}.md",
                source=DocumentSource.UPLOAD.value,
            )
            for i in range(count)
        ]
        async with self.database.session() as session:
            session.add_all(docs)
        return docs

    async def table_counts(self) -> dict[str, int]:
        async with self.database.read_session() as session:
            graphs = GraphRepository(session)
            return {
                "graphs": await graphs.count(),
                "graph_memberships": await graphs.count_memberships(),
                "documents": await DocumentRepository(session).count(),
            }

    async def graphs_of(self, user: User):
        async with self.database.read_session() as session:
            return list(await GraphRepository(session).list_by_creator(user.id))

    async def memberships_of(self, user: User):
        async with self.database.read_session() as session:
            return list(await GraphRepository(session).list_memberships(user.id))

    async def documents_of(self, user: User):
        async with self.database.read_session() as session:
            return list(await DocumentRepository(session).list_by_user(user.id))

    async def documents_in(self, graph_id: str) -> int:
        async with self.database.read_session() as session:
            return await DocumentRepository(session).count_by_graph(graph_id)


@pytest_asyncio.fixture
async def factory(database):
    return DataFactory(database)
