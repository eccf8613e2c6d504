"""Tests for the per-user backfill transaction coordinator."""

import pytest

from conftest import make_settings
from orgmind.core.constants import (
    EXIT_FAILURES,
    EXIT_OK,
    BackfillOutcome,
    BackfillStage,
    MembershipRole,
)
from orgmind.core.exceptions import (
    ConfigurationError,
    DatabaseConnectionError,
    PersistenceError,
)
from orgmind.db.connection import Database
from orgmind.db.repositories import DocumentRepository, UserRepository
from orgmind.models.pydantic import BackfillReport, UserBackfillResult
from orgmind.services.backfill import BackfillCoordinator, DocumentReassigner
from orgmind.services.graph_store import GraphStoreClient


class FailingReassigner(DocumentReassigner):
    """Fails reassignment for one user."""

    def __init__(self, failing_user_id: str):
        self.failing_user_id = failing_user_id

    async def reassign(self, session, user_id, graph_id, now=None):
        if user_id == self.failing_user_id:
            raise PersistenceError("simulated write failure", user_id=user_id)
        return await super().reassign(session, user_id, graph_id, now)


class DisconnectingReassigner(DocumentReassigner):
    """Simulates the database going away mid-batch."""

    async def reassign(self, session, user_id, graph_id, now=None):
        raise DatabaseConnectionError("connection lost")


class FixedIdGraphStore(GraphStoreClient):
    def mint_reference_id(self, graph_id: str) -> str:
        return "graph-fixed"


@pytest.mark.backfill
class TestBackfillRun:
    """Test full migration runs."""

    @pytest.mark.asyncio
    async def test_single_user_three_documents(self, database, factory, settings, graph_store):
        """A user with three orphaned documents gets one graph holding all three."""
        user = await factory.user("alice@example.com")
        await factory.documents(user, 3)

        report = await BackfillCoordinator(database, settings, graph_store).run()

        assert report.total == 1
        assert report.succeeded == 1
        assert report.exit_code == EXIT_OK

        result = report.results[0]
        assert result.outcome == BackfillOutcome.SUCCEEDED
        assert result.stage == BackfillStage.COMMITTED
        assert result.documents_reassigned == 3
        assert result.zep_graph_id == f"graph-{result.graph_id}"

        graphs = await factory.graphs_of(user)
        assert len(graphs) == 1
        assert graphs[0].id == result.graph_id
        assert graphs[0].name == "My Knowledge Graph"
        assert graphs[0].description == "Default graph created during migration"
        assert graphs[0].document_count == 3

        memberships = await factory.memberships_of(user)
        assert [(m.graph_id, m.role) for m in memberships] == [
            (result.graph_id, MembershipRole.OWNER.value)
        ]
        assert all(d.graph_id == result.graph_id for d in await factory.documents_of(user))

    @pytest.mark.asyncio
    async def test_each_user_gets_own_graph(self, database, factory, settings, graph_store):
        """Documents never cross users."""
        alice = await factory.user()
        bob = await factory.user()
        await factory.documents(alice, 2)
        await factory.documents(bob, 5)

        report = await BackfillCoordinator(database, settings, graph_store).run()

        assert report.succeeded == 2
        alice_graph = (await factory.graphs_of(alice))[0]
        bob_graph = (await factory.graphs_of(bob))[0]
        assert alice_graph.id != bob_graph.id
        assert await factory.documents_in(alice_graph.id) == 2
        assert await factory.documents_in(bob_graph.id) == 5
        assert bob_graph.document_count == 5

    @pytest.mark.asyncio
    async def test_second_run_is_noop(self, database, factory, settings, graph_store):
        """Re-running after success finds no users and creates nothing."""
        user = await factory.user()
        await factory.documents(user, 3)
        coordinator = BackfillCoordinator(database, settings, graph_store)

        await coordinator.run()
        after_first = await factory.table_counts()
        report = await coordinator.run()

        assert report.total == 0
        assert report.exit_code == EXIT_OK
        assert await factory.table_counts() == after_first
        assert len(await factory.graphs_of(user)) == 1

    @pytest.mark.asyncio
    async def test_run_limited_to_user_ids(self, database, factory, settings, graph_store):
        """Only the requested users are migrated."""
        first = await factory.user()
        second = await factory.user()
        await factory.documents(first, 1)
        await factory.documents(second, 1)

        report = await BackfillCoordinator(database, settings, graph_store).run([second.id])

        assert [r.user_id for r in report.results] == [second.id]
        assert await factory.graphs_of(first) == []
        assert len(await factory.graphs_of(second)) == 1

    @pytest.mark.asyncio
    async def test_run_without_graph_store_raises(self, database, settings):
        """A live run needs the graph store client."""
        with pytest.raises(ConfigurationError):
            await BackfillCoordinator(database, settings).run()


@pytest.mark.backfill
class TestBackfillFailures:
    """Test per-user rollback and batch continuation."""

    @pytest.mark.asyncio
    async def test_failed_user_is_rolled_back_and_others_commit(
        self, database, factory, settings, graph_store
    ):
        """A failure leaves no graph or membership and does not stop the batch."""
        first = await factory.user()
        failing = await factory.user()
        last = await factory.user()
        for user in (first, failing, last):
            await factory.documents(user, 2)

        coordinator = BackfillCoordinator(
            database,
            settings,
            graph_store,
            reassigner=FailingReassigner(failing.id),
        )
        report = await coordinator.run()

        assert report.succeeded == 2
        assert report.failed == 1
        assert report.exit_code == EXIT_FAILURES
        assert [r.user_id for r in report.failed_results] == [failing.id]

        failed = report.failed_results[0]
        assert failed.failed_stage == BackfillStage.MEMBERSHIP_CREATED
        assert failed.stage == BackfillStage.ROLLED_BACK
        assert failed.graph_id is None
        assert "simulated write failure" in failed.error

        assert await factory.graphs_of(failing) == []
        assert await factory.memberships_of(failing) == []
        assert all(d.graph_id is None for d in await factory.documents_of(failing))
        assert len(await factory.graphs_of(first)) == 1
        assert len(await factory.graphs_of(last)) == 1

    @pytest.mark.asyncio
    async def test_failed_user_is_picked_up_on_rerun(
        self, database, factory, settings, graph_store
    ):
        """After a failure the user still has orphaned documents and migrates next time."""
        user = await factory.user()
        await factory.documents(user, 2)

        failing = BackfillCoordinator(
            database, settings, graph_store, reassigner=FailingReassigner(user.id)
        )
        assert (await failing.run()).failed == 1

        report = await BackfillCoordinator(database, settings, graph_store).run()
        assert report.succeeded == 1
        assert (await factory.graphs_of(user))[0].document_count == 2

    @pytest.mark.asyncio
    async def test_unique_violation_fails_only_that_user(self, database, factory, settings):
        """A duplicate external graph id fails the second user at graph creation."""
        first = await factory.user()
        second = await factory.user()
        await factory.documents(first, 1)
        await factory.documents(second, 1)

        coordinator = BackfillCoordinator(
            database, settings, FixedIdGraphStore.from_settings(settings)
        )
        report = await coordinator.run()

        assert [r.outcome for r in report.results] == [
            BackfillOutcome.SUCCEEDED,
            BackfillOutcome.FAILED,
        ]
        assert report.results[1].failed_stage == BackfillStage.START
        assert await factory.graphs_of(second) == []
        assert await factory.memberships_of(second) == []

    @pytest.mark.asyncio
    async def test_connection_loss_aborts_batch(self, database, factory, settings, graph_store):
        """DatabaseConnectionError propagates and nothing is committed."""
        user = await factory.user()
        await factory.documents(user, 1)
        before = await factory.table_counts()

        coordinator = BackfillCoordinator(
            database, settings, graph_store, reassigner=DisconnectingReassigner()
        )
        with pytest.raises(DatabaseConnectionError):
            await coordinator.run()

        assert await factory.table_counts() == before
        assert await factory.graphs_of(user) == []


@pytest.mark.backfill
class TestEmptyGraphs:
    """Test users whose orphaned documents disappear before the transaction."""

    @pytest.mark.asyncio
    async def test_empty_graph_is_committed_by_default(
        self, database, factory, settings, graph_store
    ):
        """By default the empty graph and owner membership are still committed."""
        user = await factory.user()

        result = await BackfillCoordinator(database, settings, graph_store).migrate_user(user)

        assert result.outcome == BackfillOutcome.SUCCEEDED
        assert result.stage == BackfillStage.COMMITTED
        assert result.documents_reassigned == 0
        graphs = await factory.graphs_of(user)
        assert len(graphs) == 1
        assert graphs[0].document_count == 0
        assert len(await factory.memberships_of(user)) == 1

    @pytest.mark.asyncio
    async def test_user_without_orphans_is_skipped_when_empty_graphs_disabled(
        self, database, factory, database_url, graph_store
    ):
        """With keep_empty_graphs off the transaction is rolled back."""
        user = await factory.user()
        settings = make_settings(database_url, backfill_keep_empty_graphs=False)

        result = await BackfillCoordinator(database, settings, graph_store).migrate_user(user)

        assert result.outcome == BackfillOutcome.SKIPPED
        assert result.stage == BackfillStage.ROLLED_BACK
        assert result.graph_id is None
        assert await factory.graphs_of(user) == []
        assert await factory.memberships_of(user) == []


@pytest.mark.backfill
class TestAdvisoryLock:
    """Test per-user locking on PostgreSQL."""

    @pytest.fixture
    def lock_calls(self, monkeypatch):
        """Pretend to be PostgreSQL and record lock and re-count calls in order."""
        calls = []
        count_orphaned = DocumentRepository.count_orphaned

        async def acquire_backfill_lock(repo, user_id):
            calls.append(("lock", user_id))

        async def recording_count_orphaned(repo, user_id):
            calls.append(("count", user_id))
            return await count_orphaned(repo, user_id)

        monkeypatch.setattr(Database, "is_postgres", property(lambda db: True))
        monkeypatch.setattr(UserRepository, "acquire_backfill_lock", acquire_backfill_lock)
        monkeypatch.setattr(DocumentRepository, "count_orphaned", recording_count_orphaned)
        return calls

    @pytest.mark.asyncio
    async def test_lock_taken_once_per_user(
        self, database, factory, settings, graph_store, lock_calls
    ):
        first = await factory.user()
        second = await factory.user()
        await factory.documents(first, 1)
        await factory.documents(second, 2)

        report = await BackfillCoordinator(database, settings, graph_store).run()

        assert report.succeeded == 2
        assert [c for c in lock_calls if c[0] == "lock"] == [
            ("lock", first.id),
            ("lock", second.id),
        ]

    @pytest.mark.asyncio
    async def test_orphans_recounted_after_lock(
        self, database, factory, database_url, graph_store, lock_calls
    ):
        """With keep_empty_graphs off the orphan count is re-checked inside the lock."""
        user = await factory.user()
        await factory.documents(user, 2)
        settings = make_settings(database_url, backfill_keep_empty_graphs=False)

        report = await BackfillCoordinator(database, settings, graph_store).run()

        assert report.succeeded == 1
        assert lock_calls == [("lock", user.id), ("count", user.id)]

    @pytest.mark.asyncio
    async def test_lock_disabled(self, database, factory, database_url, graph_store, lock_calls):
        user = await factory.user()
        await factory.documents(user, 1)
        settings = make_settings(database_url, backfill_advisory_lock=False)

        report = await BackfillCoordinator(database, settings, graph_store).run()

        assert report.succeeded == 1
        assert lock_calls == []


@pytest.mark.backfill
class TestDryRun:
    """Test the read-only migration preview."""

    @pytest.mark.asyncio
    async def test_plan_lists_users_and_counts(self, database, factory, settings):
        """The plan reports each user's orphaned document count."""
        alice = await factory.user("alice@example.com")
        bob = await factory.user("bob@example.com")
        await factory.documents(alice, 3)
        await factory.documents(bob, 1)

        plan = await BackfillCoordinator(database, settings).plan()

        assert [(e.email, e.orphaned_documents) for e in plan.entries] == [
            ("alice@example.com", 3),
            ("bob@example.com", 1),
        ]
        assert plan.total_users == 2
        assert plan.total_documents == 4

    @pytest.mark.asyncio
    async def test_plan_makes_no_changes(self, database, factory, settings, graph_store):
        """A dry run leaves every table unchanged."""
        user = await factory.user()
        await factory.documents(user, 3)
        before = await factory.table_counts()

        await BackfillCoordinator(database, settings, graph_store).plan()

        assert await factory.table_counts() == before
        assert await factory.graphs_of(user) == []
        assert all(d.graph_id is None for d in await factory.documents_of(user))


class TestBackfillReport:
    """Test report aggregation."""

    def test_counts_and_exit_code(self):
        """Any failure makes the exit code non-zero."""
        report = BackfillReport(
            results=[
                UserBackfillResult(user_id="a", email="a@x", outcome=BackfillOutcome.SUCCEEDED),
                UserBackfillResult(user_id="b", email="b@x", outcome=BackfillOutcome.SKIPPED),
            ]
        )
        assert (report.total, report.succeeded, report.failed, report.skipped) == (2, 1, 0, 1)
        assert report.exit_code == EXIT_OK

        report.results.append(UserBackfillResult(user_id="c", email="c@x"))
        assert report.failed == 1
        assert report.exit_code == EXIT_FAILURES

    def test_empty_report_succeeds(self):
        assert BackfillReport().exit_code == EXIT_OK
