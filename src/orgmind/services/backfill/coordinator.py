"""
遷移交易協調器 (Backfill Transaction Coordinator)

===============================================================================
模組概述 (Module Overview)
===============================================================================
逐一處理待遷移使用者，每位使用者一筆交易：

    START → GRAPH_CREATED → MEMBERSHIP_CREATED
          → DOCUMENTS_REASSIGNED → COUNT_UPDATED → COMMITTED

任一步驟失敗時進入 FAILED → ROLLED_BACK，整筆交易回滾，
記錄失敗後繼續下一位使用者。連線中斷則中止整個批次。

沒有並行：同一時間只有一筆開啟中的交易。失敗的使用者不會在同一次
執行中重試，操作者重新執行批次即可（已遷移的文件不會再被匹配）。

空 Graph 處理：
    預設（backfill_keep_empty_graphs=True）與舊行為相同：沒有文件被重新指派時，
    空的預設 Graph 與 owner 成員關係照常提交。
    backfill_keep_empty_graphs=False 時，在交易內重新計數孤兒文件，
    沒有可遷移的文件就回滾並標記為 SKIPPED，不留下空的預設 Graph。
===============================================================================
"""

from datetime import datetime, timezone
from typing import Optional, Sequence

from loguru import logger
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from orgmind.core.config import Settings
from orgmind.core.constants import BackfillOutcome, BackfillStage
from orgmind.core.exceptions import (
    ConfigurationError,
    DataAccessError,
    DatabaseConnectionError,
    PersistenceError,
)
from orgmind.core.logging import LogContext
from orgmind.db.connection import Database, translate_write_error
from orgmind.db.repositories import DocumentRepository, UserRepository
from orgmind.models.pydantic import (
    BackfillReport,
    DryRunEntry,
    DryRunPlan,
    UserBackfillResult,
)
from orgmind.models.sqlalchemy import User
from orgmind.services.backfill.provisioner import GraphProvisioner
from orgmind.services.backfill.reassigner import DocumentReassigner
from orgmind.services.backfill.scanner import UserScanner
from orgmind.services.graph_store import GraphStoreClient


class BackfillCoordinator:
    """
    遷移協調器。

    Example:
        coordinator = BackfillCoordinator(database, settings, graph_store)
        report = await coordinator.run()
        sys.exit(report.exit_code)
    """

    def __init__(
        self,
        database: Database,
        settings: Settings,
        graph_store: Optional[GraphStoreClient] = None,
        *,
        scanner: Optional[UserScanner] = None,
        provisioner: Optional[GraphProvisioner] = None,
        reassigner: Optional[DocumentReassigner] = None,
    ):
        """
        Args:
            database: 已連線的資料庫
            settings: 設定
            graph_store: Zep 客戶端；dry-run 不需要
            scanner / provisioner / reassigner: 自訂元件（測試用）
        """
        self.database = database
        self.settings = settings
        self.scanner = scanner or UserScanner(database)
        if provisioner is None and graph_store is not None:
            provisioner = GraphProvisioner(
                graph_store,
                graph_name=settings.default_graph_name,
                graph_description=settings.default_graph_description,
            )
        self.provisioner = provisioner
        self.reassigner = reassigner or DocumentReassigner()

    # =========================================================================
    # Dry run
    # =========================================================================

    async def plan(self, user_ids: Optional[Sequence[str]] = None) -> DryRunPlan:
        """
        預覽將被遷移的使用者與文件數，不開啟任何寫入交易。

        單一使用者計數失敗時記錄警告並略過該使用者。

        Raises:
            DataAccessError: 掃描失敗時
        """
        users = await self.scanner.scan(user_ids)
        plan = DryRunPlan()
        for user in users:
            try:
                count = await self.scanner.count_orphaned_documents(user.id)
            except DatabaseConnectionError:
                raise
            except DataAccessError as e:
                logger.warning(f"無法計算使用者 {user.id} 的文件數: {e}")
                continue
            plan.entries.append(
                DryRunEntry(user_id=user.id, email=user.email, orphaned_documents=count)
            )
        return plan

    # =========================================================================
    # 正式遷移
    # =========================================================================

    async def run(self, user_ids: Optional[Sequence[str]] = None) -> BackfillReport:
        """
        執行遷移。

        Returns:
            BackfillReport，含每位使用者的結果

        Raises:
            ConfigurationError: 未提供 Zep 客戶端
            DataAccessError: 掃描失敗
            DatabaseConnectionError: 遷移途中連線中斷
        """
        if self.provisioner is None:
            raise ConfigurationError("正式遷移需要 Zep 客戶端")

        users = await self.scanner.scan(user_ids)
        report = BackfillReport()
        if not users:
            logger.info("沒有需要遷移的使用者")
            return report

        logger.info(f"找到 {len(users)} 位待遷移使用者")
        for index, user in enumerate(users, start=1):
            logger.info(f"[{index}/{len(users)}] 處理使用者: {user.email} (ID: {user.id})")
            report.results.append(await self.migrate_user(user))

        logger.info(
            f"遷移完成 - 成功: {report.succeeded}, 失敗: {report.failed}, "
            f"略過: {report.skipped}, 總計: {report.total}"
        )
        return report

    async def migrate_user(self, user: User) -> UserBackfillResult:
        """
        在單一交易中遷移一位使用者。

        PersistenceError 與非連線類的 SQLAlchemy 錯誤會被記錄為失敗，
        交易回滾；DatabaseConnectionError 會往上拋出。

        Returns:
            UserBackfillResult
        """
        result = UserBackfillResult(user_id=user.id, email=user.email)

        with LogContext(user_id=user.id, email=user.email) as log:
            try:
                async with self.database.session() as session:
                    if not await self._claim(session, user):
                        await session.rollback()
                        self._skip(result, log)
                        return result

                    now = datetime.now(timezone.utc)

                    graph = await self.provisioner.create_graph(session, user, now)
                    result.graph_id = graph.id
                    result.zep_graph_id = graph.zep_graph_id
                    self._advance(result, BackfillStage.GRAPH_CREATED, log)

                    await self.provisioner.create_owner_membership(session, graph, user, now)
                    self._advance(result, BackfillStage.MEMBERSHIP_CREATED, log)

                    moved = await self.reassigner.reassign(session, user.id, graph.id, now)
                    result.documents_reassigned = moved
                    self._advance(result, BackfillStage.DOCUMENTS_REASSIGNED, log)

                    if moved == 0 and not self.settings.backfill_keep_empty_graphs:
                        await session.rollback()
                        self._skip(result, log)
                        return result

                    await self.reassigner.update_document_count(session, graph.id, moved, now)
                    self._advance(result, BackfillStage.COUNT_UPDATED, log)

            except DatabaseConnectionError:
                raise
            except PersistenceError as e:
                self._fail(result, e, log)
                return result
            except SQLAlchemyError as e:
                # commit 失敗等未經元件轉換的錯誤
                error = translate_write_error(e, "提交交易失敗", user_id=user.id)
                if isinstance(error, DatabaseConnectionError):
                    raise error from e
                self._fail(result, error, log)
                return result

            result.outcome = BackfillOutcome.SUCCEEDED
            self._advance(result, BackfillStage.COMMITTED, log)
            log.info(
                f"✓ 使用者遷移成功: Graph {result.graph_id}, "
                f"{result.documents_reassigned} 份文件"
            )
        return result

    async def _claim(self, session: AsyncSession, user: User) -> bool:
        """
        鎖定使用者並確認仍有孤兒文件。

        PostgreSQL 上先取得 advisory lock，再於同一交易內重新計數，
        避免兩個程序同時為同一使用者建立預設 Graph。

        Returns:
            False 表示沒有可遷移的文件，應略過
        """
        try:
            if self.settings.backfill_advisory_lock and self.database.is_postgres:
                await UserRepository(session).acquire_backfill_lock(user.id)
            if self.settings.backfill_keep_empty_graphs:
                return True
            return await DocumentRepository(session).count_orphaned(user.id) > 0
        except SQLAlchemyError as e:
            raise translate_write_error(e, "鎖定使用者失敗", user_id=user.id) from e

    @staticmethod
    def _advance(result: UserBackfillResult, stage: BackfillStage, log) -> None:
        result.stage = stage
        log.debug(f"階段: {stage.value}")

    @staticmethod
    def _skip(result: UserBackfillResult, log) -> None:
        result.outcome = BackfillOutcome.SKIPPED
        result.stage = BackfillStage.ROLLED_BACK
        result.graph_id = None
        result.zep_graph_id = None
        log.warning("使用者已沒有孤兒文件，交易已回滾，未建立預設 Graph")

    @staticmethod
    def _fail(result: UserBackfillResult, error: Exception, log) -> None:
        result.outcome = BackfillOutcome.FAILED
        result.failed_stage = result.stage
        result.error = str(error)
        result.stage = BackfillStage.FAILED
        log.error(
            f"使用者遷移失敗（階段 {result.failed_stage.value} 之後）: {error}"
        )
        result.graph_id = None
        result.zep_graph_id = None
        result.stage = BackfillStage.ROLLED_BACK
        log.info("交易已回滾")
