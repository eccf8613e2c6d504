"""
OrgMind 舊資料遷移命令列介面 (CLI)

===============================================================================
模組概述 (Module Overview)
===============================================================================
為擁有既有文件、但尚未有任何 Graph 的使用者建立預設 Graph。

使用方式 (Usage):
    # 預覽（不寫入任何資料）
    orgmind-backfill --migrate-existing-documents --dry-run

    # 正式遷移：先顯示預覽並詢問確認
    orgmind-backfill --migrate-existing-documents

    # 正式遷移：略過確認（CI / 腳本）
    orgmind-backfill --migrate-existing-documents --yes

    # 只重跑特定使用者
    orgmind-backfill --migrate-existing-documents --yes --user-id <uuid>

退出碼 (Exit Codes):
    0  全部成功、沒有需要遷移的使用者、或使用者取消
    1  任一使用者遷移失敗，或未指定 --migrate-existing-documents
    2  致命錯誤（設定、資料庫連線、Zep 金鑰）
===============================================================================
"""

import argparse
import asyncio
import sys
from typing import Optional, Sequence

from loguru import logger

from orgmind.core.config import Settings, load_settings
from orgmind.core.constants import EXIT_FAILURES, EXIT_FATAL, EXIT_OK
from orgmind.core.exceptions import ConfigurationError, DataAccessError
from orgmind.core.logging import LogConfig
from orgmind.db.connection import Database
from orgmind.models.pydantic import BackfillReport, DryRunPlan
from orgmind.services.backfill import BackfillCoordinator
from orgmind.services.graph_store import GraphStoreClient

USAGE = (
    "Usage: orgmind-backfill --migrate-existing-documents [--dry-run] [--yes]\n"
    "\n"
    "This script creates default graphs for users with existing documents."
)


def build_parser() -> argparse.ArgumentParser:
    """建立命令列解析器。"""
    parser = argparse.ArgumentParser(
        prog="orgmind-backfill",
        description="為既有文件的使用者建立預設知識圖譜",
    )
    parser.add_argument(
        "--migrate-existing-documents",
        action="store_true",
        help="執行遷移（必要開關）",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="只顯示將被遷移的內容，不做任何變更",
    )
    parser.add_argument(
        "-y",
        "--yes",
        action="store_true",
        help="略過確認提示",
    )
    parser.add_argument(
        "--user-id",
        dest="user_ids",
        action="append",
        default=None,
        metavar="USER_ID",
        help="只處理指定的使用者（可重複）",
    )
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    """
    CLI 主要進入點

    Returns:
        退出碼
    """
    args = build_parser().parse_args(argv)

    if not args.migrate_existing_documents:
        print(USAGE)
        return EXIT_FAILURES

    try:
        settings = load_settings()
    except ConfigurationError as e:
        logger.error(f"載入設定失敗: {e}")
        return EXIT_FATAL

    LogConfig.from_settings(settings).setup()

    return asyncio.run(
        run_backfill(
            settings,
            dry_run=args.dry_run,
            assume_yes=args.yes,
            user_ids=args.user_ids,
        )
    )


async def run_backfill(
    settings: Settings,
    dry_run: bool = False,
    assume_yes: bool = False,
    user_ids: Optional[Sequence[str]] = None,
) -> int:
    """
    連線資料庫並執行 dry-run 或正式遷移。

    Args:
        settings: 設定
        dry_run: 只預覽
        assume_yes: 略過確認
        user_ids: 只處理指定的使用者

    Returns:
        退出碼
    """
    database = Database(settings)
    try:
        await database.connect()
    except DataAccessError as e:
        logger.error(f"無法連線資料庫: {e}")
        return EXIT_FATAL

    try:
        if dry_run:
            print("\n=== DRY RUN MODE - No changes will be made ===\n")
            plan = await BackfillCoordinator(database, settings).plan(user_ids)
            print_plan(plan)
            return EXIT_OK

        try:
            graph_store = GraphStoreClient.from_settings(settings)
        except ConfigurationError as e:
            logger.error(f"初始化 Zep 客戶端失敗: {e}")
            return EXIT_FATAL

        coordinator = BackfillCoordinator(database, settings, graph_store)

        if not assume_yes:
            print("Running dry run first to preview changes...\n")
            plan = await coordinator.plan(user_ids)
            print_plan(plan)
            if not plan.entries:
                return EXIT_OK
            if not confirm("Do you want to proceed with the migration? (yes/no) "):
                print("Migration cancelled")
                return EXIT_OK

        print("\n=== STARTING MIGRATION ===\n")
        report = await coordinator.run(user_ids)
        print_report(report)
        return report.exit_code

    except ConfigurationError as e:
        logger.error(f"設定錯誤: {e}")
        return EXIT_FATAL
    except DataAccessError as e:
        logger.error(f"遷移中止: {e}")
        return EXIT_FATAL
    finally:
        await database.close()


def confirm(prompt: str) -> bool:
    """詢問確認，接受 y / yes（不分大小寫）。"""
    try:
        answer = input(prompt)
    except EOFError:
        return False
    return answer.strip().lower() in ("y", "yes")


def print_plan(plan: DryRunPlan) -> None:
    """輸出 dry-run 預覽。"""
    if not plan.entries:
        print("No users found that need migration.")
        return

    print(f"Found {plan.total_users} user(s) that need migration:\n")
    for index, entry in enumerate(plan.entries, start=1):
        print(f"{index}. User: {entry.email} (ID: {entry.user_id})")
        print(f"   Documents: {entry.orphaned_documents}")
        print(f"   Would create: Default graph with {entry.orphaned_documents} document(s)\n")


def print_report(report: BackfillReport) -> None:
    """輸出遷移摘要，列出失敗使用者以便重跑。"""
    if not report.results:
        print("No users found that need migration.")
        return

    print("\nMigration Summary:")
    print(f"  Success: {report.succeeded}")
    print(f"  Failed:  {report.failed}")
    print(f"  Skipped: {report.skipped}")
    print(f"  Total:   {report.total}")

    if report.failed:
        print("\nFailed users (re-run with --user-id):")
        for result in report.failed_results:
            print(f"  {result.user_id} ({result.email}): {result.error}")
    else:
        print("\n=== MIGRATION COMPLETED SUCCESSFULLY ===")


if __name__ == "__main__":
    sys.exit(main())
