"""
Alembic 遷移 CLI 封裝

提供命令列介面執行 schema 遷移（建立 users/graphs/graph_memberships/documents）。
資料回填請使用 orgmind-backfill。

使用方式：
    orgmind-db upgrade head
    orgmind-db current
"""
import subprocess
import sys
from pathlib import Path


def get_alembic_ini_path() -> Path:
    """
    取得 alembic.ini 路徑。

    Returns:
        alembic.ini 的絕對路徑
    """
    return Path(__file__).parent.parent / "alembic.ini"


def run_alembic(*args: str) -> int:
    """
    執行 alembic 命令。

    Args:
        *args: 傳遞給 alembic 的命令列參數

    Returns:
        命令的退出碼
    """
    cmd = [sys.executable, "-m", "alembic", "-c", str(get_alembic_ini_path()), *args]
    return subprocess.call(cmd)


def upgrade(revision: str = "head") -> int:
    """升級資料庫到指定版本（預設最新）。"""
    return run_alembic("upgrade", revision)


def downgrade(revision: str = "-1") -> int:
    """降級資料庫（預設上一個版本）。"""
    return run_alembic("downgrade", revision)


def current() -> int:
    """顯示當前資料庫版本。"""
    return run_alembic("current")


def history() -> int:
    """顯示遷移歷史。"""
    return run_alembic("history")


def stamp(revision: str = "head") -> int:
    """
    標記資料庫版本（不執行遷移）。

    用於將既有資料庫（由舊 SQL 腳本建立）標記為已完成某個遷移版本。
    """
    return run_alembic("stamp", revision)


def main() -> int:
    """
    CLI 入口點。

    直接傳遞命令列參數給 alembic。
    """
    args = sys.argv[1:] if len(sys.argv) > 1 else ["--help"]
    return run_alembic(*args)


if __name__ == "__main__":
    sys.exit(main())
