"""
OrgMind 常數與列舉定義模組 (Constants and Enumerations)

===============================================================================
模組概述 (Module Overview)
===============================================================================
主要分類：
1. 成員角色 (Membership Roles)
2. 文件狀態與來源 (Document Status / Source)
3. 遷移階段與結果 (Backfill Stages / Outcomes)
4. 預設值 (Default Values)
===============================================================================
"""

from enum import Enum
from typing import Final


# =============================================================================
# 成員角色 (Membership Roles)
# =============================================================================

class MembershipRole(str, Enum):
    """Graph 成員角色"""
    OWNER = "owner"
    EDITOR = "editor"
    VIEWER = "viewer"
    MEMBER = "member"


# =============================================================================
# 文件 (Documents)
# =============================================================================

class DocumentStatus(str, Enum):
    """
    文件處理狀態

    追蹤上傳文件在擷取與索引流程中的狀態。
    """
    PROCESSING = "processing"  # 處理中
    COMPLETED = "completed"    # 已完成
    FAILED = "failed"          # 失敗


class DocumentSource(str, Enum):
    """文件來源"""
    EDITOR = "editor"  # 線上編輯器
    UPLOAD = "upload"  # 檔案上傳


# =============================================================================
# 遷移階段 (Backfill Stages)
# =============================================================================

class BackfillStage(str, Enum):
    """
    單一使用者遷移的狀態機階段

    正常路徑：
        START → GRAPH_CREATED → MEMBERSHIP_CREATED
              → DOCUMENTS_REASSIGNED → COUNT_UPDATED → COMMITTED

    任一步驟失敗：
        FAILED → ROLLED_BACK
    """
    START = "start"
    GRAPH_CREATED = "graph_created"
    MEMBERSHIP_CREATED = "membership_created"
    DOCUMENTS_REASSIGNED = "documents_reassigned"
    COUNT_UPDATED = "count_updated"
    COMMITTED = "committed"
    FAILED = "failed"
    ROLLED_BACK = "rolled_back"


class BackfillOutcome(str, Enum):
    """單一使用者遷移的最終結果"""
    SUCCEEDED = "succeeded"  # 已提交
    FAILED = "failed"        # 交易已回滾，計入失敗
    SKIPPED = "skipped"      # 沒有可遷移的文件，交易已回滾


# =============================================================================
# 預設值 (Default Values)
# =============================================================================

DEFAULT_GRAPH_NAME: Final[str] = "My Knowledge Graph"
DEFAULT_GRAPH_DESCRIPTION: Final[str] = "Default graph created during migration"

# Zep Graph ID 前綴：graph-<graph uuid>
EXTERNAL_GRAPH_ID_PREFIX: Final[str] = "graph-"

# pg_advisory_xact_lock 鍵的命名空間
ADVISORY_LOCK_NAMESPACE: Final[str] = "orgmind-backfill"

# CLI 退出碼
EXIT_OK: Final[int] = 0
EXIT_FAILURES: Final[int] = 1
EXIT_FATAL: Final[int] = 2
