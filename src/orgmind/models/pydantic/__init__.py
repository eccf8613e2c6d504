"""
OrgMind Pydantic 模型

遷移預覽與結果報告。
"""

from orgmind.models.pydantic.backfill import (
    BackfillReport,
    DryRunEntry,
    DryRunPlan,
    UserBackfillResult,
)

__all__ = [
    "BackfillReport",
    "DryRunEntry",
    "DryRunPlan",
    "UserBackfillResult",
]
