"""
遷移結果模型

定義 dry-run 計畫與正式遷移報告的 Pydantic 模型，包含：
- DryRunEntry / DryRunPlan：預覽將被遷移的使用者與文件數
- UserBackfillResult：單一使用者的遷移結果
- BackfillReport：整批遷移的彙總
"""

from typing import Optional

from pydantic import BaseModel, Field, computed_field

from orgmind.core.constants import (
    EXIT_FAILURES,
    EXIT_OK,
    BackfillOutcome,
    BackfillStage,
)


# ==================== Dry run ====================


class DryRunEntry(BaseModel):
    """單一使用者的遷移預覽。"""

    user_id: str = Field(..., description="使用者 ID")
    email: str = Field(..., description="使用者 email")
    orphaned_documents: int = Field(..., ge=0, description="graph_id 為 NULL 的文件數")


class DryRunPlan(BaseModel):
    """dry-run 模式的完整預覽，不包含任何寫入。"""

    entries: list[DryRunEntry] = Field(default_factory=list)

    @computed_field
    @property
    def total_users(self) -> int:
        return len(self.entries)

    @computed_field
    @property
    def total_documents(self) -> int:
        return sum(entry.orphaned_documents for entry in self.entries)


# ==================== 正式遷移 ====================


class UserBackfillResult(BaseModel):
    """
    單一使用者的遷移結果。

    stage 記錄狀態機停下的位置；失敗時 failed_stage 為出錯前最後完成的階段，
    用於判斷交易進行到哪一步。
    """

    user_id: str
    email: str
    outcome: BackfillOutcome = BackfillOutcome.FAILED
    stage: BackfillStage = BackfillStage.START
    failed_stage: Optional[BackfillStage] = None
    graph_id: Optional[str] = None
    zep_graph_id: Optional[str] = None
    documents_reassigned: int = 0
    error: Optional[str] = None


class BackfillReport(BaseModel):
    """整批遷移的結果彙總。"""

    results: list[UserBackfillResult] = Field(default_factory=list)

    def _count(self, outcome: BackfillOutcome) -> int:
        return sum(1 for r in self.results if r.outcome == outcome)

    @computed_field
    @property
    def total(self) -> int:
        return len(self.results)

    @computed_field
    @property
    def succeeded(self) -> int:
        return self._count(BackfillOutcome.SUCCEEDED)

    @computed_field
    @property
    def failed(self) -> int:
        return self._count(BackfillOutcome.FAILED)

    @computed_field
    @property
    def skipped(self) -> int:
        return self._count(BackfillOutcome.SKIPPED)

    @property
    def failed_results(self) -> list[UserBackfillResult]:
        return [r for r in self.results if r.outcome == BackfillOutcome.FAILED]

    @property
    def exit_code(self) -> int:
        """任一使用者失敗時為非零。"""
        return EXIT_FAILURES if self.failed else EXIT_OK
