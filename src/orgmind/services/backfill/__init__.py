"""
舊資料遷移服務

依賴順序：UserScanner →（GraphProvisioner → DocumentReassigner）每位使用者，
由 BackfillCoordinator 包在單一交易中。
"""

from orgmind.services.backfill.coordinator import BackfillCoordinator
from orgmind.services.backfill.provisioner import GraphProvisioner
from orgmind.services.backfill.reassigner import DocumentReassigner
from orgmind.services.backfill.scanner import UserScanner

__all__ = [
    "BackfillCoordinator",
    "DocumentReassigner",
    "GraphProvisioner",
    "UserScanner",
]
