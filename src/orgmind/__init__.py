"""
OrgMind 舊資料遷移工具 (Legacy Graph Backfill)

===============================================================================
模組概述 (Module Overview)
===============================================================================
OrgMind 在引入「知識圖譜（Graph）」之前建立的文件沒有 graph_id。
此套件提供一次性的批次遷移，為每位擁有孤兒文件的使用者：

1. 建立一個預設 Graph 與 owner 成員關係
2. 將該使用者所有 graph_id 為 NULL 的文件指向新 Graph
3. 更新 Graph 的 document_count

每位使用者在單一資料庫交易中完成；單一使用者失敗時整筆交易回滾，
批次繼續處理下一位使用者。

使用方式 (Usage):
    orgmind-backfill --migrate-existing-documents --dry-run
    orgmind-backfill --migrate-existing-documents --yes
===============================================================================
"""

__version__ = "1.0.0"
