"""
核心業務邏輯層

這個 package 包含所有選舉規則，包括：
- 狀態機：集中管理所有階段轉換
- Access Control：controller 權限檢查
- Registry / ProposalBook / Voting：白名單、投票人、提案、投票
- Tally Engine：開票
- Event Log：記錄所有被接受的狀態變更
- Locks：並發控制工具
"""
