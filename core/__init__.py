"""
核心業務邏輯層

這個 package 包含遊戲 Session 引擎與資料庫之間的銜接：
- entities：Rule / RuleSet / GameSession / Round
- 狀態機：集中管理所有 Session 狀態轉換
- Manager：管理 Game 與 Session 的生命週期
- Locks：並發控制工具
"""
