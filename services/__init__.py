"""
服務層

這個 package 包含純計算邏輯，不負責狀態轉換，也不碰資料庫：
- rule_service：規則驗證與排序
- answer_service：標準答案與答案比對
- number_service：抽出未使用的隨機數字
- score_service：答對率
"""
