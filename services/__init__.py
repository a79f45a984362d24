"""
服務層

這個 package 包含純計算邏輯，不負責狀態轉換：
- TallyService：開票計算（最高票、平手抽籤）
- Randomness：平手抽籤的亂數來源
"""
