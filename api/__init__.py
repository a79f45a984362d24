"""
API 層

FastAPI routers，只負責 HTTP 與業務異常的轉換，業務規則都在 core：
- election：階段、開票、結果、事件
- voters：白名單、註冊、投票紀錄
- proposals：提案與投票
"""
