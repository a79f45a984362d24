"""
API 共用的 dependency 與錯誤轉換

- 呼叫者身分：已經由外層驗證過，透過 X-Caller-Id header 傳進來
- 選舉 ID：服務啟動時 bootstrap，存在 app.state
- 業務異常依分類轉成 HTTP status，detail 帶可讀的失敗原因
"""
from uuid import UUID
import logging

from fastapi import Header, HTTPException, Request

from core.exceptions import (
    AuthorizationError,
    ElectionException,
    EmptyElectionError,
    NotFoundError,
    PhaseError,
    StateConflictError
)

logger = logging.getLogger(__name__)

_STATUS_BY_CATEGORY = [
    (AuthorizationError, 403),
    (NotFoundError, 404),
    (PhaseError, 409),
    (StateConflictError, 409),
    (EmptyElectionError, 409),
]


def get_caller_id(x_caller_id: str = Header(..., min_length=1)) -> str:
    return x_caller_id


def get_election_id(request: Request) -> UUID:
    return request.app.state.election_id


def to_http_exception(e: ElectionException) -> HTTPException:
    """
    把業務異常轉成 HTTPException

    返回：
        HTTPException，detail = {"code": 機器可讀代碼, "message": 可讀原因}
    """
    status_code = 400
    for category, code in _STATUS_BY_CATEGORY:
        if isinstance(e, category):
            status_code = code
            break
    return HTTPException(
        status_code=status_code,
        detail={"code": e.code, "message": str(e)}
    )
