"""
Access Control：controller 權限檢查

每個特權操作的第一步都呼叫 require_controller()，
檢查失敗時還沒有任何狀態被修改。
"""
from models import Election
from core.exceptions import NotController


def is_controller(election: Election, identity: str) -> bool:
    return identity is not None and identity == election.controller_id


def require_controller(election: Election, identity: str) -> None:
    """
    確認呼叫者是這場選舉的 controller

    異常：
        NotController: 呼叫者不是 controller
    """
    if not is_controller(election, identity):
        raise NotController(identity)
