"""
Event Log：記錄所有被接受的狀態變更（通知）

事件只新增、不修改，而且沒有任何權限意義；
它們跟狀態變更寫在同一個 transaction，操作失敗時一起 rollback。
"""
from typing import List
from uuid import UUID

from sqlalchemy.orm import Session

from models import EventLog, EventType


def record_event(db: Session, election_id: UUID, event_type: EventType, data: dict) -> EventLog:
    """
    新增一筆事件（不 commit，交給外層 @transactional）

    參數：
        db: SQLAlchemy Session
        election_id: Election UUID
        event_type: 事件類型
        data: 事件內容（會存成 JSON）
    """
    event = EventLog(
        election_id=election_id,
        event_type=event_type,
        data=data
    )
    db.add(event)
    return event


def list_events(db: Session, election_id: UUID, after_id: int = 0) -> List[EventLog]:
    """
    依發生順序取得事件

    參數：
        after_id: 只回傳 id 大於此值的事件（給輪詢用）
    """
    return db.query(EventLog).filter(
        EventLog.election_id == election_id,
        EventLog.id > after_id
    ).order_by(EventLog.id).all()
