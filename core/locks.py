"""
選舉的列鎖

每個會改動狀態的選舉操作，都先鎖住 Election 列，再鎖 Voter / Proposal 列，
順序固定，兩個 transaction 不會互相死鎖。
SQLite 會忽略 FOR UPDATE，靠資料庫層級的寫鎖序列化。
"""
from sqlalchemy.orm import Session, Query
from uuid import UUID

from models import Election, Voter, Proposal


def with_election_lock(election_id: UUID, db: Session) -> Query:
    """
    鎖住選舉列；階段轉換、註冊、提案、投票與開票都從這裡開始

    返回：
        Query（呼叫 .first() 取得 Election，不存在時為 None）
    """
    return db.query(Election).filter(
        Election.id == election_id
    ).with_for_update(nowait=False)


def with_voter_lock(election_id: UUID, identity: str, db: Session) -> Query:
    """投票時鎖住投票人，has_voted 的檢查與寫入不會被另一筆投票插隊"""
    return db.query(Voter).filter(
        Voter.election_id == election_id,
        Voter.identity == identity
    ).with_for_update(nowait=False)


def with_proposal_lock(election_id: UUID, position: int, db: Session) -> Query:
    """投票時鎖住提案，遞增 vote_count"""
    return db.query(Proposal).filter(
        Proposal.election_id == election_id,
        Proposal.position == position
    ).with_for_update(nowait=False)
