"""
資料模型（SQLAlchemy ORM）

一個 Election 就是一個選舉引擎實例的完整狀態：
白名單、投票人、提案、開票結果與事件紀錄都以 election_id 掛在它底下，
沒有任何模組層級的全域狀態。
"""
import enum
from datetime import datetime, timezone
from uuid import uuid4

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    Enum,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.orm import relationship

from database import Base


def _utcnow():
    return datetime.now(timezone.utc)


class WorkflowStatus(str, enum.Enum):
    """選舉階段，順序與合法轉換定義在 core.state_machine"""
    REGISTERING_VOTERS = "RegisteringVoters"
    PROPOSALS_REGISTRATION_STARTED = "ProposalsRegistrationStarted"
    PROPOSALS_REGISTRATION_ENDED = "ProposalsRegistrationEnded"
    VOTING_SESSION_STARTED = "VotingSessionStarted"
    VOTING_SESSION_ENDED = "VotingSessionEnded"
    VOTES_TALLIED = "VotesTallied"


class WinningType(str, enum.Enum):
    MAJORITY = "Majority"
    DRAW = "Draw"


class EventType(str, enum.Enum):
    ELECTION_CREATED = "ElectionCreated"
    VOTER_REGISTERED = "VoterRegistered"
    PROPOSAL_REGISTERED = "ProposalRegistered"
    VOTED_CAST = "VotedCast"
    WORKFLOW_STATUS_CHANGED = "WorkflowStatusChanged"
    PROPOSAL_ELECTED = "ProposalElected"


class Election(Base):
    __tablename__ = "elections"

    id = Column(Uuid, primary_key=True, default=uuid4)
    controller_id = Column(String(128), nullable=False)
    phase = Column(
        Enum(WorkflowStatus),
        nullable=False,
        default=WorkflowStatus.REGISTERING_VOTERS
    )
    registered_count = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), default=_utcnow)

    result = relationship("ElectionResult", back_populates="election", uselist=False)


class WhitelistEntry(Base):
    __tablename__ = "whitelist_entries"
    __table_args__ = (UniqueConstraint("election_id", "identity"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    election_id = Column(Uuid, ForeignKey("elections.id"), nullable=False, index=True)
    identity = Column(String(128), nullable=False)
    allowed = Column(Boolean, nullable=False, default=False)


class Voter(Base):
    __tablename__ = "voters"
    __table_args__ = (UniqueConstraint("election_id", "identity"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    election_id = Column(Uuid, ForeignKey("elections.id"), nullable=False, index=True)
    identity = Column(String(128), nullable=False)
    is_registered = Column(Boolean, nullable=False, default=False)
    has_voted = Column(Boolean, nullable=False, default=False)
    # 只有 has_voted=True 時才有值
    voted_proposal_id = Column(Integer, nullable=True)
    registered_at = Column(DateTime(timezone=True), default=_utcnow)


class Proposal(Base):
    __tablename__ = "proposals"
    __table_args__ = (UniqueConstraint("election_id", "position"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    election_id = Column(Uuid, ForeignKey("elections.id"), nullable=False, index=True)
    # 0-based 連續編號，也是提案對外的永久 ID
    position = Column(Integer, nullable=False)
    description = Column(Text, nullable=False)
    vote_count = Column(Integer, nullable=False, default=0)
    submitted_by = Column(String(128), nullable=False)
    created_at = Column(DateTime(timezone=True), default=_utcnow)


class ElectionResult(Base):
    __tablename__ = "election_results"

    id = Column(Integer, primary_key=True, autoincrement=True)
    election_id = Column(Uuid, ForeignKey("elections.id"), nullable=False, unique=True)
    winning_proposal_id = Column(Integer, nullable=False)
    winning_type = Column(Enum(WinningType), nullable=False)
    total_votes_cast = Column(Integer, nullable=False)
    total_registered_participants = Column(Integer, nullable=False)
    # 平手時抽籤用的亂數（稽核用），Majority 時為 NULL
    tiebreak_value = Column(String(80), nullable=True)
    created_at = Column(DateTime(timezone=True), default=_utcnow)

    election = relationship("Election", back_populates="result")


class EventLog(Base):
    """
    事件紀錄（通知）

    只會新增不會修改；自增 id 就是事件的全序。
    與狀態變更寫在同一個 transaction，rollback 時一起消失。
    """
    __tablename__ = "event_logs"

    id = Column(Integer, primary_key=True, autoincrement=True)
    election_id = Column(Uuid, ForeignKey("elections.id"), nullable=False, index=True)
    event_type = Column(Enum(EventType), nullable=False)
    data = Column(JSON, nullable=False, default=dict)
    created_at = Column(DateTime(timezone=True), default=_utcnow)
