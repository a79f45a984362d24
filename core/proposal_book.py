"""
Proposal Book：提案清單

提案只會附加在尾端、不會刪除或修改內容；
提案的 ID 就是它的位置（0-based、連續）。
"""
from typing import List
from uuid import UUID
import logging

from sqlalchemy.orm import Session

from models import EventType, Proposal, WorkflowStatus
from core.event_log import record_event
from core.exceptions import ElectionNotFound, NotRegistered, ProposalNotFound
from core.locks import with_election_lock
from core.registry import Registry
from core.state_machine import WorkflowStateMachine
from database import transactional

logger = logging.getLogger(__name__)


class ProposalBook:
    """提案管理"""

    @staticmethod
    @transactional
    def submit(db: Session, election_id: UUID, caller_id: str, description: str) -> Proposal:
        """
        提交提案

        前置條件（依序檢查）：
        1. 呼叫者是已註冊的投票人
        2. 階段是 ProposalsRegistrationStarted

        流程：
        1. 鎖定 Election（讓 position 的計算不會撞號）
        2. position = 目前提案數
        3. 建立 Proposal（vote_count=0）
        4. 記錄 ProposalRegistered 事件

        異常：
            NotRegistered: 呼叫者不是投票人
            WrongPhase: 不在提案階段
        """
        election = with_election_lock(election_id, db).first()
        if not election:
            raise ElectionNotFound(election_id)

        if Registry.get_registered_voter(db, election_id, caller_id) is None:
            raise NotRegistered(caller_id)

        WorkflowStateMachine.require_phase(
            election, WorkflowStatus.PROPOSALS_REGISTRATION_STARTED, "submitProposal"
        )

        position = ProposalBook.count(db, election_id)
        proposal = Proposal(
            election_id=election_id,
            position=position,
            description=description,
            vote_count=0,
            submitted_by=caller_id
        )
        db.add(proposal)

        record_event(
            db, election_id, EventType.PROPOSAL_REGISTERED, {"proposal_id": position}
        )
        db.flush()

        logger.info(f"Proposal {position} submitted by {caller_id} (election={election_id})")
        return proposal

    @staticmethod
    def get(db: Session, election_id: UUID, proposal_id: int) -> Proposal:
        """
        取得指定位置的提案

        異常：
            ProposalNotFound: 位置超出範圍
        """
        ProposalBook.require_in_range(db, election_id, proposal_id)

        proposal = db.query(Proposal).filter(
            Proposal.election_id == election_id,
            Proposal.position == proposal_id
        ).first()
        if not proposal:
            raise ProposalNotFound(proposal_id)
        return proposal

    @staticmethod
    def list(db: Session, election_id: UUID) -> List[Proposal]:
        return db.query(Proposal).filter(
            Proposal.election_id == election_id
        ).order_by(Proposal.position).all()

    @staticmethod
    def count(db: Session, election_id: UUID) -> int:
        return db.query(Proposal).filter(Proposal.election_id == election_id).count()

    @staticmethod
    def require_in_range(db: Session, election_id: UUID, proposal_id: int) -> None:
        """
        確認 proposal_id 落在 0 .. 提案數-1

        先比較再查詢，超出 64-bit 的整數不會被送進資料庫

        異常：
            ProposalNotFound: 位置超出範圍
        """
        if proposal_id < 0 or proposal_id >= ProposalBook.count(db, election_id):
            raise ProposalNotFound(proposal_id)
