"""
Voting：投票與查詢投票紀錄

每個已註冊的投票人只能投一次票；
has_voted 只會從 False 變成 True 一次。
"""
from sqlalchemy.orm import Session
from uuid import UUID
import logging

from models import EventType, Voter, WorkflowStatus
from core.event_log import record_event
from core.exceptions import (
    AlreadyVoted,
    ElectionNotFound,
    HasNotVoted,
    NotRegistered,
    ProposalNotFound
)
from core.locks import with_election_lock, with_proposal_lock, with_voter_lock
from core.proposal_book import ProposalBook
from core.state_machine import WorkflowStateMachine
from database import transactional

logger = logging.getLogger(__name__)


class Voting:

    @staticmethod
    @transactional
    def cast_vote(db: Session, election_id: UUID, caller_id: str, proposal_id: int) -> Voter:
        """
        投票

        前置條件（依序檢查）：
        1. 呼叫者是已註冊的投票人
        2. 階段是 VotingSessionStarted
        3. 呼叫者還沒投過票
        4. proposal_id 是存在的提案位置

        效果：
        - 提案 vote_count + 1
        - voter.has_voted = True，voter.voted_proposal_id = proposal_id
        - 記錄 VotedCast 事件

        異常：
            NotRegistered / WrongPhase / AlreadyVoted / ProposalNotFound
        """
        election = with_election_lock(election_id, db).first()
        if not election:
            raise ElectionNotFound(election_id)

        voter = with_voter_lock(election_id, caller_id, db).first()
        if not voter or not voter.is_registered:
            raise NotRegistered(caller_id)

        WorkflowStateMachine.require_phase(
            election, WorkflowStatus.VOTING_SESSION_STARTED, "castVote"
        )

        if voter.has_voted:
            raise AlreadyVoted(caller_id)

        ProposalBook.require_in_range(db, election_id, proposal_id)
        proposal = with_proposal_lock(election_id, proposal_id, db).first()
        if not proposal:
            raise ProposalNotFound(proposal_id)

        proposal.vote_count += 1
        voter.has_voted = True
        voter.voted_proposal_id = proposal_id

        record_event(
            db,
            election_id,
            EventType.VOTED_CAST,
            {"voter": caller_id, "proposal_id": proposal_id}
        )
        db.flush()

        logger.info(f"Voter {caller_id} voted for proposal {proposal_id} (election={election_id})")
        return voter

    @staticmethod
    def get_vote_of(db: Session, election_id: UUID, identity: str) -> int:
        """
        查詢某人投給哪個提案

        沒投過票（或根本不是投票人）一律丟 HasNotVoted，
        不會回傳 0 之類的預設值。
        """
        voter = db.query(Voter).filter(
            Voter.election_id == election_id,
            Voter.identity == identity
        ).first()
        if not voter or not voter.has_voted:
            raise HasNotVoted(identity)
        return voter.voted_proposal_id
