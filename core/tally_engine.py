"""
Tally Engine：開票（整場選舉只會執行一次）

職責：
1. 檢查權限與階段
2. 讀取所有提案票數，呼叫 tally_service 計算結果
3. 儲存 ElectionResult
4. 階段推進到 VotesTallied
5. 記錄 ProposalElected 事件

以上全部在同一個 transaction 內，任何一步失敗都不會留下結果或改變階段。
"""
from typing import Optional
from uuid import UUID
import logging

from sqlalchemy.orm import Session

from models import ElectionResult, EventType, Proposal, WorkflowStatus
from core.access_control import require_controller
from core.election_manager import ElectionManager
from core.event_log import record_event
from core.exceptions import AlreadyTallied, ElectionNotFound, WrongPhase
from core.locks import with_election_lock
from core.proposal_book import ProposalBook
from core.state_machine import WorkflowStateMachine
from database import get_settings, transactional
from services.randomness import RandomnessProvider, get_randomness_provider
from services.tally_service import compute_tally

logger = logging.getLogger(__name__)


class TallyEngine:

    @staticmethod
    @transactional
    def tally(
        db: Session,
        election_id: UUID,
        caller_id: str,
        randomness: Optional[RandomnessProvider] = None
    ) -> ElectionResult:
        """
        開票（controller only）

        前置條件：
        1. 呼叫者是 controller
        2. 階段是 VotingSessionEnded（已經是 VotesTallied 時丟 AlreadyTallied）
        3. 至少有一個提案、至少有一張票

        參數：
            randomness: 平手時的亂數來源，None 時依設定 tiebreak_source 建立

        異常：
            NotController / AlreadyTallied / WrongPhase / NoProposals / NoVotesCast
        """
        election = with_election_lock(election_id, db).first()
        if not election:
            raise ElectionNotFound(election_id)
        require_controller(election, caller_id)

        if election.phase == WorkflowStatus.VOTES_TALLIED:
            raise AlreadyTallied()
        if election.phase != WorkflowStatus.VOTING_SESSION_ENDED:
            raise WrongPhase("tally", WorkflowStatus.VOTING_SESSION_ENDED, election.phase)

        if randomness is None:
            randomness = get_randomness_provider(
                get_settings().tiebreak_source, context=str(election_id)
            )

        proposals = ProposalBook.list(db, election_id)
        outcome = compute_tally([p.vote_count for p in proposals], randomness)

        result = ElectionResult(
            election_id=election_id,
            winning_proposal_id=outcome.winning_proposal_id,
            winning_type=outcome.winning_type,
            total_votes_cast=outcome.total_votes,
            total_registered_participants=election.registered_count,
            tiebreak_value=(
                str(outcome.tiebreak_value) if outcome.tiebreak_value is not None else None
            )
        )
        db.add(result)

        WorkflowStateMachine.transition(election_id, WorkflowStatus.VOTES_TALLIED, db)

        record_event(
            db,
            election_id,
            EventType.PROPOSAL_ELECTED,
            {"proposal_id": outcome.winning_proposal_id}
        )
        db.flush()

        logger.info(
            f"Election {election_id} tallied: proposal {outcome.winning_proposal_id} "
            f"wins by {outcome.winning_type.value} "
            f"({outcome.max_vote_count}/{outcome.total_votes} votes, "
            f"candidates={outcome.candidates})"
        )
        return result

    @staticmethod
    def get_result(db: Session, election_id: UUID) -> ElectionResult:
        """
        取得開票結果

        異常：
            WrongPhase: 還沒開票
        """
        election = ElectionManager.get_election_by_id(db, election_id)
        WorkflowStateMachine.require_phase(election, WorkflowStatus.VOTES_TALLIED, "getResult")
        return db.query(ElectionResult).filter(
            ElectionResult.election_id == election_id
        ).one()

    @staticmethod
    def get_winner(db: Session, election_id: UUID) -> Proposal:
        result = TallyEngine.get_result(db, election_id)
        return ProposalBook.get(db, election_id, result.winning_proposal_id)
