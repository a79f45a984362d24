"""
Election API Endpoints

職責：
1. 查詢選舉與目前階段
2. controller 推進階段（四個入口 + 通用 advance）
3. controller 開票
4. 查詢結果、當選提案、事件紀錄
"""
from uuid import UUID
import logging

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from database import get_db
from schemas import (
    ElectionResponse,
    EventListResponse,
    EventResponse,
    PhaseAdvance,
    PhaseResponse,
    ProposalResponse,
    ResultResponse
)
from core.election_manager import ElectionManager
from core.event_log import list_events
from core.exceptions import ElectionException
from core.proposal_book import ProposalBook
from core.state_machine import WorkflowStateMachine
from core.tally_engine import TallyEngine
from api.dependencies import get_caller_id, get_election_id, to_http_exception

router = APIRouter(prefix="/api/election", tags=["election"])
logger = logging.getLogger(__name__)

# 四個 controller 階段入口
_PHASE_ACTIONS = {
    "start-proposals": ElectionManager.start_proposals_registering,
    "end-proposals": ElectionManager.end_proposals_registering,
    "start-voting": ElectionManager.start_voting_session,
    "end-voting": ElectionManager.end_voting_session,
}


def _phase_response(election) -> PhaseResponse:
    return PhaseResponse(
        phase=election.phase,
        next_phase=WorkflowStateMachine.next_phase(election.phase)
    )


@router.get("", response_model=ElectionResponse)
def get_election(
    election_id: UUID = Depends(get_election_id),
    db: Session = Depends(get_db)
):
    try:
        election = ElectionManager.get_election_by_id(db, election_id)
        return ElectionResponse.model_validate(election)
    except ElectionException as e:
        raise to_http_exception(e)


@router.get("/phase", response_model=PhaseResponse)
def get_phase(
    election_id: UUID = Depends(get_election_id),
    db: Session = Depends(get_db)
):
    try:
        election = ElectionManager.get_election_by_id(db, election_id)
        return _phase_response(election)
    except ElectionException as e:
        raise to_http_exception(e)


@router.post("/phase", response_model=PhaseResponse)
def advance_phase(
    body: PhaseAdvance,
    election_id: UUID = Depends(get_election_id),
    caller_id: str = Depends(get_caller_id),
    db: Session = Depends(get_db)
):
    """
    推進到指定階段（Controller endpoint）

    target 必須是目前階段唯一的下一步；VotesTallied 只能透過 /tally 進入
    """
    try:
        election = ElectionManager.advance_phase(db, election_id, caller_id, body.target)
        return _phase_response(election)
    except ElectionException as e:
        raise to_http_exception(e)
    except Exception as e:
        logger.error(f"Failed to advance phase: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal error")


@router.post("/phase/{action}", response_model=PhaseResponse)
def run_phase_action(
    action: str,
    election_id: UUID = Depends(get_election_id),
    caller_id: str = Depends(get_caller_id),
    db: Session = Depends(get_db)
):
    """
    階段入口（Controller endpoint）

    action：
    - start-proposals: RegisteringVoters -> ProposalsRegistrationStarted
    - end-proposals: ProposalsRegistrationStarted -> ProposalsRegistrationEnded
    - start-voting: ProposalsRegistrationEnded -> VotingSessionStarted
    - end-voting: VotingSessionStarted -> VotingSessionEnded
    """
    handler = _PHASE_ACTIONS.get(action)
    if handler is None:
        raise HTTPException(status_code=404, detail=f"Unknown phase action {action}")

    try:
        election = handler(db, election_id, caller_id)
        return _phase_response(election)
    except ElectionException as e:
        raise to_http_exception(e)
    except Exception as e:
        logger.error(f"Failed to run phase action {action}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal error")


def _result_response(db: Session, election_id: UUID, result) -> ResultResponse:
    winner = ProposalBook.get(db, election_id, result.winning_proposal_id)
    return ResultResponse(
        winning_proposal=ProposalResponse.model_validate(winner),
        winning_type=result.winning_type,
        total_votes_cast=result.total_votes_cast,
        total_registered_participants=result.total_registered_participants,
        tiebreak_value=result.tiebreak_value
    )


@router.post("/tally", response_model=ResultResponse)
def tally_votes(
    election_id: UUID = Depends(get_election_id),
    caller_id: str = Depends(get_caller_id),
    db: Session = Depends(get_db)
):
    """
    開票（Controller endpoint）

    前置條件：
    - 階段必須是 VotingSessionEnded
    - 至少有一張票

    效果：
    - 儲存結果，階段轉換 VotingSessionEnded -> VotesTallied
    """
    try:
        result = TallyEngine.tally(db, election_id, caller_id)
        return _result_response(db, election_id, result)
    except ElectionException as e:
        raise to_http_exception(e)
    except Exception as e:
        logger.error(f"Failed to tally votes: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal error")


@router.get("/result", response_model=ResultResponse)
def get_result(
    election_id: UUID = Depends(get_election_id),
    db: Session = Depends(get_db)
):
    try:
        result = TallyEngine.get_result(db, election_id)
        return _result_response(db, election_id, result)
    except ElectionException as e:
        raise to_http_exception(e)


@router.get("/winner", response_model=ProposalResponse)
def get_winner(
    election_id: UUID = Depends(get_election_id),
    db: Session = Depends(get_db)
):
    try:
        return ProposalResponse.model_validate(TallyEngine.get_winner(db, election_id))
    except ElectionException as e:
        raise to_http_exception(e)


@router.get("/events", response_model=EventListResponse)
def get_events(
    after_id: int = Query(0, ge=0),
    election_id: UUID = Depends(get_election_id),
    db: Session = Depends(get_db)
):
    """
    取得事件紀錄（通知），依發生順序

    前端用 after_id 做短輪詢，只拿新事件
    """
    events = list_events(db, election_id, after_id=after_id)
    return EventListResponse(
        events=[EventResponse.model_validate(event) for event in events]
    )
