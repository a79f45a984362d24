"""
Proposal API Endpoints

職責：
1. 投票人提交提案
2. 查詢提案
3. 投票人投票
"""
from typing import List
from uuid import UUID
import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from database import get_db
from schemas import ProposalResponse, ProposalSubmit, VoteOfResponse
from core.exceptions import ElectionException
from core.proposal_book import ProposalBook
from core.voting import Voting
from api.dependencies import get_caller_id, get_election_id, to_http_exception

router = APIRouter(prefix="/api/election/proposals", tags=["proposals"])
logger = logging.getLogger(__name__)


@router.post("", response_model=ProposalResponse)
def submit_proposal(
    body: ProposalSubmit,
    election_id: UUID = Depends(get_election_id),
    caller_id: str = Depends(get_caller_id),
    db: Session = Depends(get_db)
):
    """
    提交提案

    前置條件：
    - 呼叫者是已註冊的投票人
    - 階段是 ProposalsRegistrationStarted

    返回：
        新提案（proposal_id 為 0-based 位置）
    """
    try:
        proposal = ProposalBook.submit(db, election_id, caller_id, body.description)
        return ProposalResponse.model_validate(proposal)
    except ElectionException as e:
        raise to_http_exception(e)
    except Exception as e:
        logger.error(f"Failed to submit proposal: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal error")


@router.get("", response_model=List[ProposalResponse])
def list_proposals(
    election_id: UUID = Depends(get_election_id),
    db: Session = Depends(get_db)
):
    return [
        ProposalResponse.model_validate(proposal)
        for proposal in ProposalBook.list(db, election_id)
    ]


@router.get("/{proposal_id}", response_model=ProposalResponse)
def get_proposal(
    proposal_id: int,
    election_id: UUID = Depends(get_election_id),
    db: Session = Depends(get_db)
):
    try:
        return ProposalResponse.model_validate(ProposalBook.get(db, election_id, proposal_id))
    except ElectionException as e:
        raise to_http_exception(e)


@router.post("/{proposal_id}/vote", response_model=VoteOfResponse)
def cast_vote(
    proposal_id: int,
    election_id: UUID = Depends(get_election_id),
    caller_id: str = Depends(get_caller_id),
    db: Session = Depends(get_db)
):
    """
    投票

    前置條件：
    - 呼叫者是已註冊的投票人，且還沒投過票
    - 階段是 VotingSessionStarted
    - proposal_id 存在
    """
    try:
        voter = Voting.cast_vote(db, election_id, caller_id, proposal_id)
        return VoteOfResponse(identity=voter.identity, proposal_id=voter.voted_proposal_id)
    except ElectionException as e:
        raise to_http_exception(e)
    except Exception as e:
        logger.error(f"Failed to cast vote: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal error")
