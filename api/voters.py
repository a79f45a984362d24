"""
Voter API Endpoints

職責：
1. controller 維護白名單
2. 投票人自行註冊
3. 查詢投票人資訊與投票紀錄
"""
from uuid import UUID
import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from database import get_db
from schemas import VoteOfResponse, VoterResponse, WhitelistResponse, WhitelistUpdate
from core.exceptions import ElectionException
from core.registry import Registry
from core.voting import Voting
from api.dependencies import get_caller_id, get_election_id, to_http_exception

router = APIRouter(prefix="/api/election", tags=["voters"])
logger = logging.getLogger(__name__)


@router.put("/whitelist/{identity}", response_model=WhitelistResponse)
def set_whitelisted(
    identity: str,
    body: WhitelistUpdate,
    election_id: UUID = Depends(get_election_id),
    caller_id: str = Depends(get_caller_id),
    db: Session = Depends(get_db)
):
    """設定白名單（Controller endpoint，任何階段）"""
    try:
        entry = Registry.set_whitelisted(db, election_id, caller_id, identity, body.allowed)
        return WhitelistResponse(identity=entry.identity, allowed=entry.allowed)
    except ElectionException as e:
        raise to_http_exception(e)
    except Exception as e:
        logger.error(f"Failed to update whitelist: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal error")


@router.get("/whitelist/{identity}", response_model=WhitelistResponse)
def get_whitelisted(
    identity: str,
    election_id: UUID = Depends(get_election_id),
    db: Session = Depends(get_db)
):
    return WhitelistResponse(
        identity=identity,
        allowed=Registry.is_whitelisted(db, election_id, identity)
    )


@router.post("/voters/register", response_model=VoterResponse)
def register_self(
    election_id: UUID = Depends(get_election_id),
    caller_id: str = Depends(get_caller_id),
    db: Session = Depends(get_db)
):
    """
    自行註冊成投票人

    前置條件：
    - 呼叫者在白名單內
    - 階段是 RegisteringVoters
    - 尚未註冊
    """
    try:
        voter = Registry.register_self(db, election_id, caller_id)
        return VoterResponse.model_validate(voter)
    except ElectionException as e:
        raise to_http_exception(e)
    except Exception as e:
        logger.error(f"Failed to register voter: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal error")


@router.get("/voters/{identity}", response_model=VoterResponse)
def get_voter(
    identity: str,
    election_id: UUID = Depends(get_election_id),
    db: Session = Depends(get_db)
):
    try:
        return VoterResponse.model_validate(Registry.get_voter(db, election_id, identity))
    except ElectionException as e:
        raise to_http_exception(e)


@router.get("/voters/{identity}/vote", response_model=VoteOfResponse)
def get_vote_of(
    identity: str,
    election_id: UUID = Depends(get_election_id),
    db: Session = Depends(get_db)
):
    """查詢某人投給哪個提案；沒投過票回 404 has_not_voted"""
    try:
        proposal_id = Voting.get_vote_of(db, election_id, identity)
        return VoteOfResponse(identity=identity, proposal_id=proposal_id)
    except ElectionException as e:
        raise to_http_exception(e)
