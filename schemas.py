"""
API request / response schemas（pydantic）
"""
from datetime import datetime
from typing import Any, Dict, List, Optional
from uuid import UUID

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from models import EventType, WinningType, WorkflowStatus


class ElectionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    election_id: UUID = Field(validation_alias=AliasChoices("id", "election_id"))
    controller_id: str
    phase: WorkflowStatus
    registered_count: int


class PhaseResponse(BaseModel):
    phase: WorkflowStatus
    next_phase: Optional[WorkflowStatus] = None


class PhaseAdvance(BaseModel):
    target: WorkflowStatus


class WhitelistUpdate(BaseModel):
    allowed: bool


class WhitelistResponse(BaseModel):
    identity: str
    allowed: bool


class VoterResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    identity: str
    is_registered: bool
    has_voted: bool
    voted_proposal_id: Optional[int] = None


class VoteOfResponse(BaseModel):
    identity: str
    proposal_id: int


class ProposalSubmit(BaseModel):
    description: str = Field(min_length=1, max_length=10_000)


class ProposalResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    proposal_id: int = Field(validation_alias=AliasChoices("position", "proposal_id"))
    description: str
    vote_count: int


class ResultResponse(BaseModel):
    winning_proposal: ProposalResponse
    winning_type: WinningType
    total_votes_cast: int
    total_registered_participants: int
    tiebreak_value: Optional[str] = None


class EventResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    event_type: EventType
    data: Dict[str, Any]
    created_at: datetime


class EventListResponse(BaseModel):
    events: List[EventResponse]
