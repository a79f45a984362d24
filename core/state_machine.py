"""
Workflow State Machine：集中管理選舉階段轉換

階段是一條直線，每次只能往下一個階段前進一步：

    RegisteringVoters
      -> ProposalsRegistrationStarted
      -> ProposalsRegistrationEnded
      -> VotingSessionStarted
      -> VotingSessionEnded
      -> VotesTallied（終點）

不跳階、不倒退、不重複。合法的下一步由 NEXT_PHASE 查表決定，
不依賴 enum 的數值順序。
"""
from typing import Optional
from uuid import UUID
import logging

from sqlalchemy.orm import Session

from models import Election, EventType, WorkflowStatus
from core.event_log import record_event
from core.exceptions import (
    ElectionNotFound,
    InvalidPhaseTransition,
    WrongPhase
)
from core.locks import with_election_lock

logger = logging.getLogger(__name__)


PHASE_ORDER = [
    WorkflowStatus.REGISTERING_VOTERS,
    WorkflowStatus.PROPOSALS_REGISTRATION_STARTED,
    WorkflowStatus.PROPOSALS_REGISTRATION_ENDED,
    WorkflowStatus.VOTING_SESSION_STARTED,
    WorkflowStatus.VOTING_SESSION_ENDED,
    WorkflowStatus.VOTES_TALLIED,
]

# {目前階段: 唯一合法的下一個階段}，終點沒有下一步
NEXT_PHASE = {
    current: following
    for current, following in zip(PHASE_ORDER, PHASE_ORDER[1:])
}

INITIAL_PHASE = PHASE_ORDER[0]
TERMINAL_PHASE = PHASE_ORDER[-1]


class WorkflowStateMachine:
    """選舉階段狀態機"""

    @staticmethod
    def next_phase(phase: WorkflowStatus) -> Optional[WorkflowStatus]:
        return NEXT_PHASE.get(phase)

    @staticmethod
    def is_terminal(phase: WorkflowStatus) -> bool:
        return phase == TERMINAL_PHASE

    @staticmethod
    def can_transition(current: WorkflowStatus, target: WorkflowStatus) -> bool:
        return NEXT_PHASE.get(current) == target

    @staticmethod
    def require_phase(election: Election, required: WorkflowStatus, operation: str) -> None:
        """
        確認選舉目前在指定階段

        異常：
            WrongPhase: 目前階段不是 required
        """
        if election.phase != required:
            raise WrongPhase(operation, required, election.phase)

    @staticmethod
    def transition(election_id: UUID, target: WorkflowStatus, db: Session) -> Election:
        """
        把選舉推進到下一個階段

        流程：
        1. 鎖定 Election
        2. 檢查 target 是否為目前階段唯一的下一步
        3. 更新階段
        4. 記錄 WorkflowStatusChanged 事件

        注意：
            - 不 commit，由呼叫者的 @transactional 負責
            - 權限檢查也由呼叫者負責（狀態機只管轉換規則）

        異常：
            ElectionNotFound: Election 不存在
            InvalidPhaseTransition: 跳階、倒退、重複，或已在終點
        """
        election = with_election_lock(election_id, db).first()
        if not election:
            raise ElectionNotFound(election_id)

        previous = election.phase
        if not WorkflowStateMachine.can_transition(previous, target):
            if WorkflowStateMachine.is_terminal(previous):
                raise InvalidPhaseTransition(
                    f"Election is in terminal phase {previous.value}, "
                    f"cannot move to {target.value}"
                )
            raise InvalidPhaseTransition(
                f"Illegal phase transition: {previous.value} -> {target.value}, "
                f"only {NEXT_PHASE[previous].value} is allowed"
            )

        election.phase = target
        record_event(
            db,
            election_id,
            EventType.WORKFLOW_STATUS_CHANGED,
            {"previous": previous.value, "new": target.value}
        )
        db.flush()

        logger.info(f"Election {election_id} phase {previous.value} -> {target.value}")
        return election
