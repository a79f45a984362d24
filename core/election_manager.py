"""
Election Manager：管理選舉的生命週期

職責：
1. 建立選舉（指定 controller）
2. controller 推進階段（四個入口 + 通用的 advance_phase）
3. 查詢選舉資訊與目前階段

原則：
- 單一職責：只管 Election 與階段，不管投票人、提案、開票
- 消除特殊情況：所有階段變更都經過 WorkflowStateMachine
- 權限優先：特權操作第一步就檢查 controller
"""
from sqlalchemy.orm import Session
from uuid import UUID
import logging

from models import Election, EventType, WorkflowStatus
from core.access_control import require_controller
from core.event_log import record_event
from core.exceptions import ElectionNotFound, InvalidPhaseTransition
from core.locks import with_election_lock
from core.state_machine import INITIAL_PHASE, WorkflowStateMachine
from database import transactional

logger = logging.getLogger(__name__)


class ElectionManager:
    """Election 生命週期管理器"""

    @staticmethod
    @transactional
    def create_election(db: Session, controller_id: str) -> Election:
        """
        建立新選舉

        流程：
        1. 建立 Election（階段 RegisteringVoters）
        2. 記錄事件

        參數：
            db: SQLAlchemy Session
            controller_id: 這場選舉的 controller 身分
        """
        election = Election(
            controller_id=controller_id,
            phase=INITIAL_PHASE,
            registered_count=0
        )
        db.add(election)
        db.flush()  # 取得 election.id

        record_event(
            db,
            election.id,
            EventType.ELECTION_CREATED,
            {"controller": controller_id}
        )

        logger.info(f"Created election {election.id} controlled by {controller_id}")
        return election

    @staticmethod
    def get_or_create_election(db: Session, controller_id: str) -> Election:
        """
        服務啟動時使用：一個服務只主持一場選舉

        已經有選舉就沿用（重啟不會開新的一場），沒有才建立。
        """
        election = db.query(Election).order_by(Election.created_at).first()
        if election:
            if election.controller_id != controller_id:
                logger.warning(
                    f"Election {election.id} is controlled by {election.controller_id}, "
                    f"ignoring configured controller {controller_id}"
                )
            return election
        return ElectionManager.create_election(db, controller_id)

    @staticmethod
    def get_election_by_id(db: Session, election_id: UUID) -> Election:
        """
        透過 UUID 取得 Election

        異常：
            ElectionNotFound: Election 不存在
        """
        election = db.query(Election).filter(Election.id == election_id).first()
        if not election:
            raise ElectionNotFound(election_id)
        return election

    @staticmethod
    def get_phase(db: Session, election_id: UUID) -> WorkflowStatus:
        return ElectionManager.get_election_by_id(db, election_id).phase

    @staticmethod
    @transactional
    def advance_phase(
        db: Session,
        election_id: UUID,
        caller_id: str,
        target: WorkflowStatus
    ) -> Election:
        """
        controller 把選舉推進到下一個階段

        VotesTallied 只能由開票（TallyEngine.tally）進入，這裡不允許。

        異常：
            ElectionNotFound: Election 不存在
            NotController: 呼叫者不是 controller
            InvalidPhaseTransition: 不是唯一合法的下一步
        """
        election = with_election_lock(election_id, db).first()
        if not election:
            raise ElectionNotFound(election_id)
        require_controller(election, caller_id)

        if target == WorkflowStatus.VOTES_TALLIED:
            raise InvalidPhaseTransition(
                f"{WorkflowStatus.VOTES_TALLIED.value} is only reachable by tallying votes"
            )

        return WorkflowStateMachine.transition(election_id, target, db)

    @staticmethod
    def start_proposals_registering(db: Session, election_id: UUID, caller_id: str) -> Election:
        return ElectionManager.advance_phase(
            db, election_id, caller_id, WorkflowStatus.PROPOSALS_REGISTRATION_STARTED
        )

    @staticmethod
    def end_proposals_registering(db: Session, election_id: UUID, caller_id: str) -> Election:
        return ElectionManager.advance_phase(
            db, election_id, caller_id, WorkflowStatus.PROPOSALS_REGISTRATION_ENDED
        )

    @staticmethod
    def start_voting_session(db: Session, election_id: UUID, caller_id: str) -> Election:
        return ElectionManager.advance_phase(
            db, election_id, caller_id, WorkflowStatus.VOTING_SESSION_STARTED
        )

    @staticmethod
    def end_voting_session(db: Session, election_id: UUID, caller_id: str) -> Election:
        return ElectionManager.advance_phase(
            db, election_id, caller_id, WorkflowStatus.VOTING_SESSION_ENDED
        )
