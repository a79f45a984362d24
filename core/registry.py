"""
Registry：白名單與投票人註冊

職責：
1. controller 維護白名單（可自行註冊的身分）
2. 白名單內的身分在 RegisteringVoters 階段自行註冊成投票人
3. 查詢投票人資訊

registered_count 與 Voter 列數在同一個 transaction 內一起變動，
所以開票時的 total_registered_participants 一定等於實際註冊人數。
"""
from sqlalchemy.orm import Session
from typing import Optional
from uuid import UUID
import logging

from models import EventType, Voter, WhitelistEntry, WorkflowStatus
from core.access_control import require_controller
from core.event_log import record_event
from core.exceptions import (
    AlreadyRegistered,
    ElectionNotFound,
    NotWhitelisted,
    VoterNotFound
)
from core.locks import with_election_lock
from core.state_machine import WorkflowStateMachine
from database import transactional

logger = logging.getLogger(__name__)


class Registry:
    """白名單與投票人管理"""

    @staticmethod
    @transactional
    def set_whitelisted(
        db: Session,
        election_id: UUID,
        caller_id: str,
        identity: str,
        allowed: bool
    ) -> WhitelistEntry:
        """
        設定某個身分是否可以自行註冊（controller only，任何階段皆可）

        冪等：重複設定同樣的值不會有任何寫入

        異常：
            ElectionNotFound: Election 不存在
            NotController: 呼叫者不是 controller
        """
        election = with_election_lock(election_id, db).first()
        if not election:
            raise ElectionNotFound(election_id)
        require_controller(election, caller_id)

        entry = db.query(WhitelistEntry).filter(
            WhitelistEntry.election_id == election_id,
            WhitelistEntry.identity == identity
        ).first()

        if entry is None:
            entry = WhitelistEntry(
                election_id=election_id,
                identity=identity,
                allowed=allowed
            )
            db.add(entry)
            logger.info(f"Whitelist {identity} = {allowed} (election={election_id})")
        elif entry.allowed != allowed:
            entry.allowed = allowed
            logger.info(f"Whitelist {identity} = {allowed} (election={election_id})")

        db.flush()
        return entry

    @staticmethod
    def is_whitelisted(db: Session, election_id: UUID, identity: str) -> bool:
        entry = db.query(WhitelistEntry).filter(
            WhitelistEntry.election_id == election_id,
            WhitelistEntry.identity == identity
        ).first()
        return bool(entry and entry.allowed)

    @staticmethod
    @transactional
    def register_self(db: Session, election_id: UUID, caller_id: str) -> Voter:
        """
        呼叫者自行註冊成投票人

        前置條件（依序檢查）：
        1. 呼叫者在白名單內
        2. 階段是 RegisteringVoters
        3. 呼叫者尚未註冊

        效果：
        - 建立 Voter（is_registered=True）
        - registered_count + 1
        - 記錄 VoterRegistered 事件

        異常：
            NotWhitelisted: 不在白名單
            WrongPhase: 不是 RegisteringVoters 階段
            AlreadyRegistered: 已經註冊過
        """
        election = with_election_lock(election_id, db).first()
        if not election:
            raise ElectionNotFound(election_id)

        if not Registry.is_whitelisted(db, election_id, caller_id):
            raise NotWhitelisted(caller_id)

        WorkflowStateMachine.require_phase(
            election, WorkflowStatus.REGISTERING_VOTERS, "registerSelf"
        )

        existing = db.query(Voter).filter(
            Voter.election_id == election_id,
            Voter.identity == caller_id
        ).first()
        if existing:
            raise AlreadyRegistered(caller_id)

        voter = Voter(
            election_id=election_id,
            identity=caller_id,
            is_registered=True,
            has_voted=False
        )
        db.add(voter)
        election.registered_count += 1

        record_event(db, election_id, EventType.VOTER_REGISTERED, {"voter": caller_id})
        db.flush()

        logger.info(
            f"Voter {caller_id} registered (election={election_id}, "
            f"total={election.registered_count})"
        )
        return voter

    @staticmethod
    def get_voter(db: Session, election_id: UUID, identity: str) -> Voter:
        """
        取得投票人資訊

        異常：
            VoterNotFound: 這個身分沒有註冊過
        """
        voter = Registry._find_voter(db, election_id, identity)
        if not voter:
            raise VoterNotFound(identity)
        return voter

    @staticmethod
    def get_registered_voter(db: Session, election_id: UUID, identity: str) -> Optional[Voter]:
        """取得已註冊的投票人，沒有的話回傳 None"""
        voter = Registry._find_voter(db, election_id, identity)
        if voter and voter.is_registered:
            return voter
        return None

    @staticmethod
    def _find_voter(db: Session, election_id: UUID, identity: str) -> Optional[Voter]:
        return db.query(Voter).filter(
            Voter.election_id == election_id,
            Voter.identity == identity
        ).first()
