"""
自定義異常類別

集中管理所有選舉業務規則異常，方便 API 層統一處理

分類（API 層依分類對應 HTTP status）：
- AuthorizationError：呼叫者身分不符（非 controller、未列入白名單、未註冊）
- PhaseError：目前階段不允許此操作（含已開票）
- NotFoundError：提案或投票人不存在
- StateConflictError：重複註冊、重複投票
- EmptyElectionError：沒有提案或沒有任何選票時開票
"""


class ElectionException(Exception):
    """所有選舉異常的基類"""
    code = "election_error"
    default_message = "Election operation failed"

    def __init__(self, message=None):
        super().__init__(message or self.default_message)


# ============ 分類 ============

class AuthorizationError(ElectionException):
    code = "not_authorized"


class PhaseError(ElectionException):
    code = "wrong_phase"


class NotFoundError(ElectionException):
    code = "not_found"


class StateConflictError(ElectionException):
    code = "state_conflict"


class EmptyElectionError(ElectionException):
    code = "empty_election"


# ============ 權限相關異常 ============

class NotController(AuthorizationError):
    """呼叫者不是 controller"""
    code = "not_controller"

    def __init__(self, caller_id):
        self.caller_id = caller_id
        super().__init__(f"Caller {caller_id} is not the election controller")


class NotWhitelisted(AuthorizationError):
    """呼叫者不在白名單內，不能自行註冊"""
    code = "not_whitelisted"

    def __init__(self, caller_id):
        self.caller_id = caller_id
        super().__init__(f"Caller {caller_id} is not whitelisted")


class NotRegistered(AuthorizationError):
    """呼叫者不是已註冊的投票人"""
    code = "not_registered"

    def __init__(self, caller_id):
        self.caller_id = caller_id
        super().__init__(f"Caller {caller_id} is not a registered voter")


# ============ 階段相關異常 ============

class WrongPhase(PhaseError):
    """目前階段不允許此操作"""

    def __init__(self, operation, required, current):
        self.operation = operation
        self.required = required
        self.current = current
        super().__init__(
            f"{operation} requires phase {required.value}, "
            f"current phase is {current.value}"
        )


class InvalidPhaseTransition(PhaseError):
    """非法的階段轉換（跳階、倒退、重複或超過終點）"""
    code = "invalid_transition"


class AlreadyTallied(PhaseError):
    """已經開過票了"""
    code = "already_tallied"
    default_message = "Votes have already been tallied"


# ============ 查無資料異常 ============

class ElectionNotFound(NotFoundError):
    def __init__(self, election_id):
        self.election_id = election_id
        super().__init__(f"Election {election_id} not found")


class ProposalNotFound(NotFoundError):
    """提案編號超出範圍"""
    code = "proposal_not_found"

    def __init__(self, proposal_id):
        self.proposal_id = proposal_id
        super().__init__(f"Proposal {proposal_id} not found")


class VoterNotFound(NotFoundError):
    code = "voter_not_found"

    def __init__(self, identity):
        self.identity = identity
        super().__init__(f"Voter {identity} not found")


class HasNotVoted(NotFoundError):
    """投票人尚未投票（不回傳預設值 0，避免被誤認為真的投給提案 0）"""
    code = "has_not_voted"

    def __init__(self, identity):
        self.identity = identity
        super().__init__(f"Voter {identity} has not voted")


# ============ 狀態衝突異常 ============

class AlreadyRegistered(StateConflictError):
    code = "already_registered"

    def __init__(self, identity):
        self.identity = identity
        super().__init__(f"Voter {identity} is already registered")


class AlreadyVoted(StateConflictError):
    code = "already_voted"

    def __init__(self, identity):
        self.identity = identity
        super().__init__(f"Voter {identity} has already voted")


# ============ 開票相關異常 ============

class NoProposals(EmptyElectionError):
    code = "no_proposals"
    default_message = "Cannot tally an election without proposals"


class NoVotesCast(EmptyElectionError):
    code = "no_votes_cast"
    default_message = "Cannot tally an election where no votes were cast"
