"""Tests for whitelist admission and voter self-registration."""

import pytest

from core.election_manager import ElectionManager
from core.event_log import list_events
from core.exceptions import (
    AlreadyRegistered,
    AuthorizationError,
    NotController,
    NotWhitelisted,
    StateConflictError,
    VoterNotFound,
    WrongPhase,
)
from core.registry import Registry
from models import EventType, Voter, WhitelistEntry

from conftest import CONTROLLER


class TestWhitelist:
    def test_controller_can_whitelist(self, db, election_id) -> None:
        Registry.set_whitelisted(db, election_id, CONTROLLER, "alice", True)
        assert Registry.is_whitelisted(db, election_id, "alice")
        assert not Registry.is_whitelisted(db, election_id, "bob")

    def test_non_controller_cannot_whitelist(self, db, election_id) -> None:
        with pytest.raises(NotController):
            Registry.set_whitelisted(db, election_id, "alice", "alice", True)
        assert not Registry.is_whitelisted(db, election_id, "alice")

    def test_idempotent(self, db, election_id) -> None:
        Registry.set_whitelisted(db, election_id, CONTROLLER, "alice", True)
        Registry.set_whitelisted(db, election_id, CONTROLLER, "alice", True)
        entries = db.query(WhitelistEntry).filter(WhitelistEntry.identity == "alice").all()
        assert len(entries) == 1
        assert entries[0].allowed is True

    def test_can_revoke(self, db, election_id) -> None:
        Registry.set_whitelisted(db, election_id, CONTROLLER, "alice", True)
        Registry.set_whitelisted(db, election_id, CONTROLLER, "alice", False)
        assert not Registry.is_whitelisted(db, election_id, "alice")

    def test_allowed_in_any_phase(self, db, election_id) -> None:
        ElectionManager.start_proposals_registering(db, election_id, CONTROLLER)
        Registry.set_whitelisted(db, election_id, CONTROLLER, "late", True)
        assert Registry.is_whitelisted(db, election_id, "late")

    def test_whitelisting_emits_no_event(self, db, election_id) -> None:
        before = len(list_events(db, election_id))
        Registry.set_whitelisted(db, election_id, CONTROLLER, "alice", True)
        assert len(list_events(db, election_id)) == before


class TestRegisterSelf:
    def test_whitelisted_identity_registers(self, db, election_id) -> None:
        Registry.set_whitelisted(db, election_id, CONTROLLER, "alice", True)
        voter = Registry.register_self(db, election_id, "alice")
        assert voter.is_registered
        assert not voter.has_voted
        assert voter.voted_proposal_id is None
        election = ElectionManager.get_election_by_id(db, election_id)
        assert election.registered_count == 1

    def test_registration_records_event(self, db, election_id) -> None:
        Registry.set_whitelisted(db, election_id, CONTROLLER, "alice", True)
        Registry.register_self(db, election_id, "alice")
        event = list_events(db, election_id)[-1]
        assert event.event_type == EventType.VOTER_REGISTERED
        assert event.data == {"voter": "alice"}

    def test_not_whitelisted_rejected(self, db, election_id) -> None:
        with pytest.raises(NotWhitelisted) as exc:
            Registry.register_self(db, election_id, "mallory")
        assert isinstance(exc.value, AuthorizationError)
        assert "not whitelisted" in str(exc.value)

    def test_revoked_identity_rejected(self, db, election_id) -> None:
        Registry.set_whitelisted(db, election_id, CONTROLLER, "alice", True)
        Registry.set_whitelisted(db, election_id, CONTROLLER, "alice", False)
        with pytest.raises(NotWhitelisted):
            Registry.register_self(db, election_id, "alice")

    def test_second_registration_conflicts(self, db, election_id) -> None:
        Registry.set_whitelisted(db, election_id, CONTROLLER, "alice", True)
        Registry.register_self(db, election_id, "alice")
        with pytest.raises(AlreadyRegistered) as exc:
            Registry.register_self(db, election_id, "alice")
        assert isinstance(exc.value, StateConflictError)
        election = ElectionManager.get_election_by_id(db, election_id)
        assert election.registered_count == 1

    def test_wrong_phase_rejected(self, db, election_id) -> None:
        Registry.set_whitelisted(db, election_id, CONTROLLER, "alice", True)
        ElectionManager.start_proposals_registering(db, election_id, CONTROLLER)
        with pytest.raises(WrongPhase):
            Registry.register_self(db, election_id, "alice")
        assert db.query(Voter).count() == 0

    def test_whitelist_checked_before_phase(self, db, election_id) -> None:
        ElectionManager.start_proposals_registering(db, election_id, CONTROLLER)
        with pytest.raises(NotWhitelisted):
            Registry.register_self(db, election_id, "mallory")

    def test_registered_count_matches_voters(self, driver, db, election_id) -> None:
        driver.admit("a", "b", "c")
        election = ElectionManager.get_election_by_id(db, election_id)
        registered = db.query(Voter).filter(Voter.is_registered.is_(True)).count()
        assert election.registered_count == registered == 3


class TestGetVoter:
    def test_known_voter(self, driver, db, election_id) -> None:
        driver.admit("alice")
        assert Registry.get_voter(db, election_id, "alice").identity == "alice"

    def test_unknown_voter(self, db, election_id) -> None:
        with pytest.raises(VoterNotFound):
            Registry.get_voter(db, election_id, "ghost")

    def test_registered_voter_lookup(self, driver, db, election_id) -> None:
        driver.admit("alice")
        voter = Registry.get_registered_voter(db, election_id, "alice")
        assert voter is Registry.get_voter(db, election_id, "alice")
        assert Registry.get_registered_voter(db, election_id, "ghost") is None

    def test_whitelisted_but_not_registered(self, db, election_id) -> None:
        Registry.set_whitelisted(db, election_id, CONTROLLER, "bob", True)
        assert Registry.get_registered_voter(db, election_id, "bob") is None
