"""Tests for the row-lock queries and the transaction decorator."""

import uuid

import pytest

from core.exceptions import NotController
from core.locks import with_election_lock, with_proposal_lock, with_voter_lock
from core.registry import Registry
from database import transactional
from models import Voter


class TestLocks:
    def test_election_lock_returns_row(self, db, election_id) -> None:
        election = with_election_lock(election_id, db).first()
        assert election is not None
        assert election.id == election_id

    def test_election_lock_unknown_id(self, db, election_id) -> None:
        assert with_election_lock(uuid.uuid4(), db).first() is None

    def test_voter_and_proposal_locks(self, driver, db, election_id) -> None:
        driver.voting_open_with(2, ["alice"])
        assert with_voter_lock(election_id, "alice", db).first().identity == "alice"
        assert with_voter_lock(election_id, "ghost", db).first() is None
        assert with_proposal_lock(election_id, 1, db).first().position == 1
        assert with_proposal_lock(election_id, 2, db).first() is None


class TestTransactional:
    def test_rejection_rolls_back(self, driver, db, election_id) -> None:
        driver.admit("alice")

        @transactional
        def rename_then_reject(db, election_id):
            voter = db.query(Voter).filter(Voter.identity == "alice").one()
            voter.identity = "renamed"
            db.flush()
            raise NotController("alice")

        with pytest.raises(NotController):
            rename_then_reject(db, election_id)
        assert Registry.get_voter(db, election_id, "alice").identity == "alice"

    def test_requires_session(self) -> None:
        @transactional
        def no_session(value):
            return value

        with pytest.raises(ValueError):
            no_session(1)
