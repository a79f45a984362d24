"""Shared fixtures: in-memory SQLite, one fresh election per test."""

import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["CONTROLLER_ID"] = "controller"
os.environ["TIEBREAK_SOURCE"] = "timestamp"

from typing import List, Sequence  # noqa: E402

import pytest  # noqa: E402

import models  # noqa: E402,F401
from core.election_manager import ElectionManager  # noqa: E402
from core.proposal_book import ProposalBook  # noqa: E402
from core.registry import Registry  # noqa: E402
from core.voting import Voting  # noqa: E402
from database import Base, SessionLocal, engine  # noqa: E402


CONTROLLER = "controller"


@pytest.fixture
def db():
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def election_id(db):
    return ElectionManager.create_election(db, CONTROLLER).id


class ElectionDriver:
    """Walks an election through its phases with valid calls."""

    def __init__(self, db, election_id):
        self.db = db
        self.election_id = election_id

    def admit(self, *identities: str) -> None:
        for identity in identities:
            Registry.set_whitelisted(self.db, self.election_id, CONTROLLER, identity, True)
            Registry.register_self(self.db, self.election_id, identity)

    def open_proposals(self) -> None:
        ElectionManager.start_proposals_registering(self.db, self.election_id, CONTROLLER)

    def open_voting(self) -> None:
        ElectionManager.end_proposals_registering(self.db, self.election_id, CONTROLLER)
        ElectionManager.start_voting_session(self.db, self.election_id, CONTROLLER)

    def close_voting(self) -> None:
        ElectionManager.end_voting_session(self.db, self.election_id, CONTROLLER)

    def submit(self, identity: str, *descriptions: str) -> None:
        for description in descriptions:
            ProposalBook.submit(self.db, self.election_id, identity, description)

    def vote(self, identity: str, proposal_id: int) -> None:
        Voting.cast_vote(self.db, self.election_id, identity, proposal_id)

    def voting_open_with(self, n_proposals: int, voters: Sequence[str]) -> None:
        """Register voters, submit n proposals, and open the voting session."""
        self.admit(*voters)
        self.open_proposals()
        self.submit(voters[0], *[f"Proposal {i}" for i in range(n_proposals)])
        self.open_voting()

    def voting_closed_with(self, vote_counts: Sequence[int]) -> List[str]:
        """Produce exactly the given per-proposal vote counts, then close voting."""
        total = sum(vote_counts)
        voters = [f"voter_{i}" for i in range(max(total, 1))]
        self.voting_open_with(len(vote_counts), voters)

        next_voter = iter(voters)
        for position, count in enumerate(vote_counts):
            for _ in range(count):
                self.vote(next(next_voter), position)

        self.close_voting()
        return voters


@pytest.fixture
def driver(db, election_id) -> ElectionDriver:
    return ElectionDriver(db, election_id)
