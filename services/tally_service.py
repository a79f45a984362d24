"""
開票服務：找出得票最高的提案

純計算邏輯，不碰資料庫、不改變階段（由 TallyEngine 負責）
"""
from collections import defaultdict
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence

from models import WinningType
from core.exceptions import NoProposals, NoVotesCast
from services.randomness import RandomnessProvider


@dataclass(frozen=True)
class TallyOutcome:
    winning_proposal_id: int
    winning_type: WinningType
    total_votes: int
    max_vote_count: int
    candidates: List[int]
    tiebreak_value: Optional[int] = None


def group_by_vote_count(vote_counts: Sequence[int]):
    """
    掃過所有提案一次，同時算出總票數、最高票數，並依票數分組

    返回：
        (total_votes, max_vote_count, {票數: [提案位置, ...]})

    範例：
        group_by_vote_count([3, 5, 5, 1])
        -> (14, 5, {3: [0], 5: [1, 2], 1: [3]})
    """
    total_votes = 0
    max_vote_count = 0
    buckets: Dict[int, List[int]] = defaultdict(list)

    for position, count in enumerate(vote_counts):
        total_votes += count
        if count > max_vote_count:
            max_vote_count = count
        buckets[count].append(position)

    return total_votes, max_vote_count, dict(buckets)


def compute_tally(vote_counts: Sequence[int], randomness: RandomnessProvider) -> TallyOutcome:
    """
    計算開票結果

    規則：
    - 得票最高的提案只有一個 → 直接當選（Majority），不抽籤
    - 得票最高的提案有多個 → index = 亂數 mod 候選數，抽出一個（Draw）

    參數：
        vote_counts: 依提案位置排列的票數
        randomness: 平手時使用的亂數來源

    返回：
        TallyOutcome

    異常：
        NoProposals: 沒有任何提案
        NoVotesCast: 總票數為 0
    """
    if not vote_counts:
        raise NoProposals()

    total_votes, max_vote_count, buckets = group_by_vote_count(vote_counts)
    if total_votes == 0:
        raise NoVotesCast()

    candidates = buckets[max_vote_count]

    if len(candidates) == 1:
        return TallyOutcome(
            winning_proposal_id=candidates[0],
            winning_type=WinningType.MAJORITY,
            total_votes=total_votes,
            max_vote_count=max_vote_count,
            candidates=candidates
        )

    value = randomness.random_value()
    return TallyOutcome(
        winning_proposal_id=candidates[value % len(candidates)],
        winning_type=WinningType.DRAW,
        total_votes=total_votes,
        max_vote_count=max_vote_count,
        candidates=candidates,
        tiebreak_value=value
    )
