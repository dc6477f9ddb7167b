"""Skill-exchange match scoring.

A good partner teaches what you want to learn and wants to learn what you
teach. Shared free hours break ties between equally complementary partners.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass

from skillex.availability.week_mask import overlap_hours


def normalize_tags(tags: Iterable[str]) -> frozenset[str]:
    """Case-insensitive, whitespace-trimmed tag set."""
    return frozenset(t.strip().lower() for t in tags if t.strip())


@dataclass(frozen=True)
class MatchProfile:
    user_id: str
    teach_tags: frozenset[str]
    learn_tags: frozenset[str]
    week_mask: Sequence[bool]


@dataclass(frozen=True)
class MatchScore:
    user_id: str
    skill_score: int
    overlap_hours: int
    can_teach_you: tuple[str, ...]
    wants_to_learn: tuple[str, ...]


def score_candidate(me: MatchProfile, other: MatchProfile) -> MatchScore:
    can_teach_you = me.learn_tags & other.teach_tags
    wants_to_learn = me.teach_tags & other.learn_tags
    return MatchScore(
        user_id=other.user_id,
        skill_score=len(can_teach_you) + len(wants_to_learn),
        overlap_hours=overlap_hours(me.week_mask, other.week_mask),
        can_teach_you=tuple(sorted(can_teach_you)),
        wants_to_learn=tuple(sorted(wants_to_learn)),
    )


def rank_candidates(me: MatchProfile, candidates: Iterable[MatchProfile], limit: int) -> list[MatchScore]:
    """Best partners first. Candidates with nothing to exchange are dropped."""
    scores = [score_candidate(me, c) for c in candidates if c.user_id != me.user_id]
    scores = [s for s in scores if s.skill_score > 0]
    # user_id keeps the order stable across equal scores
    scores.sort(key=lambda s: (-s.skill_score, -s.overlap_hours, s.user_id))
    return scores[:limit]
