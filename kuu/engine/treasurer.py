"""
kuu.engine.treasurer — Treasurer Game Rules & Session State
=============================================================

The treasurer game walks a group through a fixed list of reimbursement
claims.  For each claim the group picks *Accepted*, *Needs Revision* or
*Rejected*; correct picks are counted and converted into event points at
the end.

This module owns the rules and the per-group session state.  It knows
nothing about Discord: :mod:`kuu.bot.cogs.treasurer` sends the prompts and
collects button clicks, then reports back through :class:`TreasurerGame`.

Session lifecycle per group::

    Idle ──start()──▶ Active ──advance() past last prompt──▶ Idle
                         │
                         └──────────abort() on any failure──▶ Idle

A group appears in :class:`GameSessions` only while its game is running.
There is no time-based expiry: a session ends when the game completes or
when the cog aborts it after a delivery/collection failure.
"""

from __future__ import annotations

import enum
import logging
import math
import threading
from dataclasses import dataclass

from kuu.engine.payloads import ActionType

logger = logging.getLogger(__name__)


class SessionNotActiveError(RuntimeError):
    """Raised when a group without a running game submits or advances."""


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class PromptAnswer(enum.StrEnum):
    """The three possible verdicts on a claim."""
    ACCEPTED = "Accepted"
    NEEDS_REVISION = "Needs Revision"
    REJECTED = "Rejected"

    @property
    def action(self) -> ActionType:
        return _ANSWER_TO_ACTION[self]

    @classmethod
    def from_action(cls, action: ActionType) -> PromptAnswer:
        for answer, mapped in _ANSWER_TO_ACTION.items():
            if mapped is action:
                return answer
        raise ValueError(f"{action!r} is not a treasurer answer")


_ANSWER_TO_ACTION: dict[PromptAnswer, ActionType] = {
    PromptAnswer.ACCEPTED: ActionType.ACCEPTED,
    PromptAnswer.NEEDS_REVISION: ActionType.REVISION,
    PromptAnswer.REJECTED: ActionType.REJECTED,
}


class GroupName(enum.StrEnum):
    """Event groups that can play."""
    GREEN = "green"
    RED = "red"
    BLUE = "blue"
    LIGHT_PURPLE = "light-purple"

    @property
    def display(self) -> str:
        return self.value.replace("-", " ").title()


# ---------------------------------------------------------------------------
# Prompts
# ---------------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class Prompt:
    """One claim.  ``image_path`` is relative to the events directory."""

    message: str
    answer: PromptAnswer
    image_path: str | None = None


_RECEIPTS = "TTIRASWRTAC/receipts"

PROMPTS: tuple[Prompt, ...] = (
    Prompt(
        "I bought paper plates and cups for the club's Christmas party. Receipt is attached below.",
        PromptAnswer.ACCEPTED,
        f"{_RECEIPTS}/1.jpg",
    ),
    Prompt(
        "I'm claiming RM66.24 for a meal I had while brainstorming club ideas alone.",
        PromptAnswer.REJECTED,
        f"{_RECEIPTS}/2.jpg",
    ),
    Prompt(
        "I want to be reimbursed RM38.16 for poster and card printing. "
        "The budget was approved last month.",
        PromptAnswer.ACCEPTED,
        f"{_RECEIPTS}/3.jpg",
    ),
    Prompt(
        "Bought a RM150 office chair. No receipt, but it was used once for a club event.",
        PromptAnswer.REJECTED,
        f"{_RECEIPTS}/4.jpg",
    ),
    Prompt(
        "I would like to request reimbursement for RM20 for birthday decorations for a member.",
        PromptAnswer.REJECTED,
        f"{_RECEIPTS}/5.png",
    ),
    Prompt(
        "Claiming RM50 for batteries and extension cords used during Clubs and Societies Fiesta.",
        PromptAnswer.ACCEPTED,
        f"{_RECEIPTS}/6.jpg",
    ),
    Prompt(
        "I lost the receipt but I bought snacks for the meeting yesterday. Can I still claim it?",
        PromptAnswer.NEEDS_REVISION,
    ),
    Prompt(
        "I got a RM10 notebook for personal use at club meetings, can I claim it?",
        PromptAnswer.REJECTED,
        f"{_RECEIPTS}/8.jpg",
    ),
    Prompt(
        "Reimbursement request: RM40 for our event's performer's travel expenses.",
        PromptAnswer.ACCEPTED,
        f"{_RECEIPTS}/9.jpg",
    ),
    Prompt(
        "Here's a claim for RM80 on a gaming mouse I wanted to try during meetings.",
        PromptAnswer.REJECTED,
        f"{_RECEIPTS}/10.jpg",
    ),
    Prompt(
        "I've got a claim of RM27 for flyers. Receipt is missing, but it's from our regular printer.",
        PromptAnswer.NEEDS_REVISION,
    ),
    Prompt(
        "Claiming RM46 for coffee and drinks I bought for the event. Invoice attached.",
        PromptAnswer.ACCEPTED,
        f"{_RECEIPTS}/12.jpg",
    ),
    Prompt(
        "I'm submitting a claim for RM20. It's for a t-shirt I got at another club's event.",
        PromptAnswer.REJECTED,
        f"{_RECEIPTS}/13.jpg",
    ),
    Prompt(
        "I'd like to claim RM10 for change that I paid to a member looking to sign up but had "
        "no small notes. I have picture proof of the payment.",
        PromptAnswer.ACCEPTED,
        f"{_RECEIPTS}/14.jpg",
    ),
    Prompt(
        "Requesting RM30 reimbursement for an e-hailing ride to attend our meeting. "
        "No prior approval.",
        PromptAnswer.NEEDS_REVISION,
        f"{_RECEIPTS}/15.jpg",
    ),
    Prompt(
        "I bought decorations for the bake sale that our club is participating in. "
        "The total was RM35.",
        PromptAnswer.ACCEPTED,
        f"{_RECEIPTS}/16.jpg",
    ),
    Prompt(
        "Claiming RM22 for a book I think is useful for our club's mission. No receipt.",
        PromptAnswer.NEEDS_REVISION,
    ),
    Prompt(
        "I'm claiming RM35 for event refreshments, can I use this receipt with the same amount "
        "but a different item?",
        PromptAnswer.NEEDS_REVISION,
        f"{_RECEIPTS}/18.jpg",
    ),
    Prompt(
        "Requesting RM100 for an external speaker's fee. Signed and approved invoice attached.",
        PromptAnswer.ACCEPTED,
        f"{_RECEIPTS}/19.jpg",
    ),
    Prompt(
        "I have a receipt from buying prizes for an event 1 year ago, can I claim it now?",
        PromptAnswer.REJECTED,
        f"{_RECEIPTS}/20.jpg",
    ),
)


# ---------------------------------------------------------------------------
# Scoring
# ---------------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class PointBands:
    """Correct-answer breakpoints → points.

    ``breakpoints`` is ascending ``(min_correct, points)``; a count below the
    first breakpoint scores 0.
    """

    breakpoints: tuple[tuple[int, int], ...]

    def __post_init__(self) -> None:
        minimums = [low for low, _ in self.breakpoints]
        if minimums != sorted(minimums) or len(set(minimums)) != len(minimums):
            raise ValueError("Point band breakpoints must be strictly ascending")

    def points_for(self, correct: int) -> int:
        points = 0
        for minimum, band_points in self.breakpoints:
            if correct >= minimum:
                points = band_points
        return points

    @classmethod
    def scaled(cls, prompt_count: int, tiers: int = 4) -> PointBands:
        """Split ``1..prompt_count`` into *tiers* equal bands worth 1..tiers.

        For 20 prompts: 1–5 → 1, 6–10 → 2, 11–15 → 3, 16–20 → 4.
        """
        if prompt_count <= 0 or tiers <= 0:
            raise ValueError("prompt_count and tiers must be positive")
        tiers = min(tiers, prompt_count)
        size = math.ceil(prompt_count / tiers)
        return cls(tuple((i * size + 1, i + 1) for i in range(tiers) if i * size < prompt_count))


DEFAULT_POINT_BANDS = PointBands(((1, 1), (6, 2), (11, 3), (16, 4)))


# ---------------------------------------------------------------------------
# Session state
# ---------------------------------------------------------------------------
class GameSessions:
    """Thread-safe map of running games: group → correct answers so far.

    ``start`` checks and inserts under one lock, so two concurrent starts
    for the same group can never both succeed.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._counts: dict[GroupName, int] = {}

    def start(self, group: GroupName) -> bool:
        with self._lock:
            if group in self._counts:
                return False
            self._counts[group] = 0
            return True

    def is_active(self, group: GroupName) -> bool:
        with self._lock:
            return group in self._counts

    def correct_count(self, group: GroupName) -> int | None:
        with self._lock:
            return self._counts.get(group)

    def record_correct(self, group: GroupName) -> int:
        with self._lock:
            if group not in self._counts:
                raise SessionNotActiveError(f"No treasurer game running for {group}")
            self._counts[group] += 1
            return self._counts[group]

    def release(self, group: GroupName) -> int | None:
        """Remove *group*; returns its final count, or None if it was idle."""
        with self._lock:
            return self._counts.pop(group, None)

    def active_groups(self) -> list[GroupName]:
        with self._lock:
            return list(self._counts)

    def __contains__(self, group: object) -> bool:
        with self._lock:
            return group in self._counts

    def __len__(self) -> int:
        with self._lock:
            return len(self._counts)


# ---------------------------------------------------------------------------
# Game
# ---------------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class AnswerOutcome:
    correct: bool
    chosen: PromptAnswer
    expected: PromptAnswer
    next_index: int


@dataclass(frozen=True, slots=True)
class GameResult:
    group: GroupName
    correct: int
    total: int
    points: int


class TreasurerGame:
    """Rules of one prompt set, applied to the groups in *sessions*."""

    def __init__(
        self,
        sessions: GameSessions | None = None,
        prompts: tuple[Prompt, ...] = PROMPTS,
        bands: PointBands | None = None,
    ) -> None:
        if not prompts:
            raise ValueError("A treasurer game needs at least one prompt")
        self.sessions = sessions if sessions is not None else GameSessions()
        self.prompts = prompts
        self.bands = bands or PointBands.scaled(len(prompts))

    def start(self, group: GroupName) -> bool:
        """Claim *group*; False if it already has a game running."""
        started = self.sessions.start(group)
        if started:
            logger.info("Treasurer game started for group %s", group)
        return started

    def is_active(self, group: GroupName) -> bool:
        return self.sessions.is_active(group)

    def prompt(self, index: int) -> Prompt:
        return self.prompts[index]

    def submit_answer(
        self, group: GroupName, prompt_index: int, chosen: PromptAnswer
    ) -> AnswerOutcome:
        """Score *chosen* against prompt *prompt_index*.

        Raises
        ------
        SessionNotActiveError
            If *group* has no running game.
        IndexError
            If *prompt_index* is outside the prompt set.
        """
        if not 0 <= prompt_index < len(self.prompts):
            raise IndexError(f"Prompt index {prompt_index} out of range")
        if not self.sessions.is_active(group):
            raise SessionNotActiveError(f"No treasurer game running for {group}")

        expected = self.prompts[prompt_index].answer
        correct = chosen == expected
        if correct:
            self.sessions.record_correct(group)

        return AnswerOutcome(
            correct=correct,
            chosen=chosen,
            expected=expected,
            next_index=prompt_index + 1,
        )

    def advance(self, group: GroupName, next_index: int) -> Prompt | GameResult:
        """Return the prompt at *next_index*, or finish the game past the end.

        Raises
        ------
        SessionNotActiveError
            If *group* has no running game.
        IndexError
            If *next_index* is negative.
        """
        if next_index < 0:
            raise IndexError(f"Prompt index {next_index} out of range")
        if next_index < len(self.prompts):
            if not self.sessions.is_active(group):
                raise SessionNotActiveError(f"No treasurer game running for {group}")
            return self.prompts[next_index]

        correct = self.sessions.release(group)
        if correct is None:
            raise SessionNotActiveError(f"No treasurer game running for {group}")

        result = GameResult(
            group=group,
            correct=correct,
            total=len(self.prompts),
            points=self.bands.points_for(correct),
        )
        logger.info(
            "Treasurer game finished for group %s: %d/%d correct, %d points",
            group, result.correct, result.total, result.points,
        )
        return result

    def abort(self, group: GroupName) -> bool:
        """Force-release *group* after a failure.  Safe to call twice."""
        released = self.sessions.release(group) is not None
        if released:
            logger.warning("Treasurer game aborted for group %s", group)
        return released
