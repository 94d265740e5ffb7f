"""
Wheel - Outcomes a spin can land on, and the segment table.

A WheelOutcome is a tagged variant:
- MONEY(amount): pays amount per matching consonant
- BANKRUPT: zeroes round money, forfeits this round's prizes, ends the turn
- LOSE_TURN: ends the turn
- PRIZE(name, value): pays a flat amount per letter and awards the prize
- WILD_CARD / GIFT_TAG / MILLION_WEDGE: flat per-letter pay plus an item

The spin itself is random; resolving its outcome is not. The session layer
draws the outcome and hands it to the reducer inside a SPIN action.
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
import random


class OutcomeKind(Enum):
    """Kinds of wheel segment."""
    MONEY = "money"
    BANKRUPT = "bankrupt"
    LOSE_TURN = "lose_turn"
    PRIZE = "prize"
    WILD_CARD = "wild_card"
    GIFT_TAG = "gift_tag"
    MILLION_WEDGE = "million_wedge"


# Flat pay per matching consonant for the non-money wedges
SPECIAL_LETTER_VALUES = {
    OutcomeKind.PRIZE: 500,
    OutcomeKind.WILD_CARD: 500,
    OutcomeKind.GIFT_TAG: 500,
    OutcomeKind.MILLION_WEDGE: 900,
}

WILD_CARD = "WILD_CARD"
MILLION_DOLLAR_WEDGE = "MILLION_DOLLAR_WEDGE"
GIFT_TAG_NAME = "$1000 GIFT TAG"
GIFT_TAG_VALUE = 1000


@dataclass(frozen=True)
class WheelOutcome:
    """One wheel segment."""
    kind: OutcomeKind
    amount: int = 0
    name: str | None = None

    @classmethod
    def money(cls, amount: int) -> WheelOutcome:
        return cls(kind=OutcomeKind.MONEY, amount=amount)

    @classmethod
    def bankrupt(cls) -> WheelOutcome:
        return cls(kind=OutcomeKind.BANKRUPT)

    @classmethod
    def lose_turn(cls) -> WheelOutcome:
        return cls(kind=OutcomeKind.LOSE_TURN)

    @classmethod
    def prize(cls, name: str, value: int) -> WheelOutcome:
        return cls(kind=OutcomeKind.PRIZE, amount=value, name=name)

    @classmethod
    def wild_card(cls) -> WheelOutcome:
        return cls(kind=OutcomeKind.WILD_CARD, amount=500, name="WILD CARD")

    @classmethod
    def gift_tag(cls) -> WheelOutcome:
        return cls(kind=OutcomeKind.GIFT_TAG, amount=GIFT_TAG_VALUE, name=GIFT_TAG_NAME)

    @classmethod
    def million_wedge(cls) -> WheelOutcome:
        return cls(kind=OutcomeKind.MILLION_WEDGE, amount=900, name="MILLION")

    @property
    def ends_turn(self) -> bool:
        """Bankrupt and Lose a Turn pass play to the next seat."""
        return self.kind in (OutcomeKind.BANKRUPT, OutcomeKind.LOSE_TURN)

    @property
    def letter_value(self) -> int:
        """Money paid per occurrence of a matching consonant."""
        if self.kind == OutcomeKind.MONEY:
            return self.amount
        return SPECIAL_LETTER_VALUES.get(self.kind, 0)

    def describe(self) -> str:
        """Short label used in messages."""
        if self.kind == OutcomeKind.MONEY:
            return f"${self.amount}"
        if self.kind == OutcomeKind.BANKRUPT:
            return "BANKRUPT"
        if self.kind == OutcomeKind.LOSE_TURN:
            return "LOSE A TURN"
        return self.name or self.kind.value.upper()

    def to_dict(self) -> dict:
        return {"kind": self.kind.value, "amount": self.amount, "name": self.name}

    @classmethod
    def from_dict(cls, data: dict) -> WheelOutcome:
        return cls(
            kind=OutcomeKind(data["kind"]),
            amount=int(data.get("amount") or 0),
            name=data.get("name"),
        )


WHEEL_SEGMENTS: tuple[WheelOutcome, ...] = (
    *(WheelOutcome.money(v) for v in (500, 550, 600, 650, 700, 750, 800, 850, 900, 500, 550, 600)),
    WheelOutcome.bankrupt(),
    WheelOutcome.lose_turn(),
    WheelOutcome.prize("TRIP TO HAWAII", 7500),
    WheelOutcome.prize("NEW CAR", 25000),
    WheelOutcome.prize("TRIP TO EUROPE", 12000),
    WheelOutcome.wild_card(),
    WheelOutcome.gift_tag(),
    WheelOutcome.million_wedge(),
    *(WheelOutcome.money(v) for v in (650, 700, 750, 800)),
)


class Wheel:
    """
    Draws spin outcomes.

    Usage:
        wheel = Wheel(rng=random.Random(7))
        outcome = wheel.spin()
    """

    def __init__(
        self,
        segments: tuple[WheelOutcome, ...] = WHEEL_SEGMENTS,
        rng: random.Random | None = None,
    ):
        if not segments:
            raise ValueError("Wheel needs at least one segment")
        self.segments = segments
        self.rng = rng or random.Random()

    def spin(self) -> WheelOutcome:
        return self.rng.choice(self.segments)
