"""Monetary value objects - pure Python immutable types."""

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Union

CENT = Decimal("0.01")

Number = Union[Decimal, int, str, float]


def to_decimal(value: Number) -> Decimal:
    """Convert to Decimal via str so floats keep their printed value."""
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def quantize(value: Decimal) -> Decimal:
    """Round to cents, half-up."""
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class DualAmount:
    """
    Non-negative amount held in both EUR (primary) and SYP (secondary).

    The two sides are kept in sync by ``from_eur`` using a fixed exchange
    rate supplied by the caller; arithmetic is applied to both sides so
    the pair never drifts.

    CRITICAL: Always use Decimal, never float!
    """
    eur: Decimal
    syp: Decimal

    def __post_init__(self):
        object.__setattr__(self, "eur", to_decimal(self.eur))
        object.__setattr__(self, "syp", to_decimal(self.syp))

        if self.eur < 0 or self.syp < 0:
            raise ValueError(f"Monetary amounts must be non-negative, got: {self}")

    @classmethod
    def zero(cls) -> "DualAmount":
        return cls(eur=Decimal("0.00"), syp=Decimal("0.00"))

    @classmethod
    def from_eur(cls, eur: Number, exchange_rate: Number) -> "DualAmount":
        """
        Build the pair from an EUR amount.

        Args:
            eur: Amount in EUR
            exchange_rate: SYP per one EUR
        """
        eur_value = quantize(to_decimal(eur))
        return cls(eur=eur_value, syp=quantize(eur_value * to_decimal(exchange_rate)))

    def __str__(self) -> str:
        return f"{self.eur} EUR / {self.syp} SYP"

    def __add__(self, other: "DualAmount") -> "DualAmount":
        return DualAmount(eur=self.eur + other.eur, syp=self.syp + other.syp)

    def __mul__(self, factor: Union[int, Decimal]) -> "DualAmount":
        """Scale both sides (quantity or rate)."""
        factor = to_decimal(factor)
        return DualAmount(eur=self.eur * factor, syp=self.syp * factor)

    __rmul__ = __mul__

    def minus_or_zero(self, other: "DualAmount") -> "DualAmount":
        """Subtract per side, flooring each side at zero."""
        return DualAmount(
            eur=max(self.eur - other.eur, Decimal("0")),
            syp=max(self.syp - other.syp, Decimal("0")),
        )

    def quantized(self) -> "DualAmount":
        return DualAmount(eur=quantize(self.eur), syp=quantize(self.syp))

    def is_zero(self) -> bool:
        return self.eur == 0 and self.syp == 0
