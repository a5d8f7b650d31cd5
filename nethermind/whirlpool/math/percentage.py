from dataclasses import dataclass
from decimal import Decimal
from fractions import Fraction


@dataclass(frozen=True, slots=True)
class Percentage:
    """
    Exact fraction used for slippage tolerances and fee rates.  A 1% slippage tolerance is
    ``Percentage(1, 100)``, and a 3000 fee rate is ``Percentage(3000, 1_000_000)``.

    Fractions are reduced on construction, so ``Percentage(10, 1000) == Percentage(1, 100)``
    """

    numerator: int
    denominator: int

    def __post_init__(self):
        if self.denominator == 0:
            raise ValueError("Percentage denominator cannot be zero")

        if self.numerator < 0 or self.denominator < 0:
            raise ValueError(f"Percentage must be non-negative, got {self.numerator}/{self.denominator}")

        reduced = Fraction(self.numerator, self.denominator)
        object.__setattr__(self, "numerator", reduced.numerator)
        object.__setattr__(self, "denominator", reduced.denominator)

    @classmethod
    def from_fraction(cls, numerator: int, denominator: int) -> "Percentage":
        return cls(numerator, denominator)

    @classmethod
    def from_decimal(cls, value: Decimal | str | float) -> "Percentage":
        """
        Creates a percentage from a decimal fraction, ``Decimal("0.01")`` being 1%.
        Floats are converted through their string representation so ``0.1`` becomes exactly 1/10
        """
        fraction = Fraction(Decimal(str(value)))
        return cls(fraction.numerator, fraction.denominator)

    @classmethod
    def from_bps(cls, bps: int) -> "Percentage":
        return cls(bps, 10_000)

    def to_decimal(self) -> Decimal:
        return Decimal(self.numerator) / Decimal(self.denominator)

    def __str__(self):
        if self.denominator == 1:
            return str(self.numerator)
        return f"{self.numerator}/{self.denominator}"
