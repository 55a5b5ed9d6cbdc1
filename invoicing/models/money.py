"""
Money value object.

Amounts are held as an integer count of minor units (cents for USD) plus an
ISO currency code. Every operation works on that integer; multiplication by a
rate or quantity goes through ``Decimal`` and rounds half-up back to a whole
minor unit, so no binary floating point ever touches a currency value.
"""

from __future__ import annotations

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Iterable, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from invoicing.core.errors import CurrencyMismatchError, ValidationError

Numeric = Union[int, str, Decimal, float]

# Minor-unit exponent per supported currency
CURRENCY_EXPONENTS = {
    "USD": 2,
    "EUR": 2,
    "GBP": 2,
    "CAD": 2,
    "AUD": 2,
    "CHF": 2,
    "CNY": 2,
    "JPY": 0,
}

CURRENCY_SYMBOLS = {
    "USD": "$",
    "EUR": "€",
    "GBP": "£",
    "CAD": "C$",
    "AUD": "A$",
    "CHF": "CHF",
    "CNY": "¥",
    "JPY": "¥",
}

# locale -> (grouping separator, decimal separator, symbol before amount)
LOCALE_CONVENTIONS = {
    "en_US": (",", ".", True),
    "en_GB": (",", ".", True),
    "en_CA": (",", ".", True),
    "en_AU": (",", ".", True),
    "ja_JP": (",", ".", True),
    "zh_CN": (",", ".", True),
    "de_DE": (".", ",", False),
    "es_ES": (".", ",", False),
    "it_IT": (".", ",", False),
    "fr_FR": ("\u00a0", ",", False),
    "de_CH": ("'", ".", True),
}


def to_decimal(value: Numeric) -> Decimal:
    """Convert a user supplied number to Decimal without float artefacts."""
    if isinstance(value, bool):
        raise ValidationError("INVALID_NUMBER", f"Not a number: {value!r}")
    try:
        if isinstance(value, Decimal):
            result = value
        else:
            # str() first so 0.1 becomes Decimal("0.1"), not its binary expansion
            result = Decimal(str(value).strip())
    except (InvalidOperation, ValueError, TypeError):
        raise ValidationError("INVALID_NUMBER", f"Not a number: {value!r}")
    if not result.is_finite():
        raise ValidationError("INVALID_NUMBER", f"Number must be finite: {value!r}")
    return result


def normalize_currency(value) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValidationError("CURRENCY_REQUIRED", "Currency cannot be empty")
    code = value.strip().upper()
    if code not in CURRENCY_EXPONENTS:
        raise ValidationError("UNSUPPORTED_CURRENCY", f"Unsupported currency: {value}")
    return code


def _resolve_locale(locale: str) -> tuple:
    normalized = locale.replace("-", "_")
    if normalized in LOCALE_CONVENTIONS:
        return LOCALE_CONVENTIONS[normalized]
    language = normalized.split("_")[0]
    for name, conventions in LOCALE_CONVENTIONS.items():
        if name.startswith(language + "_"):
            return conventions
    return LOCALE_CONVENTIONS["en_US"]


class Money(BaseModel):
    """Immutable monetary amount in integer minor units."""

    model_config = ConfigDict(frozen=True)

    minor_units: int = Field(strict=True)
    currency: str = "USD"

    @field_validator("currency", mode="before")
    @classmethod
    def _normalize_currency(cls, value):
        return normalize_currency(value)

    # Construction

    @classmethod
    def from_amount(cls, amount: Numeric, currency: str = "USD") -> Money:
        """Build from a major-unit amount such as ``"12.345"``, rounding half-up."""
        code = normalize_currency(currency)
        scaled = to_decimal(amount).scaleb(CURRENCY_EXPONENTS[code])
        return cls(
            minor_units=int(scaled.quantize(Decimal("1"), rounding=ROUND_HALF_UP)),
            currency=code,
        )

    @classmethod
    def from_exact_amount(cls, amount: Numeric, currency: str = "USD") -> Money:
        """Like ``from_amount`` but rejects anything finer than one minor unit."""
        code = normalize_currency(currency)
        scaled = to_decimal(amount).scaleb(CURRENCY_EXPONENTS[code])
        if scaled != scaled.to_integral_value():
            raise ValidationError(
                "INVALID_AMOUNT_PRECISION",
                f"{amount} has more decimal places than {code} allows",
            )
        return cls(minor_units=int(scaled), currency=code)

    @classmethod
    def zero(cls, currency: str = "USD") -> Money:
        return cls(minor_units=0, currency=currency)

    # Arithmetic

    def _check_currency(self, other: Money) -> None:
        if not isinstance(other, Money):
            raise TypeError(f"Expected Money, got {type(other).__name__}")
        if self.currency != other.currency:
            raise CurrencyMismatchError(
                "CURRENCY_MISMATCH",
                f"Cannot combine {self.currency} with {other.currency}",
            )

    def add(self, other: Money) -> Money:
        self._check_currency(other)
        return Money(minor_units=self.minor_units + other.minor_units, currency=self.currency)

    def subtract(self, other: Money) -> Money:
        self._check_currency(other)
        return Money(minor_units=self.minor_units - other.minor_units, currency=self.currency)

    def multiply(self, factor: Numeric) -> Money:
        """Multiply by any factor, rounding half-up to a whole minor unit."""
        product = Decimal(self.minor_units) * to_decimal(factor)
        return Money(
            minor_units=int(product.quantize(Decimal("1"), rounding=ROUND_HALF_UP)),
            currency=self.currency,
        )

    def multiply_by_rate(self, rate: Numeric) -> Money:
        """Apply a non-negative rate (tax, discount); rounds half-up."""
        decimal_rate = to_decimal(rate)
        if decimal_rate < 0:
            raise ValidationError("INVALID_RATE", f"Rate cannot be negative: {rate}")
        return self.multiply(decimal_rate)

    def __add__(self, other: Money) -> Money:
        return self.add(other)

    def __sub__(self, other: Money) -> Money:
        return self.subtract(other)

    # Comparison

    def compare(self, other: Money) -> int:
        self._check_currency(other)
        if self.minor_units < other.minor_units:
            return -1
        if self.minor_units > other.minor_units:
            return 1
        return 0

    def __lt__(self, other: Money) -> bool:
        return self.compare(other) < 0

    def __le__(self, other: Money) -> bool:
        return self.compare(other) <= 0

    def __gt__(self, other: Money) -> bool:
        return self.compare(other) > 0

    def __ge__(self, other: Money) -> bool:
        return self.compare(other) >= 0

    def is_zero(self) -> bool:
        return self.minor_units == 0

    def is_negative(self) -> bool:
        return self.minor_units < 0

    def is_positive(self) -> bool:
        return self.minor_units > 0

    # Conversion and display

    @property
    def exponent(self) -> int:
        return CURRENCY_EXPONENTS[self.currency]

    def to_decimal(self) -> Decimal:
        """Major-unit Decimal, exact (e.g. 11000 cents -> Decimal('110.00'))."""
        return Decimal(self.minor_units).scaleb(-self.exponent)

    def format(self, locale: str = "en_US") -> str:
        """
        Locale-aware display string.

        >>> Money(minor_units=123456, currency="USD").format("en_US")
        '$1,234.56'
        >>> Money(minor_units=123456, currency="EUR").format("de_DE")
        '1.234,56 €'
        """
        group_sep, decimal_sep, symbol_first = _resolve_locale(locale)
        whole, fraction = divmod(abs(self.minor_units), 10 ** self.exponent)
        number = f"{whole:,}".replace(",", group_sep)
        if self.exponent:
            number = f"{number}{decimal_sep}{fraction:0{self.exponent}d}"

        symbol = CURRENCY_SYMBOLS.get(self.currency, self.currency)
        sign = "-" if self.minor_units < 0 else ""
        if symbol_first:
            spacer = " " if symbol.isalpha() else ""
            return f"{sign}{symbol}{spacer}{number}"
        return f"{sign}{number} {symbol}"

    def __str__(self) -> str:
        return f"{self.to_decimal()} {self.currency}"


def sum_money(amounts: Iterable[Money], currency: str = "USD") -> Money:
    """Exact sum of Money values; an empty iterable gives zero in ``currency``."""
    total = Money.zero(currency)
    for amount in amounts:
        total = total.add(amount)
    return total
