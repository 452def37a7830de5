"""Boundary validation for transaction and credit card input.

Forms bind raw mappings (request bodies, CLI options), collect per-field
errors and expose only the fields that were actually supplied, so the same
form serves creates and partial updates.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Any, ClassVar, Optional, Type

from .clock import to_utc_naive
from .errors import ValidationError
from .models.enums import Division, Nature, SpendType

AMOUNT_PATTERN = re.compile(r"^\d+(\.\d{1,2})?$")
_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off", ""}


def parse_amount(raw: Any) -> Decimal:
    """Parse a non-negative amount with at most two decimals."""

    text = str(raw).strip()
    if not AMOUNT_PATTERN.match(text):
        raise ValueError("Enter an amount like 123 or 123.45.")
    return Decimal(text).quantize(Decimal("0.01"))


def parse_day(raw: Any) -> int:
    try:
        day = int(str(raw).strip())
    except ValueError:
        raise ValueError("Enter a whole day of the month.") from None
    if not 1 <= day <= 31:
        raise ValueError("Day must be between 1 and 31.")
    return day


def parse_percentage(raw: Any) -> Decimal:
    value = parse_amount(raw)
    if value > Decimal("100"):
        raise ValueError("Percentage must be between 0 and 100.")
    return value


def parse_enum(enum_cls: Type[Enum], raw: Any) -> Enum:
    if isinstance(raw, enum_cls):
        return raw
    text = str(raw).strip().lower()
    for member in enum_cls:
        if text in {member.value, member.name.lower()}:
            return member
    choices = ", ".join(member.value for member in enum_cls)
    raise ValueError(f"Choose one of: {choices}.")


def parse_bool(raw: Any) -> bool:
    if isinstance(raw, bool):
        return raw
    text = str(raw).strip().lower()
    if text in _TRUE_VALUES:
        return True
    if text in _FALSE_VALUES:
        return False
    raise ValueError("Enter yes or no.")


def parse_instant(raw: Any) -> datetime:
    """Accept datetimes, dates, epoch milliseconds or ISO strings; return naive UTC."""

    if isinstance(raw, (datetime, date)):
        return to_utc_naive(raw)
    if isinstance(raw, (int, float)) and not isinstance(raw, bool):
        return datetime.fromtimestamp(raw / 1000, tz=timezone.utc).replace(tzinfo=None)
    text = str(raw).strip()
    try:
        if len(text) == 10:
            return datetime.strptime(text, "%Y-%m-%d")
        return to_utc_naive(datetime.fromisoformat(text))
    except ValueError:
        raise ValueError("Enter a valid date (YYYY-MM-DD).") from None


@dataclass
class _Form:
    """Shared binding/validation plumbing."""

    # field name -> (parser, required on create)
    FIELDS: ClassVar[dict[str, tuple[Any, bool]]] = {}

    partial: bool = False
    errors: dict[str, list[str]] = field(default_factory=dict, init=False)
    raw_data: dict[str, Any] = field(default_factory=dict, init=False)
    cleaned: dict[str, Any] = field(default_factory=dict, init=False)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any], *, partial: bool = False):
        """Create a form populated from request data."""

        form = cls(partial=partial)
        form.load(data)
        return form

    def load(self, data: Mapping[str, Any]) -> None:
        """Bind incoming mapping data, ignoring unknown keys and explicit Nones."""

        self.raw_data = {
            key: data[key] for key in self.FIELDS if key in data and data[key] is not None
        }

    def validate(self) -> bool:
        """Validate the bound data and populate ``cleaned``."""

        self.errors.clear()
        self.cleaned = {}
        for name, (parser, required) in self.FIELDS.items():
            if name not in self.raw_data:
                if required and not self.partial:
                    self._add_error(name, "This field is required.")
                continue
            try:
                self.cleaned[name] = parser(self.raw_data[name])
            except ValueError as exc:
                self._add_error(name, str(exc))
        return not self.errors

    def require_valid(self) -> dict[str, Any]:
        """Return cleaned data or raise :class:`ValidationError`."""

        if not self.validate():
            raise ValidationError(dict(self.errors))
        return dict(self.cleaned)

    def _add_error(self, field_name: str, message: str) -> None:
        self.errors.setdefault(field_name, []).append(message)


def _description(raw: Any) -> str:
    text = str(raw).strip()
    if not text:
        raise ValueError("Description is required.")
    if len(text) > 255:
        raise ValueError("Keep the description under 255 characters.")
    return text


def _optional_int(raw: Any) -> Optional[int]:
    if raw == "":
        return None
    try:
        return int(raw)
    except (TypeError, ValueError):
        raise ValueError("Enter a valid id.") from None


def _bounded_text(limit: int):
    def parse(raw: Any) -> str:
        text = str(raw).strip()
        if not text:
            raise ValueError("This field cannot be blank.")
        if len(text) > limit:
            raise ValueError(f"Keep it under {limit} characters.")
        return text

    return parse


@dataclass
class TransactionForm(_Form):
    """Ledger entry input."""

    FIELDS: ClassVar[dict[str, tuple[Any, bool]]] = {
        "description": (_description, True),
        "amount": (parse_amount, True),
        "nature": (lambda raw: parse_enum(Nature, raw), True),
        "occurred_at": (parse_instant, True),
        "division": (lambda raw: parse_enum(Division, raw), False),
        "spend_type": (lambda raw: parse_enum(SpendType, raw), False),
        "category_id": (_optional_int, False),
        "is_paid": (parse_bool, False),
        "notes": (lambda raw: str(raw).strip()[:500], False),
    }


@dataclass
class CreditCardForm(_Form):
    """Credit card parameters."""

    FIELDS: ClassVar[dict[str, tuple[Any, bool]]] = {
        "name": (_bounded_text(100), True),
        "brand": (_bounded_text(50), True),
        "credit_limit": (parse_amount, True),
        "closing_day": (parse_day, True),
        "due_day": (parse_day, True),
        "recurring_amount": (parse_amount, False),
        "expected_amount": (parse_amount, False),
        "division": (lambda raw: parse_enum(Division, raw), False),
        "spend_type": (lambda raw: parse_enum(SpendType, raw), False),
        "is_shared": (parse_bool, False),
        "my_percentage": (parse_percentage, False),
    }
