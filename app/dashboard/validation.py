"""
Form validation for dashboard mutations.

A schema is a sequence of ``FieldSpec`` objects; each field runs its rules in
order. Rules may coerce the value they hand to the next rule. Issues on a field
accumulate, except when a rule is ``fatal``: then the field's remaining rules
are skipped. The result is either a typed record or a mapping of
field name -> messages, in the order the rules ran. Never both.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import Any, Callable

from app.dashboard.utils import to_minor_units

ALLOWED_IMAGE_TYPES = ("image/jpeg", "image/png", "image/webp", "image/jpg")
MAX_IMAGE_BYTES = 5 * 1024 * 1024
# invoices.amount is a 32-bit INTEGER of cents.
MAX_AMOUNT_CENTS = 2**31 - 1

# Same shape the browser-side validators accept: no leading dot, no "..",
# at least one dotted domain label and an alphabetic TLD.
_EMAIL_RE = re.compile(
    r"^(?!\.)(?!.*\.\.)([A-Z0-9_'+\-.]*)[A-Z0-9_+-]@([A-Z0-9][A-Z0-9\-]*\.)+[A-Z]{2,}$",
    re.IGNORECASE,
)


@dataclass(frozen=True)
class UploadedImage:
    original_name: str
    mime_type: str
    size_bytes: int
    content: bytes


@dataclass(frozen=True)
class InvoiceInput:
    customer_id: str
    amount: Decimal
    status: str


@dataclass(frozen=True)
class CustomerInput:
    name: str
    email: str
    image_url: str
    image_upload: UploadedImage | None = None


@dataclass(frozen=True)
class ValidationResult:
    data: Any = None
    errors: dict[str, list[str]] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.errors


class Rule:
    fatal = False

    def __init__(self, message: str) -> None:
        self.message = message

    def coerce(self, value: Any) -> Any:
        return value

    def check(self, value: Any) -> bool:
        raise NotImplementedError


class RequiredText(Rule):
    def check(self, value: Any) -> bool:
        return isinstance(value, str) and value.strip() != ""


class OptionalText(Rule):
    def coerce(self, value: Any) -> Any:
        return "" if value is None else value

    def check(self, value: Any) -> bool:
        return isinstance(value, str)


class PositiveAmount(Rule):
    """
    Coerces form text to a Decimal. Blank and non-numeric input never pass, nor
    amounts that round to zero cents or overflow the stored column.
    """

    def coerce(self, value: Any) -> Any:
        if isinstance(value, Decimal):
            return value
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return Decimal(str(value))
        if not isinstance(value, str) or not value.strip():
            return None
        try:
            return Decimal(value.strip())
        except InvalidOperation:
            return None

    def check(self, value: Any) -> bool:
        if not isinstance(value, Decimal) or not value.is_finite() or value <= 0:
            return False
        # Bound before converting so huge exponents never reach quantize.
        if value > MAX_AMOUNT_CENTS:
            return False
        return 0 < to_minor_units(value) <= MAX_AMOUNT_CENTS


class OneOf(Rule):
    def __init__(self, choices: tuple[str, ...], message: str) -> None:
        super().__init__(message)
        self.choices = choices

    def check(self, value: Any) -> bool:
        return value in self.choices


class EmailAddress(Rule):
    def check(self, value: Any) -> bool:
        return isinstance(value, str) and _EMAIL_RE.match(value) is not None


class IsFile(Rule):
    fatal = True

    def coerce(self, value: Any) -> Any:
        if isinstance(value, (list, tuple)):
            return value[0] if value else None
        return value

    def check(self, value: Any) -> bool:
        return isinstance(value, UploadedImage)


class MaxFileSize(Rule):
    def __init__(self, max_bytes: int, message: str) -> None:
        super().__init__(message)
        self.max_bytes = max_bytes

    def check(self, value: Any) -> bool:
        return value.size_bytes <= self.max_bytes


class AllowedMimeType(Rule):
    def __init__(self, mime_types: tuple[str, ...], message: str) -> None:
        super().__init__(message)
        self.mime_types = mime_types

    def check(self, value: Any) -> bool:
        return value.mime_type in self.mime_types


@dataclass(frozen=True)
class FieldSpec:
    name: str  # form field name, also the key used in errors
    attr: str  # record attribute
    rules: tuple[Rule, ...]


@dataclass(frozen=True)
class Schema:
    fields: tuple[FieldSpec, ...]
    record: Callable[..., Any]

    def validate(self, raw: Mapping[str, Any]) -> ValidationResult:
        values: dict[str, Any] = {}
        errors: dict[str, list[str]] = {}
        for spec in self.fields:
            value = raw.get(spec.name)
            for rule in spec.rules:
                value = rule.coerce(value)
                if rule.check(value):
                    continue
                errors.setdefault(spec.name, []).append(rule.message)
                if rule.fatal:
                    break
            values[spec.attr] = value
        if errors:
            return ValidationResult(errors=errors)
        return ValidationResult(data=self.record(**values))


_INVOICE_FIELDS = (
    FieldSpec("customerId", "customer_id", (RequiredText("Please select a customer."),)),
    FieldSpec("amount", "amount", (PositiveAmount("Please enter an amount greater than $0."),)),
    FieldSpec("status", "status", (OneOf(("pending", "paid"), "Please select an invoice status."),)),
)

_CUSTOMER_FIELDS = (
    FieldSpec("name", "name", (RequiredText("Ingrese el nombre del cliente"),)),
    FieldSpec("email", "email", (EmailAddress("Email no válido"),)),
    FieldSpec("image_url", "image_url", (OptionalText("Invalid image URL."),)),
)

_IMAGE_UPLOAD_FIELD = FieldSpec(
    "image_upload",
    "image_upload",
    (
        IsFile("Not a file"),
        MaxFileSize(MAX_IMAGE_BYTES, "Max file size allowed is 5MB"),
        AllowedMimeType(ALLOWED_IMAGE_TYPES, "File must be an image (jpeg, jpg, png, webp)"),
    ),
)

INVOICE_SCHEMA = Schema(fields=_INVOICE_FIELDS, record=InvoiceInput)
CUSTOMER_CREATE_SCHEMA = Schema(fields=_CUSTOMER_FIELDS, record=CustomerInput)
CUSTOMER_UPDATE_SCHEMA = Schema(fields=_CUSTOMER_FIELDS + (_IMAGE_UPLOAD_FIELD,), record=CustomerInput)
