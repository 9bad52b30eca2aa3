"""
Submission validation (``approval_kernel.domain.validation``).

Responsibility
--------------
Family-specific field validation for the Submission Gateway and the
correction command.  Collects every field error into a single
``ValidationError`` so that a form can show them all at once.

Architecture position
---------------------
**Kernel domain layer** -- pure functions.  ZERO I/O.

Field rules
-----------
* expense_report / invoice / transaction: ``amount > 0`` and non-empty
  ``description``; transaction ``direction`` is ``income`` or ``expense``.
* payroll_run: ``amount > 0``, ``month`` in 1..12, ``year`` >= 1900.
* employee_action: ``kind`` is ``recruitment`` or ``reassignment``;
  non-empty ``first_name`` and ``last_name``; recruitment needs
  ``position``, reassignment needs ``target_scope``; ``amount`` optional
  and non-negative.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import Any

from approval_kernel.domain.documents import WorkflowDocument
from approval_kernel.domain.workflow import Family
from approval_kernel.exceptions import ValidationError

# Keys stored on dedicated columns rather than in the payload JSON.
COLUMN_FIELDS: frozenset[str] = frozenset({
    "amount", "description", "scope", "scope_label",
})

EMPLOYEE_ACTION_KINDS: frozenset[str] = frozenset({"recruitment", "reassignment"})
TRANSACTION_DIRECTIONS: frozenset[str] = frozenset({"income", "expense"})

Errors = list[tuple[str, str]]


@dataclass(frozen=True)
class ValidatedSubmission:
    """Normalized, validated submission fields."""

    amount: Decimal | None
    description: str | None
    scope: str | None = None
    scope_label: str | None = None
    payload: dict[str, Any] = field(default_factory=dict)


def _text(data: Mapping[str, Any], key: str) -> str | None:
    value = data.get(key)
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def _decimal(data: Mapping[str, Any], key: str, errors: Errors) -> Decimal | None:
    raw = data.get(key)
    if raw is None or raw == "":
        return None
    if isinstance(raw, bool):
        errors.append((key, "must be a number"))
        return None
    try:
        value = Decimal(str(raw))
    except (InvalidOperation, ValueError):
        errors.append((key, "must be a number"))
        return None
    if not value.is_finite():
        errors.append((key, "must be a finite number"))
        return None
    return value


def _integer(data: Mapping[str, Any], key: str, errors: Errors) -> int | None:
    raw = data.get(key)
    if raw is None or raw == "":
        errors.append((key, "is required"))
        return None
    if isinstance(raw, bool):
        errors.append((key, "must be an integer"))
        return None
    try:
        return int(str(raw).strip())
    except ValueError:
        errors.append((key, "must be an integer"))
        return None


def _require_positive_amount(data: Mapping[str, Any], errors: Errors) -> Decimal | None:
    amount = _decimal(data, "amount", errors)
    if amount is None:
        if not any(f == "amount" for f, _ in errors):
            errors.append(("amount", "is required"))
        return None
    if amount <= 0:
        errors.append(("amount", "must be greater than zero"))
    return amount


def _require_description(data: Mapping[str, Any], errors: Errors) -> str | None:
    description = _text(data, "description")
    if description is None:
        errors.append(("description", "must not be empty"))
    return description


def _jsonable(value: Any) -> Any:
    if isinstance(value, Decimal):
        return str(value)
    return value


def _extras(data: Mapping[str, Any]) -> dict[str, Any]:
    return {
        k: _jsonable(v) for k, v in data.items() if k not in COLUMN_FIELDS
    }


# ---------------------------------------------------------------------------
# Family validators
# ---------------------------------------------------------------------------


def _validate_financial(data: Mapping[str, Any], errors: Errors) -> tuple[Decimal | None, str | None, dict[str, Any]]:
    amount = _require_positive_amount(data, errors)
    description = _require_description(data, errors)
    return amount, description, _extras(data)


def _validate_transaction(data: Mapping[str, Any], errors: Errors) -> tuple[Decimal | None, str | None, dict[str, Any]]:
    amount, description, extras = _validate_financial(data, errors)
    direction = (_text(data, "direction") or "expense").lower()
    if direction not in TRANSACTION_DIRECTIONS:
        errors.append(("direction", "must be 'income' or 'expense'"))
    extras["direction"] = direction
    return amount, description, extras


def _validate_payroll(data: Mapping[str, Any], errors: Errors) -> tuple[Decimal | None, str | None, dict[str, Any]]:
    amount = _require_positive_amount(data, errors)
    extras = _extras(data)

    month = _integer(data, "month", errors)
    if month is not None:
        if not 1 <= month <= 12:
            errors.append(("month", "must be between 1 and 12"))
        extras["month"] = month

    year = _integer(data, "year", errors)
    if year is not None:
        if year < 1900:
            errors.append(("year", "must be 1900 or later"))
        extras["year"] = year

    return amount, _text(data, "description"), extras


def _validate_employee_action(data: Mapping[str, Any], errors: Errors) -> tuple[Decimal | None, str | None, dict[str, Any]]:
    extras = _extras(data)

    kind = (_text(data, "kind") or "").lower()
    if kind not in EMPLOYEE_ACTION_KINDS:
        errors.append(("kind", "must be 'recruitment' or 'reassignment'"))
    extras["kind"] = kind or None

    for key in ("first_name", "last_name"):
        value = _text(data, key)
        if value is None:
            errors.append((key, "must not be empty"))
        extras[key] = value

    if kind == "recruitment":
        position = _text(data, "position")
        if position is None:
            errors.append(("position", "must not be empty"))
        extras["position"] = position
    elif kind == "reassignment":
        target = _text(data, "target_scope")
        if target is None:
            errors.append(("target_scope", "must not be empty"))
        extras["target_scope"] = target

    amount = _decimal(data, "amount", errors)
    if amount is not None and amount < 0:
        errors.append(("amount", "must not be negative"))

    return amount, _text(data, "description"), extras


_VALIDATORS: dict[Family, Callable[[Mapping[str, Any], Errors], tuple[Decimal | None, str | None, dict[str, Any]]]] = {
    Family.EXPENSE_REPORT: _validate_financial,
    Family.INVOICE: _validate_financial,
    Family.TRANSACTION: _validate_transaction,
    Family.PAYROLL_RUN: _validate_payroll,
    Family.EMPLOYEE_ACTION: _validate_employee_action,
}


def validate_submission(family: Family, data: Mapping[str, Any]) -> ValidatedSubmission:
    """Validate and normalize a submission payload for ``family``.

    Raises:
        ValidationError: with every failing field.
    """
    if not isinstance(data, Mapping):
        raise ValidationError([("payload", "must be a mapping")])

    errors: Errors = []
    amount, description, extras = _VALIDATORS[family](data, errors)
    if errors:
        raise ValidationError(errors)

    return ValidatedSubmission(
        amount=amount,
        description=description,
        scope=_text(data, "scope"),
        scope_label=_text(data, "scope_label"),
        payload=extras,
    )


def merge_correction(document: WorkflowDocument, changes: Mapping[str, Any]) -> dict[str, Any]:
    """Overlay ``changes`` on the document's current submission fields.

    ``scope`` cannot be changed by a correction; it stays with the document.
    """
    if "scope" in changes:
        raise ValidationError([("scope", "cannot be changed by a correction")])

    merged: dict[str, Any] = dict(document.payload)
    merged["amount"] = document.amount
    merged["description"] = document.description
    merged["scope_label"] = document.scope_label
    merged.update(changes)
    return merged


def validate_reason(reason: str | None) -> str:
    """Return the stripped rejection reason.

    Raises:
        ValidationError: if the reason is missing, not text or whitespace only.
    """
    if reason is not None and not isinstance(reason, str):
        raise ValidationError([("reason", "must be text")])
    cleaned = (reason or "").strip()
    if not cleaned:
        raise ValidationError([("reason", "must not be empty")])
    return cleaned


def validate_limit(limit: int | None, default: int, maximum: int) -> int:
    """Resolve a history-view limit, defaulting and capping it.

    Raises:
        ValidationError: if ``limit`` is not a positive integer.
    """
    if limit is None:
        return min(default, maximum)
    if isinstance(limit, bool) or not isinstance(limit, int) or limit <= 0:
        raise ValidationError([("limit", "must be a positive integer")])
    return min(limit, maximum)
