"""Utilities for validating persisted payloads before they are migrated."""

from __future__ import annotations

from dataclasses import dataclass
from numbers import Real
from typing import Any, ClassVar, Mapping, Sequence


class ModelValidationError(ValueError):
    """Raised when a payload does not have the shape a model requires."""

    def __init__(self, model: type[Any], errors: Sequence[str]) -> None:
        self.model = model
        self.errors = list(errors)
        message = ", ".join(self.errors) if self.errors else "invalid payload"
        super().__init__(f"{model.__name__} validation failed: {message}")


@dataclass(frozen=True)
class FieldSpec:
    expected: Any
    description: str
    required: bool = False
    allow_none: bool = False


@dataclass(frozen=True)
class SequenceSpec:
    item: Any


@dataclass(frozen=True)
class MappingSpec:
    key: Any
    value: Any


def is_number(value: Any) -> bool:
    """Return ``True`` for real numbers, including non-finite ones.

    Non-finite values are structurally valid; they are repaired later by the
    numeric sanitisation pass instead of rejecting the whole save.
    """

    return isinstance(value, Real) and not isinstance(value, bool)


def is_numeric_text(value: Any) -> bool:
    if is_number(value):
        return True
    if isinstance(value, str):
        try:
            float(value)
        except ValueError:
            return False
        return True
    return False


def _describe_expected(expected: Any) -> str:
    if isinstance(expected, FieldSpec):
        return expected.description
    if isinstance(expected, SequenceSpec):
        return f"sequence of {_describe_expected(expected.item)}"
    if isinstance(expected, MappingSpec):
        return f"mapping of {_describe_expected(expected.key)} to {_describe_expected(expected.value)}"
    if isinstance(expected, type):
        return expected.__name__
    if callable(expected):
        return getattr(expected, "__name__", "valid value").replace("is_", "")
    return str(expected)


def _matches_type(value: Any, expected: Any) -> bool:
    if expected is Any:
        return True
    if isinstance(expected, FieldSpec):
        return _matches_type(value, expected.expected)
    if isinstance(expected, SequenceSpec):
        if not isinstance(value, Sequence) or isinstance(value, (str, bytes)):
            return False
        return all(_matches_type(item, expected.item) for item in value)
    if isinstance(expected, MappingSpec):
        if not isinstance(value, Mapping):
            return False
        return all(
            _matches_type(key, expected.key) and _matches_type(item, expected.value)
            for key, item in value.items()
        )
    if isinstance(expected, type):
        if expected is float:
            return is_number(value)
        return isinstance(value, expected)
    if callable(expected):
        try:
            return bool(expected(value))
        except (TypeError, ValueError):
            return False
    return True


class ModelValidator:
    """Base class for payload validators.

    Only the fields listed in :attr:`fields` are checked; unknown keys are
    passed through untouched so older or newer saves keep their extra data.
    """

    model: ClassVar[type[Any]]
    fields: ClassVar[Mapping[str, FieldSpec]]

    @classmethod
    def validate(cls, data: Any) -> dict[str, Any]:
        if not isinstance(data, Mapping):
            raise ModelValidationError(
                cls.model, ["Payload must be a mapping of field names to values"]
            )

        errors: list[str] = []
        normalized: dict[str, Any] = {}

        for name, spec in cls.fields.items():
            if name not in data:
                if spec.required:
                    errors.append(f"Missing required field '{name}' ({spec.description})")
                continue

            value = data[name]
            if value is None:
                if not spec.allow_none:
                    errors.append(f"Field '{name}' cannot be null")
                else:
                    normalized[name] = None
                continue

            if not _matches_type(value, spec.expected):
                expected_desc = spec.description or _describe_expected(spec.expected)
                errors.append(
                    f"Field '{name}' expected {expected_desc}, received {type(value).__name__}"
                )
                continue

            normalized[name] = value

        if errors:
            raise ModelValidationError(cls.model, errors)

        for key, value in data.items():
            if key not in cls.fields:
                normalized[key] = value

        return normalized


__all__ = [
    "FieldSpec",
    "MappingSpec",
    "ModelValidationError",
    "ModelValidator",
    "SequenceSpec",
    "is_number",
    "is_numeric_text",
]
