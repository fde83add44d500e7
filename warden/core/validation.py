"""
Declarative request validation.

Each request model declares its constraints as a class-level ``rules``
mapping from field name to a ``Rule``: a human-readable label, an ordered
list of constraints and an optional custom message. ``first_violation``
walks the fields in declaration order, and each field's constraints in
order, and stops at the first failure.

The message for a failure is the field's custom message when one is set,
otherwise the constraint's default message rendered with the field label.

Example:
    class AssignRolesRequest(BaseModel):
        id: str | None = None
        role_ids: list[str] | None = None

        rules: ClassVar[Rules] = {
            "id": Rule("User ID", required(), uuid_format()),
            "role_ids": Rule(
                "Role IDs",
                required(),
                min_items(1),
                each(uuid_format()),
                message="Role IDs must be a non-empty list of valid IDs",
            ),
        }
"""

import re
import uuid
from collections.abc import Sized
from typing import Any


class Constraint:
    """
    A single check on a field value.

    Constraints other than ``required`` skip ``None`` so that optional
    fields are only checked when present.
    """

    template = "{label} is invalid"

    def __init__(self, template: str | None = None, **params: Any) -> None:
        if template is not None:
            self.template = template
        self.params = params

    def accepts(self, value: Any) -> bool:
        raise NotImplementedError

    def check(self, value: Any, label: str) -> str | None:
        """Return the violation message, or None if the value passes."""
        if value is None:
            return None
        if self.accepts(value):
            return None
        return self.template.format(label=label, **self.params)


class _Required(Constraint):
    template = "{label} is required"

    def check(self, value: Any, label: str) -> str | None:
        if value is None:
            return self.template.format(label=label)
        if isinstance(value, str) and not value.strip():
            return self.template.format(label=label)
        if isinstance(value, (list, tuple, set, dict)) and not value:
            return self.template.format(label=label)
        return None


class _MinLength(Constraint):
    template = "{label} must be at least {min} characters long"

    def accepts(self, value: Any) -> bool:
        return len(value) >= self.params["min"]


class _MaxLength(Constraint):
    template = "{label} must be at most {max} characters long"

    def accepts(self, value: Any) -> bool:
        return len(value) <= self.params["max"]


class _NumberRange(Constraint):
    def __init__(self, min: float | None = None, max: float | None = None) -> None:
        if min is not None and max is not None:
            template = "{label} must be between {min} and {max}"
        elif min is not None:
            template = "{label} must be greater than or equal to {min}"
        elif max is not None:
            template = "{label} must be less than or equal to {max}"
        else:
            raise ValueError("number_range needs a lower or an upper bound")
        super().__init__(template, min=min, max=max)

    def accepts(self, value: Any) -> bool:
        low, high = self.params["min"], self.params["max"]
        if low is not None and value < low:
            return False
        if high is not None and value > high:
            return False
        return True


class _UUIDFormat(Constraint):
    template = "{label} must be a valid UUID"

    def accepts(self, value: Any) -> bool:
        if isinstance(value, uuid.UUID):
            return True
        try:
            uuid.UUID(str(value))
        except ValueError:
            return False
        return True


class _MinItems(Constraint):
    template = "{label} must contain at least {min} item(s)"

    def accepts(self, value: Any) -> bool:
        return isinstance(value, Sized) and len(value) >= self.params["min"]


class _OneOf(Constraint):
    template = "{label} must be one of [{choices}]"

    def __init__(self, *choices: Any) -> None:
        super().__init__(choices=", ".join(str(c) for c in choices))
        self.choices = frozenset(choices)

    def accepts(self, value: Any) -> bool:
        return value in self.choices


class _Pattern(Constraint):
    template = "{label} format is invalid"

    def __init__(self, regex: str, template: str | None = None) -> None:
        super().__init__(template)
        self.regex = re.compile(regex)

    def accepts(self, value: Any) -> bool:
        return isinstance(value, str) and self.regex.fullmatch(value) is not None


class _Each(Constraint):
    """Apply constraints to every element of a collection."""

    def __init__(self, *constraints: Constraint) -> None:
        super().__init__()
        self.constraints = constraints

    def check(self, value: Any, label: str) -> str | None:
        if value is None:
            return None
        for index, item in enumerate(value):
            for constraint in self.constraints:
                message = constraint.check(item, f"{label}[{index}]")
                if message is not None:
                    return message
        return None


class _Nested(Constraint):
    """Validate a nested model (or each model of a list) against its own rules."""

    def check(self, value: Any, label: str) -> str | None:
        if value is None:
            return None
        items = value if isinstance(value, (list, tuple)) else [value]
        for item in items:
            message = first_violation(item)
            if message is not None:
                return message
        return None


def required() -> Constraint:
    return _Required()


def min_length(n: int) -> Constraint:
    return _MinLength(min=n)


def max_length(n: int) -> Constraint:
    return _MaxLength(max=n)


def number_range(min: float | None = None, max: float | None = None) -> Constraint:
    return _NumberRange(min=min, max=max)


def uuid_format() -> Constraint:
    return _UUIDFormat()


def min_items(n: int) -> Constraint:
    return _MinItems(min=n)


def one_of(*choices: Any) -> Constraint:
    return _OneOf(*choices)


def pattern(regex: str, template: str | None = None) -> Constraint:
    return _Pattern(regex, template)


def each(*constraints: Constraint) -> Constraint:
    return _Each(*constraints)


def nested() -> Constraint:
    return _Nested()


class Rule:
    """Label, ordered constraints and optional custom message for one field."""

    def __init__(
        self, label: str, *constraints: Constraint, message: str | None = None
    ) -> None:
        self.label = label
        self.constraints = constraints
        self.message = message

    def check(self, value: Any) -> str | None:
        for constraint in self.constraints:
            violation = constraint.check(value, self.label)
            if violation is not None:
                return self.message or violation
        return None


Rules = dict[str, Rule]


def first_violation(value: Any) -> str | None:
    """
    Evaluate the ``rules`` declared on ``value``'s class.

    Returns:
        The message for the first violated constraint, or None if every
        constraint holds (or the class declares no rules)
    """
    rules: Rules | None = getattr(type(value), "rules", None)
    if not rules:
        return None
    for field_name, rule in rules.items():
        message = rule.check(getattr(value, field_name, None))
        if message is not None:
            return message
    return None
