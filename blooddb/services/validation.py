"""Field-shape checks for user-supplied payloads.

``validate_fields`` never raises; it returns a list of human readable
violations and callers decide what an empty or non-empty list means.
"""

import re
from dataclasses import dataclass
from typing import Any, Mapping

BLOOD_GROUPS = ("A+", "A-", "B+", "B-", "AB+", "AB-", "O+", "O-")
GENDERS = ("Male", "Female", "Other")
REQUEST_STATUSES = ("Pending", "Fulfilled", "Cancelled")

PHONE_PATTERN = r"[0-9]{10}"
EMAIL_PATTERN = r"[^\s@]+@[^\s@]+\.[^\s@]+"


@dataclass(frozen=True)
class Rule:
    field: str
    label: str
    required: bool = True
    min_length: int | None = None
    max_length: int | None = None
    pattern: str | None = None
    pattern_hint: str | None = None
    choices: tuple[str, ...] | None = None
    min_value: int | None = None
    max_value: int | None = None


def _check(rule: Rule, value: Any) -> str | None:
    if value is None or (isinstance(value, str) and not value.strip()):
        return f"{rule.label} is required" if rule.required else None

    if rule.min_value is not None or rule.max_value is not None:
        if isinstance(value, bool) or not isinstance(value, int):
            return f"{rule.label} must be a whole number"
        if rule.min_value is not None and value < rule.min_value:
            return f"{rule.label} must be {rule.min_value}-{rule.max_value}"
        if rule.max_value is not None and value > rule.max_value:
            return f"{rule.label} must be {rule.min_value}-{rule.max_value}"
        return None

    text = str(value)
    if rule.min_length is not None and len(text) < rule.min_length:
        return f"{rule.label} must be {rule.min_length}-{rule.max_length} characters"
    if rule.max_length is not None and len(text) > rule.max_length:
        return f"{rule.label} must be {rule.min_length}-{rule.max_length} characters"
    if rule.pattern is not None and not re.fullmatch(rule.pattern, text):
        return f"{rule.label}: {rule.pattern_hint or 'invalid format'}"
    if rule.choices is not None and text not in rule.choices:
        return f"{rule.label} must be one of {', '.join(rule.choices)}"
    return None


def validate_fields(data: Mapping[str, Any], rules: list[Rule]) -> list[str]:
    violations = []
    for rule in rules:
        message = _check(rule, data.get(rule.field))
        if message:
            violations.append(message)
    return violations


REGISTER_RULES = [
    Rule("username", "Username", pattern=r"[A-Za-z0-9_]{3,50}", pattern_hint="3-50 letters, digits or underscores"),
    Rule("password", "Password", min_length=6, max_length=100),
    Rule("full_name", "Full name", pattern=r"[A-Za-z\s]{2,100}", pattern_hint="2-100 letters only"),
    Rule("phone", "Phone", pattern=PHONE_PATTERN, pattern_hint="must be 10 digits"),
]

PROFILE_RULES = [
    Rule("full_name", "Full name", pattern=r"[A-Za-z\s]{2,100}", pattern_hint="2-100 letters only"),
    Rule("email", "Email", pattern=EMAIL_PATTERN, pattern_hint="invalid email"),
    Rule("phone", "Phone", pattern=PHONE_PATTERN, pattern_hint="must be 10 digits"),
]

DONOR_RULES = [
    Rule("name", "Name", pattern=r"[A-Za-z\s]{2,50}", pattern_hint="2-50 letters only"),
    Rule("age", "Age", min_value=18, max_value=65),
    Rule("gender", "Gender", choices=GENDERS),
    Rule("blood_group", "Blood group", choices=BLOOD_GROUPS),
    Rule("city", "City", min_length=2, max_length=50),
    Rule("phone", "Phone", pattern=PHONE_PATTERN, pattern_hint="must be 10 digits"),
]

BLOOD_REQUEST_RULES = [
    Rule("name", "Name", min_length=2, max_length=50),
    Rule("blood_group", "Blood group", choices=BLOOD_GROUPS),
    Rule("city", "City", min_length=2, max_length=50),
    Rule("reason", "Reason", min_length=5, max_length=100),
    Rule("phone", "Phone", pattern=PHONE_PATTERN, pattern_hint="must be 10 digits"),
    Rule("status", "Status", required=False, choices=REQUEST_STATUSES),
]
