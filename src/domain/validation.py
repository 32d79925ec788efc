"""
Profile validation - Field rules for registration submissions.

Every rule runs on every submission so that a rejected request reports
all violated fields at once rather than the first one found.
"""

import re
from collections.abc import Mapping
from typing import Any

from .exceptions import ValidationError
from .models import ProfileFields

GENDERS = ("Male", "Female", "Other")
INTERESTED_IN = ("Male", "Female", "Any")
RELATIONSHIP_GOALS = ("Casual", "Serious", "Marriage")
INTERESTS = ("Yes", "No")

EMAIL_PATTERN = re.compile(r"^\S+@\S+\.\S+$")
EMAIL_MAX_LENGTH = 255

# (min, max) lengths after trimming
TEXT_BOUNDS = {
    "name": (2, 100),
    "college": (1, 100),
    "description": (50, 1000),
    "preferences": (50, 1000),
}

CHOICES = {
    "gender": GENDERS,
    "interested_in": INTERESTED_IN,
    "relationship_goal": RELATIONSHIP_GOALS,
    "interests": INTERESTS,
}

AGE_MIN = 18
AGE_MAX = 100


def normalize_email(email: str) -> str:
    """
    Normalize email address for consistent storage and lookup.

    Applies: strip whitespace + lowercase
    """
    return email.strip().lower()


def validate_profile(data: Mapping[str, Any]) -> ProfileFields:
    """
    Validate a registration submission and build normalized ProfileFields.

    Args:
        data: Raw field values keyed by ProfileFields attribute name

    Returns:
        ProfileFields with trimmed text and normalized email

    Raises:
        ValidationError: Listing every violated field
    """
    errors: dict[str, str] = {}
    cleaned: dict[str, Any] = {}

    for field, (low, high) in TEXT_BOUNDS.items():
        value = data.get(field)
        if not isinstance(value, str):
            errors[field] = f"{_label(field)} is required"
            continue
        value = value.strip()
        if not low <= len(value) <= high:
            errors[field] = f"{_label(field)} must be between {low} and {high} characters"
            continue
        cleaned[field] = value

    for field, options in CHOICES.items():
        value = data.get(field)
        if value not in options:
            errors[field] = f"{_label(field)} must be {_one_of(options)}"
            continue
        cleaned[field] = value

    age = data.get("age")
    # bool is an int subclass; reject it explicitly
    if not isinstance(age, int) or isinstance(age, bool) or not AGE_MIN <= age <= AGE_MAX:
        errors["age"] = f"Age must be between {AGE_MIN} and {AGE_MAX}"
    else:
        cleaned["age"] = age

    email = data.get("email")
    if not isinstance(email, str):
        errors["email"] = "Email is required"
    else:
        email = normalize_email(email)
        if len(email) > EMAIL_MAX_LENGTH or not EMAIL_PATTERN.match(email):
            errors["email"] = "Please provide a valid email"
        else:
            cleaned["email"] = email

    if errors:
        raise ValidationError(errors)

    return ProfileFields(**cleaned)


def _label(field: str) -> str:
    return field.replace("_", " ").capitalize()


def _one_of(options: tuple[str, ...]) -> str:
    if len(options) == 2:
        return " or ".join(options)
    return ", ".join(options[:-1]) + f", or {options[-1]}"
