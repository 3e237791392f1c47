"""Username, password and gender rules shared by signup and profile updates."""

import random
import re
from datetime import datetime

from slugify import slugify

from brandcollab.auth.models import Brand, Gender, Influencer
from brandcollab.errors import BadRequestError, ConflictError

USERNAME_FORMAT = re.compile(r"^[a-z0-9._]{3,30}$")
USERNAME_MAX_LENGTH = 30
MAX_USERNAME_SUGGESTIONS = 5
USERNAME_SUFFIXES = ("_official", "_real", ".creator", "_hq", ".in")

_SPECIAL_CHARACTERS = re.compile(r'[!@#$%^&*(),.?":{}|<>_\-+=\[\]\\;\'`~]')


def validate_password_complexity(password: str) -> str:
    """Validate password meets security requirements."""
    if len(password) < 8:
        raise ValueError("Password must be at least 8 characters")
    if len(password) > 100:
        raise ValueError("Password must be at most 100 characters")
    if not re.search(r"[A-Z]", password):
        raise ValueError("Password must contain at least one uppercase letter")
    if not re.search(r"[a-z]", password):
        raise ValueError("Password must contain at least one lowercase letter")
    if not re.search(r"[0-9]", password):
        raise ValueError("Password must contain at least one digit")
    if not _SPECIAL_CHARACTERS.search(password):
        raise ValueError("Password must contain at least one special character")
    return password


def check_password(password: str) -> None:
    """Password complexity as a domain error."""
    try:
        validate_password_complexity(password or "")
    except ValueError as e:
        raise BadRequestError(str(e))


def map_gender(value: str | None) -> tuple[Gender | None, str | None]:
    """Male and female are kept; anything else is stored as others.

    Returns:
        (gender, others_gender)
    """
    if not value:
        return None, None
    normalized = value.strip().lower()
    if normalized in (Gender.MALE.value, Gender.FEMALE.value):
        return Gender(normalized), None
    if normalized == Gender.OTHERS.value:
        return Gender.OTHERS, None
    return Gender.OTHERS, value.strip()


def validate_username_format(username: str) -> str:
    value = (username or "").strip()
    if not USERNAME_FORMAT.match(value):
        raise BadRequestError(
            "Username must be 3-30 characters of lowercase letters, numbers, dots or underscores"
        )
    return value


def is_username_taken(session, username: str, exclude: Influencer | Brand | None = None) -> bool:
    """Whether any influencer or brand other than ``exclude`` holds the username."""
    influencer = session.query(Influencer.id).filter(Influencer.username == username)
    brand = session.query(Brand.id).filter(Brand.username == username)

    if isinstance(exclude, Influencer):
        influencer = influencer.filter(Influencer.id != exclude.id)
    elif isinstance(exclude, Brand):
        brand = brand.filter(Brand.id != exclude.id)

    return influencer.first() is not None or brand.first() is not None


def ensure_username_available(session, username: str, exclude: Influencer | Brand | None = None) -> str:
    """Validate format and uniqueness.

    Raises:
        BadRequestError: Bad format
        ConflictError: Already taken
    """
    value = validate_username_format(username)
    if is_username_taken(session, value, exclude):
        raise ConflictError("Username already exists")
    return value


def _fit(base: str, suffix: str) -> str:
    return base[:USERNAME_MAX_LENGTH - len(suffix)] + suffix


def username_candidates(username: str, now: datetime | None = None) -> list[str]:
    """Candidate usernames in preference order, not yet checked for availability."""
    base = slugify(username or "", separator="_", regex_pattern=r"[^a-z0-9._]+") or "user"
    year = (now or datetime.utcnow()).year

    candidates = [_fit(base, str(random.randint(10, 9999))) for _ in range(3)]
    candidates += [_fit(base, suffix) for suffix in USERNAME_SUFFIXES]
    candidates += [_fit(base, f"_{year}"), _fit(base, str(year)), _fit(base, f"_{year % 100:02d}")]
    candidates += [_fit(base, f"_{n}") for n in range(1, 21)]

    unique = list(dict.fromkeys(candidates))
    return [c for c in unique if USERNAME_FORMAT.match(c) and c != username]


def suggest_usernames(session, username: str, limit: int = MAX_USERNAME_SUGGESTIONS) -> list[str]:
    suggestions = []
    for candidate in username_candidates(username):
        if len(suggestions) >= limit:
            break
        if not is_username_taken(session, candidate):
            suggestions.append(candidate)
    return suggestions
