"""Password strength scoring used to gate wallet creation."""

from __future__ import annotations

import re
from dataclasses import dataclass, field

MIN_LENGTH = 12
MAX_SCORE = 4
STRONG_SCORE = 4
COMMON_PATTERN_PENALTY = 2

_COMMON_PREFIX = re.compile(r"^(123|abc|password|qwerty)", re.IGNORECASE)

_LABELS = {0: "Weak", 1: "Weak", 2: "Fair", 3: "Good", 4: "Strong"}


@dataclass
class PasswordStrength:
    score: int
    feedback: list[str] = field(default_factory=list)
    is_strong: bool = False

    @property
    def label(self) -> str:
        return _LABELS.get(self.score, "")

    def to_dict(self) -> dict:
        return {"score": self.score, "feedback": list(self.feedback), "isStrong": self.is_strong}


def score(password: str) -> PasswordStrength:
    """
    Score *password* from 0 to 4.

    One point each for: at least 12 characters, mixed case, a digit, and a
    non-alphanumeric character.  A common prefix such as ``123`` or
    ``password`` costs two points.
    """
    if not password:
        return PasswordStrength(0, ["Password is required"], False)

    feedback: list[str] = []
    points = 0

    if len(password) >= MIN_LENGTH:
        points += 1
    else:
        feedback.append(f"Use at least {MIN_LENGTH} characters")

    if re.search(r"[a-z]", password) and re.search(r"[A-Z]", password):
        points += 1
    else:
        feedback.append("Include both uppercase and lowercase letters")

    if re.search(r"\d", password):
        points += 1
    else:
        feedback.append("Include at least one number")

    if re.search(r"[^a-zA-Z0-9]", password):
        points += 1
    else:
        feedback.append("Include at least one special character")

    if _COMMON_PREFIX.match(password):
        points = max(0, points - COMMON_PATTERN_PENALTY)
        feedback.append("Avoid common patterns")

    points = min(MAX_SCORE, points)
    is_strong = points >= STRONG_SCORE
    if is_strong:
        feedback = ["Strong password!"]
    return PasswordStrength(points, feedback, is_strong)
