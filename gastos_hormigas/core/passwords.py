import re
from enum import Enum
from typing import List

from pydantic import BaseModel


MIN_LENGTH = 8

_SPECIAL_RE = re.compile(r"""[!@#$%^&*()_+\-=\[\]{};':"\\|,.<>?]""")

_COMMON_PATTERNS = [
    re.compile(r"123456"),
    re.compile(r"password", re.IGNORECASE),
    re.compile(r"qwerty", re.IGNORECASE),
    re.compile(r"admin", re.IGNORECASE),
    re.compile(r"letmein", re.IGNORECASE),
    re.compile(r"welcome", re.IGNORECASE),
    re.compile(r"(\w)\1{2,}", re.ASCII),  # repeated characters
    re.compile(r"^(.)\1+$"),
]


class PasswordIssue(str, Enum):
    TOO_SHORT = "too_short"
    MISSING_LOWERCASE = "missing_lowercase"
    MISSING_UPPERCASE = "missing_uppercase"
    MISSING_DIGIT = "missing_digit"
    MISSING_SPECIAL = "missing_special"
    COMMON_PATTERN = "common_pattern"


ISSUE_MESSAGES = {
    PasswordIssue.TOO_SHORT: f"La contraseña debe tener al menos {MIN_LENGTH} caracteres",
    PasswordIssue.MISSING_LOWERCASE: "Debe contener al menos una letra minúscula",
    PasswordIssue.MISSING_UPPERCASE: "Debe contener al menos una letra mayúscula",
    PasswordIssue.MISSING_DIGIT: "Debe contener al menos un número",
    PasswordIssue.MISSING_SPECIAL: "Debe contener al menos un carácter especial (!@#$%^&*...)",
    PasswordIssue.COMMON_PATTERN: "La contraseña contiene patrones comunes o repetitivos",
}


class PasswordStrength(str, Enum):
    WEAK = "weak"
    MEDIUM = "medium"
    STRONG = "strong"


class PasswordValidationResult(BaseModel):
    is_valid: bool
    issues: List[PasswordIssue]
    strength: PasswordStrength
    score: int

    @property
    def messages(self) -> List[str]:
        return [ISSUE_MESSAGES[issue] for issue in self.issues]


def validate_password(password: str) -> PasswordValidationResult:
    issues: List[PasswordIssue] = []
    score = 0

    if len(password) < MIN_LENGTH:
        issues.append(PasswordIssue.TOO_SHORT)
    else:
        score += 1
        if len(password) >= 12:
            score += 1
        if len(password) >= 16:
            score += 1

    classes = (
        (re.search(r"[a-z]", password), PasswordIssue.MISSING_LOWERCASE),
        (re.search(r"[A-Z]", password), PasswordIssue.MISSING_UPPERCASE),
        (re.search(r"\d", password, re.ASCII), PasswordIssue.MISSING_DIGIT),
        (_SPECIAL_RE.search(password), PasswordIssue.MISSING_SPECIAL),
    )
    for found, issue in classes:
        if found:
            score += 1
        else:
            issues.append(issue)

    if any(pattern.search(password) for pattern in _COMMON_PATTERNS):
        issues.append(PasswordIssue.COMMON_PATTERN)
        score -= 1

    if score <= 2:
        strength = PasswordStrength.WEAK
    elif score <= 4:
        strength = PasswordStrength.MEDIUM
    else:
        strength = PasswordStrength.STRONG

    return PasswordValidationResult(
        is_valid=not issues and score >= 4,
        issues=issues,
        strength=strength,
        score=max(0, score),
    )
