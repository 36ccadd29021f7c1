"""
Validación local de contraseñas
"""
import pytest

from gastos_hormigas.core.passwords import (
    ISSUE_MESSAGES,
    PasswordIssue,
    PasswordStrength,
    validate_password,
)


class TestPasswordIssues:
    """Cada clase de carácter que falta se reporta por separado"""

    def test_too_short(self):
        result = validate_password("Ab1!")
        assert not result.is_valid
        assert PasswordIssue.TOO_SHORT in result.issues

    @pytest.mark.parametrize(
        "password,issue",
        [
            ("HORMIGA#2024", PasswordIssue.MISSING_LOWERCASE),
            ("hormiga#2024", PasswordIssue.MISSING_UPPERCASE),
            ("Hormiga#Gasto", PasswordIssue.MISSING_DIGIT),
            ("Hormiga2024x", PasswordIssue.MISSING_SPECIAL),
        ],
    )
    def test_missing_class(self, password, issue):
        result = validate_password(password)
        assert not result.is_valid
        assert result.issues == [issue]

    def test_every_issue_has_a_message(self):
        result = validate_password("abc")
        assert result.messages == [ISSUE_MESSAGES[i] for i in result.issues]
        assert len(result.messages) == 4


class TestCommonPatterns:
    def test_password_like_flagged_even_when_classes_present(self):
        result = validate_password("Password123!")
        assert result.issues == [PasswordIssue.COMMON_PATTERN]
        assert not result.is_valid

    def test_repeated_characters_flagged(self):
        result = validate_password("Hormiga#aaa9")
        assert PasswordIssue.COMMON_PATTERN in result.issues

    def test_sequence_flagged(self):
        result = validate_password("Gasto#123456x")
        assert PasswordIssue.COMMON_PATTERN in result.issues


class TestStrength:
    def test_strong_password(self):
        result = validate_password("Hormiga#2024xyz")
        assert result.is_valid
        assert result.issues == []
        assert result.strength == PasswordStrength.STRONG

    def test_eight_characters_with_all_classes(self):
        result = validate_password("Gasto#24")
        assert result.is_valid
        assert result.score == 5
        assert result.strength == PasswordStrength.STRONG

    def test_weak_password(self):
        result = validate_password("abc")
        assert result.strength == PasswordStrength.WEAK
        assert result.score == 1


class TestAsciiClasses:
    """Sólo dígitos y letras ASCII cuentan, como en el cliente web"""

    def test_non_ascii_digits_do_not_count(self):
        result = validate_password("Hormiga#٣٣x")
        assert PasswordIssue.MISSING_DIGIT in result.issues

    def test_repeated_accented_letters_not_a_pattern(self):
        result = validate_password("Gastoñññ#2024x")
        assert PasswordIssue.COMMON_PATTERN not in result.issues
        assert result.is_valid
