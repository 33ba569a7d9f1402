"""
CPF / SUS card handling for the public booking flow.

A CPF has 11 digits, the last two being check digits; a SUS card has 15.
Input may carry any punctuation, only digits are kept.
"""
import re

from frontdesk.core.errors import ValidationFailed

CPF_LENGTH = 11
SUS_LENGTH = 15
# a CPF missing its last block is the usual typo
TRUNCATED_LENGTH = 7

def digits_only(value: str | None) -> str:
    return re.sub(r"\D", "", value or "")

def _check_digit(digits: str, weight_start: int) -> int:
    total = sum(int(d) * (weight_start - i) for i, d in enumerate(digits))
    remainder = total % 11
    return 0 if remainder < 2 else 11 - remainder

def is_valid_cpf(value: str) -> bool:
    cpf = digits_only(value)
    if len(cpf) != CPF_LENGTH or len(set(cpf)) == 1:
        return False
    if _check_digit(cpf[:9], 10) != int(cpf[9]):
        return False
    return _check_digit(cpf[:10], 11) == int(cpf[10])

def is_valid_sus(value: str) -> bool:
    return len(digits_only(value)) == SUS_LENGTH

def validate_document(value: str | None) -> str:
    """Digits of a valid CPF or SUS number, else ValidationFailed naming the problem."""
    digits = digits_only(value)
    if not digits:
        raise ValidationFailed("document", "enter a CPF or SUS card number")
    if len(digits) == TRUNCATED_LENGTH:
        raise ValidationFailed(
            "document",
            "only 7 digits entered; a CPF has 11 digits and a SUS card 15, check for a missing part",
        )
    if len(digits) == CPF_LENGTH:
        if not is_valid_cpf(digits):
            raise ValidationFailed("document", "CPF check digits do not match")
        return digits
    if len(digits) == SUS_LENGTH:
        return digits
    raise ValidationFailed("document", "CPF must have 11 digits or SUS card 15 digits")

def format_document(value: str | None) -> str:
    """Display mask: XXX.XXX.XXX-XX up to 11 digits, XXX XXXX XXXX XXXX beyond."""
    d = digits_only(value)[:SUS_LENGTH]
    if len(d) <= CPF_LENGTH:
        parts = [d[:3], d[3:6], d[6:9]]
        head = ".".join(p for p in parts if p)
        return f"{head}-{d[9:]}" if len(d) > 9 else head
    return " ".join(p for p in (d[:3], d[3:7], d[7:11], d[11:15]) if p)

def mask_document(value: str | None) -> str:
    """Log-safe form keeping only the last three digits."""
    d = digits_only(value)
    return "*" * max(len(d) - 3, 0) + d[-3:]

def greeting(hour: int) -> str:
    if hour < 12:
        return "Good morning"
    if hour < 18:
        return "Good afternoon"
    return "Good evening"
