import string
from typing import Literal, TypeAlias

from seed_hill.puzzles.codes import FORCED_DIGIT, code_digits

CodePuzzle: TypeAlias = Literal[
    "shakespeare",
    "hospital3f",
    "crematorium",
]

MAX_HEX_DIGITS = 8
MAX_CODE = 0xFFFF

HEX_LETTERS = frozenset("abcdefABCDEF")


class CodeParseError(ValueError):
    pass


class SeedParseError(ValueError):
    pass


def _strip_hex_prefix(text: str) -> str:
    if len(text) >= 2 and text[0] == "0" and text[1] in "xX":
        return text[2:]
    return text


def _remove_whitespace(text: str) -> str:
    return "".join(ch for ch in text if not ch.isspace())


def parse_hex_seed(text: str) -> int:
    """Parse a 32-bit seed written in hex, with or without a 0x prefix."""
    body = _strip_hex_prefix(_remove_whitespace(text))
    if not body or len(body) > MAX_HEX_DIGITS:
        raise SeedParseError(f"Seed must be 1-{MAX_HEX_DIGITS} hex digits: {text!r}")
    if any(ch not in string.hexdigits for ch in body):
        raise SeedParseError(f"Seed is not hex: {text!r}")
    return int(body, 16)


def parse_code_input(text: str, puzzle: CodePuzzle) -> int:
    """
    Parse a 4-digit puzzle code into its packed-nibble form.

    Accepts either 4 decimal digits ("0123") or packed hex ("0x0123"). Input is
    treated as hex when it has a 0x prefix or any a-f letter.
    """
    t = _remove_whitespace(text)
    if not t:
        raise CodeParseError("Code is empty")

    looks_hex = _strip_hex_prefix(t) != t or any(ch in HEX_LETTERS for ch in t)

    if looks_hex:
        body = _strip_hex_prefix(t)
        if not body or len(body) > MAX_HEX_DIGITS:
            raise CodeParseError(f"Packed code must be 1-{MAX_HEX_DIGITS} hex digits: {text!r}")
        if any(ch not in string.hexdigits for ch in body):
            raise CodeParseError(f"Packed code is not hex: {text!r}")
        packed = int(body, 16)
        if packed > MAX_CODE:
            raise CodeParseError(f"Packed code does not fit in 4 nibbles: {text!r}")
    else:
        if len(t) != 4 or any(ch not in string.digits for ch in t):
            raise CodeParseError(f"Code must be exactly 4 decimal digits: {text!r}")
        packed = 0
        for ch in t:
            packed = (packed << 4) | int(ch)

    validate_code(packed, puzzle)
    return packed


def validate_code(packed: int, puzzle: CodePuzzle) -> None:
    """Check the digits a puzzle can actually produce."""
    lowest = 1 if puzzle == "hospital3f" else 0
    digits = code_digits(packed)
    for digit in digits:
        if digit < lowest or digit > 9:
            raise CodeParseError(f"Digit {digit} not allowed for {puzzle} (must be {lowest}-9)")
    if len(set(digits)) != len(digits):
        raise CodeParseError(f"Digits must be unique: {format_code(packed)}")
    if puzzle == "crematorium" and FORCED_DIGIT not in digits:
        raise CodeParseError(f"Crematorium code must include {FORCED_DIGIT}: {format_code(packed)}")


def format_seed(seed: int) -> str:
    """Seeds are shown as uppercase hex without a prefix."""
    return f"{seed:X}"


def format_code(code: int) -> str:
    """Decimal digits of a packed code, most significant first."""
    return "".join(str(d) for d in code_digits(code))
