"""Word boundaries used to split identifiers into words when renaming them."""

from __future__ import annotations

from enum import Enum

from device_dsl.lexer import DslError


def _is_upper(char: str) -> bool:
    return char.upper() != char.lower() and char == char.upper()


def _is_lower(char: str) -> bool:
    return char.upper() != char.lower() and char == char.lower()


def _is_digit(char: str) -> bool:
    return char.isascii() and char.isdigit()


class Boundary(Enum):
    """A place between characters where one word ends and the next begins."""

    HYPHEN = "Hyphen"
    UNDERSCORE = "Underscore"
    SPACE = "Space"
    LOWER_UPPER = "LowerUpper"
    UPPER_LOWER = "UpperLower"
    DIGIT_UPPER = "DigitUpper"
    UPPER_DIGIT = "UpperDigit"
    DIGIT_LOWER = "DigitLower"
    LOWER_DIGIT = "LowerDigit"
    ACRONYM = "Acronym"

    def __str__(self) -> str:
        return self.value

    def detect_one(self, char: str) -> bool:
        """Whether a single character is this boundary."""
        return {
            Boundary.HYPHEN: "-",
            Boundary.UNDERSCORE: "_",
            Boundary.SPACE: " ",
        }.get(self) == char

    def detect_two(self, first: str, second: str) -> bool:
        """Whether this boundary lies between two adjacent characters."""
        checks = {
            Boundary.UPPER_LOWER: (_is_upper, _is_lower),
            Boundary.LOWER_UPPER: (_is_lower, _is_upper),
            Boundary.DIGIT_UPPER: (_is_digit, _is_upper),
            Boundary.UPPER_DIGIT: (_is_upper, _is_digit),
            Boundary.DIGIT_LOWER: (_is_digit, _is_lower),
            Boundary.LOWER_DIGIT: (_is_lower, _is_digit),
        }
        pair = checks.get(self)
        return pair is not None and pair[0](first) and pair[1](second)

    def detect_three(self, first: str, second: str, third: str) -> bool:
        """Whether this boundary lies within three adjacent characters."""
        return (
            self is Boundary.ACRONYM
            and _is_upper(first)
            and _is_upper(second)
            and _is_lower(third)
        )

    def occurs_in(self, text: str) -> bool:
        """Whether this boundary appears anywhere in the text."""
        return (
            any(self.detect_one(a) for a in text)
            or any(self.detect_two(a, b) for a, b in zip(text, text[1:]))
            or any(self.detect_three(a, b, c) for a, b, c in zip(text, text[1:], text[2:]))
        )


def all_boundaries() -> list[Boundary]:
    """Every boundary, in its canonical order."""
    return list(Boundary)


def boundaries_from(text: str) -> list[Boundary]:
    """The boundaries that appear in an example string, in canonical order."""
    return [boundary for boundary in Boundary if boundary.occurs_in(text)]


def boundary_from_name(name: str) -> Boundary:
    """Look a boundary up by its name, ignoring case."""
    wanted = name.lower()
    for boundary in Boundary:
        if boundary.value.lower() == wanted:
            return boundary
    listing = ", ".join(b.value for b in Boundary)
    raise DslError(
        f"`{name}` is not a valid boundary name. "
        f"One of the following was expected: [{listing}]"
    )