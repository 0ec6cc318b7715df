"""API key and password generation backed by the OS random source."""

from __future__ import annotations

import base64
import secrets

from pydantic import BaseModel, Field

LOWER_CASE_LETTERS = "abcdefghijklmnopqrstuvwxyz"
UPPER_CASE_LETTERS = "ABCDEFGHIJKLMNOPQRSTUVWXYZ"
DIGITS = "0123456789"
SYMBOLS = "~!@#$%^&*()_+`-={}|[]\\:\"<>?,./"

DEFAULT_KEY_SIZE = 64


class PasswordRequirementsError(ValueError):
    """The requested password composition cannot be produced."""


class InvalidLength(PasswordRequirementsError):
    pass


class AlphabetExhausted(PasswordRequirementsError):
    pass


def generate_secure_api_key(key_size: int = DEFAULT_KEY_SIZE) -> str:
    """Return ``key_size`` random bytes as standard base64 text.

    At least 32 bytes is recommended. The output is ``ceil(key_size / 3) * 4``
    characters long (88 for the default 64 bytes).
    """
    if key_size < 0:
        raise ValueError(f"key_size must not be negative, got {key_size}.")
    return base64.b64encode(secrets.token_bytes(key_size)).decode("ascii")


class Alphabets(BaseModel):
    """Character sets a password is drawn from."""

    model_config = {"frozen": True}

    lower: str = LOWER_CASE_LETTERS
    upper: str = UPPER_CASE_LETTERS
    digits: str = DIGITS
    symbols: str = SYMBOLS


class PasswordSpec(BaseModel):
    model_config = {"frozen": True}

    length: int
    digit_count: int = 0
    symbol_count: int = 0
    no_upper_case: bool = False
    allow_repeats: bool = False
    alphabets: Alphabets = Field(default_factory=Alphabets)

    @property
    def letters(self) -> str:
        if self.no_upper_case:
            return self.alphabets.lower
        return self.alphabets.lower + self.alphabets.upper

    @property
    def letter_count(self) -> int:
        return self.length - self.digit_count - self.symbol_count


def _validate(spec: PasswordSpec) -> None:
    if spec.length < 0 or spec.digit_count < 0 or spec.symbol_count < 0:
        raise InvalidLength("Length and character counts must not be negative.")
    if spec.letter_count < 0:
        raise InvalidLength("Number of digits and symbols must be less than length.")

    for name, count, alphabet in (
        ("letters", spec.letter_count, spec.letters),
        ("digits", spec.digit_count, spec.alphabets.digits),
        ("symbols", spec.symbol_count, spec.alphabets.symbols),
    ):
        if count > 0 and not alphabet:
            raise AlphabetExhausted(f"Number of {name} requested is {count} but the {name} alphabet is empty.")
        if not spec.allow_repeats and count > len(set(alphabet)):
            raise AlphabetExhausted(
                f"Number of {name} requested exceeds available {name} and repeats are not allowed."
            )


def _insert_at_random_position(password: str, character: str) -> str:
    position = secrets.randbelow(len(password) + 1)
    return password[:position] + character + password[position:]


def generate_password_from_spec(spec: PasswordSpec) -> str:
    """Build a password meeting ``spec``.

    Letters, then digits, then symbols are drawn one at a time and inserted at
    a random position of the password built so far. With repeats disallowed
    only characters not yet in the password are drawn, whichever class put
    them there.

    Raises:
        InvalidLength: digits and symbols do not fit in ``length``.
        AlphabetExhausted: an alphabet cannot supply the requested count.
    """
    _validate(spec)

    password = ""
    for count, alphabet in (
        (spec.letter_count, spec.letters),
        (spec.digit_count, spec.alphabets.digits),
        (spec.symbol_count, spec.alphabets.symbols),
    ):
        for _ in range(count):
            candidates = alphabet
            if not spec.allow_repeats:
                candidates = [c for c in dict.fromkeys(alphabet) if c not in password]
                if not candidates:
                    raise AlphabetExhausted(
                        "Alphabets overlap and no unused character is left for the requested counts."
                    )
            password = _insert_at_random_position(password, secrets.choice(candidates))
    return password


def generate_password(length, digit_count=0, symbol_count=0, no_upper_case=False,
                      allow_repeats=False, alphabets=None):
    spec = PasswordSpec(
        length=length,
        digit_count=digit_count,
        symbol_count=symbol_count,
        no_upper_case=no_upper_case,
        allow_repeats=allow_repeats,
        alphabets=alphabets or Alphabets(),
    )
    return generate_password_from_spec(spec)
