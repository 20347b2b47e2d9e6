# app/product/ids.py
import random
import string
import uuid

BASE36_ALPHABET = string.digits + string.ascii_uppercase
LETTERS = string.ascii_uppercase


def _base36(number: int) -> str:
    if number == 0:
        return "0"
    digits = []
    while number > 0:
        number, remainder = divmod(number, 36)
        digits.append(BASE36_ALPHABET[remainder])
    return "".join(reversed(digits))


def generate_id(length: int, rng: random.Random | None = None) -> str:
    """Return an uppercase alphabetic code of exactly ``length`` characters.

    A fresh random 128-bit value is base36 encoded and its letters kept;
    when that leaves fewer than ``length`` letters the code is padded with
    random ones. Uniqueness is not guaranteed, callers retry on collision.
    """
    if length < 1:
        raise ValueError("length must be positive")
    rng = rng or random
    letters = [c for c in _base36(uuid.uuid4().int) if c in LETTERS]
    while len(letters) < length:
        letters.append(rng.choice(LETTERS))
    return "".join(letters[:length])
