"""
Code allocation for Shortlink Platform.

Two concerns live here and are deliberately kept apart:
- validate_alias: caller-chosen codes must pass a charset/length check
  (collision is checked by the registry).
- generate_code: random codes from a URL-safe alphabet; uniqueness is not
  guaranteed here, the registry retries on collision.

Alphabet
--------
64 URL-safe symbols ``[A-Za-z0-9_-]``. Because 64 divides 256 evenly, drawing
each symbol independently with `random.SystemRandom` gives an unbiased code.

Configuration (via shortlink_platform.config.settings):
- CODE_LENGTH: default generated length (default 8; clamped 4..20)
- ALIAS_MAX_LENGTH: longest accepted alias (default 20; clamped 1..20)
"""

import random
import re
import string
from typing import Callable, Optional

from ..config import settings
from ..errors import InvalidAliasError

URL_SAFE_ALPHABET = string.ascii_letters + string.digits + "_-"
AliasPattern = re.compile(r"^[A-Za-z0-9_-]+$")

# Single-segment paths served by fixed routes; an alias here could never redirect.
RESERVED_ALIASES = frozenset({"health", "docs", "redoc", "shorten"})

CodeStrategy = Callable[[int], str]  # (length) -> code

_rng = random.SystemRandom()


def _safe_len(length: Optional[int]) -> int:
    """
    Resolve desired code length from arg or config, clamped to [4, 20].
    """
    L = int(length) if length is not None else int(settings.CODE_LENGTH)
    return max(4, min(20, L))


def validate_alias(alias: str, max_length: Optional[int] = None) -> None:
    """
    Validate alias characters and length.

    Raises:
        InvalidAliasError: If the alias is empty, too long, contains a
            character outside ``[A-Za-z0-9_-]`` or names a reserved route.
    """
    limit = max_length if max_length is not None else settings.ALIAS_MAX_LENGTH
    if len(alias) > limit:
        raise InvalidAliasError(f"Alias cannot be longer than {limit} characters")
    if not AliasPattern.match(alias):
        raise InvalidAliasError(
            "Alias may only contain letters, digits, hyphens and underscores"
        )
    if alias.lower() in RESERVED_ALIASES:
        raise InvalidAliasError(f"Alias '{alias}' is reserved")


def generate_code(length: Optional[int] = None) -> str:
    """
    Random code of the requested length (config default when omitted).

    No uniqueness guarantee: callers check for collisions and retry.
    """
    L = _safe_len(length)
    return "".join(_rng.choice(URL_SAFE_ALPHABET) for _ in range(L))
