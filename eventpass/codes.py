from __future__ import annotations

import secrets
from typing import Callable, Optional

from .exceptions import CodeGenerationError

CODE_ALPHABET = "ABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789"
CODE_LENGTH = 12
DEFAULT_MAX_ATTEMPTS = 10


def generate_code() -> str:
    """Return a fresh 12-character code drawn uniformly from [A-Z0-9].

    Uniqueness is not checked here; see :func:`generate_unique_code`.
    """
    return "".join(secrets.choice(CODE_ALPHABET) for _ in range(CODE_LENGTH))


def generate_unique_code(exists: Callable[[str], bool],
                         max_attempts: int = DEFAULT_MAX_ATTEMPTS,
                         generate: Callable[[], str] = generate_code) -> str:
    """Draw codes until ``exists(code)`` is False, at most ``max_attempts`` times."""
    if max_attempts < 1:
        raise ValueError("max_attempts must be at least 1")
    for _ in range(max_attempts):
        code = generate()
        if not exists(code):
            return code
    raise CodeGenerationError(max_attempts)


def is_valid_code(code: str) -> bool:
    return len(code) == CODE_LENGTH and all(ch in CODE_ALPHABET for ch in code)


def normalize_code(text: Optional[str]) -> Optional[str]:
    """Trim and uppercase a scanned/typed code; None if it is not a pass code."""
    if not text:
        return None
    code = text.strip().upper()
    return code if is_valid_code(code) else None
