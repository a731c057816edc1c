import pytest

from eventpass.codes import (
    CODE_ALPHABET,
    CODE_LENGTH,
    generate_code,
    generate_unique_code,
    is_valid_code,
    normalize_code,
)
from eventpass.exceptions import CodeGenerationError


def test_code_format() -> None:
    for _ in range(1000):
        code = generate_code()
        assert len(code) == CODE_LENGTH == 12
        assert all(ch in CODE_ALPHABET for ch in code)


def test_codes_do_not_repeat() -> None:
    codes = {generate_code() for _ in range(100_000)}
    assert len(codes) == 100_000


def test_unique_code_retries_on_collision() -> None:
    draws = iter(["AAAAAAAAAAAA", "BBBBBBBBBBBB", "CCCCCCCCCCCC"])
    taken = {"AAAAAAAAAAAA", "BBBBBBBBBBBB"}
    code = generate_unique_code(lambda c: c in taken, generate=lambda: next(draws))
    assert code == "CCCCCCCCCCCC"


def test_unique_code_gives_up_after_max_attempts() -> None:
    calls = []

    def exists(code: str) -> bool:
        calls.append(code)
        return True

    with pytest.raises(CodeGenerationError) as exc:
        generate_unique_code(exists, max_attempts=3)
    assert len(calls) == 3
    assert exc.value.error_code == "CODE_EXHAUSTED"
    assert "[CODE_EXHAUSTED]" in str(exc.value)


def test_unique_code_rejects_zero_attempts() -> None:
    with pytest.raises(ValueError):
        generate_unique_code(lambda c: False, max_attempts=0)


@pytest.mark.parametrize(
    "text,expected",
    [
        ("F4VJEUHOA707", "F4VJEUHOA707"),
        ("  f4vjeuhoa707\n", "F4VJEUHOA707"),
        ("F4VJEUHOA70", None),
        ("F4VJEUHOA70!", None),
        ("", None),
        (None, None),
    ],
)
def test_normalize_code(text, expected) -> None:
    assert normalize_code(text) == expected


def test_is_valid_code() -> None:
    assert is_valid_code("ABCDEFGHIJ12")
    assert not is_valid_code("abcdefghij12")
