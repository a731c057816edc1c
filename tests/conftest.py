import datetime as dt
import io

import pytest
from PIL import Image

from eventpass.models import PassInput

UTC = dt.timezone.utc


def make_input(**overrides) -> PassInput:
    values = dict(
        first_name="Asha",
        surname="Perera",
        email="asha@example.com",
        mobile_number="+94 77 123 4567",
        event_name="Annual Tech Summit",
        event_start=dt.datetime(2025, 3, 1, 9, 0, tzinfo=UTC),
        event_end=dt.datetime(2025, 3, 1, 17, 0, tzinfo=UTC),
        venue="Convention Hall A",
        unique_code="F4VJEUHOA707",
        registered_at=dt.datetime(2025, 2, 10, 8, 15, 30, tzinfo=UTC),
    )
    values.update(overrides)
    return PassInput(**values)


def png_bytes(size: tuple[int, int] = (200, 56), color=(20, 60, 200, 255)) -> bytes:
    buf = io.BytesIO()
    Image.new("RGBA", size, color).save(buf, format="PNG")
    return buf.getvalue()


@pytest.fixture
def pass_input() -> PassInput:
    return make_input()


@pytest.fixture
def no_logo():
    """Logo fetcher that never touches the network."""
    return lambda url, timeout: None
