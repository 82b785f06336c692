import logging

import pytest

from dualsub.models import Subtitle
from dualsub.timeline import format_seconds


@pytest.fixture
def make_subtitle():
    """Builds a Subtitle whose string and float timestamps agree."""

    def _make(start, end, original="", translated="", index=1):
        return Subtitle(
            index=index,
            start_time=format_seconds(start),
            end_time=format_seconds(end),
            original_text=original,
            translated_text=translated,
            start_seconds=float(start),
            end_seconds=float(end),
        )

    return _make


@pytest.fixture
def restore_root_logging():
    """Puts back the root logger's handlers after code that calls setup_logging."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    for handler in root.handlers[:]:
        root.removeHandler(handler)
        if handler not in handlers:
            handler.close()
    for handler in handlers:
        root.addHandler(handler)
    root.setLevel(level)
