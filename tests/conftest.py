import os
import sys
from datetime import date
from pathlib import Path

import pytest

# Add project root to PYTHONPATH
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from core.models import EventRecord

FIXTURES = Path(__file__).parent / "fixtures" / "heavymetal_dk"


def load_fixture(name: str) -> str:
    return (FIXTURES / name).read_text(encoding="utf-8")


def make_record(performers=("Katatonia",), venue="Amager Bio", day=date(2025, 12, 18), **kwargs) -> EventRecord:
    slug = kwargs.pop("slug", "-".join(p.lower().replace(" ", "-") for p in performers))
    return EventRecord(
        date=day,
        performers=list(performers),
        venue=venue,
        url=kwargs.pop("url", f"https://heavymetal.dk/koncert/{slug}"),
        slug=slug,
        **kwargs,
    )


@pytest.fixture
def fixture_html():
    return load_fixture
