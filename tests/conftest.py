"""Pytest configuration to ensure the `src` package layout is importable.

This adds the `src/` directory to `sys.path` so tests can import the
`focustown` package (e.g., `from focustown.api.app import create_app`)
without requiring an editable install in CI.  It also provides a few
deterministic building blocks shared by the unit and integration suites.
"""

import itertools
import sys
from datetime import UTC, datetime
from pathlib import Path

import pytest

SRC_PATH = Path(__file__).resolve().parents[1] / "src"
if str(SRC_PATH) not in sys.path:
    sys.path.insert(0, str(SRC_PATH))

from focustown.domain.command_factory import CommandFactory  # noqa: E402
from focustown.domain.seed import initial_town_state  # noqa: E402

T0 = datetime(2025, 1, 6, 9, 0, tzinfo=UTC)


def counting_ids(prefix: str = "cmd"):
    counter = itertools.count(1)
    return lambda: f"{prefix}-{next(counter)}"


@pytest.fixture
def t0() -> datetime:
    return T0


@pytest.fixture
def town():
    return initial_town_state(T0)


@pytest.fixture
def factory() -> CommandFactory:
    """Command factory with a frozen clock and sequential ids."""

    return CommandFactory(clock=lambda: T0, id_factory=counting_ids())
