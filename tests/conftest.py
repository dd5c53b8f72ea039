from __future__ import annotations

import itertools
from collections.abc import Callable

import pytest


@pytest.fixture
def id_factory() -> Callable[[], str]:
    """Deterministic block ID generator: block-1, block-2, ..."""
    counter = itertools.count(1)
    return lambda: f"block-{next(counter)}"
