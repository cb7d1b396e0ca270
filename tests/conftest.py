from __future__ import annotations

import pytest
import structlog


@pytest.fixture(autouse=True)
def _reset_structlog():
    yield
    # configure_logging binds the current stderr, which pytest swaps per test
    structlog.reset_defaults()
