import logging
import sys
from collections.abc import Iterator
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))
if SRC.exists():
    sys.path.insert(0, str(SRC))

# Register shared Hypothesis profiles for deterministic CI runs and fast local loops.
from tests.util import hypothesis_profiles  # noqa: E402,F401  pylint: disable=unused-import


@pytest.fixture(name="chainhash_logger")
def _chainhash_logger_fixture() -> Iterator[logging.Logger]:
    """Hand out the package logger and restore its handlers and propagation afterwards."""

    log = logging.getLogger("chainhash")
    handlers = list(log.handlers)
    level = log.level
    propagate = log.propagate
    yield log
    for handler in list(log.handlers):
        if handler not in handlers:
            handler.close()
            log.removeHandler(handler)
    for handler in handlers:
        if handler not in log.handlers:
            log.addHandler(handler)
    log.setLevel(level)
    log.propagate = propagate
