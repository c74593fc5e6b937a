from pathlib import Path

import pytest

from locpicker.observability.log import configure_logging

ROOT = Path(__file__).resolve().parent.parent


@pytest.fixture(autouse=True, scope="session")
def _structured_logging():
    configure_logging(ROOT / "config" / "logging.yaml")
