import importlib
from pathlib import Path

import pytest

FIXTURES = Path(__file__).parent / "fixtures"


@pytest.fixture
def sample_app(monkeypatch):
    monkeypatch.syspath_prepend(str(FIXTURES))
    return importlib.import_module("sample_app").app
