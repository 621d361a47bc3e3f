"""
tests/conftest.py — Shared Test Fixtures
=========================================
"""

from __future__ import annotations

from pathlib import Path

import pytest

from mattbot.config import MattbotConfig
from mattbot.engine.ledger import Ledger


@pytest.fixture
def ledger_path(tmp_path: Path) -> Path:
    return tmp_path / "mattbucks_data.json"


@pytest.fixture
def ledger(ledger_path: Path) -> Ledger:
    """An empty ledger backed by a file in a temp directory."""
    return Ledger.open(ledger_path)


@pytest.fixture
def cfg() -> MattbotConfig:
    return MattbotConfig(bot_prefix="!")
