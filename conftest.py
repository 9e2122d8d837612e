"""Shared pytest fixtures for race-calendar."""

import os
from pathlib import Path

import pytest

# Set env vars before any race_calendar imports; tests never call the live API
os.environ.setdefault("ANTHROPIC_API_KEY", "")
os.environ.setdefault("LOG_LEVEL", "WARNING")

BASE_DIR = Path(__file__).parent


@pytest.fixture
def base_dir():
    return BASE_DIR
