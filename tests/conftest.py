from pathlib import Path

import pytest

from clickwork.engine import GameEngine
from clickwork.world import load_world

WORLDS_DIR = Path(__file__).resolve().parent.parent / "assets" / "worlds"


@pytest.fixture
def tankard_world():
    """The bundled example game, loaded fresh for every test."""
    return load_world(WORLDS_DIR / "tankard.yaml")


@pytest.fixture
def engine(tankard_world):
    return GameEngine(tankard_world)
