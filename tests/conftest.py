"""Shared fixtures. Everything renders to off-screen surfaces."""
import os

os.environ.setdefault("SDL_VIDEODRIVER", "dummy")

import numpy as np
import pygame
import pytest

from noise import FieldSources


@pytest.fixture
def sources() -> FieldSources:
    return FieldSources(np.random.default_rng(1234), 1.25)


@pytest.fixture
def surface() -> pygame.Surface:
    return pygame.Surface((200, 200))
