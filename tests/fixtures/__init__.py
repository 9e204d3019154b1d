"""Shared pytest fixtures for unit and integration tests."""

from .auth import *  # noqa: F401,F403
from .core import *  # noqa: F401,F403
