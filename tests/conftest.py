"""Make the shared fixtures visible to every test module."""

from tests.fixtures import *  # noqa: F401,F403
