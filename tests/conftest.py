"""Shared fixtures: every test starts with no carts and idle authorization state."""

import pytest

from app.agent.authorization import reset_authorization_state
from app.core import cart_cache


@pytest.fixture(autouse=True)
def clean_state():
    cart_cache.clear_all()
    reset_authorization_state()
    yield
    cart_cache.clear_all()
    reset_authorization_state()
