"""
Rate limiter singleton — shared across the application.

Uses slowapi (built on top of limits) to throttle per-IP.
The limiter is attached to `app.state.limiter` in main.py and only guards
the registration front door; ledger calls come from trusted collaborators.

In tests the limiter is enabled=False so that rapid test requests
don't trigger 429 responses (see conftest.py).
"""

from slowapi import Limiter
from slowapi.util import get_remote_address

from account_ledger.core.config import get_settings

limiter = Limiter(key_func=get_remote_address, enabled=True)


def register_rate_limit() -> str:
    return get_settings().REGISTER_RATE_LIMIT
