"""
API dependency helpers.

Provides the process-wide messaging client used by the routers. Tests
override `get_messaging_client` to point the app at their own database.
"""
from functools import lru_cache

from ess.messaging import Dispatcher, MessagingClient


@lru_cache(maxsize=1)
def get_messaging_client() -> MessagingClient:
    from ess.db.database import SessionLocal  # local import: engine is built on first use

    return MessagingClient(Dispatcher(SessionLocal))
