"""
HTTP Sessions

Session scoping for the outbound API clients. Long-lived clients open a
fresh requests session per call so that no connection state is shared
between webhook invocations.
"""

from contextlib import contextmanager
from typing import Iterator, Optional

import requests


@contextmanager
def session_scope(session: Optional[requests.Session] = None) -> Iterator[requests.Session]:
    """
    Yield the injected session as-is, or a new session closed on exit.

    Args:
        session: Caller-owned session (tests, custom adapters)
    """
    if session is not None:
        yield session
        return

    with requests.Session() as scoped:
        yield scoped
