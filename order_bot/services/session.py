"""
Session Store for the Order Bot
===============================

This module keeps per-customer conversation state in process memory.

Architecture Overview:
----------------------
Sessions live only as long as the process. There is no database behind the
store: a restart forgets every cart and conversation state, which is an
accepted trade-off for a single-instance bot.

Each entry maps a customer identity (the WhatsApp address, e.g.
``whatsapp:+5491122334455``) to a ``Session`` holding:
- state: Current ConversationState
- cart: Ordered list of CartLines
- pending_delivery_type / pending_address: Checkout fields collected across
  several messages

Thread Safety:
--------------
FastAPI runs sync endpoints in a thread pool, so two webhook calls for the
same customer can be processed at the same time. Two locks are involved:

1. ``_lock`` guards the dictionaries themselves (creation of sessions and
   per-identity locks).
2. ``lock_for(identity)`` hands out one ``threading.Lock`` per identity. The
   conversation engine holds it for the whole handling of an event, so
   read-modify-write cycles on one customer's cart are serialized while
   different customers are processed concurrently.

Usage:
------
    store = SessionStore()

    with store.lock_for(phone):
        session = store.get_or_create(phone)
        session.state = ConversationState.BROWSING_PRODUCTS
"""

import logging
import threading
from typing import Dict, Optional

from ..models import Session


logger = logging.getLogger(__name__)


class SessionStore:
    """In-memory mapping from identity to Session with per-identity locking."""

    def __init__(self) -> None:
        self._sessions: Dict[str, Session] = {}
        self._identity_locks: Dict[str, threading.Lock] = {}
        self._lock = threading.Lock()

    def get(self, identity: str) -> Optional[Session]:
        with self._lock:
            return self._sessions.get(identity)

    def get_or_create(self, identity: str) -> Session:
        """
        Return the session for ``identity``, creating it on first contact.

        New sessions start in MAIN_MENU with an empty cart.
        """
        with self._lock:
            session = self._sessions.get(identity)
            if session is None:
                session = Session(identity=identity)
                self._sessions[identity] = session
                logger.debug("Created session for %s (active sessions: %d)", identity, len(self._sessions))
            return session

    def lock_for(self, identity: str) -> threading.Lock:
        """Return the lock that serializes event handling for ``identity``."""
        with self._lock:
            lock = self._identity_locks.get(identity)
            if lock is None:
                lock = threading.Lock()
                self._identity_locks[identity] = lock
            return lock

    def clear(self) -> None:
        with self._lock:
            self._sessions.clear()
            self._identity_locks.clear()
