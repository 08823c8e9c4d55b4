from __future__ import annotations

import logging
from typing import Callable

from global84.db.store import Datastore

from .admins import is_admin
from .caller import ANONYMOUS, Caller

LOGGER = logging.getLogger(__name__)

Disposer = Callable[[], None]


class _Observable:
    def __init__(self) -> None:
        self._listeners: list[Callable] = []

    def _subscribe(self, callback: Callable, current) -> Disposer:
        self._listeners.append(callback)
        callback(current)

        def dispose() -> None:
            if callback in self._listeners:
                self._listeners.remove(callback)

        return dispose

    def _emit(self, value) -> None:
        for callback in list(self._listeners):
            callback(value)


class AuthState(_Observable):
    """Current signed-in caller. Subscribers get the current value immediately."""

    def __init__(self) -> None:
        super().__init__()
        self.caller: Caller = ANONYMOUS

    def subscribe(self, callback: Callable[[Caller], None]) -> Disposer:
        return self._subscribe(callback, self.caller)

    def sign_in(self, caller: Caller) -> None:
        self.caller = caller
        self._emit(caller)

    def sign_out(self) -> None:
        self.caller = ANONYMOUS
        self._emit(ANONYMOUS)


class AdminGate(_Observable):
    """Folds the auth state and the caller's admin allowlist record into one flag.

    The allowlist is read on every auth change and on ``refresh()``. The store
    has no change feed, so a grant or revoke made elsewhere reaches
    subscribers only after the next ``refresh()``. Writes are still checked
    against the allowlist at call time, so a stale ``True`` here never lets a
    revoked admin import.
    """

    def __init__(self, auth_state: AuthState, store: Datastore, cohort_id: str) -> None:
        super().__init__()
        self.store = store
        self.cohort_id = cohort_id
        self.is_admin = False
        self._caller: Caller = ANONYMOUS
        self._unsubscribe_auth: Disposer | None = auth_state.subscribe(self._on_auth)

    def _on_auth(self, caller: Caller) -> None:
        self._caller = caller
        self.refresh()

    def refresh(self) -> bool:
        value = self._caller.is_authenticated and is_admin(self.store, self.cohort_id, self._caller.uid)
        if value != self.is_admin:
            LOGGER.info("admin gate changed uid=%s cohort=%s is_admin=%s", self._caller.uid, self.cohort_id, value)
            self.is_admin = value
            self._emit(value)
        return value

    def subscribe(self, callback: Callable[[bool], None]) -> Disposer:
        return self._subscribe(callback, self.is_admin)

    def close(self) -> None:
        if self._unsubscribe_auth is not None:
            self._unsubscribe_auth()
            self._unsubscribe_auth = None
        self._listeners.clear()
