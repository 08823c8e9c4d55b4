from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from .admins import is_admin

if TYPE_CHECKING:
    from global84.db.store import Datastore


@dataclass(frozen=True)
class Caller:
    uid: str | None
    display_name: str = ""
    store: "Datastore | None" = field(default=None, repr=False, compare=False)

    @property
    def is_authenticated(self) -> bool:
        return bool((self.uid or "").strip())

    def is_admin_for(self, cohort_id: str) -> bool:
        if self.store is None or not self.is_authenticated:
            return False
        return is_admin(self.store, cohort_id, self.uid)


ANONYMOUS = Caller(uid=None)
