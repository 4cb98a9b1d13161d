from dataclasses import dataclass, field
from typing import List

from ..database import KeyedStore
from ..models import Ride, Transaction
from .ledger import Ledger
from .rides import RideRepository


@dataclass
class History:
    """Per-user view over rides and transactions, split by role."""
    rides_requested: List[Ride] = field(default_factory=list)
    rides_provided: List[Ride] = field(default_factory=list)
    owed: List[Transaction] = field(default_factory=list)
    earned: List[Transaction] = field(default_factory=list)


def _newest_first(items):
    return sorted(items, key=lambda item: item.created_at, reverse=True)


def history(store: KeyedStore, user_id: str) -> History:
    """Read-only; results may lag a concurrent write."""
    rides = RideRepository(store).list_all()
    transactions = Ledger(store).list_all()
    return History(
        rides_requested=_newest_first([r for r in rides if r.rider_id == user_id]),
        rides_provided=_newest_first([r for r in rides if r.driver_id == user_id]),
        owed=_newest_first([t for t in transactions if t.rider_id == user_id]),
        earned=_newest_first([t for t in transactions if t.driver_id == user_id]),
    )
