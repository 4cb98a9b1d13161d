"""
Payment-promise ledger.

A transaction is written once, when a paid ride is claimed, and is never
updated or deleted afterwards. A ``ledger-ride:<rideId>`` marker, created
before the entry, keeps it to one transaction per ride.
"""

import logging
from datetime import datetime, timedelta
from typing import List

from ..database import KeyedStore
from ..models import LEDGER_RIDE_PREFIX, TRANSACTION_PREFIX, Ride, Transaction, millis

logger = logging.getLogger(__name__)


def transaction_key(moment: datetime, driver_id: str) -> str:
    return f"{TRANSACTION_PREFIX}{millis(moment)}:{driver_id}"


class Ledger:
    def __init__(self, store: KeyedStore):
        self.store = store

    def record(self, ride: Ride) -> Transaction:
        """
        Snapshot a freshly claimed ride into a transaction.

        Raises:
            ValueError: if the ride is not claimed, is free, or already has
                a transaction.
        """
        if ride.driver_id is None or ride.claimed_at is None:
            raise ValueError(f"Ride {ride.id} has not been claimed")
        if ride.payment_amount <= 0:
            raise ValueError(f"Ride {ride.id} carries no payment")
        if not self.store.set_if_absent(f"{LEDGER_RIDE_PREFIX}{ride.id}", {"driver_id": ride.driver_id}):
            raise ValueError(f"Ride {ride.id} already has a transaction")

        keyed_at = ride.claimed_at
        while True:
            tx = Transaction(
                id=transaction_key(keyed_at, ride.driver_id),
                ride_id=ride.id,
                rider_id=ride.rider_id,
                rider_name=ride.rider_name,
                driver_id=ride.driver_id,
                driver_name=ride.driver_name or "",
                payment_type=ride.payment_type,
                payment_amount=ride.payment_amount,
                pickup_location=ride.pickup_location,
                dropoff_location=ride.dropoff_location,
                date=ride.date,
                time=ride.time,
                created_at=ride.claimed_at,
            )
            if self.store.set_if_absent(tx.id, tx.model_dump(mode="json")):
                break
            # same driver claimed another paid ride within one millisecond
            keyed_at += timedelta(milliseconds=1)

        logger.info(
            "[Ledger] Recorded %s %s owed by %s to %s for %s",
            tx.payment_amount, tx.payment_type.value, tx.rider_id, tx.driver_id, tx.ride_id,
        )
        return tx

    def list_all(self) -> List[Transaction]:
        return [Transaction.model_validate(doc) for doc in self.store.get_by_prefix(TRANSACTION_PREFIX)]
