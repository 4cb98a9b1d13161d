"""
Ride lifecycle operations.

States move open -> claimed -> completed, or open -> cancelled. Nothing
leaves completed or cancelled.

The store only guarantees atomicity per key, so taking a ride out of
``open`` goes through a create-if-absent ``claim-lock:<rideId>`` key. Claim
and cancel both need it, and only one caller per ride ever gets it.
Completing and rating each have a lock of their own, so exactly one caller
writes each later transition and no write can undo another (a late
complete resetting ``rated``, say).
"""

import logging
import math
from datetime import datetime, timedelta
from typing import List, Optional

from ..database import KeyedStore
from ..exceptions import (
    BadRequestError,
    ForbiddenRideActionError,
    InvalidRideStateError,
    RideNotFoundError,
)
from ..models import (
    CLAIM_LOCK_PREFIX,
    COMPLETE_LOCK_PREFIX,
    RATE_LOCK_PREFIX,
    RIDE_PREFIX,
    PaymentType,
    Ride,
    RideStatus,
    UserProfile,
    millis,
    utcnow,
)
from .ledger import Ledger

logger = logging.getLogger(__name__)

MIN_RATING = 1
MAX_RATING = 5


def _stamp(after: Optional[datetime] = None) -> datetime:
    """Current time, never earlier than ``after``."""
    now = utcnow()
    if after is not None and now < after:
        return after
    return now


def _newest_first(rides: List[Ride]) -> List[Ride]:
    return sorted(rides, key=lambda r: r.created_at, reverse=True)


class RideRepository:
    def __init__(self, store: KeyedStore, ledger: Optional[Ledger] = None):
        self.store = store
        self.ledger = ledger or Ledger(store)

    # ===================== Reads =====================

    def get(self, ride_id: str) -> Ride:
        if not ride_id.startswith(RIDE_PREFIX):
            raise RideNotFoundError("Ride not found")
        doc = self.store.get(ride_id)
        if doc is None:
            raise RideNotFoundError("Ride not found")
        return Ride.model_validate(doc)

    def list_all(self) -> List[Ride]:
        return [Ride.model_validate(doc) for doc in self.store.get_by_prefix(RIDE_PREFIX)]

    def list_open(self) -> List[Ride]:
        return _newest_first([r for r in self.list_all() if r.status == RideStatus.OPEN])

    def list_for_rider(self, rider_id: str) -> List[Ride]:
        return _newest_first([r for r in self.list_all() if r.rider_id == rider_id])

    # ===================== Rider Operations =====================

    def create(
        self,
        rider: UserProfile,
        pickup_location: str,
        dropoff_location: str,
        date: str,
        time: str,
        payment_type: Optional[PaymentType] = None,
        payment_amount: Optional[float] = None,
    ) -> Ride:
        """
        Post a new open ride request.

        A missing payment type means meal swipes and a missing amount means
        zero. Free rides always carry a zero amount.

        Raises:
            BadRequestError: if a route/date/time field is blank or the
                amount is negative or not a finite number.
        """
        fields = {
            "pickup_location": pickup_location,
            "dropoff_location": dropoff_location,
            "date": date,
            "time": time,
        }
        missing = [name for name, value in fields.items() if not value or not str(value).strip()]
        if missing:
            raise BadRequestError(f"All fields are required (missing: {', '.join(missing)})")

        payment_type = PaymentType(payment_type) if payment_type else PaymentType.MEAL_SWIPES
        amount = float(payment_amount or 0)
        if not math.isfinite(amount):
            raise BadRequestError("Payment amount must be a finite number")
        if amount < 0:
            raise BadRequestError("Payment amount cannot be negative")
        if payment_type == PaymentType.FREE:
            amount = 0.0

        created_at = _stamp()
        while True:
            ride = Ride(
                id=f"{RIDE_PREFIX}{millis(created_at)}:{rider.id}",
                rider_id=rider.id,
                rider_name=rider.name,
                rider_phone=rider.phone,
                rider_college_email=rider.college_email,
                pickup_location=pickup_location.strip(),
                dropoff_location=dropoff_location.strip(),
                date=date,
                time=time,
                payment_type=payment_type,
                payment_amount=amount,
                created_at=created_at,
            )
            if self.store.set_if_absent(ride.id, ride.model_dump(mode="json")):
                break
            # same rider posted twice within one millisecond
            created_at += timedelta(milliseconds=1)

        logger.info("[Rides] Created %s (%s -> %s)", ride.id, ride.pickup_location, ride.dropoff_location)
        return ride

    def cancel(self, ride_id: str, caller_id: str) -> Ride:
        ride = self.get(ride_id)
        if ride.status != RideStatus.OPEN:
            raise InvalidRideStateError("Only open rides can be cancelled")
        if caller_id != ride.rider_id:
            raise ForbiddenRideActionError("Only the rider can cancel this ride")
        if not self._take_lock(CLAIM_LOCK_PREFIX, ride, caller_id, "cancel"):
            raise InvalidRideStateError("Ride is no longer available")

        ride.status = RideStatus.CANCELLED
        ride.cancelled_at = _stamp(ride.created_at)
        self._save(ride)
        logger.info("[Rides] %s cancelled by rider %s", ride.id, caller_id)
        return ride

    # ===================== Driver Operations =====================

    def claim(self, ride_id: str, driver: UserProfile) -> Ride:
        """
        Commit ``driver`` to an open ride and record the payment promise.

        Of any number of concurrent callers for one ride, exactly one gets
        the claim lock; every other caller sees InvalidRideStateError. The
        ride is saved before the transaction, so a crash in between leaves a
        claimed ride without a promise rather than a promise without a ride.

        Raises:
            RideNotFoundError: no such ride.
            InvalidRideStateError: the ride is not open, or another caller won.
            ForbiddenRideActionError: the driver posted the ride.
        """
        ride = self.get(ride_id)
        if ride.status != RideStatus.OPEN:
            raise InvalidRideStateError("Ride is no longer available")
        if driver.id == ride.rider_id:
            raise ForbiddenRideActionError("You cannot claim your own ride request")
        if not self._take_lock(CLAIM_LOCK_PREFIX, ride, driver.id, "claim"):
            logger.info("[Rides] %s lost claim race for %s", driver.id, ride.id)
            raise InvalidRideStateError("Ride is no longer available")

        ride.status = RideStatus.CLAIMED
        ride.driver_id = driver.id
        ride.driver_name = driver.name
        ride.claimed_at = _stamp(ride.created_at)
        self._save(ride)
        logger.info("[Rides] %s claimed by driver %s", ride.id, driver.id)

        if ride.payment_amount > 0:
            self.ledger.record(ride)
        return ride

    # ===================== Shared Operations =====================

    def complete(self, ride_id: str, caller_id: str) -> Ride:
        ride = self.get(ride_id)
        if ride.status != RideStatus.CLAIMED:
            raise InvalidRideStateError("Only claimed rides can be completed")
        if not ride.is_participant(caller_id):
            raise ForbiddenRideActionError("Only the rider or driver can complete this ride")
        if not self._take_lock(COMPLETE_LOCK_PREFIX, ride, caller_id, "complete"):
            raise InvalidRideStateError("Ride has already been completed")

        ride.status = RideStatus.COMPLETED
        ride.completed_at = _stamp(ride.claimed_at)
        self._save(ride)
        logger.info("[Rides] %s completed by %s", ride.id, caller_id)
        return ride

    def rate(self, ride_id: str, caller_id: str, rating: int) -> Ride:
        """Record that the ride was rated. The score itself is not kept."""
        ride = self.get(ride_id)
        if ride.status != RideStatus.COMPLETED:
            raise InvalidRideStateError("Only completed rides can be rated")
        if ride.rated:
            raise InvalidRideStateError("Ride has already been rated")
        if not ride.is_participant(caller_id):
            raise ForbiddenRideActionError("Only the rider or driver can rate this ride")
        if not MIN_RATING <= rating <= MAX_RATING:
            raise BadRequestError(f"Rating must be between {MIN_RATING} and {MAX_RATING}")
        if not self._take_lock(RATE_LOCK_PREFIX, ride, caller_id, "rate"):
            raise InvalidRideStateError("Ride has already been rated")

        ride.rated = True
        self._save(ride)
        logger.info("[Rides] %s rated by %s", ride.id, caller_id)
        return ride

    # ===================== Internals =====================

    def _take_lock(self, prefix: str, ride: Ride, user_id: str, action: str) -> bool:
        return self.store.set_if_absent(
            f"{prefix}{ride.id}",
            {"ride_id": ride.id, "user_id": user_id, "action": action, "at": utcnow().isoformat()},
        )

    def _save(self, ride: Ride) -> None:
        self.store.set(ride.id, ride.model_dump(mode="json"))
