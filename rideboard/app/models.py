"""
Stored records.

Each model maps to one key scheme in the keyed store:
- UserRecord   -> user:<userId>
- Ride         -> ride:<createdAtMillis>:<riderId>
- Transaction  -> transaction:<claimedAtMillis>:<driverId>
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

USER_PREFIX = "user:"
USER_EMAIL_PREFIX = "user-email:"
RIDE_PREFIX = "ride:"
TRANSACTION_PREFIX = "transaction:"
CLAIM_LOCK_PREFIX = "claim-lock:"
COMPLETE_LOCK_PREFIX = "complete-lock:"
RATE_LOCK_PREFIX = "rate-lock:"
LEDGER_RIDE_PREFIX = "ledger-ride:"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def millis(moment: datetime) -> int:
    return int(moment.timestamp() * 1000)


class RideStatus(str, Enum):
    OPEN = "open"
    CLAIMED = "claimed"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class PaymentType(str, Enum):
    FREE = "free"
    MEAL_SWIPES = "meal-swipes"
    DINING_DOLLARS = "dining-dollars"
    CASH = "cash"


class UserProfile(BaseModel):
    id: str
    name: str
    phone: str = ""
    college_email: str = ""


class UserRecord(UserProfile):
    email: str
    password_hash: str
    created_at: datetime = Field(default_factory=utcnow)

    def profile(self) -> UserProfile:
        return UserProfile(id=self.id, name=self.name, phone=self.phone, college_email=self.college_email)


class Ride(BaseModel):
    id: str
    rider_id: str
    # contact snapshot taken when the ride is posted
    rider_name: str
    rider_phone: str = ""
    rider_college_email: str = ""
    pickup_location: str
    dropoff_location: str
    date: str
    time: str
    payment_type: PaymentType
    payment_amount: float = Field(0, ge=0, allow_inf_nan=False)
    status: RideStatus = RideStatus.OPEN
    driver_id: Optional[str] = None
    driver_name: Optional[str] = None
    rated: bool = False
    created_at: datetime
    claimed_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None

    def is_participant(self, user_id: str) -> bool:
        return user_id == self.rider_id or (self.driver_id is not None and user_id == self.driver_id)


class Transaction(BaseModel):
    """Payment promise recorded when a ride is claimed. Never edited afterwards."""

    id: str
    ride_id: str
    rider_id: str
    rider_name: str
    driver_id: str
    driver_name: str
    payment_type: PaymentType
    payment_amount: float = Field(..., gt=0, allow_inf_nan=False)
    pickup_location: str
    dropoff_location: str
    date: str
    time: str
    created_at: datetime
