from pydantic import BaseModel, Field
from typing import List, Optional

from .models import PaymentType, Ride, Transaction

# User Schemas
class UserCreate(BaseModel):
    email: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    phone: Optional[str] = ""
    college_email: Optional[str] = ""

class LoginRequest(BaseModel):
    email: str
    password: str

class LoginResponse(BaseModel):
    access_token: str
    token_type: str

# Ride Schemas
class RideCreate(BaseModel):
    pickup_location: str
    dropoff_location: str
    date: str
    time: str
    payment_type: Optional[PaymentType] = None
    payment_amount: Optional[float] = Field(None, allow_inf_nan=False)


class RateRequest(BaseModel):
    rating: int


class RateResponse(BaseModel):
    success: bool
    ride_id: str
    rated: bool


class HistoryResponse(BaseModel):
    rides_requested: List[Ride]
    rides_provided: List[Ride]
    owed: List[Transaction]
    earned: List[Transaction]
