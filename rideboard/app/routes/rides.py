from fastapi import APIRouter, Depends
from typing import List
from ..schemas import RideCreate, RateRequest, RateResponse
from ..database import KeyedStore, get_store
from ..models import Ride, UserProfile
from ..auth import get_current_user
from ..services.rides import RideRepository

router = APIRouter(prefix="/rides", tags=["Rides"])


def get_rides(store: KeyedStore = Depends(get_store)) -> RideRepository:
    return RideRepository(store)


@router.post("/", response_model=Ride)
def create_ride(ride: RideCreate, rides: RideRepository = Depends(get_rides), current_user: UserProfile = Depends(get_current_user)):
    return rides.create(
        current_user,
        pickup_location=ride.pickup_location,
        dropoff_location=ride.dropoff_location,
        date=ride.date,
        time=ride.time,
        payment_type=ride.payment_type,
        payment_amount=ride.payment_amount,
    )


@router.get("/", response_model=List[Ride])
def get_open_rides(rides: RideRepository = Depends(get_rides)):
    return rides.list_open()


@router.get("/mine", response_model=List[Ride])
def get_my_rides(rides: RideRepository = Depends(get_rides), current_user: UserProfile = Depends(get_current_user)):
    return rides.list_for_rider(current_user.id)


@router.get("/{ride_id}", response_model=Ride)
def get_ride(ride_id: str, rides: RideRepository = Depends(get_rides), current_user: UserProfile = Depends(get_current_user)):
    return rides.get(ride_id)


@router.post("/{ride_id}/claim", response_model=Ride)
def claim_ride(ride_id: str, rides: RideRepository = Depends(get_rides), current_user: UserProfile = Depends(get_current_user)):
    return rides.claim(ride_id, current_user)


@router.post("/{ride_id}/complete", response_model=Ride)
def complete_ride(ride_id: str, rides: RideRepository = Depends(get_rides), current_user: UserProfile = Depends(get_current_user)):
    return rides.complete(ride_id, current_user.id)


@router.post("/{ride_id}/rate", response_model=RateResponse)
def rate_ride(ride_id: str, body: RateRequest, rides: RideRepository = Depends(get_rides), current_user: UserProfile = Depends(get_current_user)):
    ride = rides.rate(ride_id, current_user.id, body.rating)
    return {"success": True, "ride_id": ride.id, "rated": ride.rated}


@router.post("/{ride_id}/cancel", response_model=Ride)
def cancel_ride(ride_id: str, rides: RideRepository = Depends(get_rides), current_user: UserProfile = Depends(get_current_user)):
    return rides.cancel(ride_id, current_user.id)
