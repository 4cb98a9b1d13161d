from fastapi import APIRouter, Depends
from ..schemas import HistoryResponse
from ..database import KeyedStore, get_store
from ..models import UserProfile
from ..auth import get_current_user
from ..services.history import history

router = APIRouter(tags=["History"])


@router.get("/history", response_model=HistoryResponse)
def get_history(store: KeyedStore = Depends(get_store), current_user: UserProfile = Depends(get_current_user)):
    h = history(store, current_user.id)
    return HistoryResponse(
        rides_requested=h.rides_requested,
        rides_provided=h.rides_provided,
        owed=h.owed,
        earned=h.earned,
    )
