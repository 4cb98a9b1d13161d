import logging

from fastapi import FastAPI, Depends, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from . import auth, config, schemas
from .database import KeyedStore, get_store
from .exceptions import RideboardError
from .models import UserProfile
from .routes import history, rides

logging.basicConfig(
    level=config.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="Rideboard API")
app.include_router(rides.router)
app.include_router(history.router)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(RideboardError)
async def rideboard_error_handler(request: Request, exc: RideboardError):
    headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == status.HTTP_401_UNAUTHORIZED else None
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail}, headers=headers)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": jsonable_encoder(exc.errors())},
    )


@app.post("/signup", response_model=UserProfile)
def signup(user: schemas.UserCreate, store: KeyedStore = Depends(get_store)):
    return auth.register_user(store, user).profile()


@app.post("/login", response_model=schemas.LoginResponse)
def login(login_data: schemas.LoginRequest, store: KeyedStore = Depends(get_store)):
    token = auth.authenticate(store, login_data.email, login_data.password)
    return {"access_token": token, "token_type": "bearer"}


@app.get("/me", response_model=UserProfile)
def me(current_user: UserProfile = Depends(auth.get_current_user)):
    return current_user


@app.get("/health")
def health_check():
    return {"status": "ok"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=config.PORT)
