from fastapi import APIRouter, status

from physiobot.api.deps import DbDep
from physiobot.api.envelope import send_response
from physiobot.schemas.user import LoginRequest, UserCreate
from physiobot.services.user_service import create_user, get_user, login, to_response

router = APIRouter()


@router.post("/users", status_code=status.HTTP_201_CREATED)
def create(payload: UserCreate, db: DbDep):
    return send_response(to_response(create_user(db, payload)), status.HTTP_201_CREATED)


@router.get("/users/{user_id}")
def read(user_id: int, db: DbDep):
    return send_response(to_response(get_user(db, user_id)))


@router.post("/auth/loginuser")
def login_user(payload: LoginRequest, db: DbDep):
    return send_response(login(db, payload))
