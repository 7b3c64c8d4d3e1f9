from fastapi import APIRouter, Depends

from deps.engine import get_engine
from schemas.users import LoginRequest, UserOut
from session_engine import QuizEngine

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/login", response_model=UserOut)
def login(req: LoginRequest, engine: QuizEngine = Depends(get_engine)):
    # name-only identity: look the name up, create it on first use
    return UserOut.model_validate(engine.store.find_or_create_user(req.name))
