from typing import Optional

from fastapi import Depends, Header, HTTPException, status
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from core.database.models import User
from core.database.operations import get_db, get_user_for_token


def error_response(status_code: int, message: str, **extra) -> JSONResponse:
    """The {success: false, message} body every failing endpoint answers with."""
    return JSONResponse(status_code=status_code, content={"success": False, "message": message, **extra})


def get_bearer_token(authorization: Optional[str] = Header(default=None)) -> str:
    if not authorization or not authorization.startswith("Bearer "):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="No token provided")
    token = authorization[len("Bearer "):].strip()
    if not token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="No token provided")
    return token


def get_current_user(token: str = Depends(get_bearer_token), db: Session = Depends(get_db)) -> User:
    """Resolve the bearer token of the request to a user, or answer 401."""
    user = get_user_for_token(db, token)
    if user is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")
    return user
