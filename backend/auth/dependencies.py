from dataclasses import dataclass

import jwt
from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from backend.auth import jwt_handler
from backend.database import SessionLocal
from backend.models.appointment import ActorRole
from backend.models.user import User

security = HTTPBearer()


@dataclass(frozen=True)
class Actor:
    id: int
    role: ActorRole


def get_current_actor(
    credentials: HTTPAuthorizationCredentials = Depends(security),
) -> Actor:
    token = credentials.credentials
    try:
        payload = jwt_handler.decode_access_token(token)
    except jwt.PyJWTError as exc:
        raise HTTPException(status_code=401, detail="Invalid token") from exc

    subject = payload.get("sub")
    try:
        user_id = int(subject)
    except (TypeError, ValueError):
        raise HTTPException(status_code=401, detail="Invalid token subject") from None

    db = SessionLocal()
    try:
        user = db.query(User).filter(User.id == user_id).first()
    finally:
        db.close()
    if user is None:
        raise HTTPException(status_code=401, detail="User not found")

    try:
        role = ActorRole(user.role)
    except ValueError:
        raise HTTPException(status_code=403, detail="User has no scheduling role") from None
    return Actor(id=user.id, role=role)
