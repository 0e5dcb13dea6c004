from dataclasses import dataclass

from fastapi import Depends, HTTPException
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import JWTError

from ticketdesk.core.security import decode_token, role_from_claims
from ticketdesk.services.errors import DomainError, ErrorCode

bearer = HTTPBearer(auto_error=False)

_HTTP_STATUS = {
    ErrorCode.INVALID_ARGUMENT: 400,
    ErrorCode.NOT_FOUND: 404,
    ErrorCode.CONFLICT: 409,
    ErrorCode.CAPACITY_EXCEEDED: 409,
    ErrorCode.STORAGE_ERROR: 503,
    ErrorCode.STORAGE_TIMEOUT: 504,
}


@dataclass(frozen=True)
class CurrentUser:
    id: str
    role: str


def http_error(e: DomainError) -> HTTPException:
    return HTTPException(status_code=_HTTP_STATUS.get(e.code, 500), detail={"error": e.code.value, "message": e.message})


def get_current_user(creds: HTTPAuthorizationCredentials | None = Depends(bearer)) -> CurrentUser:
    if not creds:
        raise HTTPException(status_code=401, detail="Not authenticated")
    try:
        payload = decode_token(creds.credentials)
    except JWTError:
        raise HTTPException(status_code=401, detail="Invalid token")
    user_id = payload.get("sub")
    if not user_id:
        raise HTTPException(status_code=401, detail="Invalid token")
    return CurrentUser(id=str(user_id), role=role_from_claims(payload))


def require_roles(*roles: str):
    def _guard(user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
        if user.role not in roles:
            raise HTTPException(status_code=403, detail="Forbidden")
        return user
    return _guard


def ensure_self_or_admin(user: CurrentUser, user_id: str) -> None:
    if user.role != "admin" and user.id != user_id:
        raise HTTPException(status_code=403, detail="Forbidden")
