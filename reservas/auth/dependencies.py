import jwt
from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from reservas.auth import jwt_handler
from reservas.database import get_db
from reservas.models.business import Business

security = HTTPBearer()


def get_current_business_id(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: Session = Depends(get_db),
) -> str:
    """Tenant of the caller. Every scheduling route is scoped by this id."""
    token = credentials.credentials
    try:
        payload = jwt_handler.decode_access_token(token)
    except jwt.PyJWTError as exc:
        raise HTTPException(status_code=401, detail="Invalid token") from exc

    business_id = payload.get("business_id")
    if not business_id:
        raise HTTPException(status_code=401, detail="Token is not bound to a business")

    business = db.query(Business.id).filter(Business.id == business_id).first()
    if business is None:
        raise HTTPException(status_code=401, detail="Business not found")
    return business_id
