from fastapi import Depends, HTTPException, Security
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
import httpx
from app.config import settings
from structlog import get_logger
from pybreaker import CircuitBreaker

logger = get_logger(__name__)
security = HTTPBearer()
breaker = CircuitBreaker(fail_max=3, reset_timeout=60)

@breaker
async def verify_token(token: str) -> dict:
    async with httpx.AsyncClient() as client:
        response = await client.get(
            f"{settings.USER_MANAGEMENT_URL}/auth/verify",
            headers={"Authorization": f"Bearer {token}"}
        )
        if response.status_code != 200:
            logger.error("Token verification failed", status_code=response.status_code)
            raise HTTPException(status_code=401, detail="Invalid token")
        return response.json()


async def get_current_user(credentials: HTTPAuthorizationCredentials = Security(security)) -> dict:
    return await verify_token(credentials.credentials)


def require_role(*roles: str):
    """Dependency factory: the verified user must hold one of ``roles``."""
    allowed = {r.lower() for r in roles}

    async def dependency(user: dict = Depends(get_current_user)) -> dict:
        if str(user.get("role", "")).lower() not in allowed:
            raise HTTPException(status_code=403, detail=f"Only {', '.join(sorted(allowed))} users can do this")
        return user

    return dependency
