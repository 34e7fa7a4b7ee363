from typing import Optional

from fastapi import Depends, HTTPException, Request, Security
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from .config import settings
from .repository import WorkflowRepository

security = HTTPBearer(auto_error=False)


async def auth_bearer(
    credentials: Optional[HTTPAuthorizationCredentials] = Security(security),
) -> str:
    """
    Validate bearer token.
    Accepts any token carrying the configured prefix and returns it as the caller id.
    """
    if not credentials or not credentials.credentials.startswith(settings.token_prefix):
        raise HTTPException(status_code=401, detail="Unauthorized")
    return credentials.credentials


def get_repo(request: Request) -> WorkflowRepository:
    return request.app.state.repo


RepoDep = Depends(get_repo)
