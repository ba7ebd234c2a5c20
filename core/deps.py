from fastapi import Depends, HTTPException, Request, status
from typing import Annotated
import logging

from core.firebase import verify_id_token, get_firestore_client

logger = logging.getLogger(__name__)

# Standard credentials exception
CREDENTIALS_EXCEPTION = HTTPException(
    status_code=status.HTTP_401_UNAUTHORIZED,
    detail="Could not validate credentials",
    headers={"WWW-Authenticate": "Bearer"},
)
# Admin Roles Defined
ADMIN_ROLES = ["owner", "admin"]


def _extract_bearer_token(request: Request) -> str:
    auth_header = request.headers.get("Authorization", "")
    if not auth_header.startswith("Bearer "):
        raise CREDENTIALS_EXCEPTION
    return auth_header.split(" ", 1)[1]


# Basic Check Matches Firebase Auth Token
async def get_current_user(request: Request):
    # 1) Extract & Analyze Authorization Header
    token = _extract_bearer_token(request)

    # 2) Verify This Points to a Real User Account
    try:
        decoded = verify_id_token(token)
    except Exception:
        raise CREDENTIALS_EXCEPTION
    uid = decoded.get("uid")
    if not uid:
        raise CREDENTIALS_EXCEPTION

    # 3) Fetch the Firestore user profile
    try:
        snapshot = get_firestore_client().collection("users").document(uid).get()
    except Exception as e:
        logger.error(f"Firestore error fetching profile for {uid}: {e}")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Could not fetch user profile.",
        )
    if not snapshot.exists:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User profile not found",
        )
    profile = snapshot.to_dict()

    return {
        "uid": uid,
        "name": profile.get("displayName", ""),
        "email": profile.get("email", ""),
        "role": profile.get("role", ""),
    }


# Admin Role Check Dependency
async def require_admin_role(
    current_user: Annotated[dict, Depends(get_current_user)]
):
    # Check That User Has Adequate Permissions
    if current_user.get("role") not in ADMIN_ROLES:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="User doesn't have sufficient privileges for this action",
        )

    # Passes Check Endpoint
    return current_user
