import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException, status

from core.deps import require_admin_role
from services.team_roster import RosterMember, TeamRosterCache, get_team_roster

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/active", response_model=List[RosterMember])
def list_active_team_members(
    roster: TeamRosterCache = Depends(get_team_roster),
    admin: dict = Depends(require_admin_role),
):
    """Active team members sorted by name, with avatars."""
    try:
        return roster.list_active_team_members()
    except Exception as e:
        logger.error(f"[ROSTER] ❌ Could not load team roster: {e}")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Team roster is temporarily unavailable.",
        )
