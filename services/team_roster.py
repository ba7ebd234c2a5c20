import logging
import threading
import time
from typing import Callable, List, Optional

from pydantic import BaseModel
from sqlmodel import Session, select

from core.config import ROSTER_EVICT_SECONDS, ROSTER_FRESH_SECONDS
from models.team_member import Profile, TeamMember, TeamMemberStatus

logger = logging.getLogger(__name__)

ADMIN_ROSTER_ROLES = ("admin", "owner")


class RosterMember(BaseModel):
    user_id: Optional[str] = None
    full_name: Optional[str] = None
    email: Optional[str] = None
    role: Optional[str] = None
    status: str = TeamMemberStatus.ACTIVE.value
    avatar_url: Optional[str] = None


def load_active_team_members(session: Session) -> List[RosterMember]:
    """Active directory entries sorted by name, with avatars joined from profiles."""
    members = session.exec(
        select(TeamMember)
        .where(TeamMember.status == TeamMemberStatus.ACTIVE)
        .order_by(TeamMember.full_name)
    ).all()

    user_ids = [m.user_id for m in members if m.user_id]
    avatars = {}
    if user_ids:
        profiles = session.exec(select(Profile).where(Profile.id.in_(user_ids))).all()
        avatars = {p.id: p.avatar_url for p in profiles}

    return [
        RosterMember(
            user_id=m.user_id,
            full_name=m.full_name,
            email=m.email,
            role=m.role,
            status=getattr(m.status, "value", m.status),
            avatar_url=avatars.get(m.user_id) if m.user_id else None,
        )
        for m in members
    ]


class TeamRosterCache:
    """Read-through cache of the active team roster.

    Data younger than `fresh_seconds` is served as is. Older data triggers a
    refetch; if that refetch fails, data younger than `evict_seconds` is
    still served. Callers arriving while a refetch is running wait for it
    and share its result.
    """

    def __init__(
        self,
        loader: Callable[[], List[RosterMember]],
        fresh_seconds: float = ROSTER_FRESH_SECONDS,
        evict_seconds: float = ROSTER_EVICT_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._loader = loader
        self.fresh_seconds = fresh_seconds
        self.evict_seconds = evict_seconds
        self._clock = clock

        self._data: Optional[List[RosterMember]] = None
        self._loaded_at: Optional[float] = None
        self._generation = 0
        self._refresh_lock = threading.Lock()

    def _age(self) -> Optional[float]:
        if self._loaded_at is None:
            return None
        return self._clock() - self._loaded_at

    def _is_fresh(self) -> bool:
        age = self._age()
        return self._data is not None and age is not None and age <= self.fresh_seconds

    def list_active_team_members(self) -> List[RosterMember]:
        # Fast path: no locking on a fresh cache
        if self._is_fresh():
            return list(self._data)

        seen_generation = self._generation
        with self._refresh_lock:
            # Another caller finished a refetch while we waited
            if self._generation != seen_generation and self._data is not None:
                return list(self._data)
            if self._is_fresh():
                return list(self._data)

            age = self._age()
            if age is not None and age >= self.evict_seconds:
                logger.info("[ROSTER] 🗑️ Evicting roster cache")
                self._data = None
                self._loaded_at = None

            logger.info("[ROSTER] 🔄 Cache stale or empty, refreshing team roster...")
            try:
                members = self._loader()
            except Exception as e:
                if self._data is not None:
                    logger.warning(f"[ROSTER] ⚠️ Refresh failed, serving stale roster: {e}")
                    return list(self._data)
                logger.error(f"[ROSTER] ❌ Refresh failed with no cached roster: {e}")
                raise

            self._data = list(members)
            self._loaded_at = self._clock()
            self._generation += 1
            logger.info(f"[ROSTER] ✅ Cached {len(self._data)} active team members")
            return list(self._data)

    def find_member(self, user_id: Optional[str]) -> Optional[RosterMember]:
        if not user_id:
            return None
        for member in self.list_active_team_members():
            if member.user_id == user_id:
                return member
        return None

    def admin_user_ids(self) -> List[str]:
        return [
            m.user_id
            for m in self.list_active_team_members()
            if m.user_id and m.role in ADMIN_ROSTER_ROLES
        ]

    def invalidate(self):
        with self._refresh_lock:
            self._data = None
            self._loaded_at = None


def _load_from_database() -> List[RosterMember]:
    from db.session import get_engine

    with Session(get_engine()) as session:
        return load_active_team_members(session)


_roster: Optional[TeamRosterCache] = None


def get_team_roster() -> TeamRosterCache:
    global _roster
    if _roster is None:
        _roster = TeamRosterCache(loader=_load_from_database)
    return _roster
