"""Read queries used by the generation pipeline."""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from fitplan.db.models import Profile, StoredPlan, StoredWorkout


def get_profile(session: Session, user_id: str) -> Profile | None:
    return session.get(Profile, user_id)


def has_active_plan(session: Session, user_id: str) -> bool:
    stmt = select(StoredPlan.id).where(StoredPlan.user_id == user_id, StoredPlan.is_active.is_(True)).limit(1)
    return session.execute(stmt).first() is not None


def get_active_plan(session: Session, user_id: str) -> StoredPlan | None:
    """Load the user's active plan with workouts and exercises eagerly."""
    stmt = (
        select(StoredPlan)
        .where(StoredPlan.user_id == user_id, StoredPlan.is_active.is_(True))
        .options(selectinload(StoredPlan.workouts).selectinload(StoredWorkout.exercises))
        .order_by(StoredPlan.created_at.desc())
        .limit(1)
    )
    return session.execute(stmt).scalars().first()
