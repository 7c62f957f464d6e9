"""
Badge catalog router.

GET /badges             — active, non-secret badges in display order
GET /badges/{badge_id}  — one badge definition
"""
from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from habitchain.db.base import get_db
from habitchain.schemas.badge import BadgeListResponse, BadgeOut
from habitchain.schemas.common import ErrorResponse
from habitchain.services.repository import active_badges, get_badge_or_404

router = APIRouter(prefix="/badges", tags=["badges"])


@router.get("", response_model=BadgeListResponse, summary="List the badge catalog")
def list_badges(db: Session = Depends(get_db)):
    """Secret badges are left out; users discover them through their own listing."""
    items = [BadgeOut.model_validate(b) for b in active_badges(db) if not b.is_secret]
    return BadgeListResponse(total=len(items), items=items)


@router.get(
    "/{badge_id}",
    response_model=BadgeOut,
    summary="Get one badge definition",
    responses={404: {"model": ErrorResponse, "description": "Badge not found."}},
)
def get_badge(badge_id: int, db: Session = Depends(get_db)):
    return BadgeOut.model_validate(get_badge_or_404(db, badge_id))
