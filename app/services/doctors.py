"""Doctor directory: search, ranking and profile helpers."""

import logging
import re
import unicodedata
from typing import Any, Dict, List, Optional, Tuple
from uuid import UUID
from sqlalchemy import select, func, or_
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.permissions import TIER_ORDER, resolve_tier, get_doctor_rank, get_doctor_plan_name
from app.models.doctor import Doctor

logger = logging.getLogger(__name__)

_SLUG_STRIP_RE = re.compile(r"[^a-z0-9]+")
_TITLE_RE = re.compile(r"^(dr|dra)\.?\s+", re.IGNORECASE)

# Fields a doctor must fill before appearing in the public directory
REQUIRED_PROFILE_FIELDS = ("name", "specialty", "location", "phone")


def slugify(text: str) -> str:
    normalized = unicodedata.normalize("NFKD", text).encode("ascii", "ignore").decode("ascii")
    return _SLUG_STRIP_RE.sub("-", normalized.lower()).strip("-") or "doctor"


def format_doctor_name(name: Optional[str], gender: Optional[str] = None) -> str:
    """Prefix ``Dr.`` or ``Dra.`` unless the name already carries a title."""
    name = (name or "").strip()
    if not name or _TITLE_RE.match(name):
        return name
    title = "Dra." if (gender or "").lower() in ("female", "femenino", "f", "mujer") else "Dr."
    return f"{title} {name}"


def is_profile_complete(doctor: Doctor) -> bool:
    return all(getattr(doctor, field) for field in REQUIRED_PROFILE_FIELDS)


def _rank_position(doctor: Doctor) -> int:
    # plus first, free last
    return len(TIER_ORDER) - 1 - TIER_ORDER.index(resolve_tier(doctor))


def sort_by_rank(doctors: List[Doctor]) -> List[Doctor]:
    """VIP first, then Intermedio, then Normal; name order within a rank."""
    return sorted(doctors, key=lambda d: (_rank_position(d), (d.name or "").lower()))


def doctor_card(doctor: Doctor) -> Dict[str, Any]:
    """Listing representation with the badge derived from the mirror fields."""
    return {
        "id": doctor.id,
        "slug": doctor.slug,
        "name": doctor.name,
        "display_name": format_doctor_name(doctor.name, doctor.gender),
        "gender": doctor.gender,
        "specialty": doctor.specialty,
        "description": doctor.description,
        "location": doctor.location,
        "phone": doctor.phone,
        "image_url": doctor.image_url,
        "schedule_text": doctor.schedule_text,
        "verified": doctor.verified,
        "rank": get_doctor_rank(doctor),
        "plan_name": get_doctor_plan_name(doctor),
    }


async def unique_slug(db: AsyncSession, name: str, exclude_id: Optional[UUID] = None) -> str:
    base = slugify(name)
    slug = base
    suffix = 2
    while True:
        query = select(Doctor.id).where(Doctor.slug == slug)
        if exclude_id is not None:
            query = query.where(Doctor.id != exclude_id)
        result = await db.execute(query)
        if result.first() is None:
            return slug
        slug = f"{base}-{suffix}"
        suffix += 1


async def search_doctors(
    db: AsyncSession,
    specialty: Optional[str] = None,
    q: Optional[str] = None,
    location: Optional[str] = None,
    page: int = 1,
    page_size: int = 20,
) -> Tuple[List[Doctor], int]:
    """Public directory search.

    Only verified doctors with complete profiles are listed. Ranking needs the
    expiry check, so ordering and paging happen after the query.
    """
    query = select(Doctor).where(Doctor.verified == True, Doctor.profile_complete == True)  # noqa: E712

    if specialty:
        query = query.where(func.lower(Doctor.specialty) == specialty.lower())
    if location:
        query = query.where(func.lower(Doctor.location).contains(location.lower()))
    if q:
        term = f"%{q.lower()}%"
        query = query.where(or_(
            func.lower(Doctor.name).like(term),
            func.lower(Doctor.specialty).like(term),
            func.lower(Doctor.location).like(term),
        ))

    result = await db.execute(query)
    doctors = sort_by_rank(list(result.scalars().all()))
    total = len(doctors)
    start = (page - 1) * page_size
    return doctors[start:start + page_size], total


async def list_specialties(db: AsyncSession) -> List[str]:
    result = await db.execute(
        select(Doctor.specialty)
        .where(Doctor.verified == True, Doctor.specialty.is_not(None))  # noqa: E712
        .distinct()
        .order_by(Doctor.specialty)
    )
    return [row[0] for row in result.all()]


async def get_doctor_by_slug(db: AsyncSession, slug: str) -> Optional[Doctor]:
    result = await db.execute(select(Doctor).where(Doctor.slug == slug))
    return result.scalar_one_or_none()


async def get_doctor(db: AsyncSession, doctor_id: UUID) -> Optional[Doctor]:
    result = await db.execute(select(Doctor).where(Doctor.id == doctor_id))
    return result.scalar_one_or_none()
