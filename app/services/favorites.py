"""Singer profile edits and saved favorites."""

import logging
import uuid

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.errors import ConflictError, NotFoundError
from app.models.base import utcnow
from app.models.singer import (
    FavoriteSongCreate,
    SingerFavoriteSong,
    SingerFavoriteVenue,
    SingerProfile,
    SingerProfileUpdate,
)
from app.models.venue import Venue

logger = logging.getLogger(__name__)


async def get_singer_profile(session: AsyncSession, singer_profile_id: uuid.UUID) -> SingerProfile:
    profile = await session.get(SingerProfile, singer_profile_id)
    if profile is None:
        raise NotFoundError("Singer profile")
    return profile


async def update_singer_profile(
    session: AsyncSession, singer_profile_id: uuid.UUID, body: SingerProfileUpdate
) -> SingerProfile:
    profile = await get_singer_profile(session, singer_profile_id)
    for key, value in body.model_dump(exclude_unset=True).items():
        setattr(profile, key, value)
    profile.updated_at = utcnow()
    session.add(profile)
    await session.commit()
    await session.refresh(profile)
    return profile


# ── Songs ────────────────────────────────────────────────────

async def list_favorite_songs(
    session: AsyncSession, singer_profile_id: uuid.UUID, limit: int = 20, offset: int = 0
) -> tuple[list[SingerFavoriteSong], int]:
    condition = SingerFavoriteSong.singer_profile_id == singer_profile_id
    total = (
        await session.execute(
            select(func.count()).select_from(SingerFavoriteSong).where(condition)
        )
    ).scalar_one()
    result = await session.execute(
        select(SingerFavoriteSong)
        .where(condition)
        .order_by(SingerFavoriteSong.created_at.desc())  # type: ignore[union-attr]
        .limit(limit)
        .offset(offset)
    )
    return list(result.scalars().all()), total


async def add_favorite_song(
    session: AsyncSession, singer_profile_id: uuid.UUID, body: FavoriteSongCreate
) -> SingerFavoriteSong:
    existing = await session.execute(
        select(SingerFavoriteSong.id).where(
            SingerFavoriteSong.singer_profile_id == singer_profile_id,
            SingerFavoriteSong.artist == body.artist,
            SingerFavoriteSong.title == body.title,
            SingerFavoriteSong.key_change == body.key_change,
        )
    )
    if existing.scalar_one_or_none() is not None:
        raise ConflictError("Song is already a favorite")

    favorite = SingerFavoriteSong(singer_profile_id=singer_profile_id, **body.model_dump())
    session.add(favorite)
    try:
        await session.commit()
    except IntegrityError as exc:
        await session.rollback()
        raise ConflictError("Song is already a favorite") from exc
    await session.refresh(favorite)
    return favorite


async def remove_favorite_song(
    session: AsyncSession, singer_profile_id: uuid.UUID, favorite_id: uuid.UUID
) -> None:
    result = await session.execute(
        select(SingerFavoriteSong).where(
            SingerFavoriteSong.id == favorite_id,
            SingerFavoriteSong.singer_profile_id == singer_profile_id,
        )
    )
    favorite = result.scalar_one_or_none()
    if favorite is None:
        raise NotFoundError("Favorite song")
    await session.delete(favorite)
    await session.commit()


# ── Venues ───────────────────────────────────────────────────

async def list_favorite_venues(
    session: AsyncSession, singer_profile_id: uuid.UUID
) -> list[Venue]:
    result = await session.execute(
        select(Venue)
        .join(SingerFavoriteVenue, SingerFavoriteVenue.venue_id == Venue.id)
        .where(SingerFavoriteVenue.singer_profile_id == singer_profile_id)
        .order_by(Venue.name)
    )
    return list(result.scalars().all())


async def add_favorite_venue(
    session: AsyncSession, singer_profile_id: uuid.UUID, venue_id: uuid.UUID
) -> Venue:
    venue = await session.get(Venue, venue_id)
    if venue is None:
        raise NotFoundError("Venue")
    if await session.get(SingerFavoriteVenue, (singer_profile_id, venue_id)) is not None:
        raise ConflictError("Venue is already a favorite")

    session.add(SingerFavoriteVenue(singer_profile_id=singer_profile_id, venue_id=venue_id))
    await session.commit()
    return venue


async def remove_favorite_venue(
    session: AsyncSession, singer_profile_id: uuid.UUID, venue_id: uuid.UUID
) -> None:
    favorite = await session.get(SingerFavoriteVenue, (singer_profile_id, venue_id))
    if favorite is None:
        raise NotFoundError("Favorite venue")
    await session.delete(favorite)
    await session.commit()
