"""Song catalog — normalization, search, bulk import and export.

Every system keeps at most one entry per normalized ``"artist - title"``
string, so re-syncing the same library is a no-op.
"""

import logging
import re
import uuid
from collections.abc import Sequence
from typing import Protocol

from sqlalchemy import delete, func, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.database import escape_like
from app.core.errors import ConflictError, ValidationError
from app.models.song import ImportResult, SongEntry
from app.models.system import System
from app.services.systems import get_system_by_legacy_id
from app.services.tenancy import assert_ownership

logger = logging.getLogger(__name__)

MAX_IMPORT_ITEMS = 10_000
COMMIT_EVERY = 100
MAX_FIELD_LENGTH = 255
MIN_QUERY_LENGTH = 2

_NON_ALNUM = re.compile(r"[^a-z0-9\s]")
_WHITESPACE = re.compile(r"\s+")


class SongLike(Protocol):
    artist: str
    title: str


def normalize_song_name(text: str) -> str:
    """Lowercase, keep only ``[a-z0-9]`` and whitespace, collapse runs, strip."""
    lowered = text.lower()
    stripped = _NON_ALNUM.sub("", lowered)
    return _WHITESPACE.sub(" ", stripped).strip()


def song_fields(artist: str, title: str) -> tuple[str, str]:
    """Return ``(combined, normalized_combined)`` for a catalog entry."""
    combined = f"{artist} - {title}"
    return combined, normalize_song_name(combined)


async def search_songs(
    session: AsyncSession,
    tenant_id: uuid.UUID,
    system_id: uuid.UUID | None = None,
    query: str | None = None,
    limit: int = 20,
    offset: int = 0,
) -> tuple[list[SongEntry], int]:
    conditions = [SongEntry.customer_profile_id == tenant_id]
    if system_id is not None:
        await assert_ownership(session, tenant_id, system_id, System)
        conditions.append(SongEntry.system_id == system_id)

    if query is not None:
        query = query.strip()
        if len(query) < MIN_QUERY_LENGTH:
            raise ValidationError.for_field(
                "query", f"Search query must be at least {MIN_QUERY_LENGTH} characters",
            )
        pattern = f"%{escape_like(query)}%"
        matches = [
            SongEntry.artist.ilike(pattern, escape="\\"),  # type: ignore[union-attr]
            SongEntry.title.ilike(pattern, escape="\\"),  # type: ignore[union-attr]
            SongEntry.combined.ilike(pattern, escape="\\"),  # type: ignore[union-attr]
        ]
        normalized = normalize_song_name(query)
        if normalized:
            matches.append(
                SongEntry.normalized_combined.contains(normalized, autoescape=True)  # type: ignore[union-attr]
            )
        conditions.append(or_(*matches))

    total = (
        await session.execute(select(func.count()).select_from(SongEntry).where(*conditions))
    ).scalar_one()
    stmt = (
        select(SongEntry)
        .where(*conditions)
        .order_by(SongEntry.artist, SongEntry.title)
        .limit(limit)
        .offset(offset)
    )
    result = await session.execute(stmt)
    return list(result.scalars().all()), total


async def get_song(
    session: AsyncSession, song_id: int, tenant_id: uuid.UUID
) -> SongEntry:
    return await assert_ownership(session, tenant_id, song_id, SongEntry)


async def delete_song(
    session: AsyncSession, song_id: int, tenant_id: uuid.UUID
) -> None:
    song = await assert_ownership(session, tenant_id, song_id, SongEntry)
    await session.delete(song)
    await session.commit()


def _clean(value: object) -> str | None:
    """Stripped field value, or None when blank or too long."""
    if not isinstance(value, str):
        return None
    value = value.strip()
    if not value or len(value) > MAX_FIELD_LENGTH:
        return None
    return value


async def bulk_import_songs(
    session: AsyncSession,
    tenant_id: uuid.UUID,
    openkj_system_id: int,
    songs: Sequence[SongLike],
) -> ImportResult:
    """Import a batch into one system's catalog.

    Bad items count as ``errors`` and duplicates (of stored entries or of
    earlier items in the same batch) as ``skipped``. Work is committed every
    ``COMMIT_EVERY`` inserts, so a failure part-way keeps what came before;
    replaying the batch is harmless.
    """
    if len(songs) > MAX_IMPORT_ITEMS:
        raise ValidationError.for_field(
            "songs", f"At most {MAX_IMPORT_ITEMS} songs can be imported at once",
        )

    system = await get_system_by_legacy_id(session, tenant_id, openkj_system_id)
    system_id = system.id
    existing = await session.execute(
        select(SongEntry.normalized_combined).where(SongEntry.system_id == system_id)
    )
    seen: set[str] = set(existing.scalars().all())

    result = ImportResult()
    pending = 0
    try:
        for item in songs:
            artist = _clean(getattr(item, "artist", None))
            title = _clean(getattr(item, "title", None))
            if artist is None or title is None:
                result.errors += 1
                continue
            combined, normalized = song_fields(artist, title)
            if not normalized:
                result.errors += 1
                continue
            if normalized in seen:
                result.skipped += 1
                continue

            seen.add(normalized)
            session.add(SongEntry(
                customer_profile_id=tenant_id,
                system_id=system_id,
                artist=artist,
                title=title,
                combined=combined,
                normalized_combined=normalized,
            ))
            result.imported += 1
            pending += 1
            if pending >= COMMIT_EVERY:
                await session.commit()
                pending = 0

        if pending:
            await session.commit()
    except IntegrityError as exc:
        await session.rollback()
        logger.warning("Concurrent import collided on system %s", system_id)
        raise ConflictError(
            "Another import changed this catalog; retry the request", field="songs",
        ) from exc

    logger.info(
        "Imported into system %s: %d imported, %d skipped, %d errors",
        system_id, result.imported, result.skipped, result.errors,
    )
    return result


async def export_songs(
    session: AsyncSession, tenant_id: uuid.UUID, system_id: uuid.UUID
) -> list[tuple[str, str]]:
    """``(artist, title)`` pairs ordered by artist then title."""
    await assert_ownership(session, tenant_id, system_id, System)
    result = await session.execute(
        select(SongEntry.artist, SongEntry.title)
        .where(SongEntry.system_id == system_id)
        .order_by(SongEntry.artist, SongEntry.title)
    )
    return [(artist, title) for artist, title in result.all()]


async def delete_system_songs(
    session: AsyncSession, tenant_id: uuid.UUID, system_id: uuid.UUID
) -> int:
    await assert_ownership(session, tenant_id, system_id, System)
    result = await session.execute(
        delete(SongEntry).where(SongEntry.system_id == system_id)
    )
    await session.commit()
    logger.info("Deleted %d songs from system %s", result.rowcount, system_id)
    return result.rowcount


async def list_system_songs(
    session: AsyncSession,
    tenant_id: uuid.UUID,
    openkj_system_id: int,
    limit: int,
    offset: int,
) -> tuple[System, list[SongEntry], int]:
    """Catalog page for the sync client, ordered by artist then title."""
    system = await get_system_by_legacy_id(session, tenant_id, openkj_system_id)
    total = (
        await session.execute(
            select(func.count()).select_from(SongEntry).where(SongEntry.system_id == system.id)
        )
    ).scalar_one()
    result = await session.execute(
        select(SongEntry)
        .where(SongEntry.system_id == system.id)
        .order_by(SongEntry.artist, SongEntry.title)
        .limit(limit)
        .offset(offset)
    )
    return system, list(result.scalars().all()), total
