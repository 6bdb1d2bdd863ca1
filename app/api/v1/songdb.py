"""Song catalog endpoints — search, import, export, delete."""

import csv
import io
import uuid

from fastapi import APIRouter, Query, Request, status
from fastapi.responses import StreamingResponse
from pydantic import BaseModel

from app.api.deps import CustomerAuth, Session
from app.core.pagination import Page, Paginated, paginate
from app.models.song import ImportResult, SongExportItem, SongImport, SongRead
from app.services import catalog

router = APIRouter(prefix="/customer", tags=["songdb"])


class SongExport(BaseModel):
    songs: list[SongExportItem]


class DeletedSongs(BaseModel):
    deleted_count: int


def _export_csv(system_id: uuid.UUID, rows: list[tuple[str, str]]) -> StreamingResponse:
    output = io.StringIO()
    writer = csv.writer(output, lineterminator="\n")
    writer.writerow(["Artist", "Title"])
    writer.writerows(rows)
    output.seek(0)
    return StreamingResponse(
        iter([output.getvalue()]),
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="songs-{system_id}.csv"'},
    )


@router.get("/songdb", response_model=Paginated[SongRead])
async def search_songs(
    auth: CustomerAuth,
    session: Session,
    page: Page,
    system_id: uuid.UUID | None = Query(default=None),
    query: str | None = Query(default=None, max_length=255),
) -> Paginated[SongRead]:
    """Substring search over artist, title and the normalized form."""
    songs, total = await catalog.search_songs(
        session, auth.customer_profile_id, system_id, query, page.limit, page.offset,
    )
    return paginate([SongRead.model_validate(s) for s in songs], total, page)


@router.get("/songdb/{song_id}", response_model=SongRead)
async def get_song(song_id: int, auth: CustomerAuth, session: Session) -> SongRead:
    song = await catalog.get_song(session, song_id, auth.customer_profile_id)
    return SongRead.model_validate(song)


@router.post("/songdb/import", response_model=ImportResult)
async def import_songs(body: SongImport, auth: CustomerAuth, session: Session) -> ImportResult:
    return await catalog.bulk_import_songs(
        session, auth.customer_profile_id, body.openkj_system_id, body.songs,
    )


@router.delete("/songdb/{song_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_song(song_id: int, auth: CustomerAuth, session: Session) -> None:
    await catalog.delete_song(session, song_id, auth.customer_profile_id)


@router.get(
    "/systems/{system_id}/songs/export",
    response_model=SongExport,
    responses={200: {"content": {"text/csv": {}}}},
)
async def export_songs(
    system_id: uuid.UUID,
    request: Request,
    auth: CustomerAuth,
    session: Session,
):
    """JSON by default; CSV when the client accepts ``text/csv``."""
    rows = await catalog.export_songs(session, auth.customer_profile_id, system_id)
    if "text/csv" in request.headers.get("accept", ""):
        return _export_csv(system_id, rows)
    return SongExport(songs=[SongExportItem(artist=a, title=t) for a, t in rows])


@router.delete("/systems/{system_id}/songs", response_model=DeletedSongs)
async def delete_system_songs(
    system_id: uuid.UUID, auth: CustomerAuth, session: Session
) -> DeletedSongs:
    deleted = await catalog.delete_system_songs(session, auth.customer_profile_id, system_id)
    return DeletedSongs(deleted_count=deleted)
