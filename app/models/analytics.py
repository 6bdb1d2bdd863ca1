"""Read-only schemas for customer analytics."""

import uuid

from pydantic import BaseModel


class OverallStats(BaseModel):
    total_venues: int
    total_systems: int
    total_songs: int
    total_requests: int
    processed_requests: int
    pending_requests: int
    unique_singers: int
    active_today: int


class SongTally(BaseModel):
    artist: str
    title: str
    request_count: int


class VenueStats(BaseModel):
    venue_id: uuid.UUID
    venue_name: str
    total_requests: int
    processed_requests: int
    unique_singers: int
    top_songs: list[SongTally]


class SystemStats(BaseModel):
    system_id: uuid.UUID
    system_name: str
    song_count: int
    recently_added: int  # entries created in the last 30 days


class TrendPoint(BaseModel):
    date: str  # YYYY-MM-DD, UTC
    requests: int
    processed: int


class SingerTally(BaseModel):
    singer_profile_id: uuid.UUID
    singer_name: str
    request_count: int
