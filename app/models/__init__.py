"""Import all models so SQLModel.metadata picks them up."""

from app.models.api_key import ApiKey, ApiKeyCreate, ApiKeyCreated, ApiKeyRead, ApiKeyStatus
from app.models.customer_profile import CustomerProfile, CustomerProfileRead, TenantState
from app.models.request import SongRequest, SongRequestCreate, SongRequestRead, SongRequestUpdate
from app.models.singer import (
    FavoriteSongCreate,
    FavoriteSongRead,
    FavoriteVenueCreate,
    SingerFavoriteSong,
    SingerFavoriteVenue,
    SingerProfile,
    SingerProfileRead,
    SingerProfileUpdate,
    SingerRequestHistory,
    SingerRequestHistoryRead,
)
from app.models.song import ImportResult, SongEntry, SongExportItem, SongImport, SongInput, SongRead
from app.models.system import System, SystemCreate, SystemRead, SystemUpdate
from app.models.user import AccountRole, AccountType, User, UserCreate, UserRead
from app.models.venue import PublicVenueRead, Venue, VenueCreate, VenueRead, VenueUpdate
from app.models.verification_token import VerificationToken

__all__ = [
    "AccountRole",
    "AccountType",
    "ApiKey",
    "ApiKeyCreate",
    "ApiKeyCreated",
    "ApiKeyRead",
    "ApiKeyStatus",
    "CustomerProfile",
    "CustomerProfileRead",
    "FavoriteSongCreate",
    "FavoriteSongRead",
    "FavoriteVenueCreate",
    "ImportResult",
    "PublicVenueRead",
    "SingerFavoriteSong",
    "SingerFavoriteVenue",
    "SingerProfile",
    "SingerProfileRead",
    "SingerProfileUpdate",
    "SingerRequestHistory",
    "SingerRequestHistoryRead",
    "SongEntry",
    "SongExportItem",
    "SongImport",
    "SongInput",
    "SongRead",
    "SongRequest",
    "SongRequestCreate",
    "SongRequestRead",
    "SongRequestUpdate",
    "System",
    "SystemCreate",
    "SystemRead",
    "SystemUpdate",
    "TenantState",
    "User",
    "UserCreate",
    "UserRead",
    "Venue",
    "VenueCreate",
    "VenueRead",
    "VenueUpdate",
    "VerificationToken",
]
