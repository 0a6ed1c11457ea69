"""Expose constructed client wrappers."""

from .dynamodb import DynamoDBClient
from .sqlite_store import SQLiteStore
from .trakt_api import TraktApiClient, TraktApiError
from .trakt_auth import OAuthTokenExchangeError, TokenGrant, TraktOAuthClient

__all__ = [
    "DynamoDBClient",
    "OAuthTokenExchangeError",
    "SQLiteStore",
    "TokenGrant",
    "TraktApiClient",
    "TraktApiError",
    "TraktOAuthClient",
]
