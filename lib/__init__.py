# =============================================================================
# lib/ - Standalone Utility Modules
# =============================================================================
# This package contains the clients the services build on:
# - supabase_client.py: Supabase singleton and query helpers
# - session_store.py: Redis-backed login sessions
# - discord_client.py: Discord OAuth2 and bot REST calls
# - utils.py: Shared utilities (error base class, id normalization)
# =============================================================================

from lib.supabase_client import SupabaseClient, SupabaseClientError
from lib.session_store import SessionStore, SessionUser
from lib.discord_client import DiscordApiError, DiscordClient
from lib.utils import ApplicationError, normalize_ids, normalize_snowflake

__all__ = [
    # Supabase
    "SupabaseClient",
    "SupabaseClientError",
    # Sessions
    "SessionStore",
    "SessionUser",
    # Discord
    "DiscordClient",
    "DiscordApiError",
    # Utils
    "ApplicationError",
    "normalize_ids",
    "normalize_snowflake",
]
