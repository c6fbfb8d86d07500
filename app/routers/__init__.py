# =============================================================================
# app/routers/ - API Route Definitions
# =============================================================================
# This package contains FastAPI routers organized by feature:
# - health.py: Health check endpoints
# - member.py: Member self-service (profile, loadout, equipment)
# - leave.py: Leave requests of the signed-in member
# - catalog.py: Public class / ultimate skill lists and the club roster
# - admin.py: Staff dashboard endpoints
# - discord.py: Discord member lookups for staff
# - sync.py: Secret-protected Discord member sync triggers
# - pages.py: /login, /me and /admin page shells
#
# Each router is mounted in main.py with a URL prefix.
# =============================================================================

from . import health
from . import member
from . import leave
from . import catalog
from . import admin
from . import discord
from . import sync
from . import pages

__all__ = [
    "health",
    "member",
    "leave",
    "catalog",
    "admin",
    "discord",
    "sync",
    "pages",
]
