# =============================================================================
# core/ - Business Logic Package
# =============================================================================
# This package contains the guild's business rules:
# - roles.py: Discord role ids -> guild number / admin / head / club
# - models/: Pydantic schemas, enums and column lists for the tables
# - services/: Members, leaves, loadouts, catalogs, notes, party plans
#   and the Discord member sync
#
# Routers call these services; the services talk to Supabase and Discord
# through lib/.
# =============================================================================
