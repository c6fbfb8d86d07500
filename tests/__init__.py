# =============================================================================
# tests/ - Test Suite
# =============================================================================
# This package contains all tests for the Inferno Guild API:
# - test_roles.py / test_session_store.py: role resolution and sessions
# - test_discord_client.py: Discord REST calls against httpx.MockTransport
# - test_auth.py / test_middleware.py: sign-in flow, guards and page gate
# - test_member.py / test_leave.py / test_loadout.py: member self-service
# - test_admin.py / test_member_sync.py: staff endpoints and Discord sync
# - test_config.py: settings and error envelopes
#
# Run tests with: pytest
# =============================================================================
