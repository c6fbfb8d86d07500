# =============================================================================
# tests/test_admin.py - Admin Dashboard Tests
# =============================================================================
# This module contains tests for:
# - Roster listing and guild scoping (admins vs heads)
# - Member detail drawer
# - Party assignment, colors and remarks
# - Guild notes, club endpoints and party plans
# - Catalog maintenance (ultimate skills, skill stones)
# =============================================================================

import pytest

from app.exceptions import BadRequestError
from core.models.member import WarTime
from core.services.member_service import MemberService


@pytest.fixture
def roster(db):
    """Two guild-1 members (one inactive), one each in guild 2 and 3."""
    db.seed("class", {"id": 1, "name": "Blade", "icon_url": "blade.png"})
    db.seed(
        "member",
        {"id": 1, "name": "Ember", "guild": 1, "class_id": 1, "power": 100, "status": "active", "discord_user_id": "111"},
        {"id": 2, "name": "Ash", "guild": 1, "class_id": 0, "power": 50, "status": "inactive", "discord_user_id": "112"},
        {"id": 3, "name": "Tide", "guild": 2, "class_id": 0, "power": 80, "status": None, "discord_user_id": "113"},
        {"id": 4, "name": "Stone", "guild": 3, "class_id": 0, "power": 70, "status": "active", "discord_user_id": "114"},
    )
    db.seed("member_ultimate_skill", {"member_id": 1, "ultimate_skill_id": 3}, {"member_id": 1, "ultimate_skill_id": 1})
    db.seed("leave", {"id": 1, "member_id": 3, "date_time": "2025-01-20", "status": "Active"})


def _member(db, member_id: int) -> dict:
    return next(r for r in db.rows("member") if r["id"] == member_id)


# =============================================================================
# Roster Tests
# =============================================================================

class TestRoster:
    """Test GET /api/admin/members."""

    def test_admin_sees_all_active(self, client, login, roster, admin_user):
        login(admin_user)

        body = client.get("/api/admin/members").json()

        assert [m["id"] for m in body["members"]] == [1, 3, 4]
        assert body["members"][0]["class"] == {"id": 1, "name": "Blade", "icon_url": "blade.png"}
        assert body["members"][0]["ultimate_skill_ids"] == [1, 3]
        assert body["members"][1]["ultimate_skill_ids"] == []
        assert [l["member_id"] for l in body["leaves"]] == [3]

    def test_admin_picks_guild(self, client, login, roster, admin_user):
        login(admin_user)

        body = client.get("/api/admin/members", params={"guild": "3"}).json()

        assert [m["id"] for m in body["members"]] == [4]

    def test_head_locked_to_own_guild(self, client, login, roster, head_user):
        login(head_user)

        body = client.get("/api/admin/members", params={"guild": "1"}).json()

        assert [m["id"] for m in body["members"]] == [3]


class TestMemberDetail:
    """Test GET /api/admin/members/{id}/detail."""

    def test_detail(self, client, login, db, roster, admin_user):
        db.seed("ultimate_skill", {"id": 1, "name": "Inferno", "ultimate_skill_url": "u1"})
        db.seed("member_equipment", {"id": 5, "member_id": 1, "element": {"gold": 1}, "image": "a.png"})
        db.seed("equipment_create", {"id": 9, "name": "Flame", "image_url": None, "type": "2"})
        db.seed("member_equipment_create", {"id": 20, "member_id": 1, "equipment_create_id": 9, "color": "red"})
        login(admin_user)

        body = client.get("/api/admin/members/1/detail").json()

        assert body["member"]["name"] == "Ember"
        assert body["ultimate_skills"] == [{"id": 1, "name": "Inferno", "ultimate_skill_url": "u1"}]
        assert body["equipment_sets"][0]["image"] == "a.png"
        assert body["equipment_sets"][0]["image_2"] is None
        assert body["skill_stones"][0]["equipment_create"] == {
            "id": 9, "name": "Flame", "image_url": None, "type": 2,
        }

    def test_invalid_id(self, client, login, admin_user):
        login(admin_user)

        response = client.get("/api/admin/members/abc/detail")

        assert response.status_code == 400
        assert response.json()["error"] == "invalid_member_id"

    def test_not_found(self, client, login, admin_user):
        login(admin_user)

        response = client.get("/api/admin/members/77/detail")

        assert response.status_code == 404
        assert response.json()["error"] == "member_not_found"

    def test_heads_forbidden(self, client, login, roster, head_user):
        login(head_user)

        assert client.get("/api/admin/members/1/detail").status_code == 403


# =============================================================================
# Party Assignment Tests
# =============================================================================

class TestWarTime:
    """Test WarTime parsing."""

    @pytest.mark.parametrize("raw, expected", [
        ("20:00", WarTime.FIRST),
        ("20:30", WarTime.SECOND),
        ("20.30", WarTime.SECOND),
        (None, WarTime.FIRST),
        ("21:00", WarTime.FIRST),
    ])
    def test_parse(self, raw, expected):
        assert WarTime.parse(raw) is expected

    def test_columns(self):
        assert WarTime.SECOND.party_column == "party_2"
        assert WarTime.SECOND.position_column == "pos_party_2"


class TestAssignParty:
    """Test MemberService.assign_party."""

    def test_second_round_columns(self, db, roster):
        result = MemberService.assign_party({
            "guild": 1,
            "warTime": "20.30",
            "rows": [
                {"memberId": 1, "party": 2, "pos": 1},
                {"id": "4", "party": None},
                {"memberId": "x", "party": 1},
            ],
        })

        assert result == {"updated": 2, "warTime": "20:30"}
        assert _member(db, 1)["party_2"] == 2
        assert _member(db, 1)["pos_party_2"] == 1
        assert "party" not in _member(db, 1)
        assert _member(db, 4)["party_2"] is None
        assert "pos_party_2" not in _member(db, 4)

    def test_rows_without_pos_keep_position(self, db, roster):
        _member(db, 1)["pos_party"] = 3

        MemberService.assign_party({"guild": 1, "assignments": [{"memberId": 1, "party": 5}]})

        assert _member(db, 1)["party"] == 5
        assert _member(db, 1)["pos_party"] == 3

    def test_batches_by_key_set(self, db, roster):
        db.calls.clear()

        MemberService.assign_party({
            "guild": 1,
            "rows": [{"memberId": 1, "party": 1, "pos": 1}, {"memberId": 3, "party": 2}],
        })

        assert db.calls.count(("member", "upsert")) == 2

    def test_guild_required(self):
        with pytest.raises(BadRequestError) as exc_info:
            MemberService.assign_party({"rows": []})

        assert exc_info.value.code == "GUILD_REQUIRED"

    def test_endpoint_admin_only(self, client, login, roster, admin_user, head_user):
        login(head_user)
        assert client.post("/api/admin/members/assign-party", json={"guild": 2}).status_code == 403

        login(admin_user)
        response = client.post("/api/admin/members/assign-party", json={"guild": 1, "rows": []})
        assert response.json() == {"ok": True, "updated": 0, "warTime": "20:00"}


class TestColorsAndRemarks:
    """Test set-color and set-remark."""

    def test_colors_list(self, client, login, db, roster, admin_user):
        login(admin_user)

        response = client.post("/api/admin/members/set-color", json={
            "guild": 1,
            "colors": [{"memberId": 1, "color": "#ff0000"}, {"memberId": 3, "color": None}],
        })

        assert response.json() == {"ok": True, "updated": 2}
        assert _member(db, 1)["color"] == "#ff0000"
        # member 3 is in guild 2, so the guild-1 update never touches it
        assert "color" not in _member(db, 3)

    def test_head_writes_only_own_guild(self, client, login, db, roster, head_user):
        login(head_user)

        client.post("/api/admin/members/set-color", json={"guild": 1, "memberIds": [1, 3], "color": "#00ff00"})

        assert "color" not in _member(db, 1)
        assert _member(db, 3)["color"] == "#00ff00"

    @pytest.mark.parametrize("body, error", [
        ({"guild": 1, "colors": [{"memberId": 1, "color": "red"}]}, "invalid_colors"),
        ({"guild": 1, "memberIds": [1], "color": "#12345"}, "invalid_color"),
        ({"guild": 1, "something": True}, "invalid_payload"),
        ({"memberIds": [1], "color": None}, "guild_required"),
    ])
    def test_color_errors(self, client, login, roster, admin_user, body, error):
        login(admin_user)

        response = client.post("/api/admin/members/set-color", json=body)

        assert response.status_code == 400
        assert response.json()["error"] == error

    def test_remarks(self, client, login, db, roster, admin_user):
        login(admin_user)

        response = client.post("/api/admin/members/set-remark", json={
            "guild": "1",
            "remarks": [{"memberId": 1, "remark": "  late  "}, {"memberId": 2, "remark": "   "}],
        })

        assert response.json()["updated"] == 2
        assert _member(db, 1)["remark"] == "late"
        assert _member(db, 2)["remark"] is None

    def test_remark_legacy_shape(self, db, roster):
        assert MemberService.set_remarks(1, {"memberIds": [1, "2", "bad"], "remark": "ok"}) == 2
        assert _member(db, 2)["remark"] == "ok"


# =============================================================================
# Note Tests
# =============================================================================

class TestNotes:
    """Test /api/admin/note."""

    def test_first_read_creates_empty_note(self, client, login, db, head_user):
        login(head_user)

        response = client.get("/api/admin/note", params={"guild": "1"})

        data = response.json()["data"]
        assert data["guild"] == 2
        assert data["note"] == ""
        assert len(db.rows("note")) == 1

    def test_save_and_read(self, client, login, db, admin_user):
        login(admin_user)

        client.post("/api/admin/note", json={"guild": 3, "note": "Bring potions"})
        client.post("/api/admin/note", json={"guild": 3, "note": "Bring more potions"})
        response = client.get("/api/admin/note", params={"guild": "3"})

        assert response.json()["data"]["note"] == "Bring more potions"
        assert len(db.rows("note")) == 1


# =============================================================================
# Club Tests
# =============================================================================

class TestClub:
    """Test club roster and party plans."""

    def test_club_roster(self, client, login, db, head_user):
        db.seed(
            "member",
            {"id": 1, "name": "A", "power": 10, "club": True, "guild": 1},
            {"id": 2, "name": "B", "power": 20, "club": False, "guild": 2},
        )
        db.seed("member_ultimate_skill", {"member_id": 1, "ultimate_skill_id": 2})
        login(head_user)

        members = client.get("/api/admin/club-roster").json()["members"]

        assert [(m["id"], m["ultimate_skill_ids"]) for m in members] == [(1, [2])]

    def test_create_list_delete_plan(self, client, login, db, head_user):
        login(head_user)

        created = client.post("/api/admin/club-party-plans", json={
            "opponent_name": " Frost ",
            "match_date": "2025-02-01",
            "parties": [{"name": "P1", "members": [1, 2]}],
        })
        plan_id = created.json()["id"]
        listed = client.get("/api/admin/club-party-plans").json()
        deleted = client.delete(f"/api/admin/club-party-plans/{plan_id}")

        assert listed["total"] == 1
        assert listed["items"][0]["our_name"] == "Inferno"
        assert listed["items"][0]["opponent_name"] == "Frost"
        assert db.rows("club_party_plan") == []
        assert deleted.json() == {"ok": True, "id": str(plan_id), "deletedCount": 1}

    def test_pagination(self, client, login, db, admin_user):
        db.seed("club_party_plan", *[{"opponent_name": f"T{i}", "match_date": "2025-01-01", "parties": []} for i in range(5)])
        login(admin_user)

        body = client.get("/api/admin/club-party-plans", params={"page": 2, "pageSize": 2}).json()

        assert body["total"] == 5
        assert body["page"] == 2
        assert body["pageSize"] == 2
        assert [p["opponent_name"] for p in body["items"]] == ["T2", "T1"]

    def test_page_size_capped(self, client, login, admin_user):
        login(admin_user)

        assert client.get("/api/admin/club-party-plans", params={"pageSize": 500}).json()["pageSize"] == 50

    @pytest.mark.parametrize("body, error", [
        ({"match_date": "2025-02-01", "parties": []}, "opponent_name_required"),
        ({"opponent_name": "Frost", "parties": []}, "match_date_required"),
        ({"opponent_name": "Frost", "match_date": "2025-02-01", "parties": {}}, "parties_must_be_array"),
    ])
    def test_plan_validation(self, client, login, admin_user, body, error):
        login(admin_user)

        response = client.post("/api/admin/club-party-plans", json=body)

        assert response.status_code == 400
        assert response.json()["error"] == error

    def test_delete_missing_plan(self, client, login, admin_user):
        login(admin_user)

        response = client.delete("/api/admin/club-party-plans/999")

        assert response.status_code == 404
        assert response.json()["error"] == "plan_not_found"


# =============================================================================
# Catalog Maintenance Tests
# =============================================================================

class TestCatalogMaintenance:
    """Test /api/admin/ultimate-skills and /api/admin/skill-stones."""

    def test_ultimate_skill_crud(self, client, login, db, head_user):
        login(head_user)

        created = client.post("/api/admin/ultimate-skills", json={"name": " Inferno ", "ultimate_skill_url": "u"})
        skill_id = created.json()["row"]["id"]
        updated = client.put("/api/admin/ultimate-skills", json={"id": skill_id, "name": "Blaze"})
        listed = client.get("/api/admin/ultimate-skills").json()["skills"]

        assert created.json()["row"]["name"] == "Inferno"
        assert updated.json()["row"]["name"] == "Blaze"
        assert updated.json()["row"]["ultimate_skill_url"] == "u"
        assert listed[0]["name"] == "Blaze"

    def test_ultimate_skill_errors(self, client, login, admin_user):
        login(admin_user)

        assert client.post("/api/admin/ultimate-skills", json={"name": " "}).json()["error"] == "name_required"
        assert client.put("/api/admin/ultimate-skills", json={"name": "x"}).json()["error"] == "invalid_id"

    def test_skill_stones_admin_only(self, client, login, head_user):
        login(head_user)

        assert client.get("/api/admin/skill-stones").status_code == 403

    def test_skill_stone_crud(self, client, login, db, admin_user):
        login(admin_user)

        created = client.post("/api/admin/skill-stones", json={"name": "Flame", "type": "3", "image_url": "  "})
        row = created.json()["row"]
        client.put("/api/admin/skill-stones", json={"id": row["id"], "name": "Flame II", "type": 4})
        listed = client.get("/api/admin/skill-stones").json()["skill_stones"]

        assert row["type"] == 3
        assert row["image_url"] is None
        assert listed == [{"id": row["id"], "name": "Flame II", "image_url": None, "type": 4}]

    def test_skill_stone_invalid_type(self, client, login, admin_user):
        login(admin_user)

        response = client.post("/api/admin/skill-stones", json={"name": "Flame", "type": 7})

        assert response.status_code == 400
        assert response.json()["error"] == "invalid_type"
