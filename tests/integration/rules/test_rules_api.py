"""
Integration tests for the rules endpoints.
"""

import pytest

from tests.integration.conftest import API_PREFIX, user_headers

RULES_URL = f"{API_PREFIX}/rules"


def _keyword_rule(name="Spam filter", priority=1, action="block", keywords=None):
    return {
        "rule_type": "keyword_filter",
        "rule_name": name,
        "rule_config": {"keywords": keywords or ["spam"], "action": action},
        "priority": priority,
    }


async def _create(client, user_id, body):
    response = await client.post(RULES_URL, json=body, headers=user_headers(user_id))
    assert response.status_code == 201, response.text
    return response.json()


class TestCreateRule:
    @pytest.mark.asyncio
    async def test_create_returns_stored_rule(self, client):
        response = await client.post(
            RULES_URL, json=_keyword_rule(priority=4), headers=user_headers("alice")
        )

        assert response.status_code == 201
        data = response.json()
        assert data["user_id"] == "alice"
        assert data["created_by"] == "alice"
        assert data["priority"] == 4
        assert data["is_active"] is True
        assert response.headers["X-Request-ID"]

    @pytest.mark.asyncio
    async def test_body_user_id_is_accepted(self, client):
        body = {**_keyword_rule(), "user_id": "bob"}

        response = await client.post(RULES_URL, json=body)

        assert response.status_code == 201
        assert response.json()["user_id"] == "bob"

    @pytest.mark.asyncio
    async def test_missing_user_id_is_rejected(self, client):
        response = await client.post(RULES_URL, json=_keyword_rule())

        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_invalid_config_lists_errors(self, client):
        body = {"rule_type": "url_filter", "rule_name": "Links", "rule_config": {}}

        response = await client.post(RULES_URL, json=body, headers=user_headers("alice"))

        assert response.status_code == 400
        detail = response.json()["detail"]
        assert detail["code"] == "validation_failed"
        assert detail["errors"] == [
            "rule_config: domains or patterns are required for url_filter rule type"
        ]

    @pytest.mark.asyncio
    async def test_null_priority_defaults_to_one(self, client):
        body = {**_keyword_rule(), "priority": None}

        response = await client.post(RULES_URL, json=body, headers=user_headers("alice"))

        assert response.status_code == 201
        assert response.json()["priority"] == 1

    @pytest.mark.asyncio
    async def test_zero_keyword_threshold_rule_blocks_everything(self, client):
        body = {
            "rule_type": "keyword_filter",
            "rule_name": "Always",
            "rule_config": {"keywords": ["zzz"], "max_occurrences": 0},
        }
        created = await client.post(RULES_URL, json=body, headers=user_headers("alice"))

        response = await client.post(
            f"{RULES_URL}/evaluate", json={"message": {"text": "hello"}}, headers=user_headers("alice")
        )

        assert created.status_code == 201
        assert response.json()["final_action"] == "block"

    @pytest.mark.asyncio
    async def test_priority_out_of_range_is_rejected(self, client):
        response = await client.post(
            RULES_URL, json=_keyword_rule(priority=11), headers=user_headers("alice")
        )

        assert response.status_code == 422


class TestListRules:
    @pytest.mark.asyncio
    async def test_ordered_by_priority_then_newest(self, client):
        low = await _create(client, "alice", _keyword_rule("low", priority=1))
        high = await _create(client, "alice", _keyword_rule("high", priority=9))
        newer_low = await _create(client, "alice", _keyword_rule("newer low", priority=1))
        await _create(client, "bob", _keyword_rule("bob's", priority=10))

        response = await client.get(RULES_URL, headers=user_headers("alice"))

        assert response.status_code == 200
        data = response.json()
        assert data["count"] == 3
        assert [r["id"] for r in data["rules"]] == [high["id"], newer_low["id"], low["id"]]

    @pytest.mark.asyncio
    async def test_filters(self, client):
        await _create(client, "alice", _keyword_rule("kw", priority=2))
        await _create(
            client,
            "alice",
            {
                "rule_type": "url_filter",
                "rule_name": "urls",
                "rule_config": {"patterns": ["evil"]},
            },
        )

        by_type = await client.get(
            f"{RULES_URL}/type/url_filter", headers=user_headers("alice")
        )
        by_priority = await client.get(
            RULES_URL, params={"priority": 2}, headers=user_headers("alice")
        )

        assert [r["rule_name"] for r in by_type.json()["rules"]] == ["urls"]
        assert [r["rule_name"] for r in by_priority.json()["rules"]] == ["kw"]

    @pytest.mark.asyncio
    async def test_active_excludes_deactivated(self, client):
        keep = await _create(client, "alice", _keyword_rule("keep"))
        off = await _create(client, "alice", _keyword_rule("off"))
        await client.put(
            f"{RULES_URL}/{off['id']}", json={"is_active": False}, headers=user_headers("alice")
        )

        response = await client.get(f"{RULES_URL}/active", headers=user_headers("alice"))

        assert [r["id"] for r in response.json()["rules"]] == [keep["id"]]


class TestOwnership:
    @pytest.mark.asyncio
    async def test_other_owner_cannot_read_update_or_delete(self, client):
        rule = await _create(client, "alice", _keyword_rule())
        url = f"{RULES_URL}/{rule['id']}"

        read = await client.get(url, headers=user_headers("mallory"))
        update = await client.put(url, json={"priority": 5}, headers=user_headers("mallory"))
        delete = await client.delete(url, headers=user_headers("mallory"))

        for response in (read, update, delete):
            assert response.status_code == 404
            assert response.json()["detail"] == {
                "code": "not_found_or_denied",
                "message": "Rule not found or access denied",
            }

        still_there = await client.get(url, headers=user_headers("alice"))
        assert still_there.status_code == 200
        assert still_there.json()["priority"] == 1

    @pytest.mark.asyncio
    async def test_unknown_id_looks_the_same_as_foreign_id(self, client):
        response = await client.get(f"{RULES_URL}/does-not-exist", headers=user_headers("alice"))

        assert response.status_code == 404
        assert response.json()["detail"]["code"] == "not_found_or_denied"


class TestUpdateAndDelete:
    @pytest.mark.asyncio
    async def test_partial_update_keeps_other_fields(self, client):
        rule = await _create(client, "alice", _keyword_rule("name", priority=3))

        response = await client.put(
            f"{RULES_URL}/{rule['id']}",
            json={"rule_description": "now described"},
            headers=user_headers("alice"),
        )

        assert response.status_code == 200
        data = response.json()
        assert data["rule_description"] == "now described"
        assert data["rule_name"] == "name"
        assert data["priority"] == 3
        assert data["rule_config"] == rule["rule_config"]

    @pytest.mark.asyncio
    async def test_invalid_config_update_is_rejected(self, client):
        rule = await _create(client, "alice", _keyword_rule())

        response = await client.put(
            f"{RULES_URL}/{rule['id']}",
            json={"rule_config": {"keywords": []}},
            headers=user_headers("alice"),
        )

        assert response.status_code == 400
        fetched = await client.get(f"{RULES_URL}/{rule['id']}", headers=user_headers("alice"))
        assert fetched.json()["rule_config"]["keywords"] == ["spam"]

    @pytest.mark.asyncio
    async def test_delete_returns_removed_rule(self, client):
        rule = await _create(client, "alice", _keyword_rule("gone"))

        response = await client.delete(
            f"{RULES_URL}/{rule['id']}", headers=user_headers("alice")
        )

        assert response.status_code == 200
        assert response.json()["rule_name"] == "gone"
        missing = await client.get(f"{RULES_URL}/{rule['id']}", headers=user_headers("alice"))
        assert missing.status_code == 404


class TestBulk:
    @pytest.mark.asyncio
    async def test_bulk_update_reports_per_rule_errors(self, client):
        mine = await _create(client, "alice", _keyword_rule())
        theirs = await _create(client, "bob", _keyword_rule())

        response = await client.put(
            f"{RULES_URL}/bulk",
            json={
                "rules": [
                    {"rule_id": mine["id"], "updates": {"priority": 6}},
                    {"rule_id": theirs["id"], "updates": {"priority": 6}},
                ]
            },
            headers=user_headers("alice"),
        )

        assert response.status_code == 200
        data = response.json()
        assert [r["priority"] for r in data["updated"]] == [6]
        assert data["errors"] == [
            {
                "rule_id": theirs["id"],
                "code": "not_found_or_denied",
                "error": "Rule not found or access denied",
            }
        ]

    @pytest.mark.asyncio
    async def test_bulk_delete(self, client):
        first = await _create(client, "alice", _keyword_rule("one"))
        second = await _create(client, "alice", _keyword_rule("two"))

        response = await client.request(
            "DELETE",
            f"{RULES_URL}/bulk",
            json={"rule_ids": [first["id"], second["id"], "missing"]},
            headers=user_headers("alice"),
        )

        assert response.status_code == 200
        data = response.json()
        assert sorted(r["id"] for r in data["deleted"]) == sorted([first["id"], second["id"]])
        assert [e["rule_id"] for e in data["errors"]] == ["missing"]


class TestStatsAndExport:
    @pytest.mark.asyncio
    async def test_stats(self, client):
        await _create(client, "alice", _keyword_rule("a", priority=2))
        await _create(client, "alice", _keyword_rule("b", priority=4))

        response = await client.get(f"{RULES_URL}/stats/alice")

        assert response.status_code == 200
        assert response.json() == {
            "total_rules": 2,
            "active_rules": 2,
            "inactive_rules": 0,
            "rules_by_type": {"keyword_filter": 2},
            "rules_by_priority": {"2": 1, "4": 1},
            "average_priority": 3.0,
        }

    @pytest.mark.asyncio
    async def test_export(self, client):
        await _create(client, "alice", _keyword_rule("a"))

        response = await client.get(f"{RULES_URL}/export/alice")

        assert response.status_code == 200
        data = response.json()
        assert data["user_id"] == "alice"
        assert data["export_date"]
        assert [r["rule_name"] for r in data["rules"]] == ["a"]


class TestAuditTrail:
    @pytest.mark.asyncio
    async def test_mutations_are_audited_newest_first(self, client):
        rule = await _create(client, "alice", _keyword_rule())
        await client.put(
            f"{RULES_URL}/{rule['id']}", json={"priority": 2}, headers=user_headers("alice")
        )
        await client.delete(f"{RULES_URL}/{rule['id']}", headers=user_headers("alice"))

        response = await client.get(
            f"{RULES_URL}/audit", params={"rule_id": rule["id"]}, headers=user_headers("alice")
        )

        assert response.status_code == 200
        entries = response.json()["entries"]
        assert [e["action"] for e in entries] == ["DELETE", "UPDATE", "CREATE"]
        assert entries[1]["changes"] == {"updates": {"priority": 2}}
        assert entries[0]["changes"]["deleted_rule"]["id"] == rule["id"]

    @pytest.mark.asyncio
    async def test_failed_mutation_is_not_audited(self, client):
        await client.post(
            RULES_URL,
            json={"rule_type": "keyword_filter", "rule_name": "bad", "rule_config": {}},
            headers=user_headers("alice"),
        )

        response = await client.get(f"{RULES_URL}/audit", headers=user_headers("alice"))

        assert response.json()["count"] == 0
