"""
Tests for the StakePool HTTP API.

This module provides test coverage for core API functionality including:
- Health and metrics endpoints
- Authentication and caller resolution
- Stake, unstake and claim
- Account, referral, pool and event views
- Admin operations
- Error handling
"""

import json

YEAR = 365 * 24 * 3600


def post(client, path, headers, payload=None):
    return client.post(path, data=json.dumps(payload or {}), headers=headers)


class TestHealthEndpoints:
    """Tests for health check endpoints."""

    def test_health_check_returns_healthy(self, flask_client):
        """Health endpoint should return healthy status."""
        response = flask_client.get("/health")
        assert response.status_code == 200
        data = json.loads(response.data)
        assert data["status"] == "healthy"
        assert data["checks"]["pool"]["status"] == "ok"
        assert data["checks"]["storage"]["backend"] == "MemoryStorage"

    def test_health_check_includes_version(self, flask_client):
        """Health endpoint should include version info."""
        data = json.loads(flask_client.get("/health").data)
        assert "version" in data

    def test_liveness(self, flask_client):
        response = flask_client.get("/health/live")
        assert response.status_code == 200
        assert json.loads(response.data)["status"] == "alive"

    def test_readiness(self, flask_client):
        response = flask_client.get("/health/ready")
        assert response.status_code == 200
        assert json.loads(response.data)["status"] == "ready"

    def test_prometheus_metrics(self, flask_client):
        flask_client.get("/pool")
        response = flask_client.get("/metrics")
        assert response.status_code == 200
        body = response.data.decode()
        assert "stakepool_http_requests_total" in body
        assert "stakepool_staking_pool_balance" in body

    def test_json_metrics(self, flask_client):
        data = json.loads(flask_client.get("/metrics/json").data)
        assert "counters" in data
        assert "gauges" in data

    def test_request_id_echoed(self, flask_client):
        response = flask_client.get("/pool", headers={"X-Request-ID": "req-42"})
        assert response.headers["X-Request-ID"] == "req-42"


class TestAuthentication:
    """Tests for API key and caller identity checks."""

    def test_missing_api_key(self, flask_client):
        response = flask_client.post(
            "/stake",
            data=json.dumps({"amount": 100}),
            headers={"Content-Type": "application/json", "X-Account-ID": "alice"},
        )
        assert response.status_code == 401

    def test_invalid_api_key(self, flask_client):
        response = flask_client.post(
            "/stake",
            data=json.dumps({"amount": 100}),
            headers={
                "Content-Type": "application/json",
                "X-API-Key": "wrong",
                "X-Account-ID": "alice",
            },
        )
        assert response.status_code == 403

    def test_missing_caller(self, flask_client, test_auth_headers):
        response = post(flask_client, "/stake", test_auth_headers, {"amount": 100})
        assert response.status_code == 401
        assert "X-Account-ID" in json.loads(response.data)["hint"]

    def test_caller_too_long(self, flask_client, caller_headers):
        response = post(flask_client, "/stake", caller_headers("a" * 200), {"amount": 100})
        assert response.status_code == 400

    def test_reads_need_no_auth(self, flask_client):
        assert flask_client.get("/accounts/alice").status_code == 200
        assert flask_client.get("/pool").status_code == 200


class TestStakeEndpoints:
    """Tests for stake, unstake and claim."""

    def test_stake_success(self, flask_client, caller_headers):
        response = post(
            flask_client, "/stake", caller_headers("alice"), {"amount": 1000, "referrer": "bob"}
        )
        assert response.status_code == 201
        data = json.loads(response.data)
        assert data["status"] == "staked"
        assert data["staked"] == 1000
        assert data["referrer"] == "bob"

    def test_stake_missing_amount(self, flask_client, caller_headers):
        response = post(flask_client, "/stake", caller_headers("alice"), {})
        assert response.status_code == 400
        assert "amount" in json.loads(response.data)["error"]

    def test_stake_wrong_type(self, flask_client, caller_headers):
        """String and boolean amounts are rejected before reaching the engine."""
        for amount in ("1000", True, 10.5):
            response = post(flask_client, "/stake", caller_headers("alice"), {"amount": amount})
            assert response.status_code == 400

    def test_stake_zero(self, flask_client, caller_headers):
        response = post(flask_client, "/stake", caller_headers("alice"), {"amount": 0})
        assert response.status_code == 400
        assert json.loads(response.data)["error"] == "invalid_amount"

    def test_stake_transfer_failed(self, flask_client, caller_headers):
        response = post(flask_client, "/stake", caller_headers("alice"), {"amount": 50_000})
        assert response.status_code == 502
        assert json.loads(response.data)["error"] == "transfer_failed"

    def test_unstake_insufficient(self, flask_client, caller_headers):
        post(flask_client, "/stake", caller_headers("alice"), {"amount": 1000})
        response = post(flask_client, "/unstake", caller_headers("alice"), {"amount": 2000})
        assert response.status_code == 400
        data = json.loads(response.data)
        assert data["error"] == "insufficient_balance"
        assert data["details"]["staked"] == 1000

    def test_unstake_success(self, flask_client, caller_headers):
        post(flask_client, "/stake", caller_headers("alice"), {"amount": 1000})
        response = post(flask_client, "/unstake", caller_headers("alice"), {"amount": 400})
        assert response.status_code == 200
        assert json.loads(response.data)["staked"] == 600

    def test_claim_during_cooldown(self, flask_client, caller_headers, clock):
        post(flask_client, "/stake", caller_headers("alice"), {"amount": 1000})
        clock.advance(10)
        response = post(flask_client, "/claim", caller_headers("alice"))
        assert response.status_code == 429
        data = json.loads(response.data)
        assert data["error"] == "cooldown_active"
        assert data["details"]["retry_after"] == 290

    def test_claim_no_rewards(self, flask_client, caller_headers):
        response = post(flask_client, "/claim", caller_headers("nobody"))
        assert response.status_code == 409
        assert json.loads(response.data)["error"] == "no_rewards"

    def test_claim_after_a_year(self, flask_client, caller_headers, clock):
        post(flask_client, "/stake", caller_headers("alice"), {"amount": 1000, "referrer": "bob"})
        clock.advance(YEAR)

        response = post(flask_client, "/claim", caller_headers("alice"))
        assert response.status_code == 200
        data = json.loads(response.data)
        assert data["amount"] == 100
        assert data["referral_credit"] == 10

        referral = json.loads(flask_client.get("/referrals/bob").data)
        assert referral == {"referrer": "bob", "referral_rewards": 10, "referees": 1}

    def test_state_persisted_after_mutation(self, flask_client, caller_headers):
        from api.state import get_storage

        post(flask_client, "/stake", caller_headers("alice"), {"amount": 1000})
        saved = get_storage().load_state()
        assert saved["ledger"]["accounts"]["alice"]["staked"] == 1000
        assert saved["asset"]["pool_balance"] == 1_001_000


class TestViews:
    """Tests for read-only endpoints."""

    def test_account_view(self, flask_client, caller_headers, clock):
        post(flask_client, "/stake", caller_headers("alice"), {"amount": 1000})
        clock.advance(YEAR)
        data = json.loads(flask_client.get("/accounts/alice").data)
        assert data["account"] == "alice"
        assert data["staked"] == 1000
        assert data["claimable"] == 100
        assert data["can_claim"] is True

    def test_unknown_account(self, flask_client):
        data = json.loads(flask_client.get("/accounts/ghost").data)
        assert data["staked"] == 0
        assert data["referrer"] is None

    def test_pool_view(self, flask_client, caller_headers):
        post(flask_client, "/stake", caller_headers("alice"), {"amount": 1000})
        data = json.loads(flask_client.get("/pool").data)
        assert data["interest_rate"] == 10
        assert data["total_staked"] == 1000
        assert data["max_stake"] == 2**256 - 1

    def test_events_filter_and_limit(self, flask_client, caller_headers):
        for _ in range(3):
            post(flask_client, "/stake", caller_headers("alice"), {"amount": 10})
        data = json.loads(flask_client.get("/events?type=Staked&limit=2").data)
        assert data["count"] == 2
        assert all(e["event_type"] == "Staked" for e in data["events"])

    def test_events_bad_limit_uses_default(self, flask_client):
        response = flask_client.get("/events?limit=abc")
        assert response.status_code == 200


class TestAdminEndpoints:
    """Tests for admin routes."""

    def test_set_rate_non_admin(self, flask_client, caller_headers):
        response = post(flask_client, "/admin/interest-rate", caller_headers("alice"), {"rate": 30})
        assert response.status_code == 403
        assert json.loads(response.data)["error"] == "unauthorized"

    def test_set_rate_out_of_range(self, flask_client, caller_headers):
        response = post(flask_client, "/admin/interest-rate", caller_headers("admin"), {"rate": 30})
        assert response.status_code == 400
        assert json.loads(response.data)["error"] == "out_of_range"

    def test_set_rate(self, flask_client, caller_headers):
        response = post(flask_client, "/admin/interest-rate", caller_headers("admin"), {"rate": 20})
        assert response.status_code == 200
        assert json.loads(response.data) == {"status": "updated", "old_rate": 10, "new_rate": 20}

    def test_set_claim_cooldown(self, flask_client, caller_headers):
        response = post(
            flask_client, "/admin/claim-cooldown", caller_headers("admin"), {"seconds": 60}
        )
        assert response.status_code == 200
        assert json.loads(flask_client.get("/pool").data)["claim_cooldown"] == 60

    def test_set_max_stake(self, flask_client, caller_headers):
        post(flask_client, "/admin/max-stake", caller_headers("admin"), {"amount": 500})
        response = post(flask_client, "/stake", caller_headers("alice"), {"amount": 501})
        assert response.status_code == 400
        assert json.loads(response.data)["error"] == "stake_limit_exceeded"

    def test_emergency_withdraw(self, flask_client, caller_headers):
        response = post(flask_client, "/admin/emergency-withdraw", caller_headers("admin"))
        assert response.status_code == 200
        assert json.loads(response.data)["amount"] == 1_000_000

        health = json.loads(flask_client.get("/health").data)
        assert health["checks"]["pool"]["pool_balance"] == 0

    def test_emergency_withdraw_twice(self, flask_client, caller_headers):
        post(flask_client, "/admin/emergency-withdraw", caller_headers("admin"))
        response = post(flask_client, "/admin/emergency-withdraw", caller_headers("admin"))
        assert response.status_code == 409
        assert json.loads(response.data)["error"] == "nothing_to_withdraw"


class TestErrorHandling:
    """Tests for JSON error responses."""

    def test_not_found(self, flask_client):
        response = flask_client.get("/no-such-route")
        assert response.status_code == 404
        assert json.loads(response.data)["error"] == "Not found"

    def test_method_not_allowed(self, flask_client):
        response = flask_client.get("/stake")
        assert response.status_code == 405

    def test_non_json_body(self, flask_client, caller_headers):
        response = flask_client.post("/stake", data="not json", headers=caller_headers("alice"))
        assert response.status_code == 400
