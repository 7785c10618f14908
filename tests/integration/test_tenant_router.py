"""Integration tests for operator tenant endpoints and code rotation."""


class TestTenantAuth:
    async def test_requires_api_key(self, client):
        resp = await client.get("/tenants")
        assert resp.status_code == 422

    async def test_wrong_api_key(self, client):
        resp = await client.get("/tenants", headers={"X-CondoPark-Api-Key": "wrong"})
        assert resp.status_code == 403

    async def test_resident_token_is_not_operator(self, client, create_community, signup):
        code = await create_community()
        _, headers = await signup(code, "ana@example.com", "101")
        resp = await client.get("/tenants", headers=headers)
        assert resp.status_code == 422


class TestTenantCrud:
    async def test_create_generates_code(self, client, operator_headers):
        resp = await client.post(
            "/tenants", json={"name": "Lakeview Manor Residences"}, headers=operator_headers
        )
        assert resp.status_code == 201
        data = resp.json()
        assert data["code"].startswith("lmr_")
        assert data["status"] == "active"

    async def test_create_duplicate_code(self, client, operator_headers, create_community):
        await create_community(code="lmr_x7k9p2")
        resp = await client.post(
            "/tenants", json={"name": "Other", "code": "lmr_x7k9p2"}, headers=operator_headers
        )
        assert resp.status_code == 409

    async def test_list_and_get(self, client, operator_headers, create_community):
        code = await create_community(code="lmr_x7k9p2")
        listing = await client.get("/tenants", headers=operator_headers)
        assert [t["code"] for t in listing.json()] == [code]
        resp = await client.get(f"/tenants/{code}", headers=operator_headers)
        assert resp.json()["name"] == "Lakeview Residences"

    async def test_get_unknown(self, client, operator_headers):
        resp = await client.get("/tenants/nope_123456", headers=operator_headers)
        assert resp.status_code == 404

    async def test_deactivate_locks_out_residents(self, client, operator_headers, create_community, signup):
        code = await create_community()
        _, headers = await signup(code, "ana@example.com", "101")
        resp = await client.patch(
            f"/tenants/{code}", json={"status": "inactive"}, headers=operator_headers
        )
        assert resp.json()["status"] == "inactive"
        slots = await client.get(f"/communities/{code}/slots", headers=headers)
        assert slots.status_code == 401


class TestRotation:
    async def test_dry_run(self, client, operator_headers, create_community, signup):
        code = await create_community(code="lmr_x7k9p2")
        await signup(code, "ana@example.com", "101")
        resp = await client.post(
            f"/tenants/{code}/rotate",
            json={"new_code": "lmr_newcode1", "dry_run": True},
            headers=operator_headers,
        )
        assert resp.status_code == 200
        data = resp.json()
        assert data["dry_run"] is True
        assert data["principals"] == 1
        assert data["rotated_at"] is None
        still_there = await client.get(f"/tenants/{code}", headers=operator_headers)
        assert still_there.status_code == 200

    async def test_rotation_forces_sign_in(self, client, operator_headers, create_community, signup, password):
        code = await create_community(code="lmr_x7k9p2")
        _, old_headers = await signup(code, "ana@example.com", "101")

        resp = await client.post(
            f"/tenants/{code}/rotate", json={"new_code": "lmr_newcode1"}, headers=operator_headers
        )
        assert resp.status_code == 200
        assert resp.json()["principals"] == 1

        stale = await client.get("/communities/lmr_newcode1/slots", headers=old_headers)
        assert stale.status_code == 401

        old_login = await client.post("/auth/login", json={
            "community_code": code, "email": "ana@example.com", "password": password,
        })
        assert old_login.status_code == 401

        new_login = await client.post("/auth/login", json={
            "community_code": "lmr_newcode1", "email": "ana@example.com", "password": password,
        })
        assert new_login.status_code == 200
        headers = {"Authorization": f"Bearer {new_login.json()['access_token']}"}
        fresh = await client.get("/communities/lmr_newcode1/slots", headers=headers)
        assert fresh.status_code == 200

    async def test_rotate_unknown(self, client, operator_headers):
        resp = await client.post("/tenants/nope_123456/rotate", json={}, headers=operator_headers)
        assert resp.status_code == 404
        assert resp.json()["detail"]["code"] == "UNKNOWN_CODE"

    async def test_rotate_to_used_code(self, client, operator_headers, create_community):
        code = await create_community(code="lmr_x7k9p2")
        await create_community("Oak Park", code="oak_abc123")
        resp = await client.post(
            f"/tenants/{code}/rotate", json={"new_code": "oak_abc123"}, headers=operator_headers
        )
        assert resp.status_code == 409
