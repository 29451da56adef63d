"""Wallet binding and wallet lookups: /api/user/*."""

WALLET = "0x" + "1" * 64
OTHER = "0x" + "2" * 64
REAL = "0x" + "7" * 64


class TestWallet:
    async def test_bind_virtual_wallet(self, client, make_user, db_session):
        user, headers = await make_user()
        response = await client.post("/api/user/wallet", json={"walletAddress": "0x1"}, headers=headers)

        assert response.status_code == 200
        assert response.json()["walletAddress"] == "0x" + "0" * 63 + "1"
        assert response.json()["previousAddress"] is None
        await db_session.refresh(user)
        assert user.sui_wallet_address == "0x" + "0" * 63 + "1"

    async def test_invalid_address(self, client, make_user):
        _, headers = await make_user()
        response = await client.post("/api/user/wallet", json={"walletAddress": "0xnothex"}, headers=headers)
        assert response.status_code == 400
        assert response.json()["fields"] == ["walletAddress"]

    async def test_conflict(self, client, make_user):
        await make_user(sui_wallet_address=WALLET)
        _, headers = await make_user()
        response = await client.post("/api/user/wallet", json={"walletAddress": WALLET}, headers=headers)
        assert response.status_code == 409


class TestProfilesByWallets:
    async def test_lookup_matches_both_wallet_columns(self, client, make_user):
        await make_user(sui_wallet_address=WALLET, username="ada", first_name="Ada")
        await make_user(real_wallet_address=REAL, username="grace", avatar="https://img/g.png")
        response = await client.post(
            "/api/user/profiles-by-wallets",
            json={"walletAddresses": [REAL, OTHER, WALLET]},
        )

        assert response.status_code == 200
        data = response.json()
        assert [p["walletAddress"] for p in data] == [REAL, WALLET]
        assert data[0]["username"] == "grace"
        assert data[0]["avatar"] == "https://img/g.png"
        assert data[1]["firstName"] == "Ada"

    async def test_empty_list(self, client):
        response = await client.post("/api/user/profiles-by-wallets", json={"walletAddresses": []})
        assert response.status_code == 400

    async def test_not_a_list(self, client):
        response = await client.post("/api/user/profiles-by-wallets", json={"walletAddresses": WALLET})
        assert response.status_code == 400

    async def test_malformed_address(self, client):
        response = await client.post("/api/user/profiles-by-wallets", json={"walletAddresses": ["nope"]})
        assert response.status_code == 400
        assert response.json()["fields"] == ["walletAddresses"]
