"""
Tests for the HTTP proof service.
"""

import pytest
from fastapi.testclient import TestClient

from merkle_drop.api.deps import get_airdrop, load_airdrop
from merkle_drop.main import app

from conftest import ADDR_1, ADDR_2, ADDR_3


@pytest.fixture
def client(airdrop):
    app.dependency_overrides[get_airdrop] = lambda: airdrop
    yield TestClient(app)
    app.dependency_overrides.clear()


class TestHealth:
    def test_root(self, client):
        response = client.get("/")
        assert response.status_code == 200
        assert response.json()["status"] == "running"

    def test_health(self, client):
        assert client.get("/health").json()["status"] == "healthy"


class TestProofRoutes:
    """Test proof lookups."""

    def test_root(self, client, airdrop):
        data = client.get("/proof/root").json()
        assert data == {
            "merkleroot": airdrop.root_hex,
            "leaf_count": 3,
            "leaf_encoding": "standard",
        }

    def test_proof_by_address(self, client, airdrop):
        response = client.get(f"/proof/{ADDR_3}")

        assert response.status_code == 200
        data = response.json()
        assert data["address"] == ADDR_3
        assert data["amount"] == "300"
        assert data["leaf_index"] == 2
        assert data["proof"] == airdrop.tree.get_hex_proof(2)

    def test_proof_unknown_address(self, client):
        assert client.get("/proof/0x" + "bb" * 20).status_code == 404

    def test_proof_by_index(self, client, airdrop):
        data = client.get("/proof/index/1").json()
        assert data["address"] == ADDR_2
        assert data["proof"] == airdrop.tree.get_hex_proof(1)

    @pytest.mark.parametrize("index", [3, -1])
    def test_proof_index_out_of_range(self, client, index):
        assert client.get(f"/proof/index/{index}").status_code == 404


class TestVerifyRoutes:
    """Test claim verification."""

    def test_valid_claim(self, client, airdrop):
        response = client.post("/verify/claim", json={"address": ADDR_1, "amount": "100"})

        assert response.status_code == 200
        data = response.json()
        assert data["is_valid"] is True
        assert data["leaf"] == "0x" + airdrop.tree.leaves[0].hex()
        assert data["root"] == airdrop.root_hex

    def test_wrong_amount(self, client):
        response = client.post("/verify/claim", json={"address": ADDR_1, "amount": 101})
        assert response.json()["is_valid"] is False

    def test_claim_with_foreign_root(self, client, airdrop):
        body = {
            "address": ADDR_1,
            "amount": 100,
            "proof": airdrop.tree.get_hex_proof(0),
            "root": "0x" + "00" * 32,
        }
        assert client.post("/verify/claim", json=body).json()["is_valid"] is False

    def test_invalid_address(self, client):
        response = client.post("/verify/claim", json={"address": "0x12", "amount": 1})
        assert response.status_code == 422

    def test_raw_proof(self, client, airdrop):
        proof = airdrop.tree.get_proof(2).to_dict()
        body = {"leaf": proof["leaf"], "proof": proof["proof"], "root": proof["root"]}
        assert client.post("/verify/proof", json=body).json() == {"is_valid": True}

        body["root"] = proof["leaf"]
        assert client.post("/verify/proof", json=body).json() == {"is_valid": False}


class TestTreeLoading:
    """Test the configured tree file dependency."""

    def test_serves_configured_dump(self, tmp_path, airdrop, monkeypatch):
        path = tmp_path / "tree.json"
        airdrop.dump(path)
        monkeypatch.setenv("MERKLE_DROP_TREE_FILE", str(path))
        load_airdrop.cache_clear()

        response = TestClient(app).get("/proof/root")
        assert response.json()["merkleroot"] == airdrop.root_hex

    def test_missing_dump(self, tmp_path, monkeypatch):
        monkeypatch.setenv("MERKLE_DROP_TREE_FILE", str(tmp_path / "none.json"))
        load_airdrop.cache_clear()

        assert TestClient(app).get("/proof/root").status_code == 503

    def test_dump_is_a_directory(self, tmp_path, monkeypatch):
        monkeypatch.setenv("MERKLE_DROP_TREE_FILE", str(tmp_path))
        load_airdrop.cache_clear()

        assert TestClient(app).get("/proof/root").status_code == 503

    def test_non_utf8_dump(self, tmp_path, monkeypatch):
        path = tmp_path / "tree.json"
        path.write_bytes(b'{"format": "\xff"}')
        monkeypatch.setenv("MERKLE_DROP_TREE_FILE", str(path))
        load_airdrop.cache_clear()

        assert TestClient(app).get("/proof/root").status_code == 503
