# =============================================================================
# API Tests — Single-File Fetch (GET /api/model/{id}, /api/analysis/{id})
# =============================================================================

from __future__ import annotations

import pytest
from bson import ObjectId

MALFORMED_IDS = [
    "not-an-id",
    "123",
    "zzzzzzzzzzzzzzzzzzzzzzzz",       # 24 chars, not hex
    "0123456789abcdef0123456",        # 23 hex chars
    "0123456789abcdef012345678",      # 25 hex chars
    "abcdefghijkl",                   # 12 chars
]


class TestGetModel:
    """GET /api/model/{id}"""

    def test_returns_projection(self, client, seed):
        doc = seed(financial_model={"ebitda": 11200, "margin": 0.23})
        response = client.get(f"/api/model/{doc['_id']}")

        assert response.status_code == 200
        assert response.json() == {
            "success": True,
            "file": {
                "_id": str(doc["_id"]),
                "csv_filename": "report.csv",
                "financial_model": {"ebitda": 11200, "margin": 0.23},
            },
        }

    def test_text_model(self, client, seed):
        doc = seed(financial_model="DCF: 12.4x EBITDA")
        body = client.get(f"/api/model/{doc['_id']}").json()
        assert body["file"]["financial_model"] == "DCF: 12.4x EBITDA"

    def test_no_model_yet(self, client, seed):
        doc = seed(status="processing")
        body = client.get(f"/api/model/{doc['_id']}").json()
        assert body["file"]["financial_model"] is None
        assert body["file"]["csv_filename"] is None

    @pytest.mark.parametrize("bad_id", MALFORMED_IDS)
    def test_malformed_id_is_400(self, client, bad_id):
        response = client.get(f"/api/model/{bad_id}")
        assert response.status_code == 400
        assert response.json() == {"error": "Invalid file ID format"}

    def test_unknown_id_is_404(self, client, seed):
        seed()
        response = client.get(f"/api/model/{ObjectId()}")
        assert response.status_code == 404
        assert response.json() == {"error": "File not found"}

    def test_malformed_id_is_400_even_when_store_down(self, failing_client):
        assert failing_client.get("/api/model/nope").status_code == 400

    def test_store_error_is_500(self, failing_client):
        response = failing_client.get(f"/api/model/{ObjectId()}")
        assert response.status_code == 500
        assert response.json() == {"error": "Internal server error"}


class TestGetAnalysis:
    """GET /api/analysis/{id} mirrors the model endpoint."""

    def test_returns_projection(self, client, seed):
        doc = seed(financial_analysis="## Liquidity\nCurrent ratio 2.1")
        response = client.get(f"/api/analysis/{doc['_id']}")

        assert response.status_code == 200
        assert response.json() == {
            "success": True,
            "file": {
                "_id": str(doc["_id"]),
                "csv_filename": "report.csv",
                "financial_analysis": "## Liquidity\nCurrent ratio 2.1",
            },
        }

    @pytest.mark.parametrize("bad_id", MALFORMED_IDS)
    def test_malformed_id_is_400(self, client, bad_id):
        response = client.get(f"/api/analysis/{bad_id}")
        assert response.status_code == 400
        assert response.json() == {"error": "Invalid file ID format"}

    def test_unknown_id_is_404(self, client):
        response = client.get(f"/api/analysis/{ObjectId()}")
        assert response.status_code == 404
        assert response.json() == {"error": "File not found"}

    def test_fetch_has_no_side_effects(self, client, seed, collection):
        doc = seed()
        before = [dict(d) for d in collection.docs]
        client.get(f"/api/analysis/{doc['_id']}")
        client.get(f"/api/model/{doc['_id']}")
        assert collection.docs == before
