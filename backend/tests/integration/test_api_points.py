"""Integration tests for points calculator API endpoints."""


class TestPreview:
    """Tests for POST /api/points/preview."""

    def test_preview(self, client):
        response = client.post(
            "/api/points/preview",
            json={"start_balance": "900", "end_balance": "1100", "volume": "1024"},
        )
        assert response.status_code == 200
        data = response.json()
        assert float(data["average_balance"]) == 1000
        assert data["balance_points"] == 2
        assert data["volume_points"] == 10
        assert data["total_points"] == 12

    def test_preview_with_multiplier(self, client):
        response = client.post(
            "/api/points/preview",
            json={"start_balance": 1000, "end_balance": 1000, "volume": 32768, "multiplier": 2},
        )
        data = response.json()
        assert data["multiplied_volume_points"] == 30
        assert data["total_points"] == 32

    def test_negative_rejected(self, client):
        response = client.post(
            "/api/points/preview",
            json={"start_balance": -1, "end_balance": 0, "volume": 0},
        )
        assert response.status_code == 422

    def test_zero_multiplier_rejected(self, client):
        response = client.post(
            "/api/points/preview",
            json={"start_balance": 0, "end_balance": 0, "volume": 0, "multiplier": 0},
        )
        assert response.status_code == 422


class TestPresets:
    def test_presets(self, client):
        data = client.get("/api/points/presets").json()
        assert data["balance"] == [100, 1000, 10000, 100000]
        assert data["volume"][0] == 1024
        assert data["volume"][-1] == 2097152
