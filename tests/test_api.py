"""
Tests for the calculation API endpoints.
"""

import pytest
from fastapi.testclient import TestClient

from mna_analyzer.config import Settings, get_settings
from mna_analyzer.main import app


@pytest.fixture
def client():
    """Create test client."""
    return TestClient(app)


@pytest.fixture
def analysis_payload():
    return {
        "historical": [
            {"year": 2023, "gross_revenue": 1700, "ebitda": 450},
            {"year": 2024, "gross_revenue": 1900, "ebitda": 500},
        ],
        "projected": [
            {"year": 2025, "ebitda": 550},
            {"year": 2026, "ebitda": 600},
            {"year": 2027, "ebitda": 650},
            {"year": 2028, "ebitda": 700},
        ],
        "multiple_paid": 6,
        "exit_multiple": 6,
        "debt_percent": 50,
        "interest_rate": 8,
        "term_years": 5,
        "discount_rate": 10,
    }


class TestHealth:
    def test_health_check(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"


class TestCalculationEndpoints:
    """Test single-calculation endpoints."""

    def test_valuation(self, client):
        response = client.post(
            "/api/calculate/valuation", json={"ebitda": 1000, "multiple": 5}
        )
        assert response.status_code == 200
        assert response.json()["valuation"] == 5000

    def test_valuation_invalid_input(self, client):
        response = client.post(
            "/api/calculate/valuation", json={"ebitda": -5, "multiple": 3}
        )
        assert response.status_code == 400
        body = response.json()
        assert body["kind"] == "InvalidInput"
        assert body["field"] == "EBITDA"

    def test_debt_service(self, client):
        response = client.post(
            "/api/calculate/debt-service",
            json={"principal": 1000, "annual_rate": 10, "term_years": 5},
        )
        assert response.status_code == 200
        data = response.json()
        assert len(data["yearly_payments"]) == 5
        assert data["yearly_payments"][0] == pytest.approx(254.97, abs=0.01)
        assert len(data["schedule"]) == 5
        assert data["schedule"][-1]["remaining_balance"] == 0

    def test_debt_service_without_schedule(self, client):
        response = client.post(
            "/api/calculate/debt-service",
            json={"principal": 1000, "annual_rate": 0, "term_years": 4, "include_schedule": False},
        )
        data = response.json()
        assert data["yearly_payments"] == [250.0] * 4
        assert data["schedule"] is None

    def test_debt_service_rate_out_of_range(self, client):
        response = client.post(
            "/api/calculate/debt-service",
            json={"principal": 100, "annual_rate": 150, "term_years": 5},
        )
        assert response.status_code == 400
        assert response.json()["kind"] == "InvalidInput"

    @pytest.mark.parametrize("method", ["newton", "bisection"])
    def test_irr(self, client, method):
        response = client.post(
            "/api/calculate/irr", json={"cash_flows": [-100, 110], "method": method}
        )
        assert response.status_code == 200
        assert response.json()["irr"] == pytest.approx(10.0, abs=0.01)

    def test_irr_non_convergent(self, client):
        response = client.post("/api/calculate/irr", json={"cash_flows": [-100]})
        assert response.status_code == 422
        assert response.json()["kind"] == "IRRNonConvergent"

    def test_irr_empty(self, client):
        response = client.post("/api/calculate/irr", json={"cash_flows": []})
        assert response.status_code == 400

    def test_npv(self, client):
        response = client.post(
            "/api/calculate/npv",
            json={"cash_flows": [-100, 50, 50, 50], "discount_rate": 10},
        )
        assert response.json()["npv"] == 24.34

    def test_moic(self, client):
        response = client.post(
            "/api/calculate/moic", json={"total_return": 250, "initial_investment": 100}
        )
        assert response.json()["moic"] == 2.5

    def test_payback(self, client):
        response = client.post("/api/calculate/payback", json={"cash_flows": [-100, 20, 20]})
        data = response.json()
        assert data["is_achieved"] is False
        assert data["remaining_balance"] == 60


class TestAnalysisEndpoint:
    """Test the full deal analysis endpoint."""

    def test_analysis(self, client, analysis_payload):
        response = client.post("/api/calculate/analysis", json=analysis_payload)
        assert response.status_code == 200
        data = response.json()
        assert data["valuation"] == 3000
        assert data["debt_component"] == 1500
        assert len(data["cash_flows"]) == 5
        assert data["return_metrics"]["irr"] > 0
        assert data["risk_metrics"]["debt_to_ebitda"] == 3.0
        assert data["recommendation"] in {
            "Strong Buy",
            "Buy with Conditions",
            "Restructure Deal",
            "Pass",
        }

    def test_analysis_without_history(self, client, analysis_payload):
        analysis_payload["historical"] = []
        response = client.post("/api/calculate/analysis", json=analysis_payload)
        assert response.status_code == 400
        assert response.json()["field"] == "historical"

    def test_analysis_with_schedule(self, client, analysis_payload):
        analysis_payload["acquisition_schedule"] = [
            {"date": "2026-01-01", "percentage": 30},
            {"date": "2025-01-01", "percentage": 70},
        ]
        response = client.post("/api/calculate/analysis", json=analysis_payload)
        assert response.status_code == 200
        data = response.json()
        assert data["acquisition_schedule"][0] == {"date": "2025-01-01", "percentage": 70}
        assert data["ebitda_growth"] == 27.27
        assert len(data["value_creation"]) == 4

    def test_analysis_schedule_short_of_100(self, client, analysis_payload):
        analysis_payload["acquisition_schedule"] = [
            {"date": "2025-01-01", "percentage": 90},
        ]
        response = client.post("/api/calculate/analysis", json=analysis_payload)
        assert response.status_code == 400
        assert response.json()["field"] == "acquisition_schedule"


class TestSettings:
    def test_defaults(self):
        settings = Settings()
        assert settings.app_name == "M&A Deal Analyzer"
        assert settings.calculation_debug is False

    def test_env_override(self, monkeypatch):
        monkeypatch.setenv("CALCULATION_DEBUG", "true")
        monkeypatch.setenv("LOG_LEVEL", "DEBUG")
        settings = Settings()
        assert settings.calculation_debug is True
        assert settings.log_level == "DEBUG"

    def test_settings_cached(self):
        assert get_settings() is get_settings()
