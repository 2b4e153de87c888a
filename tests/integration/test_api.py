"""Integration tests for API endpoints"""

import pytest
from fastapi.testclient import TestClient

from agency_analytics.domain.cash_flow import calculate_working_capital_need


@pytest.fixture
def vendor_payload():
    """Vendor performance as returned by /v1/vendors/performance"""
    return {
        "vendor_name": "SmartFinancial",
        "total_spend": 4000,
        "leads_received": 10,
        "conversions": 4,
        "conversion_rate": 0.4,
        "avg_ltv": 5000,
        "total_revenue": 20000,
        "roi": 4.0,
        "cac": 1000,
        "ltv_cac_ratio": 5.0,
        "rating": "FAIR",
        "recommendation": "Maintain current budget",
    }


def test_health_endpoint(client: TestClient):
    """Test health check endpoint"""
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok", "service": "agency-analytics"}


def test_request_id_header(client: TestClient):
    """Test request ID is generated, or echoed when supplied"""
    response = client.get("/health")
    assert response.headers["X-Request-ID"]

    response = client.get("/health", headers={"X-Request-ID": "req-123"})
    assert response.headers["X-Request-ID"] == "req-123"


def test_metrics_endpoint(client: TestClient):
    """Test Prometheus metrics endpoint"""
    client.post("/v1/segmentation/marketing-allocation", json={"total_marketing_budget": 10000})

    response = client.get("/metrics")
    assert response.status_code == 200
    assert "agency_analysis_total" in response.text
    assert "http_request_duration_seconds" in response.text


def test_monthly_cash_flow_endpoint(client: TestClient):
    """Test monthly cash vs accrual view with default config"""
    response = client.post(
        "/v1/cash-flow/monthly",
        json={
            "current_month_revenue_accrual": 100000,
            "current_month_expenses": 5000,
            "prior_month_revenue_accrual": 90000,
            "two_months_ago_revenue": 80000,
            "current_month_cancellations_premium": 10000,
        },
    )

    assert response.status_code == 200
    data = response.json()
    assert data["cash_flow"]["cash_in_commissions"] == pytest.approx(5600)
    assert data["cash_flow"]["net_cash_flow"] == pytest.approx(-65)
    assert data["accrual_accounting"]["profit"] == pytest.approx(2000)
    assert data["comparison"]["cash_flow_warning"] is True
    assert data["comparison"]["warning_message"].startswith("CASH BURN")


def test_monthly_cash_flow_config_override(client: TestClient):
    """Test request config override changes the commission lag"""
    response = client.post(
        "/v1/cash-flow/monthly",
        json={
            "current_month_revenue_accrual": 100000,
            "current_month_expenses": 5000,
            "prior_month_revenue_accrual": 90000,
            "two_months_ago_revenue": 80000,
            "config": {"commission_payment_lag_days": 30},
        },
    )

    assert response.status_code == 200
    assert response.json()["cash_flow"]["cash_in_commissions"] == pytest.approx(6300)


def test_monthly_cash_flow_invalid_config(client: TestClient):
    """Test out-of-range override is rejected"""
    response = client.post(
        "/v1/cash-flow/monthly",
        json={
            "current_month_revenue_accrual": 100000,
            "current_month_expenses": 5000,
            "prior_month_revenue_accrual": 90000,
            "two_months_ago_revenue": 80000,
            "config": {"chargeback_recovery_rate": 1.5},
        },
    )

    assert response.status_code == 422


def test_working_capital_endpoint(client: TestClient):
    """Test API returns the same numbers as the domain function"""
    response = client.post(
        "/v1/cash-flow/working-capital",
        json={"monthly_operating_expenses": 10000, "monthly_growth_rate": 0.10},
    )

    assert response.status_code == 200
    data = response.json()
    expected = calculate_working_capital_need(10000, 0.10)
    assert data["total_working_capital_need"] == pytest.approx(expected.total_working_capital_need)
    assert data["recommendation"] == expected.recommendation


def test_projection_endpoint(client: TestClient):
    """Test 12-month projection with summary"""
    response = client.post(
        "/v1/cash-flow/projection",
        json={"starting_monthly_revenue": 100000, "monthly_growth_rate": 0.05, "monthly_expenses": 5000},
    )

    assert response.status_code == 200
    data = response.json()
    assert len(data["months"]) == 12
    assert data["summary"]["final_cumulative_cash"] == pytest.approx(data["months"][-1]["cumulative_cash"])


def test_stress_test_endpoint(client: TestClient):
    """Test stress test uses configured scenarios by default"""
    response = client.post("/v1/cash-flow/stress-test", json={"monthly_revenue": 100000, "monthly_expenses": 5000})

    assert response.status_code == 200
    assert list(response.json()["scenarios"]) == ["5%_growth", "10%_growth", "15%_growth"]

    response = client.post(
        "/v1/cash-flow/stress-test",
        json={"monthly_revenue": 100000, "monthly_expenses": 5000, "growth_scenarios": [0.2]},
    )
    assert list(response.json()["scenarios"]) == ["20%_growth"]


def test_list_segments_endpoint(client: TestClient):
    """Test segment definitions and target distribution"""
    response = client.get("/v1/segmentation/segments")

    assert response.status_code == 200
    data = response.json()
    assert list(data["segments"]) == ["elite", "premium", "standard", "low_value"]
    assert data["segments"]["elite"]["recommended_cac"] == 1200
    assert data["target_distribution"]["premium"] == 0.35


def test_classify_endpoint(client: TestClient):
    """Test single customer classification"""
    response = client.post(
        "/v1/segmentation/classify",
        json={"customer_id": "c1", "product_count": 2, "annual_premium": 2400},
    )

    assert response.status_code == 200
    data = response.json()
    assert data["customer_id"] == "c1"
    assert data["segment"] == "premium"
    assert data["service_tier"] == "standard"
    assert data["segment_details"]["name"] == "Premium"


def test_classify_rejects_negative_premium(client: TestClient):
    response = client.post("/v1/segmentation/classify", json={"product_count": 1, "annual_premium": -5})
    assert response.status_code == 422


def test_portfolio_endpoint(client: TestClient):
    """Test portfolio analysis with customers grouped by segment"""
    response = client.post(
        "/v1/segmentation/portfolio",
        json={
            "customers": [
                {"customer_id": "a", "product_count": 4, "annual_premium": 4200},
                {"customer_id": "b", "product_count": 2, "annual_premium": 2400},
                {"customer_id": "c", "product_count": 1, "annual_premium": 1200},
                {"customer_id": "d", "product_count": 1, "annual_premium": 500},
            ],
            "group_by_segment": True,
        },
    )

    assert response.status_code == 200
    data = response.json()
    assert data["total_customers"] == 4
    assert data["segments"]["low_value"]["count"] == 1
    assert len(data["key_insights"]) == 3
    assert [c["customer_id"] for c in data["customers_by_segment"]["elite"]] == ["a"]


def test_portfolio_endpoint_without_grouping(client: TestClient):
    response = client.post("/v1/segmentation/portfolio", json={"customers": []})

    assert response.status_code == 200
    assert response.json()["customers_by_segment"] is None


def test_marketing_allocation_endpoint(client: TestClient):
    response = client.post("/v1/segmentation/marketing-allocation", json={"total_marketing_budget": 60500})

    assert response.status_code == 200
    data = response.json()
    assert data["total_expected_customers"] == pytest.approx(100)
    assert set(data["allocations"]) == {"elite", "premium", "standard", "low_value"}


def test_score_lead_endpoint(client: TestClient):
    """Test single lead scoring with top factors"""
    response = client.post(
        "/v1/leads/score",
        json={
            "lead_id": "lead_1",
            "products_shopping": ["auto", "home", "umbrella"],
            "homeowner_status": "owner",
            "age_range": "40-49",
            "estimated_premium": 4500,
            "credit_tier": "excellent",
            "engagement_level": "high",
            "lead_source": "referral",
        },
    )

    assert response.status_code == 200
    data = response.json()
    assert data["score"] == pytest.approx(95.25)
    assert data["predicted_segment"] == "elite"
    assert data["expected_value"] == pytest.approx(7560)
    assert data["top_factors"][0]["factor"] == "product_intent"


def test_score_lead_requires_id(client: TestClient):
    response = client.post("/v1/leads/score", json={"products_shopping": ["auto"]})
    assert response.status_code == 422


def test_score_batch_endpoint(client: TestClient):
    """Test batch scoring summary and high-value filter"""
    response = client.post(
        "/v1/leads/score/batch",
        json={
            "leads": [
                {"lead_id": "strong", "products_shopping": ["auto", "home"], "homeowner_status": "owner",
                 "age_range": "40-49", "estimated_premium": 4000, "credit_tier": "excellent",
                 "engagement_level": "high", "lead_source": "referral"},
                {"lead_id": "bare"},
            ],
        },
    )

    assert response.status_code == 200
    data = response.json()
    assert len(data["scores"]) == 2
    assert data["summary"]["total_leads"] == 2
    assert set(data["summary"]["segment_distribution"]) == {"elite", "premium", "standard", "low_value"}
    assert data["high_value_lead_ids"] == ["strong"]


def test_vendor_performance_endpoint(client: TestClient):
    """Test vendor rating from lead outcomes"""
    leads = [{"lead_id": f"c{i}", "converted": True, "ltv": 5000} for i in range(4)]
    leads += [{"lead_id": f"l{i}", "converted": False} for i in range(6)]

    response = client.post(
        "/v1/vendors/performance",
        json={"vendor_name": "SmartFinancial", "total_spend": 4000, "leads": leads},
    )

    assert response.status_code == 200
    data = response.json()
    assert data["ltv_cac_ratio"] == pytest.approx(5)
    assert data["rating"] == "FAIR"
    assert data["recommendation"] == "Maintain current budget"


def test_budget_allocation_endpoint(client: TestClient, vendor_payload):
    """Test a lone FAIR vendor receives the FAIR band share"""
    response = client.post(
        "/v1/vendors/budget-allocation",
        json={"current_budget": 10000, "vendors": [vendor_payload]},
    )

    assert response.status_code == 200
    allocation = response.json()["allocations"][0]
    assert allocation["recommended_allocation"] == pytest.approx(2000)
    assert allocation["reasoning"] == "Fair ROI (400%) - maintain with slight reduction"


def test_blended_metrics_endpoint(client: TestClient, vendor_payload):
    response = client.post("/v1/vendors/blended-metrics", json={"vendors": [vendor_payload, vendor_payload]})

    assert response.status_code == 200
    data = response.json()
    assert data["total_spend"] == 8000
    assert data["blended_ltv_cac_ratio"] == pytest.approx(5)


def test_report_summary_from_rows(client: TestClient):
    """Test report summary from header-keyed rows"""
    response = client.post(
        "/v1/reports/summary",
        json={
            "policy_report": {
                "rows": [
                    {"Insured Name": "Ann", "Status": "Active"},
                    {"Insured Name": "Ann", "Status": "Active"},
                    {"Insured Name": "Bob", "Status": "Cancelled"},
                ]
            },
            "renewal_report": {"rows": [{"Renewal Status": "Renewed"}, {"Renewal Status": "Lapsed"}]},
        },
    )

    assert response.status_code == 200
    data = response.json()
    assert data["retention_data"]["active_policies"] == 2
    assert data["renewal_data"]["retention_rate"] == pytest.approx(0.5)
    assert data["segmentation"]["premium"] == 1
    assert data["new_business_data"] is None
    assert "Current renewal retention rate: 50.0%" in data["insights"]


def test_report_summary_from_cells(client: TestClient):
    """Test raw sheet cells are parsed after the default metadata rows"""
    cells = [["New Business Details"], ["Agency"], ["Period"]]
    cells += [["Product", "Transaction Type", "Item Count"], ["Auto", "New", 2], ["Home", "New", 1]]

    response = client.post("/v1/reports/summary", json={"new_business_report": {"cells": cells}})

    assert response.status_code == 200
    data = response.json()["new_business_data"]
    assert data["total_transactions"] == 2
    assert data["transaction_types"] == {"New": 2}
    assert data["items_per_transaction"]["average"] == pytest.approx(1.5)


def test_report_summary_numeric_category(client: TestClient):
    """Test a numeric product description is reported under a string key"""
    response = client.post(
        "/v1/reports/summary",
        json={"policy_report": {"rows": [{"Status": "Active", "Product Description": 2024, "Insured Name": "A"}]}},
    )

    assert response.status_code == 200
    data = response.json()
    assert data["retention_data"]["product_mix"] == {"2024": 1}
    assert data["segmentation"]["standard"] == 1
