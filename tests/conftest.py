"""Pytest fixtures for testing"""

import pytest
from fastapi.testclient import TestClient

from agency_analytics.api.main import create_app
from agency_analytics.domain.models import CustomerRecord, LeadData, LeadOutcome


@pytest.fixture
def client() -> TestClient:
    """Create FastAPI test client"""
    return TestClient(create_app())


@pytest.fixture
def sample_customers() -> list[CustomerRecord]:
    """Small book with one customer per segment"""
    return [
        CustomerRecord(product_count=4, annual_premium=4200, customer_id="elite_1"),
        CustomerRecord(product_count=2, annual_premium=2400, customer_id="premium_1"),
        CustomerRecord(product_count=1, annual_premium=1200, customer_id="standard_1"),
        CustomerRecord(product_count=1, annual_premium=500, customer_id="low_1"),
    ]


@pytest.fixture
def strong_lead() -> LeadData:
    """Bundle-shopping homeowner from a referral"""
    return LeadData(
        lead_id="lead_strong",
        products_shopping=["auto", "home", "umbrella"],
        homeowner_status="owner",
        age_range="40-49",
        estimated_premium=4500,
        credit_tier="excellent",
        engagement_level="high",
        lead_source="referral",
    )


@pytest.fixture
def weak_lead() -> LeadData:
    """Single-product renter with poor credit from social ads"""
    return LeadData(
        lead_id="lead_weak",
        products_shopping=["renters"],
        homeowner_status="renter",
        age_range="18-24",
        estimated_premium=600,
        credit_tier="poor",
        engagement_level="low",
        lead_source="tiktok",
    )


@pytest.fixture
def vendor_outcomes() -> list[LeadOutcome]:
    """Ten leads, four converted at $5,000 LTV each"""
    converted = [LeadOutcome(lead_id=f"c_{i}", converted=True, ltv=5000) for i in range(4)]
    lost = [LeadOutcome(lead_id=f"l_{i}", converted=False) for i in range(6)]
    return converted + lost
