"""Unit tests for customer segmentation and LTV"""

import math

import pytest
from agency_analytics.domain.models import CustomerRecord, CustomerSegment, ServiceTier
from agency_analytics.domain.segmentation import (
    CUSTOMER_SEGMENTS,
    MAX_EXPECTED_YEARS,
    TARGET_DISTRIBUTION,
    analyze_portfolio,
    calculate_customer_ltv,
    classify_customer,
    expected_customer_years,
    get_customer_classification,
    recommend_marketing_allocation,
)


@pytest.mark.parametrize(
    "product_count,annual_premium,expected",
    [
        (3, 3000, CustomerSegment.ELITE),
        (5, 10000, CustomerSegment.ELITE),
        (3, 2999.99, CustomerSegment.PREMIUM),
        (2, 2000, CustomerSegment.PREMIUM),
        (2, 1999, CustomerSegment.STANDARD),
        (1, 5000, CustomerSegment.STANDARD),
        (0, 800, CustomerSegment.STANDARD),
        (5, 799, CustomerSegment.LOW_VALUE),
        (0, 0, CustomerSegment.LOW_VALUE),
    ],
)
def test_classify_customer_tier_priority(product_count, annual_premium, expected):
    """Test first matching tier wins, evaluated top-down"""
    assert classify_customer(product_count, annual_premium) == expected


def test_expected_customer_years():
    """Test tenure from retention, capped for perfect retention"""
    assert expected_customer_years(0.9) == pytest.approx(-1 / math.log(0.9))
    assert expected_customer_years(1.0) == MAX_EXPECTED_YEARS


def test_ltv_increases_with_premium():
    """Test LTV is monotonic in premium within a segment"""
    low = calculate_customer_ltv(CustomerSegment.ELITE, 3000, 3)
    high = calculate_customer_ltv(CustomerSegment.ELITE, 6000, 3)

    assert high > low > 0


def test_ltv_never_negative():
    """Test servicing cost above commission clamps LTV to zero"""
    assert calculate_customer_ltv(CustomerSegment.LOW_VALUE, 500, 1) == 0
    assert calculate_customer_ltv(CustomerSegment.STANDARD, 0, 4) == 0


def test_ltv_formula():
    """Test lifetime commission minus lifetime servicing cost"""
    years = -1 / math.log(0.91)
    expected = 2400 * 0.07 * years - 50 * 2 * years

    assert calculate_customer_ltv(CustomerSegment.PREMIUM, 2400, 2) == pytest.approx(expected)


def test_ltv_high_claims_penalty():
    """Test claims history above the segment norm costs a flat $500"""
    clean = calculate_customer_ltv(CustomerSegment.PREMIUM, 2400, 2)
    # threshold for premium: 2.2 products * 0.18 frequency * 5 = 1.98 claims
    one_claim = calculate_customer_ltv(CustomerSegment.PREMIUM, 2400, 2, claims_history=[1200])
    two_claims = calculate_customer_ltv(CustomerSegment.PREMIUM, 2400, 2, claims_history=[1200, 800])

    assert one_claim == pytest.approx(clean)
    assert two_claims == pytest.approx(clean - 500)


def test_get_customer_classification():
    """Test classification carries the tier's CAC, retention and service tier"""
    classification = get_customer_classification(4, 4200)

    assert classification.segment == CustomerSegment.ELITE
    assert classification.recommended_cac == 1200
    assert classification.retention == 0.97
    assert classification.service_tier == ServiceTier.WHITE_GLOVE
    assert classification.ltv == pytest.approx(calculate_customer_ltv(CustomerSegment.ELITE, 4200, 4))


def test_analyze_portfolio(sample_customers):
    """Test portfolio aggregation across all four segments"""
    analysis = analyze_portfolio(sample_customers)

    assert analysis.total_customers == 4
    assert analysis.total_premium == pytest.approx(8300)
    assert list(analysis.segments) == [
        CustomerSegment.ELITE,
        CustomerSegment.PREMIUM,
        CustomerSegment.STANDARD,
        CustomerSegment.LOW_VALUE,
    ]
    for segment in analysis.segments.values():
        assert segment.count == 1
        assert segment.percentage_of_book == pytest.approx(25)

    assert analysis.segments[CustomerSegment.LOW_VALUE].total_ltv == 0
    assert sum(s.ltv_contribution_pct for s in analysis.segments.values()) == pytest.approx(100)


def test_analyze_portfolio_insights(sample_customers):
    """Test top tier, low-value and upgrade insights"""
    insights = analyze_portfolio(sample_customers).key_insights

    assert insights[0].startswith("Top tier (Elite + Premium) = 50% of customers but ")
    assert insights[1] == "25% of book is low-value customers - review acquisition channels"
    assert insights[2] == "Upgrading Standard -> Premium = $4,500 LTV opportunity ($4,500 per customer)"


def test_analyze_empty_portfolio():
    """Test empty book returns zeros and standard service tier"""
    analysis = analyze_portfolio([])

    assert analysis.total_customers == 0
    assert analysis.avg_ltv == 0
    for segment in analysis.segments.values():
        assert segment.count == 0
        assert segment.percentage_of_book == 0
        assert segment.service_tier == ServiceTier.STANDARD
    assert analysis.key_insights == ["Top tier (Elite + Premium) = 0% of customers but 0% of lifetime value"]


def test_analyze_portfolio_without_low_value_skips_warning():
    """Test low-value warning only appears above 20% of the book"""
    customers = [CustomerRecord(product_count=3, annual_premium=3500) for _ in range(9)]
    customers.append(CustomerRecord(product_count=1, annual_premium=300))

    insights = analyze_portfolio(customers).key_insights

    assert not any("low-value" in insight for insight in insights)


def test_marketing_allocation_buys_target_distribution():
    """Test budget split yields customers in the target mix"""
    allocation = recommend_marketing_allocation(60500)

    # weighted CAC = 0.15*1200 + 0.35*700 + 0.40*400 + 0.10*200 = 605
    assert allocation.total_expected_customers == pytest.approx(100)
    assert sum(a.recommended_budget for a in allocation.allocations.values()) == pytest.approx(60500)
    for segment, details in allocation.allocations.items():
        assert details.expected_customers == pytest.approx(TARGET_DISTRIBUTION[segment] * 100)
        assert details.recommended_cac == CUSTOMER_SEGMENTS[segment].recommended_cac

    assert allocation.total_expected_ltv == pytest.approx(783000)
    assert allocation.blended_roi == pytest.approx((783000 - 60500) / 60500 * 100)


def test_marketing_allocation_zero_budget():
    """Test zero budget returns zero ROI without dividing by zero"""
    allocation = recommend_marketing_allocation(0)

    assert allocation.blended_roi == 0
    assert all(a.roi_percent == 0 for a in allocation.allocations.values())


def test_analyze_portfolio_insight_rounds_half_up():
    """Test 1 elite in 8 customers reports 13%, not 12%"""
    customers = [CustomerRecord(product_count=3, annual_premium=3500)]
    customers += [CustomerRecord(product_count=1, annual_premium=1200) for _ in range(7)]

    insights = analyze_portfolio(customers).key_insights

    assert insights[0].startswith("Top tier (Elite + Premium) = 13% of customers")
