"""
Customer segmentation and LTV stratification.

Tiers (evaluated top-down, first match wins):
- Elite:     3+ products and $3,000+ premium
- Premium:   2+ products and $2,000+ premium
- Standard:  $800+ premium
- Low-value: everything else
"""

import math
from typing import Dict, List, Optional, Sequence

from agency_analytics.domain.models import (
    AllocationDetails,
    CustomerClassification,
    CustomerRecord,
    CustomerSegment,
    CustomerSegmentDefinition,
    MarketingAllocation,
    PortfolioAnalysis,
    SegmentAnalysis,
    ServiceTier,
)
from agency_analytics.utils.formatting import format_currency, format_fixed

CUSTOMER_SEGMENTS: Dict[CustomerSegment, CustomerSegmentDefinition] = {
    CustomerSegment.ELITE: CustomerSegmentDefinition(
        name="Elite",
        min_products=3,
        min_annual_premium=3000,
        avg_ltv=18000,
        avg_retention=0.97,
        avg_products=3.8,
        claims_frequency=0.12,
        recommended_cac=1200,
        service_tier=ServiceTier.WHITE_GLOVE,
        value_drivers=["bundling", "low_claims", "high_premium", "longevity"],
    ),
    CustomerSegment.PREMIUM: CustomerSegmentDefinition(
        name="Premium",
        min_products=2,
        min_annual_premium=2000,
        avg_ltv=9000,
        avg_retention=0.91,
        avg_products=2.2,
        claims_frequency=0.18,
        recommended_cac=700,
        service_tier=ServiceTier.STANDARD,
        value_drivers=["bundling", "acceptable_claims", "moderate_premium"],
    ),
    CustomerSegment.STANDARD: CustomerSegmentDefinition(
        name="Standard",
        min_products=1,
        min_annual_premium=800,
        avg_ltv=4500,
        avg_retention=0.72,
        avg_products=1.1,
        claims_frequency=0.22,
        recommended_cac=400,
        service_tier=ServiceTier.STANDARD,
        value_drivers=["volume", "cross_sell_potential"],
    ),
    CustomerSegment.LOW_VALUE: CustomerSegmentDefinition(
        name="Low-Value",
        min_products=1,
        min_annual_premium=0,
        avg_ltv=1800,
        avg_retention=0.65,
        avg_products=1.0,
        claims_frequency=0.28,
        recommended_cac=200,
        service_tier=ServiceTier.AUTOMATED,
        value_drivers=[],
    ),
}

# Priority order for classification and reporting
SEGMENT_ORDER = (
    CustomerSegment.ELITE,
    CustomerSegment.PREMIUM,
    CustomerSegment.STANDARD,
    CustomerSegment.LOW_VALUE,
)

AVG_COMMISSION_RATE = 0.07
SERVICING_COST_PER_POLICY_PER_YEAR = 50
MAX_EXPECTED_YEARS = 20
HIGH_CLAIMS_PENALTY = 500

# Share of newly acquired customers to target per segment
TARGET_DISTRIBUTION: Dict[CustomerSegment, float] = {
    CustomerSegment.ELITE: 0.15,
    CustomerSegment.PREMIUM: 0.35,
    CustomerSegment.STANDARD: 0.40,
    CustomerSegment.LOW_VALUE: 0.10,
}


def classify_customer(product_count: int, annual_premium: float) -> CustomerSegment:
    """Assign the first tier whose thresholds the customer meets"""
    elite = CUSTOMER_SEGMENTS[CustomerSegment.ELITE]
    premium = CUSTOMER_SEGMENTS[CustomerSegment.PREMIUM]
    standard = CUSTOMER_SEGMENTS[CustomerSegment.STANDARD]

    if product_count >= elite.min_products and annual_premium >= elite.min_annual_premium:
        return CustomerSegment.ELITE

    if product_count >= premium.min_products and annual_premium >= premium.min_annual_premium:
        return CustomerSegment.PREMIUM

    if annual_premium >= standard.min_annual_premium:
        return CustomerSegment.STANDARD

    return CustomerSegment.LOW_VALUE


def expected_customer_years(retention: float) -> float:
    """Expected tenure from annual retention: -1 / ln(retention), capped at 20 years for retention >= 1"""
    if retention < 1.0:
        return -1 / math.log(retention)
    return MAX_EXPECTED_YEARS


def calculate_customer_ltv(
    segment: CustomerSegment,
    actual_premium: float,
    actual_product_count: int,
    claims_history: Optional[Sequence[float]] = None,
) -> float:
    """
    Customer lifetime value in commission dollars, never negative.

    Lifetime commission minus lifetime servicing cost, less a flat penalty
    when the claims history is longer than the segment norm allows.
    """
    definition = CUSTOMER_SEGMENTS[CustomerSegment(segment)]
    expected_years = expected_customer_years(definition.avg_retention)

    lifetime_revenue = actual_premium * AVG_COMMISSION_RATE * expected_years
    servicing_cost = SERVICING_COST_PER_POLICY_PER_YEAR * actual_product_count * expected_years

    claims_cost_impact = 0
    if claims_history and len(claims_history) > definition.avg_products * definition.claims_frequency * 5:
        claims_cost_impact = HIGH_CLAIMS_PENALTY

    return max(0.0, lifetime_revenue - servicing_cost - claims_cost_impact)


def get_customer_classification(
    product_count: int,
    annual_premium: float,
    claims_history: Optional[Sequence[float]] = None,
) -> CustomerClassification:
    """Classify a customer and attach the tier's derived metrics"""
    segment = classify_customer(product_count, annual_premium)
    definition = CUSTOMER_SEGMENTS[segment]

    return CustomerClassification(
        segment=segment,
        ltv=calculate_customer_ltv(segment, annual_premium, product_count, claims_history),
        recommended_cac=definition.recommended_cac,
        retention=definition.avg_retention,
        service_tier=definition.service_tier,
    )


def analyze_portfolio(customers: Sequence[CustomerRecord]) -> PortfolioAnalysis:
    """Classify every customer and aggregate LTV and premium by segment"""
    ltvs: Dict[CustomerSegment, List[float]] = {segment: [] for segment in SEGMENT_ORDER}
    premiums: Dict[CustomerSegment, List[float]] = {segment: [] for segment in SEGMENT_ORDER}

    for customer in customers:
        segment = classify_customer(customer.product_count, customer.annual_premium)
        ltvs[segment].append(
            calculate_customer_ltv(segment, customer.annual_premium, customer.product_count, customer.claims_history)
        )
        premiums[segment].append(customer.annual_premium)

    total_customers = len(customers)
    total_ltv = sum(sum(values) for values in ltvs.values())
    total_premium = sum(sum(values) for values in premiums.values())

    segments: Dict[CustomerSegment, SegmentAnalysis] = {}
    for segment in SEGMENT_ORDER:
        definition = CUSTOMER_SEGMENTS[segment]
        count = len(ltvs[segment])
        segment_ltv = sum(ltvs[segment])
        segment_premium = sum(premiums[segment])

        segments[segment] = SegmentAnalysis(
            count=count,
            percentage_of_book=(count / total_customers) * 100 if total_customers > 0 else 0.0,
            total_ltv=segment_ltv,
            total_premium=segment_premium,
            avg_ltv=segment_ltv / count if count > 0 else 0.0,
            avg_premium=segment_premium / count if count > 0 else 0.0,
            recommended_cac=definition.recommended_cac,
            # empty segments report the standard tier
            service_tier=definition.service_tier if count > 0 else ServiceTier.STANDARD,
            ltv_contribution_pct=(segment_ltv / total_ltv) * 100 if total_ltv > 0 else 0.0,
        )

    return PortfolioAnalysis(
        total_customers=total_customers,
        total_ltv=total_ltv,
        total_premium=total_premium,
        avg_ltv=total_ltv / total_customers if total_customers > 0 else 0.0,
        avg_premium=total_premium / total_customers if total_customers > 0 else 0.0,
        segments=segments,
        key_insights=_generate_insights(segments, total_customers),
    )


def _generate_insights(segments: Dict[CustomerSegment, SegmentAnalysis], total_customers: int) -> List[str]:
    insights = []

    elite = segments[CustomerSegment.ELITE]
    premium = segments[CustomerSegment.PREMIUM]
    top_tier_pct = (elite.count + premium.count) / total_customers * 100 if total_customers > 0 else 0.0
    top_tier_ltv_pct = elite.ltv_contribution_pct + premium.ltv_contribution_pct

    insights.append(
        f"Top tier (Elite + Premium) = {format_fixed(top_tier_pct, 0)}% of customers "
        f"but {format_fixed(top_tier_ltv_pct, 0)}% of lifetime value"
    )

    low_value_pct = segments[CustomerSegment.LOW_VALUE].percentage_of_book
    if low_value_pct > 20:
        insights.append(f"{format_fixed(low_value_pct, 0)}% of book is low-value customers - review acquisition channels")

    standard_count = segments[CustomerSegment.STANDARD].count
    if standard_count > 0:
        per_customer = (
            CUSTOMER_SEGMENTS[CustomerSegment.PREMIUM].avg_ltv - CUSTOMER_SEGMENTS[CustomerSegment.STANDARD].avg_ltv
        )
        opportunity = standard_count * per_customer
        insights.append(
            f"Upgrading Standard -> Premium = {format_currency(opportunity)} LTV opportunity "
            f"({format_currency(per_customer)} per customer)"
        )

    return insights


def recommend_marketing_allocation(total_marketing_budget: float) -> MarketingAllocation:
    """
    Split a marketing budget across target segments.

    Each segment's share is proportional to target share x recommended CAC,
    so the budget buys customers in the target distribution.
    """
    total_weighted_cac = sum(
        TARGET_DISTRIBUTION[segment] * CUSTOMER_SEGMENTS[segment].recommended_cac for segment in SEGMENT_ORDER
    )

    allocations: Dict[CustomerSegment, AllocationDetails] = {}
    for segment in SEGMENT_ORDER:
        definition = CUSTOMER_SEGMENTS[segment]
        target_pct = TARGET_DISTRIBUTION[segment]

        budget = (target_pct * definition.recommended_cac / total_weighted_cac) * total_marketing_budget
        expected_customers = budget / definition.recommended_cac if definition.recommended_cac > 0 else 0.0
        expected_ltv_return = expected_customers * definition.avg_ltv
        roi = ((expected_ltv_return - budget) / budget) * 100 if budget > 0 else 0.0

        allocations[segment] = AllocationDetails(
            target_percentage=target_pct * 100,
            recommended_budget=budget,
            recommended_cac=definition.recommended_cac,
            expected_customers=expected_customers,
            expected_ltv_return=expected_ltv_return,
            roi_percent=roi,
        )

    total_expected_customers = sum(a.expected_customers for a in allocations.values())
    total_expected_ltv = sum(a.expected_ltv_return for a in allocations.values())
    blended_roi = (
        ((total_expected_ltv - total_marketing_budget) / total_marketing_budget) * 100
        if total_marketing_budget > 0
        else 0.0
    )

    return MarketingAllocation(
        total_budget=total_marketing_budget,
        allocations=allocations,
        total_expected_customers=total_expected_customers,
        total_expected_ltv=total_expected_ltv,
        blended_roi=blended_roi,
    )
