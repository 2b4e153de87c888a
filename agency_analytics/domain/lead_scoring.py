"""
Lead scoring and vendor ROI model.

- Score inbound leads 0-100 on how likely they are to become Elite/Premium customers
- Rate lead vendors on LTV:CAC (target > 3.0, ideal > 8.0)
- Reallocate marketing budget from underperforming vendors to efficient ones
"""

from enum import Enum
from typing import Dict, List, Mapping, Optional, Sequence, Tuple, Type

from agency_analytics.domain.models import (
    AgeRange,
    BlendedMetrics,
    BudgetAllocation,
    CreditTier,
    EngagementLevel,
    HomeownerStatus,
    LeadData,
    LeadOutcome,
    LeadPortfolioSummary,
    LeadQualityTier,
    LeadScore,
    LeadSource,
    SegmentShare,
    TopFactor,
    VendorPerformance,
    VendorRating,
)
from agency_analytics.utils.formatting import round_half_up
from agency_analytics.utils.statistics import group_by, mean

# Factor weights, sum to 1.0
SCORING_WEIGHTS: Dict[str, float] = {
    "product_intent": 0.25,
    "bundle_potential": 0.20,
    "premium_range": 0.15,
    "demographics": 0.15,
    "engagement": 0.10,
    "credit_tier": 0.10,
    "source_quality": 0.05,
}

# Keyed by the sorted, comma-joined product list
PRODUCT_INTENT_SCORES: Dict[str, float] = {
    "auto": 50,
    "home": 55,
    "auto,home": 85,
    "auto,umbrella": 75,
    "home,umbrella": 80,
    "auto,home,umbrella": 95,
    "life": 45,
    "motorcycle": 40,
    "renters": 35,
}
DEFAULT_PRODUCT_INTENT_SCORE = 50

HOMEOWNER_MULTIPLIER: Dict[HomeownerStatus, float] = {
    HomeownerStatus.OWNER: 1.3,
    HomeownerStatus.RENTER: 0.9,
    HomeownerStatus.UNKNOWN: 1.0,
}
DEFAULT_HOMEOWNER_MULTIPLIER = 1.0

AGE_SCORES: Dict[AgeRange, float] = {
    AgeRange.AGE_18_24: 40,
    AgeRange.AGE_25_29: 65,
    AgeRange.AGE_30_39: 85,
    AgeRange.AGE_40_49: 90,
    AgeRange.AGE_50_59: 85,
    AgeRange.AGE_60_69: 75,
    AgeRange.AGE_70_PLUS: 60,
}
DEFAULT_AGE_SCORE = 70

CREDIT_SCORES: Dict[CreditTier, float] = {
    CreditTier.EXCELLENT: 95,
    CreditTier.GOOD: 80,
    CreditTier.FAIR: 60,
    CreditTier.POOR: 35,
    CreditTier.UNKNOWN: 70,
}
DEFAULT_CREDIT_SCORE = 70

ENGAGEMENT_SCORES: Dict[EngagementLevel, float] = {
    EngagementLevel.HIGH: 90,
    EngagementLevel.MEDIUM: 70,
    EngagementLevel.LOW: 40,
}
DEFAULT_ENGAGEMENT_SCORE = 70

SOURCE_QUALITY_SCORES: Dict[LeadSource, float] = {
    LeadSource.REFERRAL: 95,
    LeadSource.ORGANIC: 85,
    LeadSource.SMARTFINANCIAL: 75,
    LeadSource.GOOGLE_SEARCH: 75,
    LeadSource.FACEBOOK: 60,
    LeadSource.TIKTOK: 60,
}
DEFAULT_SOURCE_QUALITY_SCORE = 70

SEGMENT_LTV: Dict[LeadQualityTier, float] = {
    LeadQualityTier.ELITE: 18000,
    LeadQualityTier.PREMIUM: 9000,
    LeadQualityTier.STANDARD: 4500,
    LeadQualityTier.LOW_VALUE: 1800,
}

SEGMENT_CAC: Dict[LeadQualityTier, float] = {
    LeadQualityTier.ELITE: 1200,
    LeadQualityTier.PREMIUM: 700,
    LeadQualityTier.STANDARD: 400,
    LeadQualityTier.LOW_VALUE: 200,
}

SEGMENT_CONVERSION_RATES: Dict[LeadQualityTier, float] = {
    LeadQualityTier.ELITE: 0.42,
    LeadQualityTier.PREMIUM: 0.28,
    LeadQualityTier.STANDARD: 0.12,
    LeadQualityTier.LOW_VALUE: 0.04,
}

# (minimum LTV:CAC, rating, recommendation), checked top-down
VENDOR_RATING_BANDS: Tuple[Tuple[float, VendorRating, str], ...] = (
    (10, VendorRating.EXCELLENT, "Increase budget by 25-50%"),
    (6, VendorRating.GOOD, "Increase budget by 10-25%"),
    (3, VendorRating.FAIR, "Maintain current budget"),
    (2, VendorRating.POOR, "Reduce budget by 25-50%"),
)
UNDERPERFORMING_RECOMMENDATION = "Consider eliminating this vendor"

# Share of the total budget each rating band receives, split evenly within the band
BUDGET_BAND_SHARES: Dict[VendorRating, float] = {
    VendorRating.EXCELLENT: 0.40,
    VendorRating.GOOD: 0.35,
    VendorRating.FAIR: 0.20,
    VendorRating.POOR: 0.05,
    VendorRating.UNDERPERFORMING: 0.0,
}

HIGH_VALUE_LEAD_THRESHOLD = 70


def _lookup(table: Mapping[Enum, float], enum_cls: Type[Enum], value, default: float) -> float:
    """Enum-keyed table lookup; unknown or missing values get the default"""
    try:
        return table[enum_cls(value)]
    except (ValueError, KeyError):
        return default


# ---------------------------------------------------------------------------
# Factor scores
# ---------------------------------------------------------------------------


def product_intent_score(products: Sequence[str]) -> float:
    key = ",".join(sorted(products))
    return PRODUCT_INTENT_SCORES.get(key, DEFAULT_PRODUCT_INTENT_SCORE)


def bundle_potential_score(product_count: int) -> float:
    if product_count >= 3:
        return 95
    elif product_count == 2:
        return 80
    else:
        return 40


def premium_range_score(estimated_premium: Optional[float]) -> float:
    if not estimated_premium:
        return 60  # unknown, use median

    if estimated_premium >= 4000:
        return 95
    elif estimated_premium >= 2500:
        return 75
    elif estimated_premium >= 1500:
        return 60
    else:
        return 40


def demographics_score(age_range: Optional[str], homeowner_status: Optional[str]) -> float:
    """Age score scaled by homeowner multiplier, capped at 100"""
    age_score = _lookup(AGE_SCORES, AgeRange, age_range, DEFAULT_AGE_SCORE)
    multiplier = _lookup(HOMEOWNER_MULTIPLIER, HomeownerStatus, homeowner_status, DEFAULT_HOMEOWNER_MULTIPLIER)
    return min(100, age_score * multiplier)


def engagement_score(engagement_level: Optional[str]) -> float:
    return _lookup(ENGAGEMENT_SCORES, EngagementLevel, engagement_level or EngagementLevel.MEDIUM, DEFAULT_ENGAGEMENT_SCORE)


def credit_score(credit_tier: Optional[str]) -> float:
    return _lookup(CREDIT_SCORES, CreditTier, credit_tier or CreditTier.UNKNOWN, DEFAULT_CREDIT_SCORE)


def source_quality_score(lead_source: Optional[str]) -> float:
    return _lookup(SOURCE_QUALITY_SCORES, LeadSource, lead_source, DEFAULT_SOURCE_QUALITY_SCORE)


def classify_tier(score: float) -> LeadQualityTier:
    """
    Map a 0-100 score to a quality tier.

    Bands: >= 90 elite, >= 70 premium, >= 50 standard, else low_value.
    """
    if score >= 90:
        return LeadQualityTier.ELITE
    elif score >= 70:
        return LeadQualityTier.PREMIUM
    elif score >= 50:
        return LeadQualityTier.STANDARD
    else:
        return LeadQualityTier.LOW_VALUE


# ---------------------------------------------------------------------------
# Lead scoring
# ---------------------------------------------------------------------------


def score_lead(lead: LeadData) -> LeadScore:
    """Weighted 0-100 score over seven factors, with the predicted tier's LTV, CAC and conversion rate"""
    factor_scores = {
        "product_intent": product_intent_score(lead.products_shopping),
        "bundle_potential": bundle_potential_score(len(lead.products_shopping)),
        "premium_range": premium_range_score(lead.estimated_premium),
        "demographics": demographics_score(lead.age_range, lead.homeowner_status),
        "engagement": engagement_score(lead.engagement_level),
        "credit_tier": credit_score(lead.credit_tier),
        "source_quality": source_quality_score(lead.lead_source),
    }

    total_score = sum(value * SCORING_WEIGHTS[factor] for factor, value in factor_scores.items())
    tier = classify_tier(total_score)

    return LeadScore(
        lead_id=lead.lead_id,
        score=total_score,
        predicted_segment=tier,
        predicted_ltv=SEGMENT_LTV[tier],
        recommended_cac=SEGMENT_CAC[tier],
        conversion_probability=SEGMENT_CONVERSION_RATES[tier],
        key_factors=factor_scores,
    )


def score_leads_batch(leads: Sequence[LeadData]) -> List[LeadScore]:
    return [score_lead(lead) for lead in leads]


def get_top_factors(key_factors: Mapping[str, float], top_n: int = 3) -> List[TopFactor]:
    """Factors ordered by weighted contribution to the score"""
    factors = [
        TopFactor(factor=factor, value=value, contribution=value * SCORING_WEIGHTS.get(factor, 0.0))
        for factor, value in key_factors.items()
    ]
    factors.sort(key=lambda f: f.contribution, reverse=True)
    return factors[:top_n]


def group_leads_by_segment(scores: Sequence[LeadScore]) -> Dict[LeadQualityTier, List[LeadScore]]:
    grouped = group_by(scores, lambda s: s.predicted_segment)
    return {tier: grouped.get(tier, []) for tier in LeadQualityTier}


def calculate_expected_value(score: LeadScore) -> float:
    """Predicted LTV weighted by conversion probability"""
    return score.predicted_ltv * score.conversion_probability


def get_high_value_leads(scores: Sequence[LeadScore], threshold: float = HIGH_VALUE_LEAD_THRESHOLD) -> List[LeadScore]:
    return [s for s in scores if s.score >= threshold]


def calculate_portfolio_summary(scores: Sequence[LeadScore]) -> LeadPortfolioSummary:
    total_leads = len(scores)
    grouped = group_leads_by_segment(scores)

    distribution = {
        tier: SegmentShare(
            count=len(members),
            percentage=(len(members) / total_leads) * 100 if total_leads > 0 else 0.0,
        )
        for tier, members in grouped.items()
    }

    return LeadPortfolioSummary(
        total_leads=total_leads,
        avg_score=mean([s.score for s in scores]),
        segment_distribution=distribution,
        total_predicted_ltv=sum(s.predicted_ltv for s in scores),
        total_expected_value=sum(calculate_expected_value(s) for s in scores),
    )


# ---------------------------------------------------------------------------
# Vendor performance
# ---------------------------------------------------------------------------


def rate_vendor(ltv_cac_ratio: float) -> Tuple[VendorRating, str]:
    """Rating and recommendation for an LTV:CAC ratio"""
    for minimum, rating, recommendation in VENDOR_RATING_BANDS:
        if ltv_cac_ratio >= minimum:
            return rating, recommendation
    return VendorRating.UNDERPERFORMING, UNDERPERFORMING_RECOMMENDATION


def analyze_vendor_performance(
    vendor_name: str,
    total_spend: float,
    lead_data: Sequence[LeadOutcome],
) -> VendorPerformance:
    """
    ROI, CAC and LTV:CAC for a lead vendor.

    Revenue is the summed LTV of converted leads. Every ratio falls back to 0
    when its denominator is zero.
    """
    leads_received = len(lead_data)
    conversions = sum(1 for lead in lead_data if lead.converted)
    conversion_rate = conversions / leads_received if leads_received > 0 else 0.0

    converted_ltvs = [lead.ltv for lead in lead_data if lead.converted and lead.ltv is not None]
    avg_ltv = mean(converted_ltvs)
    total_revenue = sum(converted_ltvs)

    roi = (total_revenue - total_spend) / total_spend if total_spend > 0 else 0.0
    cac = total_spend / conversions if conversions > 0 else 0.0
    ltv_cac_ratio = avg_ltv / cac if cac > 0 else 0.0

    rating, recommendation = rate_vendor(ltv_cac_ratio)

    return VendorPerformance(
        vendor_name=vendor_name,
        total_spend=total_spend,
        leads_received=leads_received,
        conversions=conversions,
        conversion_rate=conversion_rate,
        avg_ltv=avg_ltv,
        total_revenue=total_revenue,
        roi=roi,
        cac=cac,
        ltv_cac_ratio=ltv_cac_ratio,
        rating=rating,
        recommendation=recommendation,
    )


def _format_roi(value: float) -> str:
    return f"{round_half_up(value * 100)}%"


def _allocation_reasoning(rating: VendorRating, roi: float) -> str:
    roi_text = _format_roi(roi)
    if rating == VendorRating.EXCELLENT:
        return f"Excellent ROI ({roi_text}) - increase allocation significantly"
    elif rating == VendorRating.GOOD:
        return f"Good ROI ({roi_text}) - increase allocation moderately"
    elif rating == VendorRating.FAIR:
        return f"Fair ROI ({roi_text}) - maintain with slight reduction"
    elif rating == VendorRating.POOR:
        return f"Poor ROI ({roi_text}) - reduce significantly"
    return f"Underperforming (ROI: {roi_text}) - eliminate and reallocate"


def optimize_budget_allocation(
    current_budget: float,
    vendor_performances: Sequence[VendorPerformance],
) -> List[BudgetAllocation]:
    """
    Reallocate budget across vendors by efficiency band.

    Vendors are ordered by LTV:CAC descending. Bands receive 40% (>= 10),
    35% (>= 6), 20% (>= 3) and 5% (>= 2) of the budget, split evenly among
    the vendors in the band; vendors below 2 get nothing.
    """
    sorted_vendors = sorted(vendor_performances, key=lambda v: v.ltv_cac_ratio, reverse=True)
    rated = [(vendor, rate_vendor(vendor.ltv_cac_ratio)[0]) for vendor in sorted_vendors]

    band_sizes: Dict[VendorRating, int] = {}
    for _, rating in rated:
        band_sizes[rating] = band_sizes.get(rating, 0) + 1

    allocations = []
    for vendor, rating in rated:
        recommended = current_budget * BUDGET_BAND_SHARES[rating] / band_sizes[rating]

        current = vendor.total_spend
        change = recommended - current
        change_percentage = (change / current) * 100 if current > 0 else 0.0

        allocations.append(
            BudgetAllocation(
                vendor_name=vendor.vendor_name,
                current_allocation=current,
                recommended_allocation=recommended,
                change=change,
                change_percentage=change_percentage,
                reasoning=_allocation_reasoning(rating, vendor.roi),
            )
        )

    return allocations


def calculate_blended_metrics(vendor_performances: Sequence[VendorPerformance]) -> BlendedMetrics:
    """Portfolio-level metrics from summed vendor totals"""
    total_spend = sum(vp.total_spend for vp in vendor_performances)
    total_leads = sum(vp.leads_received for vp in vendor_performances)
    total_conversions = sum(vp.conversions for vp in vendor_performances)
    total_revenue = sum(vp.total_revenue for vp in vendor_performances)

    blended_cac = total_spend / total_conversions if total_conversions > 0 else 0.0
    blended_ltv = total_revenue / total_conversions if total_conversions > 0 else 0.0

    return BlendedMetrics(
        total_spend=total_spend,
        total_leads=total_leads,
        total_conversions=total_conversions,
        total_revenue=total_revenue,
        blended_conversion_rate=total_conversions / total_leads if total_leads > 0 else 0.0,
        blended_cac=blended_cac,
        blended_ltv=blended_ltv,
        blended_ltv_cac_ratio=blended_ltv / blended_cac if blended_cac > 0 else 0.0,
        blended_roi=(total_revenue - total_spend) / total_spend if total_spend > 0 else 0.0,
    )
