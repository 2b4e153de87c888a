"""Domain models - immutable dataclasses for the analytics inputs and results"""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Dict, List, Optional

from agency_analytics.domain.exceptions import InvalidConfigError


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------


class CustomerSegment(str, Enum):
    """Customer value tier, strictest first"""

    ELITE = "elite"
    PREMIUM = "premium"
    STANDARD = "standard"
    LOW_VALUE = "low_value"


# Lead tiers share the customer tier vocabulary: a lead is scored on how
# likely it is to become a customer of that tier.
LeadQualityTier = CustomerSegment


class ServiceTier(str, Enum):
    WHITE_GLOVE = "white_glove"
    STANDARD = "standard"
    AUTOMATED = "automated"


class VendorRating(str, Enum):
    EXCELLENT = "EXCELLENT"
    GOOD = "GOOD"
    FAIR = "FAIR"
    POOR = "POOR"
    UNDERPERFORMING = "UNDERPERFORMING"


class LeadSource(str, Enum):
    SMARTFINANCIAL = "smartfinancial"
    EVERQUOTE = "everquote"
    INSURIFY = "insurify"
    QUOTEWIZARD = "quotewizard"
    TIKTOK = "tiktok"
    FACEBOOK = "facebook"
    GOOGLE_SEARCH = "google_search"
    GOOGLE_DISPLAY = "google_display"
    REFERRAL = "referral"
    ORGANIC = "organic"
    DIRECT = "direct"


class HomeownerStatus(str, Enum):
    OWNER = "owner"
    RENTER = "renter"
    UNKNOWN = "unknown"


class AgeRange(str, Enum):
    AGE_18_24 = "18-24"
    AGE_25_29 = "25-29"
    AGE_30_39 = "30-39"
    AGE_40_49 = "40-49"
    AGE_50_59 = "50-59"
    AGE_60_69 = "60-69"
    AGE_70_PLUS = "70+"


class CreditTier(str, Enum):
    EXCELLENT = "excellent"
    GOOD = "good"
    FAIR = "fair"
    POOR = "poor"
    UNKNOWN = "unknown"


class EngagementLevel(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


# ---------------------------------------------------------------------------
# Cash flow
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class CashFlowModelConfig:
    """Commission timing, chargeback and working capital assumptions"""

    commission_payment_lag_days: float = 48  # typical 45-60 days
    chargeback_rate_first_60_days: float = 0.08
    chargeback_recovery_rate: float = 0.95  # carrier recoups 95% of commission paid
    min_cash_buffer_months: float = 2.0
    growth_buffer_months_per_10pct_growth: float = 1.0
    avg_commission_rate: float = 0.07

    def __post_init__(self) -> None:
        if self.commission_payment_lag_days <= 0:
            raise InvalidConfigError(
                f"commission_payment_lag_days must be > 0, got {self.commission_payment_lag_days}"
            )
        for name in ("chargeback_rate_first_60_days", "chargeback_recovery_rate", "avg_commission_rate"):
            value = getattr(self, name)
            if not 0.0 <= value <= 1.0:
                raise InvalidConfigError(f"{name} must be within [0, 1], got {value}")
        if self.min_cash_buffer_months < 0 or self.growth_buffer_months_per_10pct_growth < 0:
            raise InvalidConfigError("buffer months must be non-negative")

    def with_overrides(self, **overrides: float) -> "CashFlowModelConfig":
        """Copy with the given fields replaced; None values are ignored"""
        changes = {key: value for key, value in overrides.items() if value is not None}
        return replace(self, **changes)


@dataclass(frozen=True)
class CashFlowBreakdown:
    cash_in_commissions: float
    cash_out_chargebacks: float
    cash_out_expenses: float
    total_cash_in: float
    total_cash_out: float
    net_cash_flow: float


@dataclass(frozen=True)
class AccrualAccounting:
    revenue: float
    expenses: float
    profit: float


@dataclass(frozen=True)
class CashAccrualComparison:
    cash_vs_accrual_gap: float
    cash_flow_warning: bool
    warning_message: Optional[str]


@dataclass(frozen=True)
class MonthlyCashFlowResult:
    """Cash vs accrual view of a single month"""

    cash_flow: CashFlowBreakdown
    accrual_accounting: AccrualAccounting
    comparison: CashAccrualComparison


@dataclass(frozen=True)
class WorkingCapitalResult:
    monthly_expenses: float
    monthly_growth_rate: float
    base_buffer: float
    growth_buffer: float
    lag_buffer: float
    total_working_capital_need: float
    months_of_runway: float
    monthly_cash_burn_during_growth: float
    recommendation: str


@dataclass(frozen=True)
class MonthlyProjection:
    """One row of a 12-month cash flow projection"""

    month: int
    premium_written_accrual: float
    commission_revenue_accrual: float
    expenses: float
    accrual_profit: float
    cash_in: float
    cash_out: float
    net_cash_flow: float
    cumulative_cash: float
    cash_vs_accrual_gap: float


@dataclass(frozen=True)
class StressTestScenarioResult:
    growth_rate: float
    min_cash_balance: float
    max_cash_balance: float
    months_cash_negative: int
    total_cash_burn: float
    working_capital_needed: float
    sustainable: bool
    projection: List[MonthlyProjection]


@dataclass(frozen=True)
class CashFlowSummary:
    total_accrual_profit: float
    total_net_cash_flow: float
    final_cumulative_cash: float
    months_with_negative_cash: int
    min_cash_balance: float
    max_cash_balance: float
    average_cash_vs_accrual_gap: float


# ---------------------------------------------------------------------------
# Customer segmentation
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class CustomerSegmentDefinition:
    """Static thresholds and assumptions for one customer tier"""

    name: str
    min_products: int
    min_annual_premium: float
    avg_ltv: float
    avg_retention: float
    avg_products: float
    claims_frequency: float
    recommended_cac: float
    service_tier: ServiceTier
    value_drivers: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class CustomerClassification:
    segment: CustomerSegment
    ltv: float
    recommended_cac: float
    retention: float
    service_tier: ServiceTier


@dataclass(frozen=True)
class CustomerRecord:
    """A book-of-business customer as supplied by the caller"""

    product_count: int
    annual_premium: float
    customer_id: Optional[str] = None
    claims_history: Optional[List[float]] = None


@dataclass(frozen=True)
class SegmentAnalysis:
    count: int
    percentage_of_book: float
    total_ltv: float
    total_premium: float
    avg_ltv: float
    avg_premium: float
    recommended_cac: float
    service_tier: ServiceTier
    ltv_contribution_pct: float


@dataclass(frozen=True)
class PortfolioAnalysis:
    total_customers: int
    total_ltv: float
    total_premium: float
    avg_ltv: float
    avg_premium: float
    segments: Dict[CustomerSegment, SegmentAnalysis]
    key_insights: List[str]


@dataclass(frozen=True)
class AllocationDetails:
    target_percentage: float
    recommended_budget: float
    recommended_cac: float
    expected_customers: float
    expected_ltv_return: float
    roi_percent: float


@dataclass(frozen=True)
class MarketingAllocation:
    total_budget: float
    allocations: Dict[CustomerSegment, AllocationDetails]
    total_expected_customers: float
    total_expected_ltv: float
    blended_roi: float


# ---------------------------------------------------------------------------
# Lead scoring
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class LeadData:
    """
    Inbound lead attributes.

    Categorical fields accept enum members or their string values; unknown or
    missing values fall back to neutral scores.
    """

    lead_id: str
    products_shopping: List[str]
    homeowner_status: str = HomeownerStatus.UNKNOWN.value
    age_range: str = ""
    estimated_premium: Optional[float] = None
    credit_tier: Optional[str] = None
    engagement_level: Optional[str] = None
    lead_source: Optional[str] = None


@dataclass(frozen=True)
class LeadScore:
    lead_id: str
    score: float  # 0-100
    predicted_segment: LeadQualityTier
    predicted_ltv: float
    recommended_cac: float
    conversion_probability: float
    key_factors: Dict[str, float]  # factor -> raw factor score


@dataclass(frozen=True)
class LeadOutcome:
    lead_id: str
    converted: bool
    ltv: Optional[float] = None
    products_sold: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class VendorPerformance:
    vendor_name: str
    total_spend: float
    leads_received: int
    conversions: int
    conversion_rate: float
    avg_ltv: float
    total_revenue: float
    roi: float  # (revenue - spend) / spend
    cac: float  # spend per conversion
    ltv_cac_ratio: float
    rating: VendorRating
    recommendation: str


@dataclass(frozen=True)
class BudgetAllocation:
    vendor_name: str
    current_allocation: float
    recommended_allocation: float
    change: float
    change_percentage: float
    reasoning: str


@dataclass(frozen=True)
class BlendedMetrics:
    total_spend: float
    total_leads: int
    total_conversions: int
    total_revenue: float
    blended_conversion_rate: float
    blended_cac: float
    blended_ltv: float
    blended_ltv_cac_ratio: float
    blended_roi: float


@dataclass(frozen=True)
class TopFactor:
    factor: str
    value: float
    contribution: float


@dataclass(frozen=True)
class SegmentShare:
    count: int
    percentage: float


@dataclass(frozen=True)
class LeadPortfolioSummary:
    total_leads: int
    avg_score: float
    segment_distribution: Dict[LeadQualityTier, SegmentShare]
    total_predicted_ltv: float
    total_expected_value: float


# ---------------------------------------------------------------------------
# Report extraction
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class PremiumChangeDistribution:
    above_20_percent: int
    between_10_and_20_percent: int
    between_0_and_10_percent: int
    decrease: int


@dataclass(frozen=True)
class PremiumChangeStats:
    average_change: float
    median_change: float
    max_increase: float
    max_decrease: float
    distribution: PremiumChangeDistribution


@dataclass(frozen=True)
class PolicyRetentionResult:
    total_policies: int
    status_distribution: Dict[str, int]
    product_mix: Dict[str, int]
    active_policies: int
    retention_columns: List[str]
    retention_totals: Dict[str, float]


@dataclass(frozen=True)
class RenewalAuditResult:
    total_renewals: int
    status_distribution: Dict[str, int]
    renewed_count: int
    retention_rate: float
    premium_change_stats: Optional[PremiumChangeStats]
    product_distribution: Dict[str, int]


@dataclass(frozen=True)
class BookSegmentation:
    """Product-count segmentation of insureds in a policy report"""

    total_customers: int
    total_policies: int
    avg_products: float
    median_products: float
    elite: int
    premium: int
    standard: int
    products_per_customer: Dict[str, int]
    product_count_distribution: Dict[int, int]


@dataclass(frozen=True)
class ItemsPerTransaction:
    average: float
    median: float
    distribution: Dict[float, int]


@dataclass(frozen=True)
class NewBusinessResult:
    total_transactions: int
    product_distribution: Dict[str, int]
    transaction_types: Dict[str, int]
    items_per_transaction: Optional[ItemsPerTransaction]


@dataclass(frozen=True)
class ComprehensiveSummary:
    retention_data: Optional[PolicyRetentionResult]
    renewal_data: Optional[RenewalAuditResult]
    segmentation: Optional[BookSegmentation]
    new_business_data: Optional[NewBusinessResult]
    insights: List[str]
