"""Pydantic schemas for API request/response validation"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from agency_analytics.domain.models import CustomerSegment, ServiceTier, VendorRating


# ---------------------------------------------------------------------------
# Cash flow
# ---------------------------------------------------------------------------


class CashFlowConfigOverrides(BaseModel):
    """Per-request overrides of the configured cash flow assumptions"""

    commission_payment_lag_days: Optional[float] = Field(None, gt=0)
    chargeback_rate_first_60_days: Optional[float] = Field(None, ge=0, le=1)
    chargeback_recovery_rate: Optional[float] = Field(None, ge=0, le=1)
    min_cash_buffer_months: Optional[float] = Field(None, ge=0)
    growth_buffer_months_per_10pct_growth: Optional[float] = Field(None, ge=0)
    avg_commission_rate: Optional[float] = Field(None, ge=0, le=1)


class MonthlyCashFlowRequest(BaseModel):
    """Request body for POST /v1/cash-flow/monthly"""

    current_month_revenue_accrual: float = Field(..., description="Premium written this month")
    current_month_expenses: float
    prior_month_revenue_accrual: float
    two_months_ago_revenue: float
    current_month_cancellations_premium: float = 0.0
    config: Optional[CashFlowConfigOverrides] = None


class WorkingCapitalRequest(BaseModel):
    monthly_operating_expenses: float = Field(..., ge=0)
    monthly_growth_rate: float = 0.05
    config: Optional[CashFlowConfigOverrides] = None


class ProjectionRequest(BaseModel):
    starting_monthly_revenue: float = Field(..., ge=0)
    monthly_growth_rate: float
    monthly_expenses: float = Field(..., ge=0)
    expense_growth_rate: float = 0.02
    config: Optional[CashFlowConfigOverrides] = None


class StressTestRequest(BaseModel):
    monthly_revenue: float = Field(..., ge=0)
    monthly_expenses: float = Field(..., ge=0)
    growth_scenarios: Optional[List[float]] = Field(None, min_length=1)
    config: Optional[CashFlowConfigOverrides] = None


class CashFlowBreakdownSchema(BaseModel):
    cash_in_commissions: float
    cash_out_chargebacks: float
    cash_out_expenses: float
    total_cash_in: float
    total_cash_out: float
    net_cash_flow: float


class AccrualAccountingSchema(BaseModel):
    revenue: float
    expenses: float
    profit: float


class CashAccrualComparisonSchema(BaseModel):
    cash_vs_accrual_gap: float
    cash_flow_warning: bool
    warning_message: Optional[str] = None


class MonthlyCashFlowResponse(BaseModel):
    cash_flow: CashFlowBreakdownSchema
    accrual_accounting: AccrualAccountingSchema
    comparison: CashAccrualComparisonSchema


class WorkingCapitalResponse(BaseModel):
    monthly_expenses: float
    monthly_growth_rate: float
    base_buffer: float
    growth_buffer: float
    lag_buffer: float
    total_working_capital_need: float
    months_of_runway: float
    monthly_cash_burn_during_growth: float
    recommendation: str


class MonthlyProjectionSchema(BaseModel):
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


class CashFlowSummarySchema(BaseModel):
    total_accrual_profit: float
    total_net_cash_flow: float
    final_cumulative_cash: float
    months_with_negative_cash: int
    min_cash_balance: float
    max_cash_balance: float
    average_cash_vs_accrual_gap: float


class ProjectionResponse(BaseModel):
    months: List[MonthlyProjectionSchema]
    summary: CashFlowSummarySchema


class StressTestScenarioSchema(BaseModel):
    growth_rate: float
    min_cash_balance: float
    max_cash_balance: float
    months_cash_negative: int
    total_cash_burn: float
    working_capital_needed: float
    sustainable: bool
    projection: List[MonthlyProjectionSchema]


class StressTestResponse(BaseModel):
    scenarios: Dict[str, StressTestScenarioSchema]


# ---------------------------------------------------------------------------
# Segmentation
# ---------------------------------------------------------------------------


class CustomerSchema(BaseModel):
    customer_id: Optional[str] = None
    product_count: int = Field(..., ge=0)
    annual_premium: float = Field(..., ge=0)
    claims_history: Optional[List[float]] = None


class PortfolioRequest(BaseModel):
    customers: List[CustomerSchema]
    group_by_segment: bool = False


class MarketingAllocationRequest(BaseModel):
    total_marketing_budget: float = Field(..., ge=0)


class SegmentDefinitionSchema(BaseModel):
    name: str
    min_products: int
    min_annual_premium: float
    avg_ltv: float
    avg_retention: float
    avg_products: float
    claims_frequency: float
    recommended_cac: float
    service_tier: ServiceTier
    value_drivers: List[str]


class SegmentDefinitionsResponse(BaseModel):
    segments: Dict[CustomerSegment, SegmentDefinitionSchema]
    target_distribution: Dict[CustomerSegment, float]


class ClassificationResponse(BaseModel):
    customer_id: Optional[str] = None
    segment: CustomerSegment
    ltv: float
    recommended_cac: float
    retention: float
    service_tier: ServiceTier
    segment_details: SegmentDefinitionSchema


class SegmentAnalysisSchema(BaseModel):
    count: int
    percentage_of_book: float
    total_ltv: float
    total_premium: float
    avg_ltv: float
    avg_premium: float
    recommended_cac: float
    service_tier: ServiceTier
    ltv_contribution_pct: float


class PortfolioCustomerSchema(BaseModel):
    customer_id: Optional[str] = None
    product_count: int
    annual_premium: float
    ltv: float
    segment: CustomerSegment


class PortfolioResponse(BaseModel):
    total_customers: int
    total_ltv: float
    total_premium: float
    avg_ltv: float
    avg_premium: float
    segments: Dict[CustomerSegment, SegmentAnalysisSchema]
    key_insights: List[str]
    customers_by_segment: Optional[Dict[CustomerSegment, List[PortfolioCustomerSchema]]] = None


class AllocationDetailsSchema(BaseModel):
    target_percentage: float
    recommended_budget: float
    recommended_cac: float
    expected_customers: float
    expected_ltv_return: float
    roi_percent: float


class MarketingAllocationResponse(BaseModel):
    total_budget: float
    allocations: Dict[CustomerSegment, AllocationDetailsSchema]
    total_expected_customers: float
    total_expected_ltv: float
    blended_roi: float


# ---------------------------------------------------------------------------
# Leads and vendors
# ---------------------------------------------------------------------------


class LeadSchema(BaseModel):
    """Categorical fields are free text; unknown values score as neutral"""

    lead_id: str = Field(..., min_length=1)
    products_shopping: List[str] = []
    homeowner_status: str = "unknown"
    age_range: str = ""
    estimated_premium: Optional[float] = Field(None, ge=0)
    credit_tier: Optional[str] = None
    engagement_level: Optional[str] = None
    lead_source: Optional[str] = None


class LeadBatchRequest(BaseModel):
    leads: List[LeadSchema]
    high_value_threshold: float = Field(70, ge=0, le=100)


class TopFactorSchema(BaseModel):
    factor: str
    value: float
    contribution: float


class LeadScoreResponse(BaseModel):
    lead_id: str
    score: float
    predicted_segment: CustomerSegment
    predicted_ltv: float
    recommended_cac: float
    conversion_probability: float
    expected_value: float
    key_factors: Dict[str, float]
    top_factors: List[TopFactorSchema]


class SegmentShareSchema(BaseModel):
    count: int
    percentage: float


class LeadPortfolioSummarySchema(BaseModel):
    total_leads: int
    avg_score: float
    segment_distribution: Dict[CustomerSegment, SegmentShareSchema]
    total_predicted_ltv: float
    total_expected_value: float


class LeadBatchResponse(BaseModel):
    scores: List[LeadScoreResponse]
    summary: LeadPortfolioSummarySchema
    high_value_lead_ids: List[str]


class LeadOutcomeSchema(BaseModel):
    lead_id: str
    converted: bool
    ltv: Optional[float] = Field(None, ge=0)
    products_sold: List[str] = []


class VendorPerformanceRequest(BaseModel):
    vendor_name: str = Field(..., min_length=1)
    total_spend: float = Field(..., ge=0)
    leads: List[LeadOutcomeSchema]


class VendorPerformanceSchema(BaseModel):
    vendor_name: str
    total_spend: float
    leads_received: int
    conversions: int
    conversion_rate: float
    avg_ltv: float
    total_revenue: float
    roi: float
    cac: float
    ltv_cac_ratio: float
    rating: VendorRating
    recommendation: str


class BudgetAllocationRequest(BaseModel):
    current_budget: float = Field(..., ge=0)
    vendors: List[VendorPerformanceSchema]


class BudgetAllocationSchema(BaseModel):
    vendor_name: str
    current_allocation: float
    recommended_allocation: float
    change: float
    change_percentage: float
    reasoning: str


class BudgetAllocationResponse(BaseModel):
    allocations: List[BudgetAllocationSchema]


class BlendedMetricsRequest(BaseModel):
    vendors: List[VendorPerformanceSchema]


class BlendedMetricsResponse(BaseModel):
    total_spend: float
    total_leads: int
    total_conversions: int
    total_revenue: float
    blended_conversion_rate: float
    blended_cac: float
    blended_ltv: float
    blended_ltv_cac_ratio: float
    blended_roi: float


# ---------------------------------------------------------------------------
# Reports
# ---------------------------------------------------------------------------


class ReportInput(BaseModel):
    """
    A parsed report: either header-keyed rows, or raw sheet cells whose
    header sits after skip_rows metadata rows.
    """

    rows: Optional[List[Dict[str, Any]]] = None
    cells: Optional[List[List[Any]]] = None
    skip_rows: Optional[int] = Field(None, ge=0)


class ReportSummaryRequest(BaseModel):
    policy_report: Optional[ReportInput] = None
    renewal_report: Optional[ReportInput] = None
    new_business_report: Optional[ReportInput] = None


class PremiumChangeDistributionSchema(BaseModel):
    above_20_percent: int
    between_10_and_20_percent: int
    between_0_and_10_percent: int
    decrease: int


class PremiumChangeStatsSchema(BaseModel):
    average_change: float
    median_change: float
    max_increase: float
    max_decrease: float
    distribution: PremiumChangeDistributionSchema


class PolicyRetentionSchema(BaseModel):
    total_policies: int
    status_distribution: Dict[str, int]
    product_mix: Dict[str, int]
    active_policies: int
    retention_columns: List[str]
    retention_totals: Dict[str, float]


class RenewalAuditSchema(BaseModel):
    total_renewals: int
    status_distribution: Dict[str, int]
    renewed_count: int
    retention_rate: float
    premium_change_stats: Optional[PremiumChangeStatsSchema] = None
    product_distribution: Dict[str, int]


class BookSegmentationSchema(BaseModel):
    total_customers: int
    total_policies: int
    avg_products: float
    median_products: float
    elite: int
    premium: int
    standard: int
    products_per_customer: Dict[str, int]
    product_count_distribution: Dict[int, int]


class ItemsPerTransactionSchema(BaseModel):
    average: float
    median: float
    distribution: Dict[float, int]


class NewBusinessSchema(BaseModel):
    total_transactions: int
    product_distribution: Dict[str, int]
    transaction_types: Dict[str, int]
    items_per_transaction: Optional[ItemsPerTransactionSchema] = None


class ReportSummaryResponse(BaseModel):
    retention_data: Optional[PolicyRetentionSchema] = None
    renewal_data: Optional[RenewalAuditSchema] = None
    segmentation: Optional[BookSegmentationSchema] = None
    new_business_data: Optional[NewBusinessSchema] = None
    insights: List[str]
