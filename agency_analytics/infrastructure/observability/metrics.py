"""Prometheus metrics for monitoring analysis volume, lead quality and vendor ratings"""

from prometheus_client import Counter, Histogram

# Analysis metrics
analysis_counter = Counter(
    "agency_analysis_total",
    "Total analyses served",
    ["analysis"],  # cash_flow_monthly | working_capital | portfolio | lead_score | ...
)

lead_tier_counter = Counter(
    "agency_leads_scored_total",
    "Leads scored by predicted quality tier",
    ["tier"],
)

customer_segment_counter = Counter(
    "agency_customers_classified_total",
    "Customers classified by segment",
    ["segment"],
)

vendor_rating_counter = Counter(
    "agency_vendor_rating_total",
    "Vendor performance analyses by rating",
    ["rating"],
)

cash_flow_warning_counter = Counter(
    "agency_cash_flow_warnings_total",
    "Monthly cash flow analyses with negative net cash flow",
)

# Report extraction
report_extraction_failures_counter = Counter(
    "agency_report_extraction_failures_total",
    "Report extractions that produced no result",
    ["report"],
)

# Service health
request_duration_histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint", "status"],
)


def record_analysis(analysis: str) -> None:
    analysis_counter.labels(analysis=analysis).inc()


def record_lead_tiers(tiers) -> None:
    """Count predicted tiers for a batch of scored leads"""
    for tier in tiers:
        lead_tier_counter.labels(tier=getattr(tier, "value", tier)).inc()


def record_customer_segments(segment_counts) -> None:
    """Add per-segment customer counts, e.g. from a portfolio analysis"""
    for segment, count in segment_counts.items():
        if count:
            customer_segment_counter.labels(segment=getattr(segment, "value", segment)).inc(count)


def record_vendor_rating(rating) -> None:
    vendor_rating_counter.labels(rating=getattr(rating, "value", rating)).inc()
