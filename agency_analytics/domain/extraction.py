"""
Book-of-business report extraction.

Works on rows already parsed from carrier spreadsheet exports (policy growth &
retention, renewal audit, new business details). Reading the files is the
caller's job; read_report_table turns raw sheet cells into a DataFrame.
Each extractor logs and returns None when the rows cannot be interpreted.
"""

import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Union

import pandas as pd

from agency_analytics.domain.models import (
    BookSegmentation,
    ComprehensiveSummary,
    ItemsPerTransaction,
    NewBusinessResult,
    PolicyRetentionResult,
    PremiumChangeDistribution,
    PremiumChangeStats,
    RenewalAuditResult,
)
from agency_analytics.utils.formatting import format_fixed, format_percent, round_half_up

logger = logging.getLogger(__name__)

Row = Mapping[str, Any]
Report = Union[pd.DataFrame, Iterable[Row]]

# Metadata rows above the header in each carrier export
POLICY_REPORT_SKIP_ROWS = 6
RENEWAL_REPORT_SKIP_ROWS = 3
NEW_BUSINESS_REPORT_SKIP_ROWS = 3

STATUS_COLUMN = "Status"
PRODUCT_DESCRIPTION_COLUMN = "Product Description"
INSURED_NAME_COLUMN = "Insured Name"
RENEWAL_STATUS_COLUMN = "Renewal Status"
PRODUCT_NAME_COLUMN = "Product Name"
PREMIUM_CHANGE_COLUMN = "Premium Change(%)"
PRODUCT_COLUMN = "Product"
TRANSACTION_TYPE_COLUMN = "Transaction Type"
ITEM_COUNT_COLUMN = "Item Count"

ACTIVE_STATUSES = ("Active", "Pending Renewal")

RETENTION_TARGET = 0.85
RATE_INCREASE_ALERT_PCT = 10
TOP_TIER_TARGET_PCT = 40

EXTRACTION_ERRORS = (TypeError, ValueError, KeyError, AttributeError)


def _cell(raw: Sequence[Any], index: int) -> Any:
    value = raw[index] if index < len(raw) else None
    return None if value == "" else value


def read_report_table(cells: Sequence[Sequence[Any]], skip_rows: int = 0) -> pd.DataFrame:
    """
    Load raw sheet cells into a DataFrame.

    The header is the first row after skip_rows. Columns with a blank header
    are dropped, empty cells become missing values, and rows with no values
    at all are skipped.
    """
    if len(cells) <= skip_rows:
        return pd.DataFrame()

    header = [str(h).strip() if h is not None else "" for h in cells[skip_rows]]
    keep = [i for i, name in enumerate(header) if name]

    records = [[_cell(raw, i) for i in keep] for raw in cells[skip_rows + 1:]]
    df = pd.DataFrame(records, columns=[header[i] for i in keep])
    return df.dropna(how="all").reset_index(drop=True)


def _frame(rows: Report) -> pd.DataFrame:
    if isinstance(rows, pd.DataFrame):
        df = rows.copy()
    else:
        records = list(rows)
        if not all(isinstance(row, Mapping) for row in records):
            raise TypeError("Report rows must be header-keyed mappings")
        df = pd.DataFrame(records)
    df.columns = [str(c).strip() for c in df.columns]
    return df


def _has_column(df: pd.DataFrame, column: str) -> bool:
    return column in df.columns and bool(df[column].notna().any())


def _category_counts(df: pd.DataFrame, column: str) -> Dict[str, int]:
    # Keys are strings even when the sheet stored the category as a number
    values = df[column].dropna().astype(str)
    values = values[values != ""]
    return {str(k): int(v) for k, v in values.value_counts().to_dict().items()}


def _numeric(df: pd.DataFrame, column: str) -> pd.Series:
    if column not in df.columns:
        return pd.Series(dtype=float)
    return pd.to_numeric(df[column], errors="coerce").dropna()


def extract_policy_retention(rows: Report) -> Optional[PolicyRetentionResult]:
    """Status distribution, product mix and active policy count from a policy growth & retention report"""
    try:
        df = _frame(rows)
        total_policies = len(df)
        logger.info("Loaded %d policies", total_policies)

        retention_columns = [c for c in df.columns if "Retention" in c]

        status_distribution: Dict[str, int] = {}
        active_policies = 0
        if _has_column(df, STATUS_COLUMN):
            status_distribution = _category_counts(df, STATUS_COLUMN)
            active_policies = int(df[STATUS_COLUMN].isin(ACTIVE_STATUSES).sum())
            logger.info(
                "Active policies: %d / %d",
                active_policies,
                total_policies,
                extra={"step": "policy_retention", "active_policies": active_policies},
            )

        product_mix: Dict[str, int] = {}
        if _has_column(df, PRODUCT_DESCRIPTION_COLUMN):
            product_mix = _category_counts(df, PRODUCT_DESCRIPTION_COLUMN)

        retention_totals = {}
        for column in retention_columns:
            values = _numeric(df, column)
            if not values.empty:
                retention_totals[column] = float(values.sum())

        return PolicyRetentionResult(
            total_policies=total_policies,
            status_distribution=status_distribution,
            product_mix=product_mix,
            active_policies=active_policies,
            retention_columns=retention_columns,
            retention_totals=retention_totals,
        )

    except EXTRACTION_ERRORS:
        logger.exception("Failed to extract policy retention metrics")
        return None


def _premium_change_stats(changes: pd.Series) -> PremiumChangeStats:
    return PremiumChangeStats(
        average_change=float(changes.mean()),
        median_change=float(changes.median()),
        max_increase=float(changes.max()),
        max_decrease=float(changes.min()),
        distribution=PremiumChangeDistribution(
            above_20_percent=int((changes > 20).sum()),
            between_10_and_20_percent=int(changes.between(10, 20).sum()),
            between_0_and_10_percent=int(((changes >= 0) & (changes < 10)).sum()),
            decrease=int((changes < 0).sum()),
        ),
    )


def extract_renewal_audit(rows: Report) -> Optional[RenewalAuditResult]:
    """Renewal retention rate and premium change (rate increase) statistics from a renewal audit"""
    try:
        df = _frame(rows)
        total_renewals = len(df)
        logger.info("Loaded %d renewals", total_renewals)

        status_distribution: Dict[str, int] = {}
        renewed_count = 0
        retention_rate = 0.0
        if _has_column(df, RENEWAL_STATUS_COLUMN):
            status_distribution = _category_counts(df, RENEWAL_STATUS_COLUMN)
            statuses = df[RENEWAL_STATUS_COLUMN].dropna().astype(str)
            renewed_count = int(statuses.str.lower().str.contains("renewed", regex=False).sum())
            retention_rate = renewed_count / total_renewals if total_renewals > 0 else 0.0
            logger.info("Renewal retention rate: %s", format_percent(retention_rate))

        premium_change_stats = None
        changes = _numeric(df, PREMIUM_CHANGE_COLUMN)
        if not changes.empty:
            premium_change_stats = _premium_change_stats(changes)

        product_distribution: Dict[str, int] = {}
        if _has_column(df, PRODUCT_NAME_COLUMN):
            product_distribution = _category_counts(df, PRODUCT_NAME_COLUMN)

        return RenewalAuditResult(
            total_renewals=total_renewals,
            status_distribution=status_distribution,
            renewed_count=renewed_count,
            retention_rate=retention_rate,
            premium_change_stats=premium_change_stats,
            product_distribution=product_distribution,
        )

    except EXTRACTION_ERRORS:
        logger.exception("Failed to extract renewal audit data")
        return None


def extract_book_segmentation(rows: Report) -> Optional[BookSegmentation]:
    """
    Segment insureds by number of policies held.

    Elite = 3+ policies, Premium = 2, Standard = 1. Returns None when the
    report has no insured name column.
    """
    try:
        df = _frame(rows)
        if not _has_column(df, INSURED_NAME_COLUMN):
            logger.warning("Policy report has no %r column; skipping segmentation", INSURED_NAME_COLUMN)
            return None

        named = df.dropna(subset=[INSURED_NAME_COLUMN])
        policies_per_customer = named.groupby(named[INSURED_NAME_COLUMN].astype(str), sort=False).size()
        total_customers = len(policies_per_customer)

        distribution = policies_per_customer.value_counts().sort_index()

        result = BookSegmentation(
            total_customers=total_customers,
            total_policies=len(df),
            avg_products=float(policies_per_customer.mean()),
            median_products=float(policies_per_customer.median()),
            elite=int((policies_per_customer >= 3).sum()),
            premium=int((policies_per_customer == 2).sum()),
            standard=int((policies_per_customer == 1).sum()),
            products_per_customer={str(k): int(v) for k, v in policies_per_customer.items()},
            product_count_distribution={int(k): int(v) for k, v in distribution.items()},
        )
        logger.info(
            "Segmented %d customers",
            total_customers,
            extra={"elite": result.elite, "premium": result.premium, "standard": result.standard},
        )
        return result

    except EXTRACTION_ERRORS:
        logger.exception("Failed to extract customer segmentation")
        return None


def extract_new_business(rows: Report) -> Optional[NewBusinessResult]:
    """Product, transaction type and items-per-transaction breakdown of new business"""
    try:
        df = _frame(rows)
        total_transactions = len(df)
        logger.info("Loaded %d new business transactions", total_transactions)

        product_distribution: Dict[str, int] = {}
        if _has_column(df, PRODUCT_COLUMN):
            product_distribution = _category_counts(df, PRODUCT_COLUMN)

        transaction_types: Dict[str, int] = {}
        if _has_column(df, TRANSACTION_TYPE_COLUMN):
            transaction_types = _category_counts(df, TRANSACTION_TYPE_COLUMN)

        items_per_transaction = None
        item_counts = _numeric(df, ITEM_COUNT_COLUMN)
        if not item_counts.empty:
            distribution = item_counts.value_counts().sort_index()
            items_per_transaction = ItemsPerTransaction(
                average=float(item_counts.mean()),
                median=float(item_counts.median()),
                distribution={float(k): int(v) for k, v in distribution.items()},
            )

        return NewBusinessResult(
            total_transactions=total_transactions,
            product_distribution=product_distribution,
            transaction_types=transaction_types,
            items_per_transaction=items_per_transaction,
        )

    except EXTRACTION_ERRORS:
        logger.exception("Failed to extract new business metrics")
        return None


def generate_final_summary(
    policy_rows: Optional[Report] = None,
    renewal_rows: Optional[Report] = None,
    new_business_rows: Optional[Report] = None,
) -> ComprehensiveSummary:
    """
    Run every extractor over the supplied reports and derive insights.

    The policy report feeds both retention and segmentation. Missing reports
    yield None sections.
    """
    if policy_rows is not None and not isinstance(policy_rows, pd.DataFrame):
        policy_rows = list(policy_rows)

    retention_data = extract_policy_retention(policy_rows) if policy_rows is not None else None
    renewal_data = extract_renewal_audit(renewal_rows) if renewal_rows is not None else None
    segmentation = extract_book_segmentation(policy_rows) if policy_rows is not None else None
    new_business_data = extract_new_business(new_business_rows) if new_business_rows is not None else None

    insights: List[str] = []

    if renewal_data is not None and renewal_data.retention_rate > 0:
        insights.append(f"Current renewal retention rate: {format_percent(renewal_data.retention_rate)}")
        if renewal_data.retention_rate < RETENTION_TARGET:
            insights.append("Retention below 85% target - implement churn prediction model")

    if renewal_data is not None and renewal_data.premium_change_stats is not None:
        avg_rate_increase = renewal_data.premium_change_stats.average_change
        insights.append(f"Average rate increase: {format_fixed(avg_rate_increase)}%")
        if avg_rate_increase > RATE_INCREASE_ALERT_PCT:
            insights.append(f"High rate increases ({format_fixed(avg_rate_increase)}%) driving churn risk")

    if segmentation is not None and segmentation.total_customers > 0:
        elite_pct = segmentation.elite / segmentation.total_customers * 100
        premium_pct = segmentation.premium / segmentation.total_customers * 100
        insights.append(f"Customer Segmentation: {format_fixed(elite_pct)}% Elite, {format_fixed(premium_pct)}% Premium")
        if elite_pct + premium_pct < TOP_TIER_TARGET_PCT:
            insights.append(
                f"Only {round_half_up(elite_pct + premium_pct)}% top-tier customers - focus on cross-sell/upsell"
            )

    logger.info("Report summary generated", extra={"insight_count": len(insights)})

    return ComprehensiveSummary(
        retention_data=retention_data,
        renewal_data=renewal_data,
        segmentation=segmentation,
        new_business_data=new_business_data,
        insights=insights,
    )
