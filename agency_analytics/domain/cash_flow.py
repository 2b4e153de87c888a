"""
Cash flow timing model - commission lag, chargebacks and working capital.

Carriers pay commission 45-60 days after the policy effective date and claw
it back when a new policy cancels early, so an agency's cash position trails
its accrual profit. The model makes that gap explicit.
"""

from typing import Dict, List, Optional, Sequence

from agency_analytics.domain.models import (
    AccrualAccounting,
    CashAccrualComparison,
    CashFlowBreakdown,
    CashFlowModelConfig,
    CashFlowSummary,
    MonthlyCashFlowResult,
    MonthlyProjection,
    StressTestScenarioResult,
    WorkingCapitalResult,
)
from agency_analytics.utils.formatting import format_currency, format_fixed, round_half_up

DEFAULT_CASH_FLOW_CONFIG = CashFlowModelConfig()
DEFAULT_GROWTH_SCENARIOS = (0.05, 0.10, 0.15)

PROJECTION_MONTHS = 12
CASH_BURN_WARNING = "CASH BURN: Negative cash flow despite positive accrual profit"


class CashFlowModel:
    """Cash flow vs accrual revenue model for an insurance agency"""

    def __init__(self, config: Optional[CashFlowModelConfig] = None):
        self.config = config or DEFAULT_CASH_FLOW_CONFIG

    def calculate_monthly_cash_flow(
        self,
        current_month_revenue_accrual: float,
        current_month_expenses: float,
        prior_month_revenue_accrual: float,
        two_months_ago_revenue: float,
        current_month_cancellations_premium: float,
    ) -> MonthlyCashFlowResult:
        """
        Actual cash in/out for a month alongside its accrual figures.

        Commission received this month is for premium written one or two
        months ago depending on the configured payment lag:
        - lag <= 30 days: prior month only
        - lag <= 45 days: 70% prior month, 30% two months ago
        - otherwise:      two months ago only
        """
        rate = self.config.avg_commission_rate
        lag_days = self.config.commission_payment_lag_days

        if lag_days <= 30:
            cash_in_commissions = prior_month_revenue_accrual * rate
        elif lag_days <= 45:
            cash_in_commissions = (prior_month_revenue_accrual * 0.7 + two_months_ago_revenue * 0.3) * rate
        else:
            cash_in_commissions = two_months_ago_revenue * rate

        cash_out_chargebacks = current_month_cancellations_premium * rate * self.config.chargeback_recovery_rate
        cash_out_expenses = current_month_expenses

        total_cash_in = cash_in_commissions
        total_cash_out = cash_out_chargebacks + cash_out_expenses
        net_cash_flow = total_cash_in - total_cash_out

        accrual_revenue = current_month_revenue_accrual * rate
        accrual_profit = accrual_revenue - current_month_expenses

        return MonthlyCashFlowResult(
            cash_flow=CashFlowBreakdown(
                cash_in_commissions=cash_in_commissions,
                cash_out_chargebacks=cash_out_chargebacks,
                cash_out_expenses=cash_out_expenses,
                total_cash_in=total_cash_in,
                total_cash_out=total_cash_out,
                net_cash_flow=net_cash_flow,
            ),
            accrual_accounting=AccrualAccounting(
                revenue=accrual_revenue,
                expenses=current_month_expenses,
                profit=accrual_profit,
            ),
            comparison=CashAccrualComparison(
                cash_vs_accrual_gap=net_cash_flow - accrual_profit,
                cash_flow_warning=net_cash_flow < 0,
                warning_message=CASH_BURN_WARNING if net_cash_flow < 0 and accrual_profit > 0 else None,
            ),
        )

    def calculate_working_capital_need(
        self,
        monthly_operating_expenses: float,
        monthly_growth_rate: float = 0.05,
    ) -> WorkingCapitalResult:
        """
        Working capital buffer needed to sustain operations and growth.

        Components:
        - base:   configured buffer months of expenses
        - growth: one extra buffer month per 10% monthly growth (scaled linearly)
        - lag:    half of monthly expenses per month of commission lag
        """
        expenses = monthly_operating_expenses

        base_buffer = self.config.min_cash_buffer_months * expenses
        growth_buffer = (monthly_growth_rate / 0.1) * self.config.growth_buffer_months_per_10pct_growth * expenses

        lag_months = self.config.commission_payment_lag_days / 30
        lag_buffer = lag_months * (expenses * 0.5)

        total_working_capital = base_buffer + growth_buffer + lag_buffer

        # ~70% of expenses are covered by lagged commission while growing
        monthly_cash_burn = expenses * (1 + monthly_growth_rate) - expenses * 0.7

        months_of_runway = total_working_capital / expenses if expenses > 0 else 0.0

        return WorkingCapitalResult(
            monthly_expenses=expenses,
            monthly_growth_rate=monthly_growth_rate,
            base_buffer=base_buffer,
            growth_buffer=growth_buffer,
            lag_buffer=lag_buffer,
            total_working_capital_need=total_working_capital,
            months_of_runway=months_of_runway,
            monthly_cash_burn_during_growth=max(0.0, monthly_cash_burn),
            recommendation=_working_capital_recommendation(total_working_capital, expenses, monthly_growth_rate),
        )

    def project_cash_flow_12_months(
        self,
        starting_monthly_revenue: float,
        monthly_growth_rate: float,
        monthly_expenses: float,
        expense_growth_rate: float = 0.02,
    ) -> List[MonthlyProjection]:
        """
        Project 12 months of cash flow with geometric revenue and expense growth.

        Revenue history is seeded with two synthetic months (95% of start, then
        start) so the first projected months have lagged commission to collect.
        A fixed share of each month's new premium (the configured chargeback
        rate) is assumed to cancel. Cumulative cash starts at zero.
        """
        months: List[MonthlyProjection] = []
        revenue_history = [starting_monthly_revenue * 0.95, starting_monthly_revenue]
        cumulative_cash = 0.0

        for month in range(1, PROJECTION_MONTHS + 1):
            prior_month_revenue = revenue_history[-1]
            two_months_ago_revenue = revenue_history[-2]
            current_revenue = prior_month_revenue * (1 + monthly_growth_rate)

            current_expenses = monthly_expenses * (1 + expense_growth_rate) ** month
            cancellations = current_revenue * self.config.chargeback_rate_first_60_days

            result = self.calculate_monthly_cash_flow(
                current_revenue,
                current_expenses,
                prior_month_revenue,
                two_months_ago_revenue,
                cancellations,
            )

            cumulative_cash += result.cash_flow.net_cash_flow

            months.append(
                MonthlyProjection(
                    month=month,
                    premium_written_accrual=current_revenue,
                    commission_revenue_accrual=current_revenue * self.config.avg_commission_rate,
                    expenses=current_expenses,
                    accrual_profit=result.accrual_accounting.profit,
                    cash_in=result.cash_flow.total_cash_in,
                    cash_out=result.cash_flow.total_cash_out,
                    net_cash_flow=result.cash_flow.net_cash_flow,
                    cumulative_cash=cumulative_cash,
                    cash_vs_accrual_gap=result.comparison.cash_vs_accrual_gap,
                )
            )

            revenue_history.append(current_revenue)

        return months

    def analyze_cash_flow_stress_test(
        self,
        monthly_revenue: float,
        monthly_expenses: float,
        growth_scenarios: Sequence[float] = DEFAULT_GROWTH_SCENARIOS,
    ) -> Dict[str, StressTestScenarioResult]:
        """
        Run the 12-month projection once per growth scenario.

        Results are keyed like "10%_growth". A scenario is sustainable when the
        lowest cumulative cash balance stays above minus the working capital
        need for that growth rate.
        """
        results: Dict[str, StressTestScenarioResult] = {}

        for growth_rate in growth_scenarios:
            projection = self.project_cash_flow_12_months(monthly_revenue, growth_rate, monthly_expenses)

            cumulative = [p.cumulative_cash for p in projection]
            min_cash_balance = min(cumulative)
            max_cash_balance = max(cumulative)
            months_cash_negative = sum(1 for c in cumulative if c < 0)
            total_cash_burn = abs(min_cash_balance) if min_cash_balance < 0 else 0.0

            wc_need = self.calculate_working_capital_need(monthly_expenses, growth_rate)

            results[scenario_key(growth_rate)] = StressTestScenarioResult(
                growth_rate=growth_rate,
                min_cash_balance=min_cash_balance,
                max_cash_balance=max_cash_balance,
                months_cash_negative=months_cash_negative,
                total_cash_burn=total_cash_burn,
                working_capital_needed=wc_need.total_working_capital_need,
                sustainable=min_cash_balance > -wc_need.total_working_capital_need,
                projection=projection,
            )

        return results


def scenario_key(growth_rate: float) -> str:
    return f"{round_half_up(growth_rate * 100)}%_growth"


def _working_capital_recommendation(total_wc: float, monthly_expenses: float, growth_rate: float) -> str:
    months_runway = total_wc / monthly_expenses if monthly_expenses > 0 else 0.0
    amount = format_currency(total_wc)

    if growth_rate > 0.1:
        return (
            f"HIGH GROWTH MODE: Maintain {amount} working capital "
            f"({format_fixed(months_runway)} months runway). Rapid growth requires significant "
            f"cash buffer due to commission lag."
        )
    elif growth_rate > 0.05:
        return (
            f"MODERATE GROWTH: Maintain {amount} working capital "
            f"({format_fixed(months_runway)} months runway). Growth is sustainable with proper "
            f"cash management."
        )
    else:
        return (
            f"STABLE OPERATIONS: Maintain {amount} working capital "
            f"({format_fixed(months_runway)} months runway). Current cash buffer is adequate."
        )


# Module-level entry points. Each builds a model from the given (or default)
# config; reuse a CashFlowModel instance for repeated calls.


def calculate_monthly_cash_flow(
    current_month_revenue_accrual: float,
    current_month_expenses: float,
    prior_month_revenue_accrual: float,
    two_months_ago_revenue: float,
    current_month_cancellations_premium: float,
    config: Optional[CashFlowModelConfig] = None,
) -> MonthlyCashFlowResult:
    return CashFlowModel(config).calculate_monthly_cash_flow(
        current_month_revenue_accrual,
        current_month_expenses,
        prior_month_revenue_accrual,
        two_months_ago_revenue,
        current_month_cancellations_premium,
    )


def calculate_working_capital_need(
    monthly_operating_expenses: float,
    monthly_growth_rate: float = 0.05,
    config: Optional[CashFlowModelConfig] = None,
) -> WorkingCapitalResult:
    return CashFlowModel(config).calculate_working_capital_need(monthly_operating_expenses, monthly_growth_rate)


def project_cash_flow_12_months(
    starting_monthly_revenue: float,
    monthly_growth_rate: float,
    monthly_expenses: float,
    expense_growth_rate: float = 0.02,
    config: Optional[CashFlowModelConfig] = None,
) -> List[MonthlyProjection]:
    return CashFlowModel(config).project_cash_flow_12_months(
        starting_monthly_revenue, monthly_growth_rate, monthly_expenses, expense_growth_rate
    )


def analyze_cash_flow_stress_test(
    monthly_revenue: float,
    monthly_expenses: float,
    growth_scenarios: Sequence[float] = DEFAULT_GROWTH_SCENARIOS,
    config: Optional[CashFlowModelConfig] = None,
) -> Dict[str, StressTestScenarioResult]:
    return CashFlowModel(config).analyze_cash_flow_stress_test(monthly_revenue, monthly_expenses, growth_scenarios)


def summarize_cash_flow_projection(projection: Sequence[MonthlyProjection]) -> CashFlowSummary:
    """Totals and extremes of a projection; an empty projection summarizes to zeros"""
    if not projection:
        return CashFlowSummary(0.0, 0.0, 0.0, 0, 0.0, 0.0, 0.0)

    cumulative = [p.cumulative_cash for p in projection]

    return CashFlowSummary(
        total_accrual_profit=sum(p.accrual_profit for p in projection),
        total_net_cash_flow=sum(p.net_cash_flow for p in projection),
        final_cumulative_cash=projection[-1].cumulative_cash,
        months_with_negative_cash=sum(1 for c in cumulative if c < 0),
        min_cash_balance=min(cumulative),
        max_cash_balance=max(cumulative),
        average_cash_vs_accrual_gap=sum(p.cash_vs_accrual_gap for p in projection) / len(projection),
    )
