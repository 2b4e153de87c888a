"""POST /v1/cash-flow/* - commission timing, working capital and projection endpoints"""

import logging
import time
from dataclasses import asdict

from fastapi import APIRouter, HTTPException, Request

from agency_analytics.api.dependencies import get_cash_flow_model, get_request_id, get_stress_test_scenarios
from agency_analytics.api.v1.schemas import (
    MonthlyCashFlowRequest,
    MonthlyCashFlowResponse,
    ProjectionRequest,
    ProjectionResponse,
    StressTestRequest,
    StressTestResponse,
    WorkingCapitalRequest,
    WorkingCapitalResponse,
)
from agency_analytics.domain.cash_flow import summarize_cash_flow_projection
from agency_analytics.domain.exceptions import InvalidConfigError
from agency_analytics.infrastructure.observability.logging import log_analysis
from agency_analytics.infrastructure.observability.metrics import cash_flow_warning_counter, record_analysis

router = APIRouter(prefix="/cash-flow")


def _elapsed_ms(start_time: float) -> float:
    return (time.time() - start_time) * 1000


@router.post("/monthly", response_model=MonthlyCashFlowResponse)
def monthly_cash_flow(request_body: MonthlyCashFlowRequest, request: Request):
    """
    Cash vs accrual view of a single month.

    Commission received depends on the configured payment lag; a warning is
    raised when cash flow is negative while accrual profit is positive.
    """
    start_time = time.time()
    request_id = get_request_id(request)

    try:
        model = get_cash_flow_model(request_body.config)
        result = model.calculate_monthly_cash_flow(
            request_body.current_month_revenue_accrual,
            request_body.current_month_expenses,
            request_body.prior_month_revenue_accrual,
            request_body.two_months_ago_revenue,
            request_body.current_month_cancellations_premium,
        )

        if result.comparison.cash_flow_warning:
            cash_flow_warning_counter.inc()
        record_analysis("cash_flow_monthly")
        log_analysis(
            request_id,
            "cash_flow_monthly",
            _elapsed_ms(start_time),
            net_cash_flow=result.cash_flow.net_cash_flow,
            cash_flow_warning=result.comparison.cash_flow_warning,
        )

        return MonthlyCashFlowResponse.model_validate(asdict(result))

    except InvalidConfigError as e:
        logging.warning(f"Invalid cash flow config: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=422, detail=str(e))

    except Exception as e:
        logging.error(f"Unexpected error: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=500, detail="Internal server error")


@router.post("/working-capital", response_model=WorkingCapitalResponse)
def working_capital(request_body: WorkingCapitalRequest, request: Request):
    """Cash buffer needed to fund growth through the commission lag"""
    start_time = time.time()
    request_id = get_request_id(request)

    try:
        model = get_cash_flow_model(request_body.config)
        result = model.calculate_working_capital_need(
            request_body.monthly_operating_expenses,
            request_body.monthly_growth_rate,
        )

        record_analysis("working_capital")
        log_analysis(
            request_id,
            "working_capital",
            _elapsed_ms(start_time),
            total_working_capital_need=result.total_working_capital_need,
        )

        return WorkingCapitalResponse.model_validate(asdict(result))

    except InvalidConfigError as e:
        logging.warning(f"Invalid cash flow config: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=422, detail=str(e))

    except Exception as e:
        logging.error(f"Unexpected error: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=500, detail="Internal server error")


@router.post("/projection", response_model=ProjectionResponse)
def projection(request_body: ProjectionRequest, request: Request):
    """12-month cash vs accrual projection with summary totals"""
    start_time = time.time()
    request_id = get_request_id(request)

    try:
        model = get_cash_flow_model(request_body.config)
        months = model.project_cash_flow_12_months(
            request_body.starting_monthly_revenue,
            request_body.monthly_growth_rate,
            request_body.monthly_expenses,
            request_body.expense_growth_rate,
        )
        summary = summarize_cash_flow_projection(months)

        record_analysis("cash_flow_projection")
        log_analysis(
            request_id,
            "cash_flow_projection",
            _elapsed_ms(start_time),
            final_cumulative_cash=summary.final_cumulative_cash,
            months_with_negative_cash=summary.months_with_negative_cash,
        )

        return ProjectionResponse.model_validate(
            {"months": [asdict(month) for month in months], "summary": asdict(summary)}
        )

    except InvalidConfigError as e:
        logging.warning(f"Invalid cash flow config: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=422, detail=str(e))

    except Exception as e:
        logging.error(f"Unexpected error: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=500, detail="Internal server error")


@router.post("/stress-test", response_model=StressTestResponse)
def stress_test(request_body: StressTestRequest, request: Request):
    """Projection per growth scenario, keyed like "10%_growth" """
    start_time = time.time()
    request_id = get_request_id(request)

    try:
        model = get_cash_flow_model(request_body.config)
        scenarios = model.analyze_cash_flow_stress_test(
            request_body.monthly_revenue,
            request_body.monthly_expenses,
            get_stress_test_scenarios(request_body.growth_scenarios),
        )

        record_analysis("cash_flow_stress_test")
        log_analysis(
            request_id,
            "cash_flow_stress_test",
            _elapsed_ms(start_time),
            unsustainable=[key for key, result in scenarios.items() if not result.sustainable],
        )

        return StressTestResponse.model_validate(
            {"scenarios": {key: asdict(result) for key, result in scenarios.items()}}
        )

    except InvalidConfigError as e:
        logging.warning(f"Invalid cash flow config: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=422, detail=str(e))

    except Exception as e:
        logging.error(f"Unexpected error: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=500, detail="Internal server error")
