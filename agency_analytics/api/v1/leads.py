"""Lead scoring and vendor ROI endpoints"""

import logging
import time
from dataclasses import asdict
from typing import List

from fastapi import APIRouter, HTTPException, Request

from agency_analytics.api.dependencies import get_request_id
from agency_analytics.api.v1.schemas import (
    BlendedMetricsRequest,
    BlendedMetricsResponse,
    BudgetAllocationRequest,
    BudgetAllocationResponse,
    LeadBatchRequest,
    LeadBatchResponse,
    LeadSchema,
    LeadScoreResponse,
    VendorPerformanceRequest,
    VendorPerformanceSchema,
)
from agency_analytics.domain.lead_scoring import (
    analyze_vendor_performance,
    calculate_blended_metrics,
    calculate_expected_value,
    calculate_portfolio_summary,
    get_high_value_leads,
    get_top_factors,
    optimize_budget_allocation,
    score_lead,
    score_leads_batch,
)
from agency_analytics.domain.models import LeadData, LeadOutcome, LeadScore, VendorPerformance
from agency_analytics.infrastructure.observability.logging import log_analysis
from agency_analytics.infrastructure.observability.metrics import (
    record_analysis,
    record_lead_tiers,
    record_vendor_rating,
)

router = APIRouter()


def _to_lead(lead: LeadSchema) -> LeadData:
    return LeadData(**lead.model_dump())


def _to_vendor_performances(vendors: List[VendorPerformanceSchema]) -> List[VendorPerformance]:
    return [VendorPerformance(**vendor.model_dump()) for vendor in vendors]


def _score_response(score: LeadScore) -> LeadScoreResponse:
    return LeadScoreResponse.model_validate(
        {
            **asdict(score),
            "expected_value": calculate_expected_value(score),
            "top_factors": [asdict(f) for f in get_top_factors(score.key_factors)],
        }
    )


@router.post("/leads/score", response_model=LeadScoreResponse)
def score_single_lead(request_body: LeadSchema, request: Request):
    """Score one lead 0-100 and predict its customer tier"""
    start_time = time.time()
    request_id = get_request_id(request)

    try:
        score = score_lead(_to_lead(request_body))

        record_lead_tiers([score.predicted_segment])
        record_analysis("lead_score")
        log_analysis(
            request_id,
            "lead_score",
            (time.time() - start_time) * 1000,
            lead_id=score.lead_id,
            score=score.score,
            tier=score.predicted_segment.value,
        )

        return _score_response(score)

    except Exception as e:
        logging.error(f"Unexpected error: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=500, detail="Internal server error")


@router.post("/leads/score/batch", response_model=LeadBatchResponse)
def score_lead_batch(request_body: LeadBatchRequest, request: Request):
    """Score a batch of leads with a portfolio summary and the high-value lead IDs"""
    start_time = time.time()
    request_id = get_request_id(request)

    try:
        scores = score_leads_batch([_to_lead(lead) for lead in request_body.leads])
        summary = calculate_portfolio_summary(scores)
        high_value = get_high_value_leads(scores, request_body.high_value_threshold)

        record_lead_tiers(s.predicted_segment for s in scores)
        record_analysis("lead_score_batch")
        log_analysis(
            request_id,
            "lead_score_batch",
            (time.time() - start_time) * 1000,
            total_leads=summary.total_leads,
            avg_score=summary.avg_score,
            high_value_leads=len(high_value),
        )

        return LeadBatchResponse(
            scores=[_score_response(s) for s in scores],
            summary=asdict(summary),
            high_value_lead_ids=[s.lead_id for s in high_value],
        )

    except Exception as e:
        logging.error(f"Unexpected error: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=500, detail="Internal server error")


@router.post("/vendors/performance", response_model=VendorPerformanceSchema)
def vendor_performance(request_body: VendorPerformanceRequest, request: Request):
    """ROI, CAC and LTV:CAC rating for one lead vendor"""
    start_time = time.time()
    request_id = get_request_id(request)

    try:
        outcomes = [LeadOutcome(**lead.model_dump()) for lead in request_body.leads]
        performance = analyze_vendor_performance(request_body.vendor_name, request_body.total_spend, outcomes)

        record_vendor_rating(performance.rating)
        record_analysis("vendor_performance")
        log_analysis(
            request_id,
            "vendor_performance",
            (time.time() - start_time) * 1000,
            vendor_name=performance.vendor_name,
            ltv_cac_ratio=performance.ltv_cac_ratio,
            rating=performance.rating.value,
        )

        return VendorPerformanceSchema.model_validate(asdict(performance))

    except Exception as e:
        logging.error(f"Unexpected error: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=500, detail="Internal server error")


@router.post("/vendors/budget-allocation", response_model=BudgetAllocationResponse)
def budget_allocation(request_body: BudgetAllocationRequest, request: Request):
    """Reallocate a lead budget across vendors by LTV:CAC band"""
    start_time = time.time()
    request_id = get_request_id(request)

    try:
        allocations = optimize_budget_allocation(
            request_body.current_budget,
            _to_vendor_performances(request_body.vendors),
        )

        record_analysis("budget_allocation")
        log_analysis(
            request_id,
            "budget_allocation",
            (time.time() - start_time) * 1000,
            vendors=len(allocations),
        )

        return BudgetAllocationResponse(allocations=[asdict(a) for a in allocations])

    except Exception as e:
        logging.error(f"Unexpected error: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=500, detail="Internal server error")


@router.post("/vendors/blended-metrics", response_model=BlendedMetricsResponse)
def blended_metrics(request_body: BlendedMetricsRequest, request: Request):
    start_time = time.time()
    request_id = get_request_id(request)

    try:
        metrics = calculate_blended_metrics(_to_vendor_performances(request_body.vendors))

        record_analysis("blended_metrics")
        log_analysis(
            request_id,
            "blended_metrics",
            (time.time() - start_time) * 1000,
            blended_ltv_cac_ratio=metrics.blended_ltv_cac_ratio,
        )

        return BlendedMetricsResponse.model_validate(asdict(metrics))

    except Exception as e:
        logging.error(f"Unexpected error: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=500, detail="Internal server error")
