"""/v1/segmentation - customer tiers, portfolio analysis and marketing allocation"""

import logging
import time
from dataclasses import asdict

from fastapi import APIRouter, HTTPException, Request

from agency_analytics.api.dependencies import get_request_id
from agency_analytics.api.v1.schemas import (
    ClassificationResponse,
    CustomerSchema,
    MarketingAllocationRequest,
    MarketingAllocationResponse,
    PortfolioRequest,
    PortfolioResponse,
    SegmentDefinitionsResponse,
)
from agency_analytics.domain.models import CustomerRecord
from agency_analytics.domain.segmentation import (
    CUSTOMER_SEGMENTS,
    SEGMENT_ORDER,
    TARGET_DISTRIBUTION,
    analyze_portfolio,
    calculate_customer_ltv,
    classify_customer,
    get_customer_classification,
    recommend_marketing_allocation,
)
from agency_analytics.infrastructure.observability.logging import log_analysis
from agency_analytics.infrastructure.observability.metrics import record_analysis, record_customer_segments

router = APIRouter(prefix="/segmentation")


@router.get("/segments", response_model=SegmentDefinitionsResponse)
def list_segments():
    """Tier definitions and the target book distribution"""
    return SegmentDefinitionsResponse.model_validate(
        {
            "segments": {segment: asdict(CUSTOMER_SEGMENTS[segment]) for segment in SEGMENT_ORDER},
            "target_distribution": dict(TARGET_DISTRIBUTION),
        }
    )


@router.post("/classify", response_model=ClassificationResponse)
def classify(request_body: CustomerSchema, request: Request):
    start_time = time.time()
    request_id = get_request_id(request)

    try:
        classification = get_customer_classification(
            request_body.product_count,
            request_body.annual_premium,
            request_body.claims_history,
        )

        record_customer_segments({classification.segment: 1})
        record_analysis("customer_classification")
        log_analysis(
            request_id,
            "customer_classification",
            (time.time() - start_time) * 1000,
            segment=classification.segment.value,
        )

        return ClassificationResponse.model_validate(
            {
                "customer_id": request_body.customer_id,
                **asdict(classification),
                "segment_details": asdict(CUSTOMER_SEGMENTS[classification.segment]),
            }
        )

    except Exception as e:
        logging.error(f"Unexpected error: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=500, detail="Internal server error")


@router.post("/portfolio", response_model=PortfolioResponse)
def portfolio(request_body: PortfolioRequest, request: Request):
    """
    Classify a book of business and aggregate LTV by segment.

    With group_by_segment set, each customer is also returned under its
    segment with its individual LTV.
    """
    start_time = time.time()
    request_id = get_request_id(request)

    try:
        customers = [
            CustomerRecord(
                product_count=c.product_count,
                annual_premium=c.annual_premium,
                customer_id=c.customer_id,
                claims_history=c.claims_history,
            )
            for c in request_body.customers
        ]
        analysis = analyze_portfolio(customers)

        payload = asdict(analysis)
        if request_body.group_by_segment:
            payload["customers_by_segment"] = _group_customers(customers)

        record_customer_segments({segment: s.count for segment, s in analysis.segments.items()})
        record_analysis("portfolio")
        log_analysis(
            request_id,
            "portfolio",
            (time.time() - start_time) * 1000,
            total_customers=analysis.total_customers,
            total_ltv=analysis.total_ltv,
        )

        return PortfolioResponse.model_validate(payload)

    except Exception as e:
        logging.error(f"Unexpected error: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=500, detail="Internal server error")


def _group_customers(customers):
    grouped = {segment: [] for segment in SEGMENT_ORDER}
    for customer in customers:
        segment = classify_customer(customer.product_count, customer.annual_premium)
        grouped[segment].append(
            {
                "customer_id": customer.customer_id,
                "product_count": customer.product_count,
                "annual_premium": customer.annual_premium,
                "ltv": calculate_customer_ltv(
                    segment, customer.annual_premium, customer.product_count, customer.claims_history
                ),
                "segment": segment,
            }
        )
    return grouped


@router.post("/marketing-allocation", response_model=MarketingAllocationResponse)
def marketing_allocation(request_body: MarketingAllocationRequest, request: Request):
    """Split a marketing budget so it buys customers in the target distribution"""
    start_time = time.time()
    request_id = get_request_id(request)

    try:
        allocation = recommend_marketing_allocation(request_body.total_marketing_budget)

        record_analysis("marketing_allocation")
        log_analysis(
            request_id,
            "marketing_allocation",
            (time.time() - start_time) * 1000,
            total_budget=allocation.total_budget,
            blended_roi=allocation.blended_roi,
        )

        return MarketingAllocationResponse.model_validate(asdict(allocation))

    except Exception as e:
        logging.error(f"Unexpected error: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=500, detail="Internal server error")
