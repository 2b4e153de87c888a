"""POST /v1/reports/summary - agency management system report analysis"""

import logging
import time
from dataclasses import asdict

from fastapi import APIRouter, HTTPException, Request

from agency_analytics.api.dependencies import get_request_id
from agency_analytics.api.v1.schemas import ReportInput, ReportSummaryRequest, ReportSummaryResponse
from agency_analytics.domain.extraction import (
    NEW_BUSINESS_REPORT_SKIP_ROWS,
    POLICY_REPORT_SKIP_ROWS,
    RENEWAL_REPORT_SKIP_ROWS,
    generate_final_summary,
    read_report_table,
)
from agency_analytics.infrastructure.observability.logging import log_analysis
from agency_analytics.infrastructure.observability.metrics import record_analysis, report_extraction_failures_counter

router = APIRouter()


def _resolve_rows(report: ReportInput, default_skip_rows: int):
    """Header-keyed rows from a report input; raw cells are loaded into a DataFrame after the metadata rows"""
    if report is None:
        return None
    if report.rows is not None:
        return report.rows
    if report.cells is not None:
        skip_rows = report.skip_rows if report.skip_rows is not None else default_skip_rows
        return read_report_table(report.cells, skip_rows)
    return None


@router.post("/reports/summary", response_model=ReportSummaryResponse)
def report_summary(request_body: ReportSummaryRequest, request: Request):
    """
    Comprehensive summary across the supplied reports.

    The policy report feeds retention and book segmentation, the renewal
    audit feeds retention rate and premium change stats. Sections whose
    report is missing or unparseable come back null.
    """
    start_time = time.time()
    request_id = get_request_id(request)

    try:
        policy_rows = _resolve_rows(request_body.policy_report, POLICY_REPORT_SKIP_ROWS)
        renewal_rows = _resolve_rows(request_body.renewal_report, RENEWAL_REPORT_SKIP_ROWS)
        new_business_rows = _resolve_rows(request_body.new_business_report, NEW_BUSINESS_REPORT_SKIP_ROWS)

        summary = generate_final_summary(policy_rows, renewal_rows, new_business_rows)

        failures = {
            "policy_retention": policy_rows is not None and summary.retention_data is None,
            "renewal_audit": renewal_rows is not None and summary.renewal_data is None,
            "new_business": new_business_rows is not None and summary.new_business_data is None,
        }
        for report, failed in failures.items():
            if failed:
                report_extraction_failures_counter.labels(report=report).inc()

        record_analysis("report_summary")
        log_analysis(
            request_id,
            "report_summary",
            (time.time() - start_time) * 1000,
            insights=len(summary.insights),
            failed_reports=[report for report, failed in failures.items() if failed],
        )

        return ReportSummaryResponse.model_validate(asdict(summary))

    except Exception as e:
        logging.error(f"Unexpected error: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=500, detail="Internal server error")
