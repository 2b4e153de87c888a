"""Dependency injection for FastAPI endpoints"""

from typing import Optional

from fastapi import Request

from agency_analytics.config import settings
from agency_analytics.domain.cash_flow import CashFlowModel


def get_request_id(request: Request) -> str:
    """Extract request ID from request state"""
    return getattr(request.state, "request_id", "unknown")


def get_cash_flow_model(overrides=None) -> CashFlowModel:
    """
    Cash flow model built from the configured defaults.

    Request-level overrides (a CashFlowConfigOverrides schema) replace only
    the fields they set. Raises InvalidConfigError on an invalid merge.
    """
    config = settings.cash_flow_config()
    if overrides is not None:
        config = config.with_overrides(**overrides.model_dump())
    return CashFlowModel(config)


def get_stress_test_scenarios(requested: Optional[list] = None) -> list:
    """Growth scenarios from the request, else the configured defaults"""
    return list(requested) if requested else list(settings.stress_test_scenarios)
