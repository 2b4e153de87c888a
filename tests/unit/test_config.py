"""Unit tests for settings and cash flow model dependencies"""

import pytest
from agency_analytics.api.dependencies import get_cash_flow_model, get_stress_test_scenarios
from agency_analytics.api.v1.schemas import CashFlowConfigOverrides
from agency_analytics.config import Settings
from agency_analytics.domain.exceptions import InvalidConfigError


def test_settings_defaults():
    """Test default cash flow assumptions"""
    config = Settings().cash_flow_config()

    assert config.commission_payment_lag_days == 48
    assert config.chargeback_rate_first_60_days == 0.08
    assert config.chargeback_recovery_rate == 0.95
    assert config.avg_commission_rate == 0.07


def test_settings_from_environment(monkeypatch):
    """Test environment variables override defaults"""
    monkeypatch.setenv("COMMISSION_PAYMENT_LAG_DAYS", "30")
    monkeypatch.setenv("STRESS_TEST_SCENARIOS", "[0.02, 0.2]")

    settings = Settings()

    assert settings.cash_flow_config().commission_payment_lag_days == 30
    assert settings.stress_test_scenarios == [0.02, 0.2]


def test_settings_invalid_rate_rejected(monkeypatch):
    """Test an out-of-range configured rate fails when building the model config"""
    monkeypatch.setenv("CHARGEBACK_RECOVERY_RATE", "1.2")

    with pytest.raises(InvalidConfigError):
        Settings().cash_flow_config()


def test_cash_flow_model_merges_overrides():
    """Test request overrides replace only the fields they set"""
    model = get_cash_flow_model(CashFlowConfigOverrides(commission_payment_lag_days=40))

    assert model.config.commission_payment_lag_days == 40
    assert model.config.avg_commission_rate == 0.07


def test_cash_flow_model_without_overrides():
    assert get_cash_flow_model().config.commission_payment_lag_days == 48


def test_stress_test_scenarios_default():
    """Test configured scenarios are used when the request names none"""
    assert get_stress_test_scenarios(None) == [0.05, 0.10, 0.15]
    assert get_stress_test_scenarios([0.3]) == [0.3]
