"""Configuration management using Pydantic Settings"""

from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict

from agency_analytics.domain.models import CashFlowModelConfig


class Settings(BaseSettings):
    """Application configuration loaded from environment variables"""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Service
    service_name: str = "agency-analytics"
    log_level: str = "INFO"

    # Cash flow model defaults (carrier-specific, verify with the agency)
    commission_payment_lag_days: float = 48
    chargeback_rate_first_60_days: float = 0.08
    chargeback_recovery_rate: float = 0.95
    min_cash_buffer_months: float = 2.0
    growth_buffer_months_per_10pct_growth: float = 1.0
    avg_commission_rate: float = 0.07

    # Monthly growth rates tested when a stress test request names none
    stress_test_scenarios: List[float] = [0.05, 0.10, 0.15]

    def cash_flow_config(self) -> CashFlowModelConfig:
        """Validated cash flow model config; raises InvalidConfigError on bad values"""
        return CashFlowModelConfig(
            commission_payment_lag_days=self.commission_payment_lag_days,
            chargeback_rate_first_60_days=self.chargeback_rate_first_60_days,
            chargeback_recovery_rate=self.chargeback_recovery_rate,
            min_cash_buffer_months=self.min_cash_buffer_months,
            growth_buffer_months_per_10pct_growth=self.growth_buffer_months_per_10pct_growth,
            avg_commission_rate=self.avg_commission_rate,
        )


settings = Settings()
