import os
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Mapping

DEFAULT_API_URL = "http://localhost:5000/api"
DEFAULT_TIMEOUT = 15.0


@dataclass(frozen=True)
class Settings:
    api_url: str = DEFAULT_API_URL
    timeout: float = DEFAULT_TIMEOUT  # секунды на вызов бэкенда
    tax_rate: Decimal = Decimal("0.0875")
    log_level: str = "INFO"
    log_json: bool = False


def load_settings(environ: Mapping[str, str] = os.environ) -> Settings:
    """Читает переменные POS_*, иначе значения по умолчанию"""
    timeout_raw = environ.get("POS_API_TIMEOUT", str(DEFAULT_TIMEOUT))
    try:
        timeout = float(timeout_raw)
    except ValueError as e:
        raise ValueError(f"POS_API_TIMEOUT must be a number, got {timeout_raw!r}") from e
    if timeout <= 0:
        raise ValueError(f"POS_API_TIMEOUT must be positive, got {timeout_raw!r}")

    rate_raw = environ.get("POS_TAX_RATE", "0.0875")
    try:
        tax_rate = Decimal(rate_raw)
    except InvalidOperation as e:
        raise ValueError(f"POS_TAX_RATE must be a decimal, got {rate_raw!r}") from e
    if not tax_rate.is_finite() or tax_rate < 0:
        raise ValueError(f"POS_TAX_RATE must be a non-negative decimal, got {rate_raw!r}")

    return Settings(
        api_url=environ.get("POS_API_URL", DEFAULT_API_URL).rstrip("/"),
        timeout=timeout,
        tax_rate=tax_rate,
        log_level=environ.get("POS_LOG_LEVEL", "INFO").upper(),
        log_json=environ.get("POS_LOG_JSON", "").lower() in ("1", "true", "yes"),
    )
