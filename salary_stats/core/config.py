"""Configuration models and YAML loader for the salary dashboard."""

import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, field_validator

# Absolute plausibility bounds (monthly net, currency units).
MIN_PLAUSIBLE_SALARY = 50_000
MAX_PLAUSIBLE_SALARY = 2_000_000

DEFAULT_CONTRACT_CEILINGS: dict[str, int] = {
    "Stage": 500_000,
    "Alternance": 600_000,
    "CDD": 1_500_000,
    "CDI": 2_000_000,
    "Prestation de service": 2_000_000,
}

# Group-relative heuristic: groups smaller than this get no relative check.
MIN_GROUP_SIZE = 3
LOW_RATIO = 3.0
HIGH_RATIO = 2.5


class StoreConfig(BaseModel):
    """Remote salary collection (managed Postgres REST endpoint)."""

    url: str = ""
    table: str = "salaries"
    key_env: str = "SUPABASE_ANON_KEY"
    timeout_s: float = Field(default=10.0, gt=0)

    @field_validator("url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.strip().rstrip("/")

    def resolve_key(self) -> str:
        """Read the anonymous API key from the configured environment variable."""
        key = os.environ.get(self.key_env)
        if not key:
            msg = f"{self.key_env} environment variable is required"
            raise ValueError(msg)
        return key


class OutlierConfig(BaseModel):
    """Thresholds for the absolute and group-relative outlier heuristics."""

    min_salary: int = Field(default=MIN_PLAUSIBLE_SALARY, ge=0)
    max_salary: int = Field(default=MAX_PLAUSIBLE_SALARY, gt=0)
    contract_ceilings: dict[str, int] = Field(
        default_factory=lambda: dict(DEFAULT_CONTRACT_CEILINGS),
    )
    min_group_size: int = Field(default=MIN_GROUP_SIZE, ge=1)
    low_ratio: float = Field(default=LOW_RATIO, gt=0)
    high_ratio: float = Field(default=HIGH_RATIO, gt=0)

    @field_validator("contract_ceilings", mode="before")
    @classmethod
    def merge_with_defaults(cls, v: Any) -> Any:
        """Overrides apply per contract; a null value removes that ceiling."""
        if not isinstance(v, dict):
            return v
        unknown = sorted(set(v) - set(DEFAULT_CONTRACT_CEILINGS))
        if unknown:
            msg = f"unknown contract types in contract_ceilings: {unknown}"
            raise ValueError(msg)
        merged = {**DEFAULT_CONTRACT_CEILINGS, **v}
        return {contract: ceiling for contract, ceiling in merged.items() if ceiling is not None}


class SalaryBucket(BaseModel):
    """Inclusive salary range; ``max_salary`` None means open-ended."""

    label: str
    min_salary: int = Field(ge=0)
    max_salary: int | None = None

    def contains(self, salary: int) -> bool:
        if salary < self.min_salary:
            return False
        return self.max_salary is None or salary <= self.max_salary


def _default_buckets() -> list[SalaryBucket]:
    buckets = [SalaryBucket(label="< 100k", min_salary=0, max_salary=99_999)]
    for start in range(100_000, 800_000, 100_000):
        buckets.append(
            SalaryBucket(
                label=f"{start // 1000}k – {(start + 99_999) // 1000}k",
                min_salary=start,
                max_salary=start + 99_999,
            ),
        )
    buckets.append(SalaryBucket(label="≥ 800k", min_salary=800_000))
    return buckets


class MetricsConfig(BaseModel):
    """Histogram layout and recent-entries listing."""

    salary_buckets: list[SalaryBucket] = Field(default_factory=_default_buckets)
    recent_limit: int | None = Field(default=None, ge=1)

    @field_validator("salary_buckets")
    @classmethod
    def buckets_cover_range(cls, v: list[SalaryBucket]) -> list[SalaryBucket]:
        if not v:
            msg = "at least one salary bucket must be configured"
            raise ValueError(msg)
        if v[0].min_salary != 0:
            msg = "the first salary bucket must start at 0"
            raise ValueError(msg)
        for b in v:
            if b.max_salary is not None and b.max_salary < b.min_salary:
                msg = f"salary bucket '{b.label}' has max below min"
                raise ValueError(msg)
        for prev, nxt in zip(v, v[1:]):
            if prev.max_salary is None or nxt.min_salary != prev.max_salary + 1:
                msg = f"salary buckets '{prev.label}' and '{nxt.label}' are not contiguous"
                raise ValueError(msg)
        if v[-1].max_salary is not None:
            msg = "the last salary bucket must be open-ended"
            raise ValueError(msg)
        return v


class Settings(BaseModel):
    """Top-level settings loaded from YAML."""

    store: StoreConfig = Field(default_factory=StoreConfig)
    outliers: OutlierConfig = Field(default_factory=OutlierConfig)
    metrics: MetricsConfig = Field(default_factory=MetricsConfig)

    @classmethod
    def from_yaml(cls, path: str | Path) -> "Settings":
        """Load settings from a YAML file."""
        path = Path(path)
        if not path.exists():
            msg = f"Config file not found: {path}"
            raise FileNotFoundError(msg)
        raw: dict[str, Any] = yaml.safe_load(path.read_text()) or {}
        return cls.model_validate(raw)
