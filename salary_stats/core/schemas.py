"""Core data models for the salary dashboard."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

Formation = Literal["Master", "DIC", "DIT", "TELECOM"]
Specialty = Literal["SSI", "IABD", "INFO"]
ContractType = Literal["Stage", "Alternance", "CDD", "CDI", "Prestation de service"]
ParticipantType = Literal["Étudiant", "Alumni"]

# Closed sets, in display order.
FORMATIONS: tuple[str, ...] = ("Master", "DIC", "DIT", "TELECOM")
SPECIALTIES: tuple[str, ...] = ("SSI", "IABD", "INFO")
CONTRACT_TYPES: tuple[str, ...] = ("Stage", "Alternance", "CDD", "CDI", "Prestation de service")
PARTICIPANT_TYPES: tuple[str, ...] = ("Étudiant", "Alumni")

ALUMNI = "Alumni"


class SalaryRecord(BaseModel):
    """One anonymous salary submission as fetched from the store.

    Frozen — outlier annotations are applied to copies by the detector and
    are never written back to the store.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    created_at: datetime
    formation: Formation
    speciality: Specialty
    contract_type: ContractType
    salary: int = Field(ge=0)
    participant_type: ParticipantType
    job_title: str | None = None
    job_description: str | None = None
    years_since_graduation: int | None = Field(default=None, ge=0)
    is_flagged_outlier: bool = False
    outlier_reason: str | None = None


class SalaryInsert(BaseModel):
    """Submission payload accepted by the store (no id, timestamp or annotations)."""

    formation: Formation
    speciality: Specialty
    contract_type: ContractType
    salary: int = Field(gt=0)
    participant_type: ParticipantType = ALUMNI
    job_title: str | None = None
    job_description: str | None = None
    years_since_graduation: int | None = Field(default=None, ge=0)

    @field_validator("job_title")
    @classmethod
    def job_title_length(cls, v: str | None) -> str | None:
        if v is None or not v.strip():
            return None
        v = v.strip()
        if len(v) < 2:
            msg = "job_title must have at least 2 characters when provided"
            raise ValueError(msg)
        if len(v) > 120:
            msg = "job_title must not exceed 120 characters"
            raise ValueError(msg)
        return v

    @field_validator("job_description")
    @classmethod
    def job_description_length(cls, v: str | None) -> str | None:
        if v is None or not v.strip():
            return None
        v = v.strip()
        if len(v) > 2000:
            msg = "job_description must not exceed 2000 characters"
            raise ValueError(msg)
        return v

    @model_validator(mode="after")
    def years_only_for_alumni(self) -> "SalaryInsert":
        if self.participant_type != ALUMNI:
            self.years_since_graduation = None
        return self

    def to_row(self) -> dict[str, object]:
        """Column mapping sent to the store."""
        return self.model_dump()


class SalaryFilters(BaseModel):
    """Store-side query filters for one dashboard fetch."""

    formation: Formation | None = None
    speciality: Specialty | None = None
    contract_type: ContractType | None = None
    participant_type: ParticipantType | None = None
    years_since_graduation: list[int] = Field(default_factory=list)

    @field_validator("years_since_graduation")
    @classmethod
    def years_sorted_unique(cls, v: list[int]) -> list[int]:
        if any(y < 0 for y in v):
            msg = "years_since_graduation values must be non-negative"
            raise ValueError(msg)
        return sorted(set(v))

    @model_validator(mode="after")
    def years_only_for_alumni(self) -> "SalaryFilters":
        # Years since graduation only exist for Alumni.
        if self.participant_type is not None and self.participant_type != ALUMNI:
            self.years_since_graduation = []
        return self

    def equality_filters(self) -> dict[str, str]:
        """Column → value for every equality filter that is set."""
        columns = {
            "formation": self.formation,
            "contract_type": self.contract_type,
            "speciality": self.speciality,
            "participant_type": self.participant_type,
        }
        return {col: value for col, value in columns.items() if value is not None}

    def membership_filters(self) -> dict[str, list[int]]:
        if not self.years_since_graduation:
            return {}
        return {"years_since_graduation": list(self.years_since_graduation)}


class ExclusionPreferences(BaseModel):
    """Per-session choice of which records are left out of calculations."""

    model_config = ConfigDict(frozen=True)

    exclude_outliers: bool = True
    excluded_ids: frozenset[str] = Field(default_factory=frozenset)


class BucketCount(BaseModel):
    """Number of eligible records in one salary range."""

    model_config = ConfigDict(frozen=True)

    label: str
    count: int = Field(default=0, ge=0)


class CrossTabCell(BaseModel):
    """Average salary for one (speciality, formation) pair."""

    model_config = ConfigDict(frozen=True)

    speciality: Specialty
    formation: Formation
    average_salary: int


class MetricsSnapshot(BaseModel):
    """Aggregates for one dashboard query cycle."""

    model_config = ConfigDict(frozen=True)

    total_participants: int = 0
    average_by_formation: dict[str, int] = Field(default_factory=dict)
    average_by_specialty: dict[str, int] = Field(default_factory=dict)
    average_by_contract: dict[str, int] = Field(default_factory=dict)
    count_by_formation: dict[str, int] = Field(default_factory=dict)
    count_by_specialty: dict[str, int] = Field(default_factory=dict)
    count_by_participant_type: dict[str, int] = Field(default_factory=dict)
    salaries_by_range: list[BucketCount] = Field(default_factory=list)
    average_by_specialty_and_formation: list[CrossTabCell] = Field(default_factory=list)
    latest_entries: list[SalaryRecord] = Field(default_factory=list)


class OutlierSummary(BaseModel):
    """Flagged-record counts shown next to the exclusion toggles."""

    model_config = ConfigDict(frozen=True)

    flagged_count: int = 0
    excluded_flagged_count: int = 0
    flagged_ids: list[str] = Field(default_factory=list)
