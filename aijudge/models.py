from datetime import datetime, timezone
from enum import Enum
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

SideName = Literal["A", "B"]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class CamelModel(BaseModel):
    # stored and served with camelCase keys, constructed with either form
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class CaseStatus(str, Enum):
    CREATED = "created"
    AWAITING_DOCUMENTS = "awaiting_documents"
    READY_FOR_JUDGMENT = "ready_for_judgment"
    VERDICT_RENDERED = "verdict_rendered"
    ARGUMENTS_PHASE = "arguments_phase"


class Decision(str, Enum):
    FAVOR_SIDE_A = "favor_side_a"
    FAVOR_SIDE_B = "favor_side_b"
    SPLIT_DECISION = "split_decision"
    INSUFFICIENT_EVIDENCE = "insufficient_evidence"


class VerdictChange(str, Enum):
    NONE = "none"
    MINOR_MODIFICATION = "minor_modification"
    SIGNIFICANT_CHANGE = "significant_change"
    REVERSAL = "reversal"


class Document(CamelModel):
    filename: str
    mimetype: str
    size: int
    extracted_text: str
    word_count: int = 0
    pages: Optional[int] = None
    file_url: Optional[str] = None
    path: Optional[str] = None


class Side(CamelModel):
    description: Optional[str] = None
    documents: List[Document] = Field(default_factory=list)
    uploaded_at: Optional[datetime] = None


def _clamp_confidence(value) -> float:
    try:
        value = float(value)
    except (TypeError, ValueError):
        return 0.5
    return min(max(value, 0.0), 1.0)


def _as_text(value) -> Optional[str]:
    if value is None or isinstance(value, str):
        return value
    return str(value)


def _as_list(value) -> List[str]:
    if value is None:
        return []
    if not isinstance(value, (list, tuple)):
        return [str(value)]
    return [str(item) for item in value]


class Verdict(CamelModel):
    decision: Decision = Decision.INSUFFICIENT_EVIDENCE
    reasoning: str = ""
    key_findings: List[str] = Field(default_factory=list)
    legal_principles: List[str] = Field(default_factory=list)
    damages: Optional[str] = None
    notes: Optional[str] = None
    confidence: float = 0.5
    open_to_reconsideration: bool = True
    timestamp: Optional[datetime] = None
    case_id: Optional[str] = None
    country: Optional[str] = None
    case_type: Optional[str] = None

    @field_validator("decision", mode="before")
    @classmethod
    def _known_decision(cls, value):
        if isinstance(value, str) and value in {d.value for d in Decision}:
            return value
        return Decision.INSUFFICIENT_EVIDENCE

    @field_validator("confidence", mode="before")
    @classmethod
    def _confidence(cls, value):
        return _clamp_confidence(value)

    @field_validator("reasoning", mode="before")
    @classmethod
    def _reasoning(cls, value):
        return _as_text(value) or ""

    @field_validator("damages", "notes", mode="before")
    @classmethod
    def _text(cls, value):
        return _as_text(value)

    @field_validator("key_findings", "legal_principles", mode="before")
    @classmethod
    def _lists(cls, value):
        return _as_list(value)


class ArgumentResponse(CamelModel):
    response: str = ""
    verdict_change: VerdictChange = VerdictChange.NONE
    new_reasoning: Optional[str] = None
    addressed_points: List[str] = Field(default_factory=list)
    remaining_concerns: List[str] = Field(default_factory=list)
    legal_citations: List[str] = Field(default_factory=list)
    confidence: float = 0.5
    requests_clarification: Optional[str] = None
    timestamp: Optional[datetime] = None
    original_argument: Optional[str] = None
    side: Optional[SideName] = None

    @field_validator("verdict_change", mode="before")
    @classmethod
    def _known_change(cls, value):
        if isinstance(value, str) and value in {c.value for c in VerdictChange}:
            return value
        return VerdictChange.NONE

    @field_validator("confidence", mode="before")
    @classmethod
    def _confidence(cls, value):
        return _clamp_confidence(value)

    @field_validator("response", mode="before")
    @classmethod
    def _response(cls, value):
        return _as_text(value) or ""

    @field_validator("new_reasoning", "requests_clarification", mode="before")
    @classmethod
    def _text(cls, value):
        return _as_text(value)

    @field_validator("addressed_points", "remaining_concerns", "legal_citations", mode="before")
    @classmethod
    def _lists(cls, value):
        return _as_list(value)


class Argument(CamelModel):
    id: str
    side: SideName
    argument: str
    ai_response: ArgumentResponse
    timestamp: datetime = Field(default_factory=utcnow)


class CaseMetadata(CamelModel):
    total_arguments: int = 0
    side_a_arguments: int = 0
    side_b_arguments: int = 0
    last_activity: datetime = Field(default_factory=utcnow)


class Case(CamelModel):
    case_id: str
    title: str
    description: str
    country: str
    case_type: str = "civil"
    status: CaseStatus = CaseStatus.CREATED
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
    side_a: Side = Field(default_factory=Side)
    side_b: Side = Field(default_factory=Side)
    verdict: Optional[Verdict] = None
    arguments: List[Argument] = Field(default_factory=list)
    metadata: CaseMetadata = Field(default_factory=CaseMetadata)

    def arguments_for(self, side: SideName) -> List[Argument]:
        return [arg for arg in self.arguments if arg.side == side]


class CaseCreate(CamelModel):
    title: str = Field(min_length=1)
    description: str = Field(min_length=1)
    country: str = Field(min_length=1)
    case_type: str = "civil"


class ArgumentCreate(CamelModel):
    side: SideName
    argument: str


class CaseSummary(CamelModel):
    case_id: str
    title: str
    status: CaseStatus
    country: str
    case_type: str
    created_at: datetime
    updated_at: datetime
    has_verdict: bool
    total_arguments: int
    last_activity: datetime

    @classmethod
    def from_case(cls, case: Case) -> "CaseSummary":
        return cls(
            case_id=case.case_id,
            title=case.title,
            status=case.status,
            country=case.country,
            case_type=case.case_type,
            created_at=case.created_at,
            updated_at=case.updated_at,
            has_verdict=case.verdict is not None,
            total_arguments=case.metadata.total_arguments,
            last_activity=case.metadata.last_activity,
        )


class SearchCriteria(CamelModel):
    status: Optional[CaseStatus] = None
    country: Optional[str] = None
    case_type: Optional[str] = None
    title: Optional[str] = None
    has_verdict: Optional[bool] = None


class CaseStatistics(CamelModel):
    total_cases: int = 0
    status_breakdown: Dict[str, int] = Field(default_factory=dict)
    country_breakdown: Dict[str, int] = Field(default_factory=dict)
    type_breakdown: Dict[str, int] = Field(default_factory=dict)
    average_arguments_per_case: float = 0
    cases_with_verdict: int = 0
    recent_activity: List[CaseSummary] = Field(default_factory=list)
