"""Case persistence: one JSON file per case, read and overwritten whole.

There is no locking. Two requests writing the same case race and the last
write wins.
"""
import re
import secrets
import time
from pathlib import Path
from typing import List, Optional

from pydantic import ValidationError

from .errors import ArgumentLimitError, CaseNotFoundError, CaseStateError, InvalidCaseIdError, StorageError
from .logger import get_logger
from .models import (
    Argument,
    ArgumentResponse,
    Case,
    CaseCreate,
    CaseStatistics,
    CaseStatus,
    CaseSummary,
    Document,
    SearchCriteria,
    Side,
    SideName,
    Verdict,
    utcnow,
)

logger = get_logger(__name__)

CASE_ID_PATTERN = re.compile(r"^[A-Za-z0-9_-]{1,128}$")
RECENT_ACTIVITY_SIZE = 5


def generate_case_id() -> str:
    return f"case_{secrets.token_hex(8)}_{int(time.time() * 1000)}"


def validate_case_id(case_id: str) -> str:
    if not case_id or not CASE_ID_PATTERN.match(case_id):
        raise InvalidCaseIdError(f"Invalid case id: {case_id!r}")
    return case_id


# -------------------------------
# Guards checked before calling the model
# -------------------------------
def ensure_ready_for_verdict(case: Case):
    if not case.side_a.documents or not case.side_b.documents:
        raise CaseStateError("Both sides must upload documents before a verdict can be rendered")


def ensure_can_argue(case: Case, side: str, limit: int):
    if case.verdict is None:
        raise CaseStateError("Arguments can only be submitted after a verdict has been rendered")
    if side not in ("A", "B"):
        raise CaseStateError("Side must be 'A' or 'B'")
    if len(case.arguments_for(side)) >= limit:
        raise ArgumentLimitError(f"Side {side} has used all {limit} arguments")


class CaseStore:
    def __init__(self, cases_dir: Path):
        self.cases_dir = Path(cases_dir)
        self.cases_dir.mkdir(parents=True, exist_ok=True)

    def _path(self, case_id: str) -> Path:
        return self.cases_dir / f"{validate_case_id(case_id)}.json"

    # ---- CRUD ----
    def create_case(self, info: CaseCreate, case_id: Optional[str] = None) -> Case:
        case = Case(
            case_id=validate_case_id(case_id) if case_id else generate_case_id(),
            title=info.title,
            description=info.description,
            country=info.country,
            case_type=info.case_type or "civil",
        )
        self.save_case(case)
        logger.info(f"Created case '{case.title}'", case_id=case.case_id)
        return case

    def get_case(self, case_id: str) -> Optional[Case]:
        path = self._path(case_id)
        try:
            return Case.model_validate_json(path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return None
        except (OSError, ValidationError) as e:
            raise StorageError(f"Error loading case {case_id}: {e}") from e

    def require_case(self, case_id: str) -> Case:
        case = self.get_case(case_id)
        if case is None:
            raise CaseNotFoundError(case_id)
        return case

    def save_case(self, case: Case):
        case.updated_at = utcnow()
        path = self._path(case.case_id)
        try:
            path.write_text(case.model_dump_json(by_alias=True, indent=2), encoding="utf-8")
        except OSError as e:
            raise StorageError(f"Error saving case {case.case_id}: {e}") from e

    def delete_case(self, case_id: str) -> bool:
        try:
            self._path(case_id).unlink()
        except FileNotFoundError:
            return False
        except OSError as e:
            raise StorageError(f"Error deleting case {case_id}: {e}") from e
        logger.info("Deleted case", case_id=case_id)
        return True

    # ---- state transitions ----
    def add_documents_to_side(self, case_id: str, side: SideName, description: Optional[str],
                              documents: List[Document]) -> Case:
        case = self.get_case(case_id)
        if case is None:
            case = Case(
                case_id=validate_case_id(case_id),
                title=f"Case {case_id}",
                description="Auto-created case from document upload",
                country="United States",
                case_type="civil",
            )
            logger.info("Auto-created case from document upload", case_id=case_id)

        new_side = Side(description=description, documents=documents, uploaded_at=utcnow())
        if side == "A":
            case.side_a = new_side
        else:
            case.side_b = new_side

        if case.side_a.documents and case.side_b.documents:
            case.status = CaseStatus.READY_FOR_JUDGMENT
        else:
            case.status = CaseStatus.AWAITING_DOCUMENTS
        case.metadata.last_activity = utcnow()

        self.save_case(case)
        return case

    def set_verdict(self, case_id: str, verdict: Verdict) -> Case:
        case = self.require_case(case_id)
        case.verdict = verdict
        case.status = CaseStatus.VERDICT_RENDERED
        case.metadata.last_activity = utcnow()
        self.save_case(case)
        return case

    def add_argument(self, case_id: str, side: SideName, argument: str,
                     ai_response: ArgumentResponse) -> Argument:
        case = self.require_case(case_id)
        entry = Argument(
            id=secrets.token_hex(4),
            side=side,
            argument=argument,
            ai_response=ai_response,
            timestamp=ai_response.timestamp or utcnow(),
        )
        case.arguments.append(entry)

        case.metadata.total_arguments = len(case.arguments)
        case.metadata.side_a_arguments = len(case.arguments_for("A"))
        case.metadata.side_b_arguments = len(case.arguments_for("B"))
        case.metadata.last_activity = utcnow()
        case.status = CaseStatus.ARGUMENTS_PHASE

        self.save_case(case)
        return entry

    # ---- listing ----
    def list_cases(self) -> List[CaseSummary]:
        summaries = []
        for path in self.cases_dir.glob("*.json"):
            try:
                case = self.get_case(path.stem)
            except (StorageError, InvalidCaseIdError) as e:
                logger.error(f"Error loading case summary for {path.name}: {e}")
                continue
            if case:
                summaries.append(CaseSummary.from_case(case))

        summaries.sort(key=lambda s: s.last_activity, reverse=True)
        return summaries

    def search_cases(self, criteria: SearchCriteria) -> List[CaseSummary]:
        results = self.list_cases()

        if criteria.status:
            results = [c for c in results if c.status == criteria.status]
        if criteria.country:
            country = criteria.country.lower()
            results = [c for c in results if country in c.country.lower()]
        if criteria.case_type:
            results = [c for c in results if c.case_type == criteria.case_type]
        if criteria.title:
            title = criteria.title.lower()
            results = [c for c in results if title in c.title.lower()]
        if criteria.has_verdict is not None:
            results = [c for c in results if c.has_verdict == criteria.has_verdict]

        return results

    def get_statistics(self) -> CaseStatistics:
        cases = self.list_cases()
        stats = CaseStatistics(total_cases=len(cases), recent_activity=cases[:RECENT_ACTIVITY_SIZE])

        total_arguments = 0
        for summary in cases:
            status = summary.status.value
            stats.status_breakdown[status] = stats.status_breakdown.get(status, 0) + 1
            stats.country_breakdown[summary.country] = stats.country_breakdown.get(summary.country, 0) + 1
            stats.type_breakdown[summary.case_type] = stats.type_breakdown.get(summary.case_type, 0) + 1
            total_arguments += summary.total_arguments
            if summary.has_verdict:
                stats.cases_with_verdict += 1

        if cases:
            stats.average_arguments_per_case = round(total_arguments / len(cases), 2)
        return stats
