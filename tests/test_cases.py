import json
from datetime import timedelta

import pytest

from aijudge.cases import CaseStore, ensure_can_argue, ensure_ready_for_verdict, generate_case_id
from aijudge.errors import ArgumentLimitError, CaseNotFoundError, CaseStateError, InvalidCaseIdError
from aijudge.models import ArgumentResponse, CaseCreate, CaseStatus, Document, SearchCriteria, Verdict


def _doc(name="lease.txt", text="The lease runs for twelve months."):
    return Document(filename=name, mimetype="text/plain", size=len(text), extracted_text=text)


def _new_case(store, title="Deposit dispute", country="United States", case_type="civil"):
    return store.create_case(CaseCreate(title=title, description="Tenant wants deposit back",
                                        country=country, case_type=case_type))


def test_generated_ids_are_unique_and_valid():
    ids = {generate_case_id() for _ in range(20)}
    assert len(ids) == 20
    assert all(i.startswith("case_") for i in ids)


def test_create_and_reload(store):
    case = _new_case(store)
    assert case.status == CaseStatus.CREATED

    loaded = store.get_case(case.case_id)
    assert loaded.title == "Deposit dispute"
    assert loaded.side_a.documents == []
    assert loaded.verdict is None


def test_case_file_uses_camel_case_keys(store):
    case = _new_case(store)
    raw = json.loads((store.cases_dir / f"{case.case_id}.json").read_text())
    assert raw["caseId"] == case.case_id
    assert "sideA" in raw and "caseType" in raw
    assert raw["metadata"]["totalArguments"] == 0


def test_missing_case_is_none(store):
    assert store.get_case("case_missing") is None
    with pytest.raises(CaseNotFoundError):
        store.require_case("case_missing")


@pytest.mark.parametrize("bad_id", ["../etc/passwd", "a/b", "", "case id"])
def test_path_like_ids_are_rejected(store, bad_id):
    with pytest.raises(InvalidCaseIdError):
        store.get_case(bad_id)


def test_status_follows_document_uploads(store):
    case = _new_case(store)

    case = store.add_documents_to_side(case.case_id, "A", "Tenant", [_doc()])
    assert case.status == CaseStatus.AWAITING_DOCUMENTS
    assert case.side_a.uploaded_at is not None

    case = store.add_documents_to_side(case.case_id, "B", "Landlord", [_doc("photos.txt")])
    assert case.status == CaseStatus.READY_FOR_JUDGMENT
    assert case.side_b.description == "Landlord"


def test_upload_replaces_side_documents(store):
    case = _new_case(store)
    store.add_documents_to_side(case.case_id, "A", None, [_doc("one.txt"), _doc("two.txt")])
    case = store.add_documents_to_side(case.case_id, "A", "Revised", [_doc("three.txt")])
    assert [d.filename for d in case.side_a.documents] == ["three.txt"]


def test_upload_auto_creates_case_under_requested_id(store):
    case = store.add_documents_to_side("case_from_upload", "B", None, [_doc()])
    assert case.case_id == "case_from_upload"
    assert case.title == "Case case_from_upload"
    assert case.country == "United States"
    assert store.get_case("case_from_upload") is not None
    assert len(list(store.cases_dir.glob("*.json"))) == 1


def test_verdict_and_arguments_advance_status(store):
    case = _new_case(store)
    with pytest.raises(CaseNotFoundError):
        store.set_verdict("case_missing", Verdict())

    case = store.set_verdict(case.case_id, Verdict(decision="favor_side_b", reasoning="..."))
    assert case.status == CaseStatus.VERDICT_RENDERED

    entry = store.add_argument(case.case_id, "A", "New receipt", ArgumentResponse(response="Noted"))
    assert len(entry.id) == 8
    case = store.get_case(case.case_id)
    assert case.status == CaseStatus.ARGUMENTS_PHASE
    assert case.metadata.total_arguments == 1
    assert case.metadata.side_a_arguments == 1
    assert case.metadata.side_b_arguments == 0
    assert case.arguments[0].ai_response.response == "Noted"


def test_ensure_ready_for_verdict(store):
    case = store.add_documents_to_side("case_half", "A", None, [_doc()])
    with pytest.raises(CaseStateError):
        ensure_ready_for_verdict(case)
    case = store.add_documents_to_side("case_half", "B", None, [_doc()])
    ensure_ready_for_verdict(case)


def test_ensure_can_argue(store):
    case = _new_case(store)
    with pytest.raises(CaseStateError, match="after a verdict"):
        ensure_can_argue(case, "A", 5)

    case = store.set_verdict(case.case_id, Verdict())
    with pytest.raises(CaseStateError):
        ensure_can_argue(case, "C", 5)

    for i in range(2):
        store.add_argument(case.case_id, "A", f"point {i}", ArgumentResponse())
    case = store.get_case(case.case_id)
    with pytest.raises(ArgumentLimitError):
        ensure_can_argue(case, "A", 2)
    ensure_can_argue(case, "B", 2)


def test_list_cases_most_recent_first(store):
    older = _new_case(store, title="Older")
    newer = _new_case(store, title="Newer")
    case = store.get_case(older.case_id)
    case.metadata.last_activity = case.metadata.last_activity - timedelta(days=1)
    store.save_case(case)

    titles = [c.title for c in store.list_cases()]
    assert titles == ["Newer", "Older"]
    assert newer.case_id in {c.case_id for c in store.list_cases()}


def test_list_skips_unreadable_files(store):
    _new_case(store)
    (store.cases_dir / "case_broken.json").write_text("{not json", encoding="utf-8")
    assert len(store.list_cases()) == 1


def test_search_cases(store):
    a = _new_case(store, title="Deposit dispute", country="United Kingdom")
    _new_case(store, title="Noise complaint", country="India", case_type="criminal")
    store.set_verdict(a.case_id, Verdict())

    assert [c.title for c in store.search_cases(SearchCriteria(country="kingdom"))] == ["Deposit dispute"]
    assert [c.title for c in store.search_cases(SearchCriteria(case_type="criminal"))] == ["Noise complaint"]
    assert [c.title for c in store.search_cases(SearchCriteria(title="NOISE"))] == ["Noise complaint"]
    assert [c.title for c in store.search_cases(SearchCriteria(has_verdict=True))] == ["Deposit dispute"]
    assert [c.title for c in store.search_cases(SearchCriteria(has_verdict=False))] == ["Noise complaint"]
    assert [c.title for c in store.search_cases(SearchCriteria(status=CaseStatus.VERDICT_RENDERED))] == [
        "Deposit dispute"
    ]
    assert len(store.search_cases(SearchCriteria())) == 2


def test_statistics(store):
    a = _new_case(store, country="India")
    _new_case(store, country="India", case_type="criminal")
    _new_case(store, country="Kenya")
    store.set_verdict(a.case_id, Verdict())
    store.add_argument(a.case_id, "A", "x", ArgumentResponse())
    store.add_argument(a.case_id, "B", "y", ArgumentResponse())

    stats = store.get_statistics()
    assert stats.total_cases == 3
    assert stats.country_breakdown == {"India": 2, "Kenya": 1}
    assert stats.type_breakdown == {"civil": 2, "criminal": 1}
    assert stats.status_breakdown == {"arguments_phase": 1, "created": 2}
    assert stats.cases_with_verdict == 1
    assert stats.average_arguments_per_case == 0.67
    assert len(stats.recent_activity) == 3


def test_statistics_empty(store):
    stats = store.get_statistics()
    assert stats.total_cases == 0
    assert stats.average_arguments_per_case == 0


def test_delete_case(store):
    case = _new_case(store)
    assert store.delete_case(case.case_id) is True
    assert store.delete_case(case.case_id) is False
    assert store.get_case(case.case_id) is None
