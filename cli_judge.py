import sys
from pathlib import Path

from aijudge import documents, services
from aijudge.cases import CaseStore, ensure_can_argue, ensure_ready_for_verdict
from aijudge.config import get_settings
from aijudge.errors import AIJudgeError
from aijudge.logger import setup_logging
from aijudge.models import CaseCreate, Document


def load_documents(paths):
    docs = []
    for raw in paths:
        path = Path(raw)
        if not path.exists():
            print(f"Document {path} does not exist, skipping.")
            continue
        mimetype = documents.resolve_mimetype(path.name, None)
        text = documents.extract_text_from_file(path, mimetype)
        docs.append(Document(
            filename=path.name,
            mimetype=mimetype,
            size=path.stat().st_size,
            extracted_text=text,
            word_count=documents.count_words(text),
            path=str(path),
        ))
    return docs


def get_user_input(prompt_text):
    return input(prompt_text)


def run(side_a_paths, side_b_paths, settings, ask=get_user_input):
    store = CaseStore(settings.cases_dir)

    title = ask("Case title: ").strip() or "Untitled dispute"
    description = ask("Short description: ").strip() or title
    country = ask("Jurisdiction [United States]: ").strip() or "United States"
    case_type = ask("Case type [civil]: ").strip().lower() or "civil"

    case = store.create_case(CaseCreate(title=title, description=description, country=country, case_type=case_type))
    store.add_documents_to_side(case.case_id, "A", ask("Side A summary: ").strip() or None,
                                load_documents(side_a_paths))
    case = store.add_documents_to_side(case.case_id, "B", ask("Side B summary: ").strip() or None,
                                       load_documents(side_b_paths))
    ensure_ready_for_verdict(case)

    print("\nDeliberating...\n")
    verdict = services.generate_verdict(case, settings)
    case = store.set_verdict(case.case_id, verdict)

    print("=== Verdict ===")
    print(f"Decision: {verdict.decision.value} (confidence {verdict.confidence:.2f})")
    print(verdict.reasoning)
    for finding in verdict.key_findings:
        print(f"  - {finding}")

    # Follow-up rounds until both sides pass or run out
    while True:
        side = ask("\nSide to argue next (A/B, empty to finish): ").strip().upper()
        if not side:
            break
        try:
            ensure_can_argue(case, side, settings.max_arguments_per_side)
        except AIJudgeError as e:
            print(e.message)
            continue
        argument = ask(f"Side {side} argument: ").strip()
        if not argument:
            continue
        response = services.respond_to_argument(case, side, argument, settings)
        store.add_argument(case.case_id, side, argument, response)
        case = store.require_case(case.case_id)

        print(f"\n[JUDGE] {response.response}")
        print(f"Verdict change: {response.verdict_change.value}")

    print(f"\nCase saved as {case.case_id}")
    return case


def main(argv=None):
    argv = sys.argv[1:] if argv is None else argv
    if len(argv) != 2:
        print("usage: cli_judge.py SIDE_A_FILES SIDE_B_FILES  (comma separated paths)")
        return 2

    settings = get_settings()
    setup_logging(settings.log_level, settings.environment)
    print("=== AI Judge CLI ===\n")
    try:
        run(argv[0].split(","), argv[1].split(","), settings)
    except AIJudgeError as e:
        print(f"Error: {e.message}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
