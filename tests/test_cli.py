import cli_judge
from aijudge.models import CaseStatus


def _scripted(answers):
    answers = iter(answers)
    return lambda prompt: next(answers)


def test_cli_runs_case_end_to_end(tmp_path, settings, fake_judge, capsys):
    a = tmp_path / "tenant.txt"
    b = tmp_path / "landlord.txt"
    a.write_text("The deposit was paid in full.", encoding="utf-8")
    b.write_text("The carpet was damaged.", encoding="utf-8")

    ask = _scripted([
        "Deposit dispute", "Tenant wants deposit back", "", "",
        "Tenant", "Landlord",
        "a", "Here are the receipts",
        "",
    ])
    case = cli_judge.run([str(a)], [str(b)], settings, ask=ask)

    assert case.status == CaseStatus.ARGUMENTS_PHASE
    assert case.country == "United States"
    assert case.side_a.documents[0].extracted_text == "The deposit was paid in full."
    assert case.arguments[0].side == "A"
    out = capsys.readouterr().out
    assert "Decision: favor_side_a" in out
    assert "[JUDGE] The photographs do not change the outcome." in out


def test_cli_usage():
    assert cli_judge.main([]) == 2
