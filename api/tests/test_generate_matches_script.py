import importlib.util
import json
from pathlib import Path

import pytest

pytest.importorskip("fastapi")

SCRIPT = Path(__file__).resolve().parents[1] / "scripts" / "generate_matches.py"


def _load_script():
    module_spec = importlib.util.spec_from_file_location("generate_matches_script", SCRIPT)
    module = importlib.util.module_from_spec(module_spec)
    module_spec.loader.exec_module(module)
    return module


def test_script_generates_then_validates(monkeypatch, capsys):
    script = _load_script()
    calls = []
    monkeypatch.setattr(
        script.m,
        "repo_generate_matches_for_prompt",
        lambda prompt_id, force=False: calls.append(("generate", prompt_id, force)) or {"matched_user_count": 2},
    )
    monkeypatch.setattr(
        script.m,
        "repo_validate_match_mutuality",
        lambda prompt_id: calls.append(("validate", prompt_id)) or {"is_valid": True, "errors": []},
    )

    assert script.main(["--prompt-id", "p1", "--force"]) == 0
    assert calls == [("generate", "p1", True), ("validate", "p1")]
    out = json.loads(capsys.readouterr().out)
    assert out["generation"]["matched_user_count"] == 2


def test_script_validate_only_reports_failure(monkeypatch, capsys):
    script = _load_script()
    monkeypatch.setattr(script.m, "repo_generate_matches_for_prompt", lambda *a, **k: pytest.fail("should not generate"))
    monkeypatch.setattr(
        script.m,
        "repo_validate_match_mutuality",
        lambda prompt_id: {"is_valid": False, "errors": ["a -> b, but b has no match record"]},
    )

    assert script.main(["--prompt-id", "p1", "--validate-only"]) == 1
    out = json.loads(capsys.readouterr().out)
    assert "generation" not in out
