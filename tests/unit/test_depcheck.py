from __future__ import annotations

import subprocess
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parents[2] / "tools"))

import depcheck

SCRIPT_PATH = Path(__file__).resolve().parents[2] / "tools" / "depcheck.py"


def test_depcheck_fails_on_forbidden_import(tmp_path: Path) -> None:
    domain_dir = tmp_path / "domain"
    domain_dir.mkdir(parents=True, exist_ok=True)

    violating_file = domain_dir / "model.py"
    violating_file.write_text("import sqlalchemy\n", encoding="utf-8")

    result = subprocess.run(
        [sys.executable, str(SCRIPT_PATH), "--path", str(domain_dir)],
        capture_output=True,
        text=True,
        check=False,
    )

    combined_output = f"{result.stdout}\n{result.stderr}"
    assert result.returncode != 0
    assert "sqlalchemy" in combined_output
    assert str(violating_file) in combined_output


def test_application_layer_may_use_pydantic_but_not_infrastructure(tmp_path: Path) -> None:
    allowed = tmp_path / "dto.py"
    allowed.write_text("from pydantic import BaseModel\n", encoding="utf-8")
    forbidden = tmp_path / "use_case.py"
    forbidden.write_text(
        "from cuemaster.infrastructure.kv.gateway import KeyValueGateway\n",
        encoding="utf-8",
    )

    violations = depcheck.find_violations([tmp_path], layer="application")

    assert [(violation.file_path.name, violation.module) for violation in violations] == [
        ("use_case.py", "cuemaster.infrastructure.kv.gateway")
    ]
    assert depcheck.find_violations([allowed], layer="domain")[0].module == "pydantic"


def test_package_layers_pass() -> None:
    assert depcheck.check_package() == []
