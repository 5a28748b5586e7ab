import re
from pathlib import Path

import pytest

tomllib = pytest.importorskip("tomllib")

ROOT = Path(__file__).resolve().parent.parent


def declared_dependencies():
    project = tomllib.loads((ROOT / "pyproject.toml").read_text())["project"]
    return {re.split(r"[\[<>=]", dep)[0].lower() for dep in project["dependencies"]}


def test_directly_imported_libraries_are_declared():
    assert {"fastapi", "pydantic", "sqlalchemy", "asyncpg", "python-dotenv", "python-multipart"} <= declared_dependencies()
