from pathlib import Path

import pytest

from topoforge.core.models import Document

FIXTURES = Path(__file__).parent / "fixtures"


@pytest.fixture
def compose_text() -> str:
    return (FIXTURES / "compose.yml").read_text(encoding="utf-8")


@pytest.fixture
def compose_doc(compose_text) -> Document:
    return Document.from_text(compose_text)


@pytest.fixture
def compose_file(tmp_path, compose_text) -> Path:
    target = tmp_path / "compose.yml"
    target.write_text(compose_text, encoding="utf-8")
    return target
