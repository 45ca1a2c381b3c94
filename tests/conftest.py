# Shared pytest fixtures
from __future__ import annotations
import json
from pathlib import Path
from typing import Any

import pandas as pd
import pytest

from catalog_sync.logging.init import reset_logging


@pytest.fixture()
def temp_workdir(tmp_path: Path, monkeypatch) -> Path:
    (tmp_path / "config").mkdir()
    (tmp_path / "locales").mkdir()
    (tmp_path / "logs").mkdir()
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("CATALOG_SYNC_CONFIG", raising=False)
    reset_logging()
    yield tmp_path
    reset_logging()


def write_json(path: Path, data: Any) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, ensure_ascii=False, indent=2) + "\n", encoding="utf-8")
    return path


def read_json(path: Path) -> Any:
    return json.loads(path.read_text(encoding="utf-8"))


def make_excel(path: Path, header: list[str], rows: list[list[object]]) -> Path:
    """Single-sheet workbook; first row is the header."""
    path.parent.mkdir(parents=True, exist_ok=True)
    df = pd.DataFrame(rows, columns=header)
    with pd.ExcelWriter(path, engine="openpyxl") as writer:
        df.to_excel(writer, sheet_name="Translations", index=False)
    return path


@pytest.fixture()
def locale_dir(temp_workdir: Path) -> Path:
    """en / de / zh-cn catalogs (flat)."""
    d = temp_workdir / "locales"
    write_json(d / "en.json", {"home.title": "Welcome", "home.subtitle": "Hello", "settings.save": "Save"})
    write_json(d / "de.json", {"home.title": "Willkommen", "home.subtitle": "Hallo", "settings.save": "Speichern"})
    write_json(d / "zh-cn.json", {"home.title": "欢迎", "settings.save": "保存"})
    return d


@pytest.fixture()
def sample_excel(temp_workdir: Path) -> Path:
    return make_excel(
        temp_workdir / "sheet.xlsx",
        ["Key", "EN", "DE", "ZH-CN"],
        [
            ["home.title", "Welcome Back", "Willkommen zurück", ""],
            ["", "Click *Save* to continue", "", ""],
            ["*checkout*", "Pay now", "Jetzt bezahlen", "立即支付"],
            ["ignore", "not imported", "", ""],
            ["settings.save", "Save", "Speichern", "保存"],
        ],
    )
