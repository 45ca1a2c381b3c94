from __future__ import annotations

from pathlib import Path

from catalog_sync.cli import main as cli_main
from tests.conftest import make_excel, read_json, write_json


def _snapshot(directory: Path) -> dict[str, bytes]:
    return {str(p.relative_to(directory)): p.read_bytes() for p in sorted(directory.rglob("*")) if p.is_file()}


def test_preview_reports_everything_and_touches_nothing(sample_excel: Path, locale_dir: Path, temp_workdir: Path, capsys):
    before = _snapshot(temp_workdir)
    assert cli_main([str(sample_excel), str(locale_dir), "--override-mode=a", "--no-input"]) == 0
    out = capsys.readouterr().out

    assert _snapshot(temp_workdir) == before
    assert "1. [x] `home.title` (de, en)" in out
    assert "- `checkout_pay_now`" in out
    assert "- `click_save_to_continue`" in out
    assert '- `checkout_pay_now` from "Pay now" (from "*checkout*")' in out
    assert "### Mapping conflicts" not in out


def test_preview_resolves_nested_locale_root(temp_workdir: Path, capsys):
    root = temp_workdir / "locales"
    write_json(root / "docs" / "legacy" / "en.json", {"old": "Old"})
    app = root / "app" / "i18n"
    write_json(app / "en.json", {"home.title": "Welcome"})
    write_json(app / "de.json", {"home.title": "Willkommen"})
    write_json(app / "fr.json", {"home.title": "Bienvenue"})
    excel = make_excel(temp_workdir / "sheet.xlsx", ["key", "en", "fr"], [["home.cta", "Start", "Commencer"]])

    assert cli_main([str(excel), str(root), "--no-input"]) == 0
    out = capsys.readouterr().out
    assert "base locale: app/i18n/en.json" in out
    assert "catalogs: de, en, fr" in out
    assert "- `home.cta`" in out


def test_values_that_look_like_nulls_survive(temp_workdir: Path, locale_dir: Path, capsys):
    excel = make_excel(
        temp_workdir / "nulls.xlsx",
        ["key", "en", "de"],
        [["status.none", "None", "NA"], ["status.null", "null", "N/A"]],
    )
    assert cli_main([str(excel), str(locale_dir), "--write", "--no-input"]) == 0

    en = read_json(locale_dir / "en.json")
    de = read_json(locale_dir / "de.json")
    assert en["status.none"] == "None"
    assert de["status.none"] == "NA"
    assert de["status.null"] == "N/A"
