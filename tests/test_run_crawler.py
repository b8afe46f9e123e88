from pathlib import Path

import pytest

import run_crawler


def write_config(tmp_path: Path) -> Path:
    config_dir = tmp_path / "config"
    config_dir.mkdir()
    (config_dir / "settings.yaml").write_text("OUTPUT_FILE: out.json\n", encoding="utf-8")
    return config_dir


def test_main_exits_when_rule_file_is_unreadable(tmp_path: Path, monkeypatch) -> None:
    config_dir = write_config(tmp_path)
    (config_dir / "css_rules.yaml").mkdir()
    monkeypatch.chdir(tmp_path)

    with pytest.raises(SystemExit) as exc:
        run_crawler.main()

    assert exc.value.code == 1


def test_main_exits_when_settings_are_missing(tmp_path: Path, monkeypatch) -> None:
    config_dir = tmp_path / "config"
    config_dir.mkdir()
    (config_dir / "css_rules.yaml").write_text("link_page_rules: {}\n", encoding="utf-8")
    monkeypatch.chdir(tmp_path)

    with pytest.raises(SystemExit) as exc:
        run_crawler.main()

    assert exc.value.code == 1


def test_main_writes_report(tmp_path: Path, monkeypatch) -> None:
    config_dir = write_config(tmp_path)
    (config_dir / "css_rules.yaml").write_text("link_page_rules: {}\n", encoding="utf-8")
    monkeypatch.chdir(tmp_path)

    run_crawler.main()

    assert '"article_num": 0' in (tmp_path / "out.json").read_text(encoding="utf-8")
