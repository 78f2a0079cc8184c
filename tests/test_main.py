import json
from pathlib import Path

import pytest

import slideshow_optim
from slideshow import output_path_for
from slideshow_config import JsonSettings, SequencerConfig, SettingsError, load_sequencer_config


EXAMPLE = """4
H 3 cat beach sun
V 2 selfie smile
V 2 garden selfie
H 2 garden cat
"""


@pytest.fixture(autouse=True)
def _restore_logging():
    yield
    slideshow_optim.logger.remove()


def test_main_writes_result_next_to_input(tmp_path, capsys) -> None:
    input_path = tmp_path / "a_example.txt"
    input_path.write_text(EXAMPLE, encoding="utf-8")

    exit_code = slideshow_optim.main([str(input_path)])

    assert exit_code == 0
    lines = Path(output_path_for(input_path)).read_text(encoding="utf-8").splitlines()
    assert lines[0] == "3"
    assert sorted(" ".join(lines[1:]).split()) == ["0", "1", "2", "3"]
    assert f"Found score 2 for {input_path}" in capsys.readouterr().out


def test_main_honours_explicit_output(tmp_path) -> None:
    input_path = tmp_path / "in.txt"
    input_path.write_text("1\nH 2 x y\n", encoding="utf-8")
    output_path = tmp_path / "custom.out"

    assert slideshow_optim.main([str(input_path), "--output", str(output_path)]) == 0

    assert output_path.read_text(encoding="utf-8") == "1\n0\n"
    assert not (tmp_path / "in.result").exists()


def test_main_processes_default_batch(tmp_path, monkeypatch) -> None:
    data_dir = tmp_path / "data"
    data_dir.mkdir()
    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr(slideshow_optim, "DEFAULT_INPUTS", ["data/a.txt", "data/b.txt"])
    (data_dir / "a.txt").write_text("2\nH 3 a b c\nH 3 b c d\n", encoding="utf-8")
    (data_dir / "b.txt").write_text("2\nV 1 a\nV 1 b\n", encoding="utf-8")

    assert slideshow_optim.main([]) == 0

    assert (data_dir / "a.result").read_text(encoding="utf-8") == "2\n0\n1\n"
    assert (data_dir / "b.result").read_text(encoding="utf-8") == "1\n0 1\n"


def test_run_all_isolates_failed_workers(tmp_path, capsys) -> None:
    good = tmp_path / "good.txt"
    good.write_text("2\nH 3 a b c\nH 3 b c d\n", encoding="utf-8")
    missing = tmp_path / "missing.txt"
    malformed = tmp_path / "bad.txt"
    malformed.write_text("1\nQ 1 a\n", encoding="utf-8")
    slideshow_optim.init_logging()

    results = slideshow_optim.run_all([str(good), str(missing), str(malformed)])

    assert results == {str(good): 1, str(missing): None, str(malformed): None}
    out = capsys.readouterr().out
    assert f"Failed to process {missing}" in out
    assert "unknown orientation" in out


def test_run_all_isolates_input_that_is_not_utf8(tmp_path, capsys) -> None:
    bad = tmp_path / "bad_bytes.txt"
    bad.write_bytes(b"1\nH 1 \xff\xfe\n")
    good = tmp_path / "good.txt"
    good.write_text("2\nH 3 a b c\nH 3 b c d\n", encoding="utf-8")
    slideshow_optim.init_logging()

    results = slideshow_optim.run_all([str(bad), str(good)])

    assert results == {str(bad): None, str(good): 1}
    assert "not valid UTF-8" in capsys.readouterr().out


def test_main_returns_error_status_for_undecodable_input(tmp_path) -> None:
    bad = tmp_path / "bad_bytes.txt"
    bad.write_bytes(b"1\nH 1 \xff\xfe\n")

    assert slideshow_optim.main([str(bad)]) == 1


def test_main_returns_error_status_when_input_missing(tmp_path) -> None:
    assert slideshow_optim.main([str(tmp_path / "nope.txt")]) == 1


def test_main_rejects_output_without_input() -> None:
    with pytest.raises(SystemExit) as excinfo:
        slideshow_optim.main(["--output", "x.result"])

    assert excinfo.value.code == 2


def test_main_rejects_non_positive_window(tmp_path) -> None:
    with pytest.raises(SystemExit) as excinfo:
        slideshow_optim.main([str(tmp_path / "in.txt"), "--horizontal-window", "0"])

    assert excinfo.value.code == 2


def test_main_applies_settings_then_flags(tmp_path, monkeypatch) -> None:
    input_path = tmp_path / "in.txt"
    input_path.write_text("1\nH 1 a\n", encoding="utf-8")
    settings_path = tmp_path / "settings.json"
    settings_path.write_text(
        json.dumps({"sequencer": {"horizontal_window": 5, "vertical_inner_window": 3}}),
        encoding="utf-8",
    )
    seen = []

    def fake_run_all(input_files, config, output_file):
        seen.append(config)
        return {path: 0 for path in input_files}

    monkeypatch.setattr(slideshow_optim, "run_all", fake_run_all)

    slideshow_optim.main([str(input_path), "--settings", str(settings_path), "--horizontal-window", "7"])

    assert seen == [SequencerConfig(horizontal_window=7, vertical_outer_window=1000, vertical_inner_window=3)]


def test_main_reports_bad_settings_file(tmp_path) -> None:
    settings_path = tmp_path / "settings.json"
    settings_path.write_text("{not json", encoding="utf-8")

    with pytest.raises(SystemExit) as excinfo:
        slideshow_optim.main(["--settings", str(settings_path)])

    assert excinfo.value.code == 2


def test_json_settings_dotted_get(tmp_path) -> None:
    path = tmp_path / "settings.json"
    path.write_text(json.dumps({"sequencer": {"horizontal_window": 12}}), encoding="utf-8")
    settings = JsonSettings(path)

    assert settings.get("sequencer.horizontal_window") == 12
    assert settings.get("sequencer.missing", "fallback") == "fallback"
    assert settings.get("nothing.here") is None


def test_json_settings_missing_file(tmp_path) -> None:
    with pytest.raises(SettingsError, match="not found"):
        JsonSettings(tmp_path / "absent.json")


def test_load_sequencer_config_defaults_and_validation(tmp_path) -> None:
    assert load_sequencer_config() == SequencerConfig()
    assert SequencerConfig().horizontal_window == 40000
    assert SequencerConfig().vertical_outer_window == 1000
    assert SequencerConfig().vertical_inner_window == 10

    path = tmp_path / "settings.json"
    path.write_text(json.dumps({"sequencer": {"vertical_outer_window": -1}}), encoding="utf-8")
    with pytest.raises(SettingsError, match="vertical_outer_window"):
        load_sequencer_config(JsonSettings(path))


@pytest.mark.parametrize(
    "overrides, message",
    [
        ({"progress_remainder": True}, "progress_remainder must be a non-negative integer"),
        ({"progress_modulus": False}, "progress_modulus must be a positive integer"),
        ({"progress_modulus": 4, "progress_remainder": 4}, "below progress_modulus"),
        ({"progress_remainder": 2500}, "below progress_modulus"),
    ],
)
def test_sequencer_config_rejects_unreachable_progress_settings(overrides, message) -> None:
    with pytest.raises(SettingsError, match=message):
        SequencerConfig(**overrides)
