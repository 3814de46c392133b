import pytest

from mediashrink import cli, config


@pytest.fixture(autouse=True)
def isolated_settings(tmp_path, monkeypatch):
    monkeypatch.setattr(config, "SETTINGS_FILE", tmp_path / "settings.json")


def test_unknown_file_type_is_a_usage_error(tmp_path, capsys):
    notes = tmp_path / "notes.txt"
    notes.write_text("hello")

    assert cli.main([str(notes)]) == cli.EXIT_USAGE
    assert "neither a video nor an image" in capsys.readouterr().err


def test_format_must_match_kind(tmp_path, capsys):
    assert cli.main([str(tmp_path / "photo.png"), "-f", "mp4"]) == cli.EXIT_USAGE
    assert "not valid for image" in capsys.readouterr().err


def test_bad_resolution_is_a_usage_error(tmp_path, capsys):
    assert cli.main([str(tmp_path / "clip.mp4"), "-r", "big"]) == cli.EXIT_USAGE
    assert "Resolution" in capsys.readouterr().err


def test_bad_quality_exits_from_argparse(tmp_path):
    with pytest.raises(SystemExit) as info:
        cli.main([str(tmp_path / "clip.mp4"), "-q", "ultra"])
    assert info.value.code == 2
