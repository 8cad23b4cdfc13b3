from pathlib import Path

import pytest
from pydantic import ValidationError

from studydeck.application.config import resolve_config


def test_defaults(mock_home):
    config = resolve_config()

    assert config.backend == "local"
    assert config.data_dir.resolve() == (mock_home / ".config/studydeck/data").resolve()
    assert config.api_base_url == "http://localhost:3000"
    assert config.xp_per_rating == {"again": 0, "hard": 2, "good": 5, "easy": 8}


def test_toml_file_is_read(mock_home):
    config_file = mock_home / ".config/studydeck/config.toml"
    config_file.parent.mkdir(parents=True)
    config_file.write_text(
        'backend = "remote"\n'
        'api_base_url = "https://cards.example.com/"\n'
        "[xp_per_rating]\n"
        "easy = 12\n"
    )

    config = resolve_config()

    assert config.backend == "remote"
    assert config.api_base_url == "https://cards.example.com"
    assert config.xp_per_rating["easy"] == 12
    assert config.xp_per_rating["good"] == 5


def test_env_overrides_file(mock_home, monkeypatch):
    config_file = mock_home / ".config/studydeck/config.toml"
    config_file.parent.mkdir(parents=True)
    config_file.write_text('backend = "remote"\n')
    monkeypatch.setenv("STUDYDECK_BACKEND", "local")

    assert resolve_config().backend == "local"


def test_cli_overrides_win_and_none_is_ignored(mock_home, monkeypatch, tmp_path):
    monkeypatch.setenv("STUDYDECK_BACKEND", "remote")

    config = resolve_config({"backend": "local", "data_dir": tmp_path, "api_base_url": None})

    assert config.backend == "local"
    assert config.data_dir == Path(tmp_path).resolve()
    assert config.api_base_url == "http://localhost:3000"


def test_unknown_rating_in_xp_table_rejected(mock_home):
    with pytest.raises(ValidationError):
        resolve_config({"xp_per_rating": {"meh": 3}})
