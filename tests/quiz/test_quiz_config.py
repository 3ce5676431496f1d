from __future__ import annotations

from pathlib import Path

import pytest

from practice_quiz.quiz import config as quiz_config
from practice_quiz.quiz.config import ConfigOverrides, QuizConfigError, load_config


def write_config(path: Path, text: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


def test_defaults_without_config_file(tmp_path) -> None:
    result = load_config(env={}, workspace_path=tmp_path / "ws")

    assert result.config_path is None
    assert result.config.source is None
    assert result.config.timeout_seconds == 10.0
    assert result.config.show_explanations is True
    assert result.config.log_level == "INFO"
    assert result.config.verbose is False
    assert result.layout.path_for("logs").is_dir()


def test_workspace_config_file_is_read(tmp_path) -> None:
    workspace = tmp_path / "ws"
    write_config(
        workspace / "config" / "quiz.toml",
        '[source]\nlocation = "https://example.org/q.json"\n'
        "timeout_seconds = 3\n"
        "[display]\nshow_explanations = false\n"
        '[logging]\nlevel = "debug"\nverbose = true\n',
    )

    result = load_config(env={}, workspace_path=workspace)

    assert result.config_path == workspace / "config" / "quiz.toml"
    assert result.config.source == "https://example.org/q.json"
    assert result.config.timeout_seconds == 3.0
    assert result.config.show_explanations is False
    assert result.config.log_level == "DEBUG"
    assert result.config.verbose is True


def test_precedence_cli_over_env_over_file(tmp_path) -> None:
    config_path = write_config(
        tmp_path / "quiz.toml",
        '[source]\nlocation = "file.json"\ntimeout_seconds = 2.0\n',
    )
    env = {"PRACTICE_QUIZ_SOURCE": "env.json", "PRACTICE_QUIZ_TIMEOUT": "4"}

    from_env = load_config(
        config_path=config_path, env=env, workspace_path=tmp_path / "ws"
    )
    from_cli = load_config(
        config_path=config_path,
        env=env,
        workspace_path=tmp_path / "ws",
        overrides=ConfigOverrides(source="cli.json", timeout_seconds=6.0),
    )

    assert from_env.config.source == "env.json"
    assert from_env.config.timeout_seconds == 4.0
    assert from_cli.config.source == "cli.json"
    assert from_cli.config.timeout_seconds == 6.0


def test_config_path_from_env(tmp_path) -> None:
    config_path = write_config(
        tmp_path / "elsewhere.toml", '[logging]\nlevel = "WARNING"\n'
    )

    result = load_config(
        env={quiz_config.CONFIG_ENV: str(config_path)},
        workspace_path=tmp_path / "ws",
    )

    assert result.config.log_level == "WARNING"


def test_explicit_missing_config_is_an_error(tmp_path) -> None:
    with pytest.raises(QuizConfigError, match="not found"):
        load_config(
            config_path=tmp_path / "missing.toml",
            env={},
            workspace_path=tmp_path / "ws",
        )


@pytest.mark.parametrize(
    ("text", "message"),
    [
        ("[source]\nunknown = 1\n", "Unknown configuration key 'source.unknown'"),
        ("source = 1\n", "Expected a table"),
        ("[source]\ntimeout_seconds = 0\n", "must be positive"),
        ('[source]\ntimeout_seconds = "soon"\n', "must be a number"),
        ("[source]\nlocation = 5\n", "must be a string"),
        ('[display]\nshow_explanations = "yes"\n', "true or false"),
        ('[logging]\nlevel = "LOUD"\n', "logging.level must be one of"),
        ("not toml = = =\n", "Invalid TOML"),
    ],
)
def test_invalid_config_values(tmp_path, text: str, message: str) -> None:
    config_path = write_config(tmp_path / "quiz.toml", text)

    with pytest.raises(QuizConfigError, match=message):
        load_config(
            config_path=config_path, env={}, workspace_path=tmp_path / "ws"
        )


def test_invalid_env_timeout(tmp_path) -> None:
    with pytest.raises(QuizConfigError, match="PRACTICE_QUIZ_TIMEOUT"):
        load_config(
            env={"PRACTICE_QUIZ_TIMEOUT": "later"},
            workspace_path=tmp_path / "ws",
        )


def test_blank_source_means_bundled(tmp_path) -> None:
    result = load_config(
        env={"PRACTICE_QUIZ_SOURCE": "   "},
        workspace_path=tmp_path / "ws",
        overrides=ConfigOverrides(source=None),
    )

    assert result.config.source is None


def test_partial_table_keeps_other_defaults(tmp_path) -> None:
    config_path = write_config(
        tmp_path / "quiz.toml", "[source]\ntimeout_seconds = 2.5\n"
    )

    result = load_config(
        config_path=config_path, env={}, workspace_path=tmp_path / "ws"
    )

    assert result.config.timeout_seconds == 2.5
    assert result.config.source is None
    assert result.config.show_explanations is True


def test_config_path_that_is_a_directory(tmp_path) -> None:
    folder = tmp_path / "quiz.toml"
    folder.mkdir()

    with pytest.raises(QuizConfigError, match="directory"):
        load_config(config_path=folder, env={}, workspace_path=tmp_path / "ws")
