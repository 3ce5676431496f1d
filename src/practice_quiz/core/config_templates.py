"""Config templates shipped inside the practice_quiz package."""

from __future__ import annotations

from dataclasses import dataclass
from importlib import resources
from pathlib import Path

__all__ = [
    "ConfigTemplate",
    "ConfigTemplateError",
    "get_template",
]


class ConfigTemplateError(RuntimeError):
    """Raised when a template is unknown or cannot be written."""


@dataclass(frozen=True)
class ConfigTemplate:
    """A TOML template stored as package data."""

    name: str
    filename: str
    package: str

    def read_text(self) -> str:
        try:
            return (
                resources.files(self.package)
                .joinpath(self.filename)
                .read_text(encoding="utf-8")
            )
        except (FileNotFoundError, ModuleNotFoundError) as exc:
            raise ConfigTemplateError(
                f"Template '{self.name}' is missing from {self.package}."
            ) from exc

    def write(
        self, path: Path, *, overwrite: bool = False, mode: int = 0o600
    ) -> Path:
        """Copy the template to ``path``; refuse to clobber unless asked."""

        if path.exists() and not overwrite:
            raise ConfigTemplateError(f"Config already exists: {path}")
        contents = self.read_text()
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(contents, encoding="utf-8")
        except OSError as exc:
            raise ConfigTemplateError(f"Cannot write {path}: {exc}") from exc
        try:
            path.chmod(mode)
        except PermissionError:  # pragma: no cover - depends on filesystem
            pass
        return path


_TEMPLATES: dict[str, ConfigTemplate] = {
    "quiz": ConfigTemplate(
        name="quiz",
        filename="template.toml",
        package="practice_quiz.quiz",
    ),
}


def get_template(name: str) -> ConfigTemplate:
    try:
        return _TEMPLATES[name]
    except KeyError as exc:
        raise ConfigTemplateError(f"Unknown config template '{name}'.") from exc
