"""Skill file writer.

Skill files are markdown documents with YAML frontmatter, one per topic and
language, laid out as ``<skills_dir>/<topic>/<language>/SKILL.md``.
"""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path
import re
from typing import Literal

import yaml

from deepwatch.core.errors import ArtifactError
from deepwatch.observability.logging import get_logger

log = get_logger(__name__)

Language = Literal["js", "python"]

NAME_PATTERN = re.compile(r"^[a-z0-9-]+$")
MAX_NAME_LENGTH = 64
MAX_DESCRIPTION_LENGTH = 1024
LANGUAGE_LABELS: dict[str, str] = {
    "js": "JavaScript/TypeScript",
    "python": "Python",
}


def normalize_output_path(output_path: str, language: str) -> str:
    """Turn ``/topic/SKILL.md`` into ``topic/<language>/SKILL.md``.

    Paths that do not end in SKILL.md only lose their leading slashes.
    """
    relative = output_path.lstrip("/")
    if relative == "SKILL.md" or relative.endswith("/SKILL.md"):
        parent = relative[: -len("SKILL.md")].rstrip("/")
        if parent.rsplit("/", 1)[-1] == language:
            return relative
        return f"{parent}/{language}/SKILL.md" if parent else f"{language}/SKILL.md"
    return relative


def render_skill(name: str, description: str, language: str, content: str) -> str:
    frontmatter = yaml.safe_dump(
        {"name": name, "description": description, "language": language},
        sort_keys=False,
        allow_unicode=True,
        width=10_000,
    )
    return f"---\n{frontmatter}---\n\n# {name} ({LANGUAGE_LABELS[language]})\n\n{content}"


class SkillFileWriter:
    """Validates and writes skill files under one root directory.

    Args:
        skills_dir: Root every written file must stay under.
        on_written: Called once after each successful write. The monitor
            passes ExecutionState.increment_artifacts here.
    """

    def __init__(self, skills_dir: Path, on_written: Callable[[], object] | None = None) -> None:
        self._skills_dir = skills_dir
        self._on_written = on_written

    @property
    def skills_dir(self) -> Path:
        return self._skills_dir

    def write(
        self,
        *,
        name: str,
        description: str,
        content: str,
        output_path: str,
        language: str = "js",
    ) -> str:
        """Validate inputs and write one skill file.

        Returns:
            A confirmation message naming the file and its size.

        Raises:
            ArtifactError: If an input is invalid, the path escapes the skills
                directory, or the file cannot be written.
        """
        self._validate(name, description, language)

        relative = normalize_output_path(output_path, language)
        root = self._skills_dir.resolve()
        target = (root / relative).resolve()
        if not target.is_relative_to(root) or target == root:
            raise ArtifactError(
                f"Output path escapes the skills directory: {output_path}",
                path=str(target),
                field="output_path",
            )

        document = render_skill(name, description, language, content)
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise ArtifactError(
                f"Failed to create directory {target.parent}: {e}",
                path=str(target.parent),
            ) from e
        try:
            target.write_text(document, encoding="utf-8")
        except OSError as e:
            raise ArtifactError(f"Failed to write file {target}: {e}", path=str(target)) from e

        size = len(document.encode("utf-8"))
        log.info("engine.artifact.written", path=str(target), bytes=size, language=language)
        if self._on_written is not None:
            self._on_written()
        return f"Successfully wrote {LANGUAGE_LABELS[language]} skill file to {target} ({size} bytes)"

    @staticmethod
    def _validate(name: str, description: str, language: str) -> None:
        if not name or len(name) > MAX_NAME_LENGTH or not NAME_PATTERN.match(name):
            raise ArtifactError(
                f"Invalid skill name {name!r}: use at most {MAX_NAME_LENGTH} lowercase "
                "letters, digits, and hyphens",
                field="name",
            )
        if len(description) > MAX_DESCRIPTION_LENGTH:
            raise ArtifactError(
                f"Description is {len(description)} characters; the limit is {MAX_DESCRIPTION_LENGTH}",
                field="description",
            )
        if language not in LANGUAGE_LABELS:
            raise ArtifactError(
                f"Unsupported language {language!r}: expected one of {', '.join(LANGUAGE_LABELS)}",
                field="language",
            )
