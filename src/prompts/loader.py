# src/prompts/loader.py - v2
"""Prompt resources: whole-file loading and system/user section splitting.

A prompt file may hold two sections introduced by heading lines that
carry a marker text, with any markdown or emoji decoration::

    ## 🟦 **SYSTEM PROMPT**
    You are ...
    ---
    ## 🟩 **USER PROMPT**
    Analyze: {document_text}

A section runs from its marker line to the next marker line, the
terminator line, or the end of the file. Splitting never yields an empty
prompt: a missing or empty system section means the whole file is the system
prompt, a missing or empty user section means the whole file is the user
prompt.
"""

from __future__ import annotations

import logging
import re
import threading
from dataclasses import dataclass
from pathlib import Path

from casereview.core.errors import PromptLoadError

logger = logging.getLogger(__name__)

_DECORATION = re.compile(r"[^\w\s]", re.UNICODE)
_WHITESPACE = re.compile(r"\s+")
_PLACEHOLDER = re.compile(r"\{(\w+)\}")


@dataclass(frozen=True)
class PromptMarkers:
    """Textual convention used to split a prompt into sections."""

    system: str = "SYSTEM PROMPT"
    user: str = "USER PROMPT"
    terminator: str | None = "---"


DEFAULT_MARKERS = PromptMarkers()


@dataclass(frozen=True)
class PromptParts:
    """System and user sections of a prompt."""

    system_prompt: str
    user_prompt: str


def _normalize(text: str) -> str:
    return _WHITESPACE.sub(" ", _DECORATION.sub(" ", text)).strip().upper()


def _is_marker_line(line: str, marker: str) -> bool:
    return bool(line.strip()) and _normalize(line) == _normalize(marker)


def _extract_section(lines: list[str], marker: str, markers: PromptMarkers) -> str | None:
    """Return the trimmed text after the marker line, or None if absent."""
    start = None
    for i, line in enumerate(lines):
        if _is_marker_line(line, marker):
            start = i + 1
            break
    if start is None:
        return None

    body: list[str] = []
    for line in lines[start:]:
        if _is_marker_line(line, markers.system) or _is_marker_line(line, markers.user):
            break
        if markers.terminator and line.strip() == markers.terminator:
            break
        body.append(line)
    return "\n".join(body).strip()


def split_prompt(content: str, markers: PromptMarkers = DEFAULT_MARKERS) -> PromptParts:
    """Split prompt text into system and user parts. Pure function."""
    whole = content.strip()
    lines = content.splitlines()

    system = _extract_section(lines, markers.system, markers)
    user = _extract_section(lines, markers.user, markers)

    return PromptParts(
        system_prompt=system or whole,
        user_prompt=user or whole,
    )


def render_prompt(template: str, values: dict[str, str]) -> str:
    """Substitute ``{name}`` placeholders without touching other braces.

    Non-empty values whose placeholder does not occur in the template are
    appended after it under their own heading.
    """
    used = set(_PLACEHOLDER.findall(template))
    # one pass over the template, inserted values are never rescanned
    rendered = _PLACEHOLDER.sub(lambda m: values.get(m.group(1), m.group(0)), template)
    for name, value in values.items():
        if name not in used and value.strip():
            rendered += f"\n\n### {name}\n\n{value}"
    return rendered


def _read(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise PromptLoadError(str(path), str(exc)) from exc


def load_prompt(path: str | Path) -> str:
    """Load a whole prompt file, trimmed.

    Raises:
        PromptLoadError: If the file cannot be read.
    """
    return _read(Path(path)).strip()


def load_prompt_with_parts(
    path: str | Path,
    markers: PromptMarkers = DEFAULT_MARKERS,
) -> PromptParts:
    """Load a prompt file and split it into system and user parts.

    Raises:
        PromptLoadError: If the file cannot be read.
    """
    return split_prompt(_read(Path(path)), markers)


class PromptLoader:
    """Load prompts by name from a base directory, caching parsed parts.

    Args:
        prompts_dir: Directory relative prompt names resolve against.
        markers: Section marker convention.
    """

    def __init__(self, prompts_dir: Path, markers: PromptMarkers = DEFAULT_MARKERS) -> None:
        self._dir = Path(prompts_dir).expanduser()
        self._markers = markers
        self._cache: dict[Path, PromptParts] = {}
        self._lock = threading.Lock()

    @property
    def prompts_dir(self) -> Path:
        return self._dir

    def resolve(self, name: str | Path) -> Path:
        path = Path(name)
        return path if path.is_absolute() else self._dir / path

    def load(self, name: str | Path) -> str:
        """Whole prompt text."""
        return load_prompt(self.resolve(name))

    def load_with_parts(self, name: str | Path) -> PromptParts:
        """System/user parts, parsed once per path."""
        path = self.resolve(name)
        with self._lock:
            cached = self._cache.get(path)
        if cached is not None:
            return cached
        parts = load_prompt_with_parts(path, self._markers)
        with self._lock:
            self._cache[path] = parts
        logger.debug("Loaded prompt %s", path)
        return parts
