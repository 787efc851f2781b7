"""
Mise Host — Configuration

Central configuration for the HTTP host, the AI provider, secret storage,
workspace roots and the generated-artifact layout.

Process-wide settings come from environment variables.  Each workspace may
override the artifact layout and generation limits with a
``.mise-en-place.yaml`` file at its root.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any

import yaml

logger = logging.getLogger("mise.config")


# ---------------------------------------------------------------------------
# HTTP host
# ---------------------------------------------------------------------------
HTTP_HOST: str = os.environ.get("MISE_HTTP_HOST", "127.0.0.1")
HTTP_PORT: int = int(os.environ.get("MISE_HTTP_PORT", "8770"))

LOG_LEVEL: str = os.environ.get("MISE_LOG_LEVEL", "INFO")


# ---------------------------------------------------------------------------
# AI provider
# ---------------------------------------------------------------------------
OPENAI_MODEL: str = os.environ.get("MISE_OPENAI_MODEL", "gpt-4o")
OPENAI_BASE_URL: str = os.environ.get("MISE_OPENAI_BASE_URL", "https://api.openai.com/v1")
AI_TIMEOUT_SECONDS: int = int(os.environ.get("MISE_AI_TIMEOUT_SECONDS", "120"))

# Secret-store key for the provider credential.
API_KEY_SECRET_NAME = "openAiApiKey"


# ---------------------------------------------------------------------------
# Storage
# ---------------------------------------------------------------------------
SECRETS_DB_PATH: str = os.environ.get(
    "MISE_SECRETS_DB_PATH",
    str(Path.home() / ".mise-en-place" / "secrets.db"),
)

WORKSPACE_ROOTS: list[str] = [
    p for p in os.environ.get("MISE_WORKSPACE_ROOTS", os.getcwd()).split(os.pathsep) if p.strip()
]


# ---------------------------------------------------------------------------
# Artifact layout
# ---------------------------------------------------------------------------
OUTPUT_ROOT: str = os.environ.get("MISE_OUTPUT_ROOT", "mise-en-place-output")
MAX_SOURCE_FILES: int = int(os.environ.get("MISE_MAX_SOURCE_FILES", "200"))

WORKSPACE_CONFIG_FILE = ".mise-en-place.yaml"

DEFAULT_SOURCE_GLOBS: tuple[str, ...] = ("**/*.py",)
DEFAULT_EXCLUDE_DIRS: tuple[str, ...] = (
    ".git",
    "node_modules",
    "venv",
    ".venv",
    "__pycache__",
    "dist",
    "build",
)

# Keys accepted from the workspace override file.
_OVERRIDE_KEYS = {
    "output_root",
    "prd_dir",
    "context_cards_dir",
    "diagrams_dir",
    "context_templates_dir",
    "openai_model",
    "source_globs",
    "exclude_dirs",
    "max_source_files",
}


@dataclass(frozen=True)
class OutputPaths:
    """Resolved artifact directories for one workspace."""

    root: Path
    prd: Path
    context_cards: Path
    diagrams: Path
    context_templates: Path

    @property
    def manifest(self) -> Path:
        return self.prd / "manifest.json"


@dataclass(frozen=True)
class HostConfig:
    workspace_root: Path
    output_root: str = OUTPUT_ROOT
    prd_dir: str = "prd"
    context_cards_dir: str = "context-cards"
    diagrams_dir: str = "diagrams"
    context_templates_dir: str = "context-templates"
    openai_model: str = OPENAI_MODEL
    openai_base_url: str = OPENAI_BASE_URL
    ai_timeout_seconds: int = AI_TIMEOUT_SECONDS
    source_globs: tuple[str, ...] = DEFAULT_SOURCE_GLOBS
    exclude_dirs: tuple[str, ...] = DEFAULT_EXCLUDE_DIRS
    max_source_files: int = MAX_SOURCE_FILES
    extra: dict[str, Any] = field(default_factory=dict)

    @property
    def paths(self) -> OutputPaths:
        root = self.workspace_root / self.output_root
        return OutputPaths(
            root=root,
            prd=root / self.prd_dir,
            context_cards=root / self.context_cards_dir,
            diagrams=root / self.diagrams_dir,
            context_templates=root / self.context_templates_dir,
        )

    @classmethod
    def load(cls, workspace_root: str | Path) -> "HostConfig":
        """Build the config for a workspace, applying its override file if any."""
        root = Path(workspace_root).resolve()
        config = cls(workspace_root=root)
        overrides = read_workspace_overrides(root / WORKSPACE_CONFIG_FILE)
        if not overrides:
            return config
        return config.with_overrides(overrides)

    def with_overrides(self, overrides: dict[str, Any]) -> "HostConfig":
        known: dict[str, Any] = {}
        extra: dict[str, Any] = {}
        for key, value in overrides.items():
            if key not in _OVERRIDE_KEYS:
                extra[key] = value
                continue
            if key in ("source_globs", "exclude_dirs"):
                if isinstance(value, str):
                    value = [value]
                known[key] = tuple(str(v) for v in value or ())
            elif key == "max_source_files":
                known[key] = int(value)
            else:
                known[key] = str(value)
        if extra:
            logger.warning("Ignoring unknown config keys: %s", ", ".join(sorted(extra)))
        return replace(self, extra=extra, **known)


def read_workspace_overrides(path: Path) -> dict[str, Any]:
    """Read a workspace override file. Invalid content is logged and ignored."""
    if not path.is_file():
        return {}
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except (OSError, yaml.YAMLError) as exc:
        logger.warning("Could not read %s: %s", path, exc)
        return {}
    if data is None:
        return {}
    if not isinstance(data, dict):
        logger.warning("%s must contain a mapping, got %s", path, type(data).__name__)
        return {}
    return data


def validate_config(config: HostConfig) -> list[str]:
    """Return human-readable configuration problems (empty when valid)."""
    errors: list[str] = []
    if not config.openai_model.strip():
        errors.append("openai_model must not be empty.")
    if config.max_source_files <= 0:
        errors.append("max_source_files must be a positive integer.")
    if config.ai_timeout_seconds <= 0:
        errors.append("ai_timeout_seconds must be a positive integer.")
    if not config.source_globs:
        errors.append("source_globs must list at least one pattern.")
    for name in ("output_root", "prd_dir", "context_cards_dir", "diagrams_dir", "context_templates_dir"):
        value = getattr(config, name)
        if not value.strip():
            errors.append(f"{name} must not be empty.")
        elif Path(value).is_absolute():
            errors.append(f"{name} must be relative to the workspace: {value}")
    return errors
