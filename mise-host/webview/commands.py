"""
Mise Host — Panel Command Protocol

Closed set of commands the panel may send, and the typed messages they
parse into.  Legacy spellings are kept as aliases of the current ones.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Union


PROTOCOL_VERSION = 1


class Command(str, Enum):
    WEBVIEW_READY = "webviewReady"
    GET_API_KEY = "get-api-key"
    SAVE_API_KEY = "save-api-key"
    SAVE_API_KEY_LEGACY = "saveApiKey"
    DELETE_API_KEY = "delete-api-key"

    GENERATE_PRD = "generate-prd"
    GENERATE_PRD_LEGACY = "generate"

    GENERATE_CONTEXT_CARDS = "generate-context-cards"
    GENERATE_CONTEXT_CARDS_LEGACY = "bulkGenerateContextCards"

    GENERATE_DATA_FLOW_DIAGRAM = "generate-data-flow-diagram"
    GENERATE_COMPONENT_HIERARCHY = "generate-component-hierarchy"

    VIEW_PRD = "view-prd"
    VIEW_PRD_LEGACY = "viewPrd"
    VIEW_GRAPH = "view-graph"
    VIEW_GRAPH_LEGACY = "viewGraph"
    VIEW_DATA_FLOW_DIAGRAM = "view-data-flow-diagram"
    VIEW_COMPONENT_HIERARCHY = "view-component-hierarchy"
    VIEW_CONTEXT_CARDS = "view-context-cards"

    CANCEL_GENERATION = "cancel-generation"


class Outbound(str, Enum):
    API_KEY_STATUS = "apiKeyStatus"
    PROJECT_STATE_UPDATE = "project-state-update"
    PRD_GENERATED = "prdGenerated"
    CONTEXT_CARDS_GENERATED = "contextCardsGenerated"
    DIAGRAM_GENERATED = "diagramGenerated"
    PROGRESS = "progress"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CANCELLED = "cancelled"


# ---------------------------------------------------------------------------
# Typed messages
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class WebviewReady:
    command: Command = Command.WEBVIEW_READY


@dataclass(frozen=True)
class GetApiKey:
    command: Command = Command.GET_API_KEY


@dataclass(frozen=True)
class SaveApiKey:
    api_key: str
    command: Command = Command.SAVE_API_KEY


@dataclass(frozen=True)
class DeleteApiKey:
    command: Command = Command.DELETE_API_KEY


@dataclass(frozen=True)
class GeneratePrd:
    text: str
    command: Command = Command.GENERATE_PRD


@dataclass(frozen=True)
class GenerateContextCards:
    command: Command = Command.GENERATE_CONTEXT_CARDS


@dataclass(frozen=True)
class GenerateDiagram:
    command: Command


@dataclass(frozen=True)
class ViewArtifact:
    command: Command
    file_path: str | None = None


@dataclass(frozen=True)
class CancelGeneration:
    operation: str | None = None
    command: Command = Command.CANCEL_GENERATION


@dataclass(frozen=True)
class UnknownCommand:
    command: str
    payload: dict[str, Any] = field(default_factory=dict)


PanelMessage = Union[
    WebviewReady,
    GetApiKey,
    SaveApiKey,
    DeleteApiKey,
    GeneratePrd,
    GenerateContextCards,
    GenerateDiagram,
    ViewArtifact,
    CancelGeneration,
    UnknownCommand,
]


def _str_field(raw: dict[str, Any], *names: str) -> str:
    for name in names:
        value = raw.get(name)
        if isinstance(value, str):
            return value
    return ""


def parse_message(raw: dict[str, Any]) -> PanelMessage:
    """Turn a raw panel frame into its typed message."""
    name = raw.get("command")
    try:
        command = Command(name)
    except ValueError:
        return UnknownCommand(command=str(name), payload=dict(raw))

    if command is Command.WEBVIEW_READY:
        return WebviewReady()
    if command is Command.GET_API_KEY:
        return GetApiKey()
    if command in (Command.SAVE_API_KEY, Command.SAVE_API_KEY_LEGACY):
        return SaveApiKey(api_key=_str_field(raw, "apiKey", "key"), command=command)
    if command is Command.DELETE_API_KEY:
        return DeleteApiKey()
    if command in (Command.GENERATE_PRD, Command.GENERATE_PRD_LEGACY):
        return GeneratePrd(text=_str_field(raw, "text", "prompt"), command=command)
    if command in (Command.GENERATE_CONTEXT_CARDS, Command.GENERATE_CONTEXT_CARDS_LEGACY):
        return GenerateContextCards(command=command)
    if command in (Command.GENERATE_DATA_FLOW_DIAGRAM, Command.GENERATE_COMPONENT_HIERARCHY):
        return GenerateDiagram(command=command)
    if command is Command.CANCEL_GENERATION:
        return CancelGeneration(operation=_str_field(raw, "operation") or None)
    return ViewArtifact(command=command, file_path=_str_field(raw, "filePath") or None)
