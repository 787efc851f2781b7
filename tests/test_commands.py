"""Panel command protocol parsing."""

from __future__ import annotations

from mise_fakes import _ensure_paths

_ensure_paths()

from webview.commands import (  # noqa: E402
    CancelGeneration,
    Command,
    GenerateContextCards,
    GenerateDiagram,
    GeneratePrd,
    SaveApiKey,
    UnknownCommand,
    ViewArtifact,
    WebviewReady,
    parse_message,
)


def test_current_and_legacy_spellings_parse_to_same_type() -> None:
    assert parse_message({"command": "generate-prd", "text": "idea"}) == GeneratePrd(text="idea")
    legacy = parse_message({"command": "generate", "text": "idea"})
    assert isinstance(legacy, GeneratePrd)
    assert legacy.command is Command.GENERATE_PRD_LEGACY

    assert isinstance(parse_message({"command": "saveApiKey", "apiKey": "k"}), SaveApiKey)
    assert isinstance(parse_message({"command": "bulkGenerateContextCards"}), GenerateContextCards)
    assert isinstance(parse_message({"command": "webviewReady"}), WebviewReady)


def test_payload_fields() -> None:
    save = parse_message({"command": "save-api-key", "apiKey": "sk-abc"})
    assert save.api_key == "sk-abc"

    view = parse_message({"command": "view-graph", "filePath": "out/prd/a.json"})
    assert view == ViewArtifact(command=Command.VIEW_GRAPH, file_path="out/prd/a.json")

    bare_view = parse_message({"command": "view-prd"})
    assert bare_view.file_path is None

    diagram = parse_message({"command": "generate-component-hierarchy"})
    assert diagram == GenerateDiagram(command=Command.GENERATE_COMPONENT_HIERARCHY)

    cancel = parse_message({"command": "cancel-generation", "operation": "generate-prd"})
    assert cancel == CancelGeneration(operation="generate-prd")


def test_missing_or_wrongly_typed_payload_defaults_to_empty() -> None:
    assert parse_message({"command": "generate-prd"}).text == ""
    assert parse_message({"command": "save-api-key", "apiKey": 42}).api_key == ""


def test_unknown_command_is_preserved() -> None:
    msg = parse_message({"command": "launch-rockets", "x": 1})
    assert isinstance(msg, UnknownCommand)
    assert msg.command == "launch-rockets"
    assert msg.payload["x"] == 1

    assert isinstance(parse_message({}), UnknownCommand)
