"""Diagram generation and artifact viewing."""

from __future__ import annotations

import json
import os

import pytest

from mise_fakes import ScriptedAI, make_host, make_session

from generation.diagrams import DiagramKind, ensure_mermaid, extract_mermaid_blocks
from webview.commands import Command, GenerateDiagram, GeneratePrd, ViewArtifact, parse_message
from webview.handlers import handle_generate_diagram, handle_generate_prd, handle_view

PRD = {"title": "Todo App", "markdown": "# Todo App\n\nTrack tasks.", "json": {"title": "Todo App"}}
DIAGRAM = "# Data Flow\n\n```mermaid\nflowchart LR\n  User --> App\n```\n"


@pytest.mark.asyncio
async def test_diagram_uses_last_generated_prd(tmp_path) -> None:
    ai = ScriptedAI([PRD, DIAGRAM])
    host, window, _ = make_host(tmp_path, ai=ai)
    session, channel = make_session()

    await handle_generate_prd(GeneratePrd(text="todo"), host, session)
    result = await handle_generate_diagram(
        GenerateDiagram(command=Command.GENERATE_DATA_FLOW_DIAGRAM), host, session,
    )

    assert result.path == host.config.paths.diagrams / "data_flow_diagram.md"
    assert result.path.read_text() == DIAGRAM
    assert "Track tasks." in ai.prompts[1]
    done = channel.of("diagramGenerated")
    assert len(done) == 1
    assert done[0]["viewCommand"] == "view-data-flow-diagram"
    assert session.last(DiagramKind.DATA_FLOW.value).primary == result.path

    manifest = json.loads(host.config.paths.manifest.read_text())
    assert [a["type"] for a in manifest["artifacts"]] == ["prd", "diagram"]


@pytest.mark.asyncio
async def test_diagram_without_any_prd_is_precondition_error(tmp_path) -> None:
    ai = ScriptedAI([DIAGRAM])
    host, _, _ = make_host(tmp_path, ai=ai)
    session, channel = make_session()

    result = await handle_generate_diagram(
        GenerateDiagram(command=Command.GENERATE_COMPONENT_HIERARCHY), host, session,
    )

    assert result is None
    assert channel.of("error")[0]["text"].startswith("No PRD found")
    assert ai.prompts == []


@pytest.mark.asyncio
async def test_diagram_falls_back_to_newest_prd_on_disk(tmp_path) -> None:
    ai = ScriptedAI(["graph TD\n  App --> Header"])
    host, _, _ = make_host(tmp_path, ai=ai)
    prd_dir = host.config.paths.prd
    prd_dir.mkdir(parents=True)
    old, new = prd_dir / "old.md", prd_dir / "new.md"
    old.write_text("# Old PRD")
    new.write_text("# New PRD")
    os.utime(old, (1_000_000, 1_000_000))
    session, _ = make_session()

    result = await handle_generate_diagram(
        GenerateDiagram(command=Command.GENERATE_COMPONENT_HIERARCHY), host, session,
    )

    assert result.source_path == new
    content = result.path.read_text()
    assert extract_mermaid_blocks(content) == ["graph TD\n  App --> Header"]
    assert result.path.name == "component_hierarchy.md"


def test_ensure_mermaid_wraps_bare_markup() -> None:
    wrapped = ensure_mermaid("```\nflowchart LR\n  A --> B\n```", DiagramKind.DATA_FLOW)
    assert wrapped.startswith("# Data Flow Diagram")
    assert extract_mermaid_blocks(wrapped) == ["flowchart LR\n  A --> B"]


@pytest.mark.asyncio
async def test_view_prd_prefers_session_paths(tmp_path) -> None:
    host, window, _ = make_host(tmp_path, ai=ScriptedAI([PRD]))
    session, _ = make_session()
    await handle_generate_prd(GeneratePrd(text="todo"), host, session)

    md = await handle_view(ViewArtifact(command=Command.VIEW_PRD), host, session)
    graph = await handle_view(ViewArtifact(command=Command.VIEW_GRAPH), host, session)

    assert md.name == "todo-app.md"
    assert graph.name == "todo-app.json"
    assert window.documents[0][2] == "markdown"
    assert window.documents[0][1] == PRD["markdown"]
    shown_graph = json.loads(window.documents[1][1])
    assert shown_graph["nodes"][0]["data"]["id"] == "prd"
    assert window.quick_picks == []


@pytest.mark.asyncio
async def test_view_with_no_files_informs_user(tmp_path) -> None:
    host, window, _ = make_host(tmp_path)
    session, channel = make_session()

    result = await handle_view(ViewArtifact(command=Command.VIEW_PRD_LEGACY), host, session)

    assert result is None
    assert window.infos == ["No PRDs found."]
    assert channel.of("info") == [{"command": "info", "text": "No PRDs found."}]
    assert window.documents == []


@pytest.mark.asyncio
async def test_view_scans_and_prompts_when_several(tmp_path) -> None:
    host, window, _ = make_host(tmp_path)
    prd_dir = host.config.paths.prd
    prd_dir.mkdir(parents=True)
    (prd_dir / "alpha.json").write_text(json.dumps({"title": "Alpha", "features": [{"id": "F1", "title": "X"}]}))
    (prd_dir / "beta.json").write_text(json.dumps({"title": "Beta"}))
    (prd_dir / "manifest.json").write_text(json.dumps({"artifacts": []}))
    os.utime(prd_dir / "alpha.json", (1_000_000, 1_000_000))
    window.quick_pick_answer = "alpha.json"
    session, _ = make_session()

    result = await handle_view(ViewArtifact(command=Command.VIEW_GRAPH), host, session)

    assert result == prd_dir / "alpha.json"
    title, items = window.quick_picks[0]
    assert items == ["beta.json", "alpha.json"]
    graph = json.loads(window.documents[0][1])
    assert [e["data"]["label"] for e in graph["edges"]] == ["contains"]


@pytest.mark.asyncio
async def test_view_quick_pick_dismissed(tmp_path) -> None:
    host, window, _ = make_host(tmp_path)
    prd_dir = host.config.paths.prd
    prd_dir.mkdir(parents=True)
    (prd_dir / "a.md").write_text("# A")
    (prd_dir / "b.md").write_text("# B")
    session, _ = make_session()

    assert await handle_view(ViewArtifact(command=Command.VIEW_PRD), host, session) is None
    assert window.documents == []


@pytest.mark.asyncio
async def test_view_diagram_extracts_mermaid(tmp_path) -> None:
    host, window, _ = make_host(tmp_path)
    diagrams = host.config.paths.diagrams
    diagrams.mkdir(parents=True)
    (diagrams / "data_flow_diagram.md").write_text(DIAGRAM)
    session, _ = make_session()

    await handle_view(ViewArtifact(command=Command.VIEW_DATA_FLOW_DIAGRAM), host, session)

    path, content, language = window.documents[0]
    assert language == "mermaid"
    assert content == "flowchart LR\n  User --> App"


@pytest.mark.asyncio
async def test_view_explicit_path_must_stay_in_workspace(tmp_path) -> None:
    from host.errors import PreconditionError

    workspace = tmp_path / "ws"
    workspace.mkdir()
    (workspace / "notes.md").write_text("# Notes")
    (tmp_path / "secret.md").write_text("nope")
    host, window, _ = make_host(workspace)
    session, _ = make_session()

    shown = await handle_view(ViewArtifact(command=Command.VIEW_PRD, file_path="notes.md"), host, session)
    assert shown == (workspace / "notes.md").resolve()

    with pytest.raises(PreconditionError):
        await handle_view(ViewArtifact(command=Command.VIEW_PRD, file_path="../secret.md"), host, session)


@pytest.mark.asyncio
async def test_view_context_cards_without_cards_informs_user(tmp_path) -> None:
    host, window, _ = make_host(tmp_path)
    session, channel = make_session()

    result = await handle_view(parse_message({"command": "view-context-cards"}), host, session)

    assert result is None
    assert window.infos == ["No context cards found."]
    assert channel.of("info") == [{"command": "info", "text": "No context cards found."}]


@pytest.mark.asyncio
async def test_view_context_cards_picks_among_cards(tmp_path) -> None:
    host, window, _ = make_host(tmp_path)
    cards = host.config.paths.context_cards
    cards.mkdir(parents=True)
    (cards / "billing.md").write_text("# Context Card for billing.py")
    (cards / "orders.md").write_text("# Context Card for orders.py")
    window.quick_pick_answer = "orders.md"
    session, _ = make_session()

    result = await handle_view(ViewArtifact(command=Command.VIEW_CONTEXT_CARDS), host, session)

    assert result == cards / "orders.md"
    assert window.quick_picks[0][0] == "Select a context card to view"
    assert sorted(window.quick_picks[0][1]) == ["billing.md", "orders.md"]
    path, content, language = window.documents[0]
    assert content == "# Context Card for orders.py"
    assert language == "markdown"
