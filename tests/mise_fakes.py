"""Shared fakes for host collaborators used across the test-suite."""

from __future__ import annotations

import json
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

# ---------------------------------------------------------------------------
# Path setup
# ---------------------------------------------------------------------------

def _ensure_paths() -> None:
    repo_root = Path(__file__).parent.parent
    p = str(repo_root / "mise-host")
    if p not in sys.path:
        sys.path.insert(0, p)


_ensure_paths()

from ai.service import AIResponse  # noqa: E402
from host.interfaces import HostContext  # noqa: E402
from host.local import LocalFileSystem  # noqa: E402
from host_config import API_KEY_SECRET_NAME, HostConfig  # noqa: E402
from panel.session import PanelSession  # noqa: E402


# ---------------------------------------------------------------------------
# Secrets
# ---------------------------------------------------------------------------

@dataclass
class FakeSecrets:
    values: dict[str, str] = field(default_factory=dict)
    fail_get: bool = False

    async def get(self, key: str) -> str | None:
        if self.fail_get:
            raise RuntimeError("secret store unavailable")
        return self.values.get(key)

    async def store(self, key: str, value: str) -> None:
        self.values[key] = value

    async def delete(self, key: str) -> None:
        self.values.pop(key, None)


# ---------------------------------------------------------------------------
# Panel / window
# ---------------------------------------------------------------------------

@dataclass
class FakeChannel:
    messages: list[dict[str, Any]] = field(default_factory=list)

    async def post_message(self, message: dict[str, Any]) -> bool:
        self.messages.append(message)
        return True

    def of(self, command: str) -> list[dict[str, Any]]:
        return [m for m in self.messages if m.get("command") == command]


@dataclass
class FakePanel:
    view_type: str
    title: str
    channel: FakeChannel = field(default_factory=FakeChannel)
    reveal_count: int = 0
    disposed: bool = False
    _html: str = ""
    _dispose_callbacks: list = field(default_factory=list)
    _message_callbacks: list = field(default_factory=list)

    @property
    def html(self) -> str:
        return self._html

    @html.setter
    def html(self, value: str) -> None:
        self._html = value

    @property
    def webview(self) -> FakeChannel:
        return self.channel

    def reveal(self) -> None:
        self.reveal_count += 1

    def on_did_dispose(self, callback) -> None:
        self._dispose_callbacks.append(callback)

    def on_did_receive_message(self, callback) -> None:
        self._message_callbacks.append(callback)

    def dispose(self) -> None:
        if self.disposed:
            return
        self.disposed = True
        for cb in self._dispose_callbacks:
            cb()

    async def receive(self, message: dict[str, Any]) -> list[Any]:
        return [await cb(message) for cb in self._message_callbacks]


@dataclass
class FakeWindow:
    panels: list[FakePanel] = field(default_factory=list)
    infos: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    documents: list[tuple[Path, str, str]] = field(default_factory=list)
    quick_picks: list[tuple[str, list[str]]] = field(default_factory=list)
    quick_pick_answer: str | None = None

    def create_webview_panel(self, view_type: str, title: str) -> FakePanel:
        panel = FakePanel(view_type=view_type, title=title)
        self.panels.append(panel)
        return panel

    async def show_information_message(self, text: str) -> None:
        self.infos.append(text)

    async def show_warning_message(self, text: str) -> None:
        self.warnings.append(text)

    async def show_error_message(self, text: str) -> None:
        self.errors.append(text)

    async def show_quick_pick(self, items: list[str], *, title: str) -> str | None:
        self.quick_picks.append((title, list(items)))
        return self.quick_pick_answer

    async def show_document(self, path: Path, content: str, *, language: str = "markdown") -> None:
        self.documents.append((path, content, language))


# ---------------------------------------------------------------------------
# AI
# ---------------------------------------------------------------------------

@dataclass
class ScriptedAI:
    """Returns scripted responses in order; exceptions in the script are raised."""

    script: list[Any] = field(default_factory=list)
    default: str = "A short summary."
    prompts: list[str] = field(default_factory=list)

    async def generate(self, prompt: str, *, system_prompt: str | None = None, json_mode: bool = False) -> AIResponse:
        self.prompts.append(prompt)
        item = self.script.pop(0) if self.script else self.default
        if isinstance(item, BaseException):
            raise item
        if isinstance(item, dict):
            return AIResponse(text=json.dumps(item), structured_json=item, model="fake-model")
        return AIResponse(text=str(item), model="fake-model")


@dataclass
class AIFactory:
    ai: ScriptedAI
    keys: list[str] = field(default_factory=list)

    def __call__(self, api_key: str, config: HostConfig) -> ScriptedAI:
        self.keys.append(api_key)
        return self.ai


# ---------------------------------------------------------------------------
# Builders
# ---------------------------------------------------------------------------

def make_host(
    workspace: Path | None,
    *,
    api_key: str | None = "sk-test-1234567890abcdef",
    ai: ScriptedAI | None = None,
) -> tuple[HostContext, FakeWindow, AIFactory]:
    secrets = FakeSecrets()
    if api_key is not None:
        secrets.values[API_KEY_SECRET_NAME] = api_key
    window = FakeWindow()
    factory = AIFactory(ai or ScriptedAI())
    host = HostContext(
        secrets=secrets,
        fs=LocalFileSystem(),
        window=window,
        config=HostConfig.load(workspace) if workspace is not None else None,
        ai_factory=factory,
        workspace_roots=[workspace.resolve()] if workspace is not None else [],
    )
    return host, window, factory


def make_session() -> tuple[PanelSession, FakeChannel]:
    channel = FakeChannel()
    return PanelSession(channel), channel
