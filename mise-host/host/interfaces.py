"""
Mise Host — Host Interfaces

Narrow protocols for everything the generation core consumes from its host:
secret storage, the file system, the panel and its channel, and the window
(notifications, quick picks, document viewer).  Concrete implementations
live in ``host.local``, ``host.secrets`` and ``host.webview``; tests supply
dataclass fakes.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Awaitable, Callable, Protocol

from host_config import HostConfig

MessageCallback = Callable[[dict[str, Any]], Awaitable[None]]
DisposeCallback = Callable[[], None]


class SecretStorage(Protocol):
    async def get(self, key: str) -> str | None: ...

    async def store(self, key: str, value: str) -> None: ...

    async def delete(self, key: str) -> None: ...


class FileSystem(Protocol):
    async def create_directory(self, path: Path) -> None: ...

    async def read_text(self, path: Path) -> str: ...

    async def write_text(self, path: Path, content: str) -> None: ...

    async def read_directory(self, path: Path) -> list[str]: ...

    async def exists(self, path: Path) -> bool: ...

    async def stat_mtime(self, path: Path) -> float: ...

    async def find_files(
        self,
        root: Path,
        patterns: tuple[str, ...],
        exclude_dirs: tuple[str, ...],
        limit: int,
    ) -> list[Path]: ...


class WebviewChannel(Protocol):
    """Host -> webview direction of a panel."""

    async def post_message(self, message: dict[str, Any]) -> bool: ...


class WebviewPanel(Protocol):
    html: str

    @property
    def webview(self) -> WebviewChannel: ...

    def reveal(self) -> None: ...

    def on_did_dispose(self, callback: DisposeCallback) -> None: ...

    def on_did_receive_message(self, callback: MessageCallback) -> None: ...

    def dispose(self) -> None: ...


class Window(Protocol):
    def create_webview_panel(self, view_type: str, title: str) -> WebviewPanel: ...

    async def show_information_message(self, text: str) -> None: ...

    async def show_warning_message(self, text: str) -> None: ...

    async def show_error_message(self, text: str) -> None: ...

    async def show_quick_pick(self, items: list[str], *, title: str) -> str | None: ...

    async def show_document(self, path: Path, content: str, *, language: str = "markdown") -> None: ...


class AIServiceFactory(Protocol):
    def __call__(self, api_key: str, config: HostConfig) -> Any: ...


@dataclass
class HostContext:
    """Everything a handler may touch outside of the panel itself."""

    secrets: SecretStorage
    fs: FileSystem
    window: Window
    config: HostConfig | None
    ai_factory: AIServiceFactory
    workspace_roots: list[Path] = field(default_factory=list)

    @property
    def workspace_root(self) -> Path | None:
        return self.workspace_roots[0] if self.workspace_roots else None
