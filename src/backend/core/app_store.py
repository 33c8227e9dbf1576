"""
JSON-file settings store.

Holds provider credentials, the model list, MCP server configuration, the
theme and chat sessions in one file. Every read goes to disk, so the chat
endpoint and the connection registry always observe the latest values
written through the settings API. Writes are atomic (temp file + rename).
"""

from __future__ import annotations

import os
import tempfile
import threading

from collections.abc import Callable
from pathlib import Path

from pydantic import ValidationError

from models.mcp_models import ServerConfig, parse_mcp_config
from models.schemas.chat import ChatMessage
from models.schemas.sessions import ChatSession
from models.schemas.settings import OpenAIConfig, SettingsUpdate, StoreData, Theme
from utils.logger import logger


class AppStore:
    """Settings store backed by a single JSON file."""

    def __init__(self, path: Path):
        self.path = Path(path)
        self._lock = threading.Lock()

    # ------------------------------------------------------------------
    # File access
    # ------------------------------------------------------------------

    def _read(self) -> StoreData:
        if not self.path.exists():
            return StoreData()
        try:
            return StoreData.model_validate_json(self.path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, ValidationError) as e:
            logger.error(f"Settings store unreadable, using defaults: {self.path}: {e}")
            return StoreData()

    def _write(self, data: StoreData) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                fh.write(data.model_dump_json(indent=2))
            os.replace(tmp_name, self.path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    def load(self) -> StoreData:
        """Snapshot of the whole store."""
        with self._lock:
            return self._read()

    def _update(self, mutate: Callable[[StoreData], None]) -> StoreData:
        """Read-modify-write under the store lock."""
        with self._lock:
            data = self._read()
            mutate(data)
            self._write(data)
            return data

    # ------------------------------------------------------------------
    # Settings
    # ------------------------------------------------------------------

    def get_theme(self) -> Theme:
        return self.load().theme

    def get_openai_config(self) -> OpenAIConfig:
        return self.load().openai

    def save_settings(self, update: SettingsUpdate) -> StoreData:
        """Apply the provided sections; omitted sections keep their stored value."""

        def mutate(data: StoreData) -> None:
            if update.theme is not None:
                data.theme = update.theme
            if update.openai is not None:
                data.openai = update.openai

        return self._update(mutate)

    # ------------------------------------------------------------------
    # MCP configuration
    # ------------------------------------------------------------------

    def get_mcp_servers(self) -> list[ServerConfig]:
        return self.load().mcp.servers

    def save_mcp_servers(self, servers: list[ServerConfig]) -> None:
        def mutate(data: StoreData) -> None:
            data.mcp.servers = list(servers)

        self._update(mutate)

    def get_mcp_config_path(self) -> str:
        return self.load().mcp.configPath

    def set_mcp_config_path(self, path: str) -> None:
        def mutate(data: StoreData) -> None:
            data.mcp.configPath = path

        self._update(mutate)

    def import_mcp_config(self, path: str | Path) -> list[ServerConfig]:
        """Replace the stored server list with the servers of a descriptor file.

        Stores both the servers and the path.

        Raises:
            OSError: If the file cannot be read
            UnicodeDecodeError: If the file is not UTF-8 text
            pydantic.ValidationError: If the file is not a valid descriptor
        """
        raw = Path(path).read_text(encoding="utf-8")
        servers = parse_mcp_config(raw)

        def mutate(data: StoreData) -> None:
            data.mcp.servers = servers
            data.mcp.configPath = str(path)

        self._update(mutate)
        logger.info(f"Imported {len(servers)} MCP server(s) from {path}")
        return servers

    def sync_from_config_file(self) -> bool:
        """Refresh the stored server list from the stored descriptor path.

        Startup variant of ``import_mcp_config``: a missing path is skipped and
        read/parse failures are logged, leaving the stored servers untouched.

        Returns:
            True if the server list was replaced
        """
        config_path = self.get_mcp_config_path()
        if not config_path or not Path(config_path).exists():
            return False

        try:
            servers = parse_mcp_config(Path(config_path).read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, ValidationError) as e:
            logger.error(f"Failed to sync MCP servers from config file {config_path}: {e}")
            return False

        self.save_mcp_servers(servers)
        logger.info(f"Synced {len(servers)} MCP server(s) from config file: {config_path}")
        return True

    # ------------------------------------------------------------------
    # Chat sessions
    # ------------------------------------------------------------------

    def get_sessions(self) -> list[ChatSession]:
        return self.load().sessions

    def create_session(self, session: ChatSession) -> ChatSession:
        """Store a session ahead of the existing ones (newest first)."""

        def mutate(data: StoreData) -> None:
            data.sessions = [session, *data.sessions]

        self._update(mutate)
        return session

    def update_session(self, session_id: str, messages: list[ChatMessage], title: str | None = None) -> bool:
        """Replace a session's messages and, if given, its title.

        Returns:
            False if no session has that ID (nothing is written)
        """
        with self._lock:
            data = self._read()
            session = next((s for s in data.sessions if s.id == session_id), None)
            if session is None:
                return False
            session.messages = list(messages)
            if title:
                session.title = title
            self._write(data)
            return True

    def delete_session(self, session_id: str) -> None:
        def mutate(data: StoreData) -> None:
            data.sessions = [s for s in data.sessions if s.id != session_id]

        self._update(mutate)
