"""Agent workspace layout and bootstrap file rendering."""

from __future__ import annotations

import asyncio
from pathlib import Path

IDENTITY_FILENAME = "IDENTITY.md"
USER_FILENAME = "USER.md"
SOUL_FILENAME = "SOUL.md"
AGENTS_FILENAME = "AGENTS.md"
TOOLS_FILENAME = "TOOLS.md"


def render_identity(bot_name: str, emoji: str) -> str:
    return "\n".join(
        [
            f"# {bot_name}",
            "",
            f"- Name: {bot_name}",
            f"- Emoji: {emoji}",
            "- Creature: AI assistant",
            "",
        ]
    )


def render_user_profile(user_name: str) -> str:
    return "\n".join(
        [
            "# USER.md - Who You're Helping",
            "",
            f"- Name: {user_name}",
            "",
            "_Update this file as you learn more about your user._",
            "",
        ]
    )


def ensure_dir(path: Path) -> Path:
    path.mkdir(parents=True, exist_ok=True)
    return path


async def aensure_dir(path: Path) -> Path:
    return await asyncio.to_thread(ensure_dir, path)


async def awrite_file(workspace_dir: Path, name: str, content: str) -> Path:
    path = workspace_dir / name
    await asyncio.to_thread(path.write_text, content, encoding="utf-8")
    return path
