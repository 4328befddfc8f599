"""Agent provisioning: register a new agent and seed its workspace from a recipe.

Steps run strictly in order for one request::

    Validating -> RecipeResolved -> IdentifierResolved -> UniquenessChecked
    -> ConfigComputed -> DirectoriesEnsured -> ConfigPersisted -> FilesWritten

Failures before ``ConfigComputed`` leave no trace. Nothing is rolled back
after ``DirectoriesEnsured``: directories may exist without a registry entry
if the config write fails, and once the config is persisted the agent is
registered even if some workspace files could not be written. The registry
entry is the record of whether provisioning completed.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import StrEnum
from pathlib import Path

from agentdock.agents.entries import (
    DEFAULT_MODEL_REF,
    apply_agent_config,
    apply_default_model_config,
    enable_composio,
    find_agent_entry_index,
    list_agent_entries,
    resolve_agent_dir,
    resolve_transcripts_dir,
    resolve_workspace_root,
)
from agentdock.agents.ids import DEFAULT_AGENT_ID, normalize_agent_id, sanitize_line
from agentdock.agents.workspace import (
    AGENTS_FILENAME,
    IDENTITY_FILENAME,
    SOUL_FILENAME,
    TOOLS_FILENAME,
    USER_FILENAME,
    aensure_dir,
    awrite_file,
    render_identity,
    render_user_profile,
)
from agentdock.context import AppContext
from agentdock.errors import (
    DuplicateAgentError,
    InvalidRequestError,
    PartialProvisioningError,
    ReservedIdentifierError,
    UnknownRecipeError,
)
from agentdock.logging import bind_context

logger = logging.getLogger(__name__)


class Stage(StrEnum):
    VALIDATING = "validating"
    RECIPE_RESOLVED = "recipe_resolved"
    IDENTIFIER_RESOLVED = "identifier_resolved"
    UNIQUENESS_CHECKED = "uniqueness_checked"
    CONFIG_COMPUTED = "config_computed"
    DIRECTORIES_ENSURED = "directories_ensured"
    CONFIG_PERSISTED = "config_persisted"
    FILES_WRITTEN = "files_written"
    DONE = "done"


@dataclass(frozen=True, slots=True)
class ProvisionRequest:
    user_name: str
    bot_name: str
    recipe_id: str
    entity_id: str | None = None


@dataclass(frozen=True, slots=True)
class ProvisionResult:
    agent_id: str
    workspace_dir: Path
    recipe_id: str
    model: str
    warnings: tuple[dict[str, str], ...] = field(default_factory=tuple)

    def to_dict(self) -> dict[str, object]:
        payload: dict[str, object] = {
            "agentId": self.agent_id,
            "workspace": str(self.workspace_dir),
            "recipeId": self.recipe_id,
            "model": self.model,
        }
        if self.warnings:
            payload["warnings"] = [dict(item) for item in self.warnings]
        return payload


def _advance(agent_id: str, stage: Stage) -> None:
    logger.debug("provisioning %s: %s", agent_id or "?", stage.value)


async def provision_agent(request: ProvisionRequest, context: AppContext) -> ProvisionResult:
    _advance("", Stage.VALIDATING)
    bot_name = sanitize_line(request.bot_name or "")
    user_name = sanitize_line(request.user_name or "")
    recipe_id = (request.recipe_id or "").strip()
    entity_id = (request.entity_id or "").strip() or None
    if not bot_name:
        raise InvalidRequestError("botName required")
    if not user_name:
        raise InvalidRequestError("userName required")

    recipe = context.catalog.get(recipe_id)
    if recipe is None:
        raise UnknownRecipeError(recipe_id)
    _advance("", Stage.RECIPE_RESOLVED)

    agent_id = normalize_agent_id(bot_name)
    if agent_id == DEFAULT_AGENT_ID:
        raise ReservedIdentifierError(DEFAULT_AGENT_ID)
    bind_context(agent_id=agent_id)
    _advance(agent_id, Stage.IDENTIFIER_RESOLVED)

    settings = context.settings
    state_dir = settings.resolved_state_dir()

    async with context.provisioning_lock:
        snapshot = await context.config_store.aload()
        document = snapshot.document
        if find_agent_entry_index(list_agent_entries(document), agent_id) >= 0:
            raise DuplicateAgentError(agent_id)
        _advance(agent_id, Stage.UNIQUENESS_CHECKED)

        workspace_root = resolve_workspace_root(document, settings.default_workspace)
        workspace_dir = Path(workspace_root).expanduser().absolute() / agent_id

        next_document = apply_agent_config(
            document, agent_id=agent_id, name=bot_name, workspace=str(workspace_dir)
        )
        agent_dir = resolve_agent_dir(next_document, agent_id, state_dir)
        next_document = apply_agent_config(
            next_document, agent_id=agent_id, agent_dir=str(agent_dir)
        )
        next_document = apply_default_model_config(next_document, agent_id)
        if entity_id:
            next_document = enable_composio(next_document)
        _advance(agent_id, Stage.CONFIG_COMPUTED)

        # Directories first: a crash before the config write leaves no registry entry.
        await aensure_dir(workspace_dir)
        await aensure_dir(resolve_transcripts_dir(state_dir, agent_id))
        _advance(agent_id, Stage.DIRECTORIES_ENSURED)

        await context.config_store.awrite(next_document, expected_revision=snapshot.revision)
        _advance(agent_id, Stage.CONFIG_PERSISTED)
    logger.info("Agent %s registered with workspace %s", agent_id, workspace_dir)

    files: list[tuple[str, str]] = [
        (IDENTITY_FILENAME, render_identity(bot_name, recipe.emoji)),
        (USER_FILENAME, render_user_profile(user_name)),
        (SOUL_FILENAME, recipe.soul),
        (AGENTS_FILENAME, recipe.agents),
    ]
    if recipe.tools:
        files.append((TOOLS_FILENAME, recipe.tools))

    failures: dict[str, str] = {}
    for name, content in files:
        try:
            await awrite_file(workspace_dir, name, content)
        except OSError as exc:
            failures[name] = str(exc)
    if failures:
        logger.error("%s", PartialProvisioningError(agent_id, failures))
    _advance(agent_id, Stage.FILES_WRITTEN)

    _advance(agent_id, Stage.DONE)
    return ProvisionResult(
        agent_id=agent_id,
        workspace_dir=workspace_dir,
        recipe_id=recipe.id,
        model=DEFAULT_MODEL_REF,
        warnings=tuple(
            {"file": name, "error": error} for name, error in failures.items()
        ),
    )
