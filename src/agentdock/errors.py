"""AgentDock exception hierarchy.

All AgentDock-specific exceptions inherit from AgentDockError. Each class
carries the machine-readable ``code`` reported back to callers.
"""

INVALID_REQUEST = "INVALID_REQUEST"
UNAVAILABLE = "UNAVAILABLE"


class AgentDockError(Exception):
    """Base exception for all AgentDock errors."""

    code = UNAVAILABLE

    def __init__(self, message: str = "", *, retryable: bool = False) -> None:
        super().__init__(message)
        self.retryable = retryable


class InvalidRequestError(AgentDockError):
    """Malformed params or a business rule rejected the request."""

    code = INVALID_REQUEST


class UnknownRecipeError(InvalidRequestError):
    def __init__(self, recipe_id: str) -> None:
        super().__init__(f'unknown recipe: "{recipe_id}"')
        self.recipe_id = recipe_id


class ReservedIdentifierError(InvalidRequestError):
    def __init__(self, agent_id: str) -> None:
        super().__init__(f'"{agent_id}" is reserved')
        self.agent_id = agent_id


class DuplicateAgentError(InvalidRequestError):
    def __init__(self, agent_id: str) -> None:
        super().__init__(f'agent "{agent_id}" already exists')
        self.agent_id = agent_id


class ConfigConflictError(InvalidRequestError):
    """The configuration document changed between load and write."""


class IntegrationUnavailableError(AgentDockError):
    """No broker credential is configured."""

    def __init__(
        self,
        message: str = (
            "Composio is not configured. "
            "Set composio.apiKey in the config file or the COMPOSIO_API_KEY env var."
        ),
    ) -> None:
        super().__init__(message)


class UpstreamError(AgentDockError):
    """A broker call failed."""

    def __init__(self, message: str = "", *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class BrokerResponseError(UpstreamError):
    """The broker answered with a payload of the wrong shape."""


class ConfigError(AgentDockError):
    """Invalid or unreadable configuration document."""


class PartialProvisioningError(AgentDockError):
    """Some workspace files could not be written after the agent was registered."""

    def __init__(self, agent_id: str, failures: dict[str, str]) -> None:
        names = ", ".join(sorted(failures))
        super().__init__(f'agent "{agent_id}" registered but workspace files failed: {names}')
        self.agent_id = agent_id
        self.failures = dict(failures)
