"""Agent onboarding and connection orchestration."""

__version__ = "0.1.0"
