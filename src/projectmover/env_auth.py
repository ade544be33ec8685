"""Environment-based token discovery.

Looks for a GitHub token in the Actions ``github-token`` input and the usual
environment variables, optionally loading a ``.env`` file first for local runs.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

from .logging import get_logger

TOKEN_ALTERNATIVES = ("GH_TOKEN", "GITHUB_ACCESS_TOKEN", "GH_ACCESS_TOKEN", "GITHUB_PAT")


@dataclass
class EnvAuthConfig:
    load_dotenv: bool = True
    dotenv_path: str | None = None
    github_token_var: str = "GITHUB_TOKEN"


class EnvironmentAuthManager:
    """Resolves the GitHub token handed to the GraphQL client."""

    def __init__(self, config: EnvAuthConfig):
        self.config = config
        self.logger = get_logger()
        self._dotenv_loaded = False
        if config.load_dotenv:
            self._load_dotenv()

    def _load_dotenv(self) -> None:
        candidates = [self.config.dotenv_path] if self.config.dotenv_path else [".env", ".env.local"]
        for location in candidates:
            env_path = Path(location)
            if env_path.exists():
                # never override values the runner already exported
                load_dotenv(str(env_path), override=False)
                self._dotenv_loaded = True
                self.logger.debug(f"Loaded environment variables from {env_path}")
                return

    @property
    def dotenv_loaded(self) -> bool:
        return self._dotenv_loaded

    def get_github_token(self, explicit: str | None = None) -> str | None:
        if explicit and explicit.strip():
            return explicit.strip()
        for var in ("INPUT_GITHUB-TOKEN", self.config.github_token_var, *TOKEN_ALTERNATIVES):
            token = os.getenv(var)
            if token and token.strip():
                self.logger.debug(f"Found GitHub token in {var}")
                return token.strip()
        return None


def create_env_auth_manager(config: EnvAuthConfig | None = None) -> EnvironmentAuthManager:
    """Factory function to create environment authentication manager."""
    return EnvironmentAuthManager(config or EnvAuthConfig())


__all__ = ["EnvAuthConfig", "EnvironmentAuthManager", "create_env_auth_manager"]
