"""Runtime settings read from the environment.

    INTUITION_GRAPH_URL           — GraphQL endpoint of the attestation graph
    INTUITION_TIMEOUT             — outbound request timeout in seconds (default 10)
    INTUITION_DEFAULT_CONFIDENCE  — confidence assigned to every attestation (default 0.8)
    ENS_API_URL                   — name resolution endpoint
    ALLOWED_ORIGINS               — comma-separated CORS origins (default *)
    LOG_LEVEL                     — logging level (default INFO)
    INTUITION_PRODUCTION          — when set, hides /docs and /redoc
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field

DEFAULT_GRAPH_URL = "https://testnet.intuition.sh/v1/graphql"
DEFAULT_ENS_API_URL = "https://api.ensideas.com/ens/resolve"


@dataclass(frozen=True)
class Settings:
    graph_url: str = DEFAULT_GRAPH_URL
    timeout: float = 10.0
    default_confidence: float = 0.8
    ens_api_url: str = DEFAULT_ENS_API_URL
    allowed_origins: list[str] = field(default_factory=list)
    log_level: str = "INFO"
    production: bool = False

    @classmethod
    def from_env(cls, environ=None) -> "Settings":
        env = os.environ if environ is None else environ
        confidence = float(env.get("INTUITION_DEFAULT_CONFIDENCE", "0.8"))
        if not 0.0 <= confidence <= 1.0:
            raise ValueError("INTUITION_DEFAULT_CONFIDENCE must be between 0 and 1")
        timeout = float(env.get("INTUITION_TIMEOUT", "10"))
        if timeout <= 0:
            raise ValueError("INTUITION_TIMEOUT must be positive")
        origins = [o.strip() for o in env.get("ALLOWED_ORIGINS", "").split(",") if o.strip()]
        return cls(
            graph_url=env.get("INTUITION_GRAPH_URL") or DEFAULT_GRAPH_URL,
            timeout=timeout,
            default_confidence=confidence,
            ens_api_url=(env.get("ENS_API_URL") or DEFAULT_ENS_API_URL).rstrip("/"),
            allowed_origins=origins,
            log_level=env.get("LOG_LEVEL", "INFO"),
            production=bool(env.get("INTUITION_PRODUCTION")),
        )
