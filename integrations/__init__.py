"""
External system integrations.
"""

from integrations.sige_client import (
    SigeClient,
    SigeResponse,
    TokenProvider,
    SettingsTokenProvider,
    StaticTokenProvider,
)

__all__ = [
    "SigeClient",
    "SigeResponse",
    "TokenProvider",
    "SettingsTokenProvider",
    "StaticTokenProvider",
]
