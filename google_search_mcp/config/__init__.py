"""
Configuration centralisée du serveur MCP Google Search

Ce package contient:
- Settings: Gestionnaire de configuration avec support des variables d'environnement
- Dataclasses de configuration pour tous les composants
"""

from .settings import (
    Settings,
    MCPConfig,
    GoogleCredentials,
    FetchConfig,
    SearchConfig,
)

__all__ = [
    "Settings",
    "MCPConfig",
    "GoogleCredentials",
    "FetchConfig",
    "SearchConfig",
]
