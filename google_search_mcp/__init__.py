"""
Google Search MCP - Serveur MCP pour recherche Google et analyse de pages web

Ce package fournit un serveur MCP (Model Context Protocol) exposant deux outils:
la recherche Google Custom Search et l'extraction du contenu principal d'une page.

Composants principaux:
- search: Client de recherche, récupération et extraction de contenu
- utils: Nettoyage du texte extrait
- config: Configuration centralisée
"""

__version__ = "1.0.0"

# Imports principaux pour faciliter l'utilisation
from .mcp_server import GoogleSearchMCPServer, main, run

__all__ = [
    "GoogleSearchMCPServer",
    "main",
    "run",
    "__version__",
]
