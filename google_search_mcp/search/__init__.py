"""
Modules de recherche web et extraction de contenu

Ce package contient:
- Le client de l'API Google Custom Search
- La récupération des pages web
- L'extraction du contenu principal des pages
"""

from .extractor import ContentExtractor
from .fetcher import ContentFetcher
from .google import GoogleSearchClient
from .models import PageAnalysis, PageMetadata, SearchResult

__all__ = [
    "ContentExtractor",
    "ContentFetcher",
    "GoogleSearchClient",
    "PageAnalysis",
    "PageMetadata",
    "SearchResult",
]
