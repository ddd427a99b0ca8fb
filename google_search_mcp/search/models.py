from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass(frozen=True)
class PageMetadata:
    """Metadata read from the page's meta tags; every field is optional"""
    description: Optional[str] = None
    keywords: Optional[List[str]] = None
    author: Optional[str] = None
    publish_date: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "description": self.description,
            "keywords": list(self.keywords) if self.keywords is not None else None,
            "author": self.author,
            "publishDate": self.publish_date,
        }
        return {key: value for key, value in data.items() if value is not None}


@dataclass(frozen=True)
class PageAnalysis:
    """Result of analyzing one page"""
    title: str
    text: str
    metadata: PageMetadata = field(default_factory=PageMetadata)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "title": self.title,
            "text": self.text,
            "metadata": self.metadata.to_dict(),
        }


@dataclass(frozen=True)
class SearchResult:
    title: str
    link: str
    snippet: str
    pagemap: Dict[str, Any] = field(default_factory=dict)
    date_published: str = ""
    source: str = "google_search"

    @classmethod
    def from_item(cls, item: Dict[str, Any]) -> "SearchResult":
        """Build a result from one item of a Custom Search API response"""
        pagemap = item.get("pagemap") or {}
        metatags = pagemap.get("metatags") or [{}]
        first_tags = metatags[0] if isinstance(metatags[0], dict) else {}
        return cls(
            title=item.get("title") or "",
            link=item.get("link") or "",
            snippet=item.get("snippet") or "",
            pagemap=pagemap,
            date_published=first_tags.get("article:published_time") or "",
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "title": self.title,
            "link": self.link,
            "snippet": self.snippet,
            "pagemap": self.pagemap,
            "datePublished": self.date_published,
            "source": self.source,
        }
