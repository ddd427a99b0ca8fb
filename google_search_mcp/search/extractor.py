import logging
from typing import List, Optional

from bs4 import BeautifulSoup, Tag

from .models import PageAnalysis, PageMetadata
from ..errors import ExtractionError
from ..utils.text_cleaner import clean_text, join_units

logger = logging.getLogger(__name__)

# Heuristic floors for the fallback cascade
MIN_PRIMARY_LENGTH = 200
MIN_CLEANED_LENGTH = 100

NOISE_TAGS = ('script', 'style', 'noscript', 'iframe', 'img', 'svg')
AD_CLASS_MARKERS = ('ad', 'advertisement')

CONTENT_SELECTORS = [
    'main', 'article', '[role="main"]', '[itemprop="articleBody"]',
    '.content', '#content', '.main-content', '.post', '.post-content',
    '.entry', '.entry-content', '.article-content', '.article-body', '#main'
]

HEADING_TAGS = ['h1', 'h2', 'h3', 'h4', 'h5', 'h6']
BODY_TEXT_TAGS = ['p', 'li']

PUBLISH_DATE_ALIASES = ['article:published_time', 'pubdate', 'date']


class ContentExtractor:
    """Main-content extractor working on raw HTML"""

    def __init__(self, parser: str = 'lxml'):
        self.parser = parser

    def extract(self, html: str) -> PageAnalysis:
        """
        Extract title, readable text and metadata from a page

        Args:
            html: Raw HTML of the page

        Returns:
            PageAnalysis whose text is always a string, possibly empty

        Raises:
            ExtractionError: if the body is not a string or cannot be parsed
        """
        if not isinstance(html, str):
            raise ExtractionError(f"Response body is not HTML text (got {type(html).__name__})")

        try:
            soup = BeautifulSoup(html, self.parser)
        except Exception as e:
            raise ExtractionError(f"Failed to parse HTML: {e}") from e

        title = self._extract_title(soup)
        metadata = self._extract_metadata(soup)

        self._remove_noise(soup)

        # an ad-like class on <body> removes it; the page then has no body text
        body = soup.body
        text = self._extract_text(body) if body is not None else ""

        return PageAnalysis(title=title, text=text, metadata=metadata)

    def _extract_title(self, soup: BeautifulSoup) -> str:
        title_tag = soup.find('title')
        return title_tag.get_text().strip() if title_tag else ""

    def _extract_metadata(self, soup: BeautifulSoup) -> PageMetadata:
        """Read description, keywords, author and publish date from meta tags"""
        keywords = None
        raw_keywords = self._find_meta(soup, 'keywords')
        if raw_keywords is not None:
            keywords = [k.strip() for k in raw_keywords.split(',') if k.strip()]

        publish_date = None
        for alias in PUBLISH_DATE_ALIASES:
            publish_date = self._find_meta(soup, alias)
            if publish_date is not None:
                break

        return PageMetadata(
            description=self._find_meta(soup, 'description'),
            keywords=keywords,
            author=self._find_meta(soup, 'author'),
            publish_date=publish_date,
        )

    def _find_meta(self, soup: BeautifulSoup, key: str) -> Optional[str]:
        """First of meta[name=key], meta[property=og:key], meta[property=key]"""
        lookups = [
            {'name': key},
            {'property': f'og:{key}'},
            {'property': key},
        ]
        for attrs in lookups:
            tag = soup.find('meta', attrs=attrs)
            if tag is not None and tag.get('content') is not None:
                return tag['content']
        return None

    def _remove_noise(self, soup: BeautifulSoup) -> None:
        """Drop scripts, media and advertisement blocks"""
        noisy = soup.find_all(lambda tag: tag.name in NOISE_TAGS or self._is_ad(tag))
        for tag in noisy:
            # already gone with a removed ancestor
            if tag.decomposed:
                continue
            tag.decompose()

    @staticmethod
    def _is_ad(tag: Tag) -> bool:
        classes = tag.get('class')
        if not classes:
            return False
        class_attr = ' '.join(classes) if isinstance(classes, list) else str(classes)
        return any(marker in class_attr for marker in AD_CLASS_MARKERS)

    def _select_candidate(self, root: Tag) -> Optional[Tag]:
        """Element with the longest visible text among all selector matches"""
        best = None
        best_length = -1

        for selector in CONTENT_SELECTORS:
            for element in root.select(selector):
                length = len(element.get_text().strip())
                if length > best_length:
                    best = element
                    best_length = length

        return best

    def _extract_text(self, body: Tag) -> str:
        text = ""
        method = "fallback"

        candidate = self._select_candidate(body)
        if candidate is not None:
            text = self._collect_primary(candidate)
            method = "primary"

        if len(text) < MIN_PRIMARY_LENGTH:
            text = self._collect_fallback(body)
            method = "fallback"

        text = clean_text(text)

        if len(text) < MIN_CLEANED_LENGTH:
            raw_text = "\n".join(body.stripped_strings)
            if len(raw_text) > len(text):
                # raw walk wins even though it is not cleaned
                text = raw_text
                method = "raw"

        logger.debug(f"Extraction method '{method}' produced {len(text)} characters")
        return text

    def _collect_primary(self, candidate: Tag) -> str:
        units: List[str] = []

        for heading in candidate.find_all(HEADING_TAGS):
            heading_text = heading.get_text().strip()
            if heading_text:
                units.append(heading_text.upper())

        for element in candidate.find_all(BODY_TEXT_TAGS):
            element_text = element.get_text().strip()
            if element_text:
                units.append(element_text)

        return join_units(units)

    def _collect_fallback(self, body: Tag) -> str:
        units = []
        for element in body.find_all(HEADING_TAGS + BODY_TEXT_TAGS):
            element_text = element.get_text().strip()
            if element_text:
                units.append(element_text)
        return join_units(units)
