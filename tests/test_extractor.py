import pytest

from google_search_mcp.errors import ExtractionError, FailureKind
from google_search_mcp.search.extractor import ContentExtractor

PARAGRAPHS = [
    "The first paragraph explains how the content extractor chooses a main container on a noisy page.",
    "The second paragraph describes the fallback tiers that kick in when the container is too short.",
    "The third paragraph covers the cleaning pass that removes duplicate lines and bare links.",
]

ARTICLE_PAGE = f"""
<html>
<head>
  <title>Test Article</title>
  <meta name="description" content="A page used in tests">
  <meta name="keywords" content="a, b , c">
  <meta property="og:author" content="Jane Writer">
  <meta property="article:published_time" content="2024-05-01T10:00:00Z">
</head>
<body>
  <nav><ul><li>Home</li><li>About us</li></ul></nav>
  <div class="advertisement">Buy our product now</div>
  <article>
    <p>{PARAGRAPHS[0]}</p>
    <p>{PARAGRAPHS[1]}</p>
    <p>{PARAGRAPHS[2]}</p>
  </article>
  <script>var tracking = "script text";</script>
</body>
</html>
"""

LONG_TEXT = "This sentence is long enough to push the primary extraction well past its minimum size. " * 3


@pytest.fixture
def extractor():
    return ContentExtractor()


def test_article_paragraphs_in_order_without_noise(extractor) -> None:
    analysis = extractor.extract(ARTICLE_PAGE)

    positions = [analysis.text.index(p) for p in PARAGRAPHS]
    assert positions == sorted(positions)
    assert "Buy our product now" not in analysis.text
    assert "Home" not in analysis.text
    assert "script text" not in analysis.text


def test_title_and_metadata(extractor) -> None:
    analysis = extractor.extract(ARTICLE_PAGE)

    assert analysis.title == "Test Article"
    assert analysis.metadata.description == "A page used in tests"
    assert analysis.metadata.keywords == ["a", "b", "c"]
    assert analysis.metadata.author == "Jane Writer"
    assert analysis.metadata.publish_date == "2024-05-01T10:00:00Z"


def test_missing_metadata_is_absent_not_an_error(extractor) -> None:
    analysis = extractor.extract("<html><head></head><body><p>Hello</p></body></html>")

    assert analysis.title == ""
    assert analysis.metadata.to_dict() == {}


def test_meta_name_wins_over_open_graph(extractor) -> None:
    html = """
    <html><head>
      <meta property="og:description" content="from og">
      <meta name="description" content="from name">
      <meta name="pubdate" content="2023-01-01">
      <meta name="date" content="2020-01-01">
    </head><body></body></html>
    """
    metadata = extractor.extract(html).metadata

    assert metadata.description == "from name"
    assert metadata.publish_date == "2023-01-01"


@pytest.mark.parametrize("html", [
    "",
    "<html></html>",
    "<html><body></body></html>",
    "<html><body><script>only()</script></body></html>",
    "<div><p>",
    "plain text without markup",
])
def test_text_is_never_none(extractor, html) -> None:
    analysis = extractor.extract(html)

    assert isinstance(analysis.text, str)
    assert isinstance(analysis.title, str)


@pytest.mark.parametrize("body", [None, b"<html></html>", {"html": "x"}])
def test_non_string_body_is_a_parse_failure(extractor, body) -> None:
    with pytest.raises(ExtractionError) as exc_info:
        extractor.extract(body)

    assert exc_info.value.kind == FailureKind.INTERNAL


def test_headings_upper_cased_and_listed_first(extractor) -> None:
    html = f"""
    <html><body><article>
      <p>{LONG_TEXT}</p>
      <h2>Later Heading</h2>
      <li>A list item inside the article</li>
    </article></body></html>
    """
    text = extractor.extract(html).text

    assert text.startswith("LATER HEADING")
    assert text.index("A list item inside the article") > text.index(LONG_TEXT.strip()[:40])


def test_longest_candidate_wins(extractor) -> None:
    html = f"""
    <html><body>
      <main><p>short main text</p></main>
      <div class="post"><p>{LONG_TEXT}</p></div>
    </body></html>
    """
    text = extractor.extract(html).text

    assert LONG_TEXT.strip() in text
    assert "short main text" not in text


def test_short_candidate_falls_back_to_whole_body(extractor) -> None:
    html = f"""
    <html><body>
      <article><p>Tiny</p></article>
      <h2>Side Heading</h2>
      <p>{LONG_TEXT}</p>
    </body></html>
    """
    text = extractor.extract(html).text

    assert text.split("\n")[:2] == ["Tiny", "Side Heading"]
    assert "SIDE HEADING" not in text
    assert LONG_TEXT.strip() in text


def test_duplicate_lines_collapse_to_first(extractor) -> None:
    repeated = "This exact line shows up more than once on the page."
    html = f"""
    <html><body>
      <p>{repeated}</p>
      <p>A distinct paragraph that adds enough characters to the cleaned output.</p>
      <p>{repeated}</p>
      <p>Another distinct paragraph so that the raw text fallback is not needed.</p>
      <li>{repeated}</li>
    </body></html>
    """
    text = extractor.extract(html).text

    assert text.count(repeated) == 1
    assert text.startswith(repeated)


def test_url_and_symbol_lines_removed(extractor) -> None:
    html = f"""
    <html><body><article>
      <p>{LONG_TEXT}</p>
      <p>https://example.com/x</p>
      <p>*** --- ***</p>
      <p>{LONG_TEXT.upper()}</p>
    </article></body></html>
    """
    lines = extractor.extract(html).text.split("\n")

    assert "https://example.com/x" not in lines
    assert "*** --- ***" not in lines
    assert "" not in lines


def test_ad_substring_matches_accepted_false_positives(extractor) -> None:
    html = f"""
    <html><body><article>
      <p>{LONG_TEXT}</p>
      <p class="upload-note">Upload note text</p>
      <div class="ad-banner"><p>Sponsored words</p></div>
    </article></body></html>
    """
    text = extractor.extract(html).text

    assert "Upload note text" not in text
    assert "Sponsored words" not in text


def test_raw_walk_used_when_cascade_finds_nothing(extractor) -> None:
    html = "<html><body><div><span>Short text one</span><span>Another bit</span></div></body></html>"

    assert extractor.extract(html).text == "Short text one\nAnother bit"


def test_raw_walk_preferred_when_longer_even_if_unclean(extractor) -> None:
    html = """
    <html><body>
      <p>Hello world</p>
      <span>Hello world</span>
      <span>Extra words here</span>
    </body></html>
    """

    assert extractor.extract(html).text == "Hello world\nHello world\nExtra words here"


def test_short_cleaned_text_kept_when_raw_walk_is_not_longer(extractor) -> None:
    html = "<html><body><p>Only paragraph</p></body></html>"

    assert extractor.extract(html).text == "Only paragraph"


def test_removed_body_yields_empty_text_not_head_text(extractor) -> None:
    html = "<html><head><title>Site Title</title></head><body class='page-loaded'><p>Hello</p></body></html>"

    analysis = extractor.extract(html)

    assert analysis.title == "Site Title"
    assert analysis.text == ""
