"""Tests para el parser de markdown + frontmatter."""

from __future__ import annotations

import datetime
import pathlib
import textwrap

from dochub.indexer.parser import (
    ParserOptions,
    category_from_path,
    count_words,
    document_id,
    extract_diagrams,
    extract_headings,
    parse_document,
    split_front_matter,
    title_from_path,
)

UTC = datetime.timezone.utc


def _parse(text: str, path: str = "doc.md", **kwargs):
    return parse_document(path, textwrap.dedent(text), **kwargs)


def test_parse_with_frontmatter(sample_md_with_frontmatter: pathlib.Path):
    """Verifica parseo correcto de un .md con frontmatter YAML."""
    raw = sample_md_with_frontmatter.read_text(encoding="utf-8")
    doc = parse_document("strategy/launch-plan.md", raw)

    assert doc.id == "strategy-launch-plan"
    assert doc.slug == "launch-plan"
    assert doc.title == "Launch Plan"
    assert doc.description == "How the spring launch rolls out across channels."
    assert doc.category == "strategy"
    assert doc.author == "team-growth"
    assert doc.tags == ("launch", "kickstarter")
    assert doc.last_modified == datetime.datetime(2024, 3, 5, tzinfo=UTC)
    assert "# Launch Plan" in doc.body
    assert "title: Launch Plan" not in doc.body


def test_parse_without_frontmatter(sample_md_without_frontmatter: pathlib.Path):
    """Verifica parseo de un .md sin frontmatter."""
    raw = sample_md_without_frontmatter.read_text(encoding="utf-8")
    doc = parse_document("guides/onboarding.md", raw)

    assert doc.title == "Onboarding Guide"
    assert doc.category == "uncategorized"
    assert doc.tags == ()
    assert doc.author is None
    assert doc.description == "Set up your local environment and request access to the shared drive."
    assert [h.text for h in doc.headings] == ["Onboarding Guide", "Step 1", "Step 2"]


def test_parse_is_deterministic(sample_md_with_frontmatter: pathlib.Path):
    """El mismo path y contenido siempre producen el mismo registro."""
    raw = sample_md_with_frontmatter.read_text(encoding="utf-8")
    assert parse_document("a.md", raw) == parse_document("a.md", raw)


def test_loader_date_used_when_frontmatter_has_none():
    stamp = datetime.datetime(2024, 1, 2, 3, 4, tzinfo=UTC)
    doc = _parse("# Title\n", last_modified=stamp)
    assert doc.last_modified == stamp


def test_frontmatter_date_wins_over_loader_date():
    doc = _parse(
        """\
        ---
        lastModified: "2024-06-01T12:00:00Z"
        ---
        body
        """,
        last_modified=datetime.datetime(2020, 1, 1, tzinfo=UTC),
    )
    assert doc.last_modified == datetime.datetime(2024, 6, 1, 12, 0, tzinfo=UTC)


# --- Título ---

def test_title_prefers_h1_over_earlier_heading():
    doc = _parse("## Intro\n\n# Main Title\n\ntext\n")
    assert doc.title == "Main Title"


def test_title_falls_back_to_any_heading():
    doc = _parse("Some text first.\n\n## Section Name\n")
    assert doc.title == "Section Name"


def test_title_ignores_headings_inside_code_fences():
    doc = _parse("```bash\n# not a title\n```\n\n# Real Title\n")
    assert doc.title == "Real Title"


def test_title_from_plain_text_title_line():
    """Archivos .txt: una línea en mayúsculas al inicio se toma como título."""
    doc = _parse("KNOWLEDGE BASE OVERVIEW\n\nplain notes follow here.\n", path="notes.txt")
    assert doc.title == "KNOWLEDGE BASE OVERVIEW"


def test_title_from_marker_phrase():
    doc = _parse("HeyZack Knowledge Base - Index\n\nmore text\n", path="index.txt")
    assert doc.title == "HeyZack Knowledge Base - Index"


def test_title_from_filename_as_last_resort():
    doc = _parse("quarterly numbers look fine.\n", path="reports/baz_report.md")
    assert doc.title == "baz report"


def test_title_from_path_splits_camel_case():
    assert title_from_path("01_Foundation/BrandGuide.md") == "Brand Guide"
    assert title_from_path("launch-plan.txt") == "launch plan"


# --- Ids y categorías ---

def test_document_id_strips_extension_and_normalizes():
    assert document_id("foo.md") == "foo"
    assert document_id("baz_report.md") == "baz-report"
    assert document_id("01_Foundation/Brand Guide.md") == "01-foundation-brand-guide"
    assert document_id("???.md") == "document"


def test_category_from_numbered_folder():
    assert category_from_path("02_Campaign_Core/Launch.md") == "campaign-core"
    assert category_from_path("docs/03_Email_Marketing/seq.md") == "email-marketing"


def test_category_ignores_file_name_and_unnumbered_folders():
    assert category_from_path("01_Readme.md") == "uncategorized"
    assert category_from_path("guides/intro.md", default="general") == "general"


def test_category_pattern_is_configurable():
    assert category_from_path("A-Marketing/x.md", pattern=r"^[A-Z]-") == "marketing"


def test_frontmatter_category_overrides_folder():
    doc = _parse("---\ncategory: Legal\n---\ntext\n", path="02_Campaign_Core/terms.md")
    assert doc.category == "legal"


# --- Descripción ---

def test_description_skips_short_paragraphs_and_strips_markers():
    doc = _parse(
        """\
        # Title

        Short intro.

        > This quoted paragraph is long enough to be used as the description text.
        """
    )
    assert doc.description == "This quoted paragraph is long enough to be used as the description text."


def test_description_is_truncated():
    doc = _parse("# Title\n\n" + "word " * 80 + "\n")
    assert doc.description is not None
    assert len(doc.description) == 203
    assert doc.description.endswith("...")


def test_description_absent_when_no_paragraph_qualifies():
    doc = _parse("# Title\n\nToo short.\n")
    assert doc.description is None


# --- Tags ---

def test_heuristic_tags_from_bold_hashtags_and_brackets():
    doc = _parse(
        """\
        # Plan

        Focus on **Early Adopters** first. #kickstarter
        See [Pricing Model] for details. **Ab** is too short.
        """
    )
    assert doc.tags == ("early adopters", "kickstarter", "pricing model")


def test_keyword_tags_require_word_boundaries():
    options = ParserOptions(tag_keywords={"automation": "automation", "ai": "ai"})
    doc = _parse("# Plan\n\nHome automation with AI assistants, maintained daily.\n", options=options)
    assert "automation" in doc.tags
    assert "ai" in doc.tags

    doc = _parse("# Plan\n\nWe maintain the email chain.\n", options=options)
    assert "ai" not in doc.tags


def test_heuristic_tags_are_capped():
    hashtags = " ".join(
        f"#{name}"
        for name in (
            "alpha", "bravo", "charlie", "delta", "echo", "foxtrot",
            "golf", "hotel", "india", "juliet", "kilo", "lima",
        )
    )
    doc = _parse(f"# Topics\n\nTopics: {hashtags}\n")
    assert len(doc.tags) == 10
    assert doc.tags[0] == "alpha"


def test_frontmatter_tags_are_normalized_and_kept():
    doc = _parse("---\ntags: Alpha, BETA ,  gamma  ray\n---\n**Extra Tag** here\n")
    assert doc.tags == ("alpha", "beta", "gamma ray", "extra tag")


def test_tags_ignore_code_fences():
    doc = _parse("# T\n\n```\n#notatag **Nope Tag**\n```\n")
    assert doc.tags == ()


# --- Headings, diagramas y conteos ---

def test_headings_have_anchors():
    headings = extract_headings("# Main\n\n## Go-To-Market Plan!\n\n###### Deep   Level\n")
    assert [(h.level, h.anchor) for h in headings] == [
        (1, "main"),
        (2, "go-to-market-plan"),
        (6, "deep-level"),
    ]


def test_headings_inside_code_fences_are_ignored():
    headings = extract_headings("```python\n# comment\n```\n\n## Real\n")
    assert [h.text for h in headings] == ["Real"]


def test_diagram_types_and_titles():
    body = textwrap.dedent(
        """\
        ```mermaid
        flowchart LR
            A --> B
        ```

        ```mermaid
        sequenceDiagram
            Alice->>Bob: Hi
        ```

        ```mermaid
        pie title Budget Split
            "Ads" : 40
        ```

        ```mermaid
        gitGraph
            commit
        ```

        ```mermaid
        journey
            section Day
        ```

        ```python
        print("not a diagram")
        ```
        """
    )
    diagrams = extract_diagrams(body)
    assert [d.id for d in diagrams] == [f"diagram-{i}" for i in range(5)]
    assert [d.type for d in diagrams] == ["flowchart", "sequence", "pie", "gitgraph", "other"]
    assert diagrams[2].title == "Budget Split"
    assert diagrams[0].title is None


def test_diagram_from_sample(sample_md_with_frontmatter: pathlib.Path):
    doc = parse_document("x.md", sample_md_with_frontmatter.read_text(encoding="utf-8"))
    assert doc.has_diagrams
    assert doc.diagrams[0].type == "gantt"
    assert doc.diagrams[0].title == "Launch Timeline"


def test_diagram_languages_are_configurable():
    body = "```plantuml\n@startuml\n@enduml\n```\n"
    assert extract_diagrams(body) == ()
    assert len(extract_diagrams(body, ("mermaid", "plantuml"))) == 1


def test_word_count_excludes_code():
    assert count_words("Hello, world!\n\n```\ncode here\n```\n\nbye") == 3


def test_reading_time_rounds_up():
    doc = _parse("word " * 401)
    assert doc.word_count == 401
    assert doc.reading_time_minutes == 3


def test_reading_time_uses_configured_speed():
    doc = _parse("word " * 100, options=ParserOptions(words_per_minute=50))
    assert doc.reading_time_minutes == 2


def test_searchable_text_is_lowercase_without_code():
    doc = _parse("---\ntags: [Ops]\n---\n# Deploy Guide\n\n```\nSECRET_CODE\n```\nRun It.\n")
    assert "deploy guide" in doc.searchable_text
    assert "ops" in doc.searchable_text
    assert "run it." in doc.searchable_text
    assert "secret_code" not in doc.searchable_text


# --- Robustez ---

def test_malformed_frontmatter_is_treated_as_body():
    raw = "---\ntitle: [unclosed\n---\n# Real Heading\n"
    meta, body = split_front_matter(raw)
    assert meta == {}
    assert body == raw

    doc = parse_document("broken.md", raw)
    assert doc.title == "Real Heading"


def test_empty_document_does_not_fail():
    doc = parse_document("empty.md", "")
    assert doc.title == "empty"
    assert doc.word_count == 0
    assert doc.description is None
    assert doc.headings == ()
