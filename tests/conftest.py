"""Fixtures compartidas para tests."""

from __future__ import annotations

import pathlib
import textwrap

import pytest

from dochub.config import Settings
from dochub.service import KnowledgeHub


def _write(root: pathlib.Path, rel_path: str, content: str) -> pathlib.Path:
    f = root / rel_path
    f.parent.mkdir(parents=True, exist_ok=True)
    f.write_text(textwrap.dedent(content), encoding="utf-8")
    return f


def make_settings(root: pathlib.Path, **overrides) -> Settings:
    """Settings de prueba apuntando a un corpus temporal, sin auto-refresh."""
    defaults = {
        "docs_root": root,
        "auto_refresh": False,
        "refresh_min_interval_seconds": 0.0,
    }
    defaults.update(overrides)
    return Settings(**defaults)


def make_hub(root: pathlib.Path, **overrides) -> KnowledgeHub:
    return KnowledgeHub.from_settings(make_settings(root, **overrides))


@pytest.fixture
def hub_factory():
    """Construye un KnowledgeHub sin inicializar sobre un corpus dado."""
    return make_hub


@pytest.fixture
def sample_md_with_frontmatter(tmp_path: pathlib.Path) -> pathlib.Path:
    """Crea un archivo .md de ejemplo con frontmatter YAML."""
    return _write(tmp_path, "launch-plan.md", """\
        ---
        title: Launch Plan
        description: How the spring launch rolls out across channels.
        category: Strategy
        author: team-growth
        date: 2024-03-05
        tags:
          - Launch
          - Kickstarter
        ---

        # Launch Plan

        The launch plan covers the pre-launch list building, the live
        campaign and the fulfilment window for early backers.

        ## Timeline

        ```mermaid
        gantt
            title Launch Timeline
            dateFormat YYYY-MM-DD
            section Prep
            Landing page :a1, 2024-03-01, 10d
        ```

        ## Channels

        - Email sequences
        - Paid social
    """)


@pytest.fixture
def sample_md_without_frontmatter(tmp_path: pathlib.Path) -> pathlib.Path:
    """Crea un archivo .md sin frontmatter."""
    return _write(tmp_path, "onboarding.md", """\
        # Onboarding Guide

        Welcome to the team.

        ## Step 1

        Set up your local environment and request access to the shared drive.

        ## Step 2

        Read the internal documentation.
    """)


@pytest.fixture
def scenario_corpus(tmp_path: pathlib.Path) -> pathlib.Path:
    """Corpus de tres documentos: foo (frontmatter), bar (heading) y baz (texto plano)."""
    root = tmp_path / "docs"
    _write(root, "foo.md", """\
        ---
        title: Foo Doc
        category: strategy
        tags: [x]
        ---

        Some body text about revenue planning for the coming quarters.
    """)
    _write(root, "bar.md", """\
        # Bar Title

        The bar document explains the quarterly onboarding process in detail for new staff.
    """)
    _write(root, "baz_report.md", """\
        quarterly numbers look fine and revenue grew steadily across every region.
    """)
    return root


@pytest.fixture
def rich_corpus(tmp_path: pathlib.Path) -> pathlib.Path:
    """Corpus con carpetas numeradas, diagramas, tags heurísticos y entradas a omitir."""
    root = tmp_path / "data-sources"
    _write(root, "01_Foundation/Brand_Guidelines.md", """\
        ---
        title: Brand Guidelines
        description: Visual identity rules for the brand, covering logo and colour usage.
        tags: [brand, identity]
        lastModified: 2024-05-01T10:00:00Z
        ---

        # Brand Guidelines

        Use the primary logo on light backgrounds and keep clear space around it.

        ```mermaid
        flowchart LR
            Logo --> Colours
        ```
    """)
    _write(root, "02_Campaign_Core/LaunchStrategy.md", """\
        # Launch Campaign Strategy

        The campaign targets **Early Adopters** first, then widens to the mainstream
        audience once reviews are in. #kickstarter

        ## Phases

        Pre-launch, live campaign and post-campaign fulfilment.
    """)
    _write(root, "02_Campaign_Core/Video_Script.md", """\
        # Video Script

        Opening shot of the product in a living room, followed by a short founder story.
    """)
    _write(root, "03_Email_Marketing/welcome_sequence.md", """\
        # Welcome Email Sequence

        Three emails sent over the first week after signup to introduce the product. #email
    """)
    _write(root, "notes.txt", """\
        KNOWLEDGE BASE OVERVIEW

        plain text notes that describe where each folder of the library lives.
    """)
    _write(root, ".hidden/secret.md", "# Secret\n")
    _write(root, "node_modules/pkg/readme.md", "# Package\n")
    _write(root, "02_Campaign_Core/image.png", "not a document")
    return root
