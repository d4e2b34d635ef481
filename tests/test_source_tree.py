"""Tests for llmsgen.source_tree."""

from __future__ import annotations

import pytest

from llmsgen.source_tree import DirectoryNotFoundError, SourceTreeReader, category_for, document_id_for


@pytest.mark.parametrize(
    ("relative", "expected"),
    [
        ("guide/getting-started.md", "guide--getting-started"),
        ("api/core/Action Register.md", "api--core--action-register"),
        ("guide/___weird__.md", "guide--weird"),
        ("Examples/Hello_World.md", "examples--hello-world"),
    ],
)
def test_document_id_for(relative: str, expected: str) -> None:
    assert document_id_for(relative) == expected


def test_category_for_uses_first_directory_or_default() -> None:
    assert category_for("api/core/actions.md", "guide") == "api"
    assert category_for("readme.md", "guide") == "guide"


def test_discover_returns_sorted_documents_and_skips_excluded(docs_builder) -> None:
    config = docs_builder.config()
    docs_builder.sources(
        "en",
        {
            "index.md": "# Home\n",
            "guide/setup.md": "# Setup\n",
            "guide/advanced/hooks.md": "# Hooks\n",
            "api/actions.md": "# Actions\n",
            "llms/generated.md": "# Generated\n",
            "assets/notes.md": "# Asset notes\n",
            ".vitepress/theme.md": "# Theme\n",
            "guide/image.png": "binary",
            "about.md": "# About\n",
        },
    )

    documents = SourceTreeReader(config).discover("en")

    assert [document.id for document in documents] == [
        "api--actions",
        "guide--about",
        "guide--advanced--hooks",
        "guide--setup",
    ]
    hooks = next(document for document in documents if document.id == "guide--advanced--hooks")
    assert hooks.category == "guide"
    assert hooks.language == "en"
    assert hooks.source_path == "guide/advanced/hooks.md"
    assert hooks.size_bytes == len("# Hooks\n")
    assert hooks.modified_at.tzinfo is not None
    assert hooks.slug == "advanced--hooks"


def test_discover_raises_for_missing_language(docs_builder) -> None:
    config = docs_builder.config()

    with pytest.raises(DirectoryNotFoundError) as excinfo:
        SourceTreeReader(config).discover("fr")

    assert excinfo.value.language == "fr"


def test_discover_is_deterministic(docs_builder) -> None:
    config = docs_builder.config()
    docs_builder.sources("en", {"guide/b.md": "# B\n", "guide/a.md": "# A\n", "api/c.md": "# C\n"})
    reader = SourceTreeReader(config)

    assert reader.discover("en") == reader.discover("en")


def test_read_source_strips_frontmatter_and_title_uses_first_heading(docs_builder) -> None:
    config = docs_builder.config()
    docs_builder.source(
        "en",
        "guide/intro.md",
        """
        ---
        title: ignored
        ---

        ```md
        # Not a title
        ```

        # Real Title

        Body text.
        """,
    )
    reader = SourceTreeReader(config)
    document = reader.discover("en")[0]

    text = reader.read_source(document)

    assert not text.startswith("---")
    assert reader.title_for(document, text) == "Real Title"


def test_title_falls_back_to_slug(docs_builder) -> None:
    config = docs_builder.config()
    docs_builder.source("en", "guide/quick-start.md", "No heading here.\n")
    reader = SourceTreeReader(config)
    document = reader.discover("en")[0]

    assert reader.title_for(document) == "Quick Start"
