"""
Shared fixtures for the mind map tests.
"""

import sys
from pathlib import Path

import pytest

# Modules live at the repository root (flat layout).
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from md_io import from_markdown  # noqa: E402


SAMPLE_MARKDOWN = "\n".join(
    [
        "# Project",
        "## Frontend",
        "- React components",
        "  - Header",
        "  - Sidebar",
        "### Styling",
        "- CSS modules",
        "## Backend",
        "- Express server",
        "  ![](assets/server.png =200x100)",
        "#### Database layer",
        "- PostgreSQL",
    ]
)


@pytest.fixture
def sample_markdown():
    return SAMPLE_MARKDOWN


@pytest.fixture
def sample_tree():
    """Parsed SAMPLE_MARKDOWN, fresh for every test."""
    return from_markdown(SAMPLE_MARKDOWN)


def structure(node):
    """Comparable shape of a tree: ids excluded."""
    return (node.text, node.heading_level, [structure(child) for child in node.children])
