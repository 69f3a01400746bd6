"""Shared fixtures: small codebook pages built from plain Python lists."""

from typing import List, Optional, Sequence

import pytest

from gss_codebook.fetch.page_loader import parse_html

SEX_MARGINALS = [["1,207", "Male"], ["1,393", "Female"]]
SEX_PROPERTIES = [["Data type:", "numeric"], ["Missing-data codes:", "0,8,9"], ["Record/column:", "1/108"]]


def html_table(rows: Sequence[Sequence[str]], header: Optional[Sequence[str]] = None) -> str:
    html = "<table>"
    if header is not None:
        html += "<tr>" + "".join(f"<th>{h}</th>" for h in header) + "</tr>"
    for row in rows:
        html += "<tr>" + "".join(f"<td>{c}</td>" for c in row) + "</tr>"
    return html + "</table>"


def standard_block_html(
    var_id: str = "SEX",
    description: str = "Respondents sex",
    text: str = "\n   Code respondent's sex\n",
    marginals: Sequence[Sequence[str]] = SEX_MARGINALS,
    marginals_header: Optional[Sequence[str]] = None,
    properties: Sequence[Sequence[str]] = SEX_PROPERTIES,
) -> str:
    return (
        '<div class="variable">'
        + html_table([[var_id, "", description, ""]])
        + f"<table><tr><td>{text}</td></tr></table>"
        + html_table(marginals, marginals_header)
        + html_table(properties)
        + "</div>"
    )


def short_block_html(
    var_id: str = "race",
    description: str = "Race of Respondent",
    marginals: Sequence[Sequence[str]] = (["2,182", "White"], ["301", "Black"]),
    properties: Sequence[Sequence[str]] = (["Data type:", "numeric"],),
) -> str:
    return (
        '<div class="variable">'
        + html_table([[var_id, "", description, ""]])
        + html_table(marginals)
        + html_table(properties)
        + "</div>"
    )


def page_html(blocks: List[str]) -> str:
    return "<html><body><h1>Codebook</h1>" + "".join(blocks) + "</body></html>"


@pytest.fixture
def standard_block():
    return standard_block_html


@pytest.fixture
def short_block():
    return short_block_html


@pytest.fixture
def make_document():
    """Build a parsed page from block HTML strings."""
    def _make(*blocks: str):
        return parse_html(page_html(list(blocks)))
    return _make


@pytest.fixture
def pages_dir(tmp_path):
    """Directory with three stored pages: 0001 (SEX, race), 0002 (AGE), 0003 (empty)."""
    directory = tmp_path / "pages"
    directory.mkdir()
    (directory / "0001.html").write_text(
        page_html([standard_block_html(), short_block_html()]), encoding="utf-8"
    )
    (directory / "0002.html").write_text(
        page_html([standard_block_html(var_id="AGE", description="Age of respondent",
                                       text="What is your age?",
                                       marginals=[["2,586", "18-89"], ["14", "No answer"]])]),
        encoding="utf-8",
    )
    (directory / "0003.html").write_text(page_html([]), encoding="utf-8")
    return directory
