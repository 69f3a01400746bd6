"""Load stored codebook pages as parsed documents."""

from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Optional

from bs4 import BeautifulSoup

from gss_codebook.parse.errors import FetchError

HTML_PARSER = "lxml"


def page_filename(index: int, width: int = 4, suffix: str = ".html") -> str:
    """12 -> '0012.html'."""
    return f"{index:0{width}d}{suffix}"


def parse_html(markup, parser: str = HTML_PARSER) -> BeautifulSoup:
    return BeautifulSoup(markup, parser)


@dataclass
class LoadedPage:
    """Outcome of loading one page: a document or the error that prevented it."""
    index: int
    document: Optional[BeautifulSoup] = None
    error: Optional[FetchError] = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.document is not None


class LocalPageLoader:
    """Reads pages from a flat directory of zero-padded files (0001.html, 0002.html, ...)."""

    def __init__(self, pages_dir: Path, filename_width: int = 4, suffix: str = ".html"):
        self.pages_dir = Path(pages_dir)
        self.filename_width = filename_width
        self.suffix = suffix

    def page_path(self, index: int) -> Path:
        return self.pages_dir / page_filename(index, self.filename_width, self.suffix)

    def available_indices(self) -> List[int]:
        """Indices of the page files present, ascending."""
        if not self.pages_dir.exists():
            return []
        indices = []
        for f in self.pages_dir.glob(f"*{self.suffix}"):
            if f.is_file() and f.stem.isdigit():
                indices.append(int(f.stem))
        return sorted(indices)

    def load(self, index: int) -> BeautifulSoup:
        path = self.page_path(index)
        if not path.exists():
            raise FetchError(index, f"page file not found: {path}")
        try:
            with open(path, "rb") as f:
                markup = f.read()
        except OSError as e:
            raise FetchError(index, f"cannot read {path}: {e}") from e
        return parse_html(markup)

    def load_result(self, index: int) -> LoadedPage:
        try:
            return LoadedPage(index=index, document=self.load(index))
        except FetchError as e:
            return LoadedPage(index=index, error=e)

    def load_many(self, indices: Iterable[int]) -> List[LoadedPage]:
        return [self.load_result(i) for i in indices]
