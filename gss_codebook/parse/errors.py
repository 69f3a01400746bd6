"""Exceptions raised while loading and parsing codebook pages."""

from typing import Optional


class FetchError(Exception):
    """A page could not be loaded or downloaded."""

    def __init__(self, index: int, reason: str):
        self.index = index
        self.reason = reason
        super().__init__(f"page {index}: {reason}")


class CodebookParseError(ValueError):
    """Base class for parse failures; carries the location of the bad markup."""

    def __init__(
        self,
        message: str,
        page_index: Optional[int] = None,
        block_position: Optional[int] = None,
    ):
        self.message = message
        self.page_index = page_index
        self.block_position = block_position
        super().__init__(message)

    def with_context(
        self,
        page_index: Optional[int] = None,
        block_position: Optional[int] = None,
    ) -> "CodebookParseError":
        """Attach page/block location without overwriting what is already known."""
        if self.page_index is None:
            self.page_index = page_index
        if self.block_position is None:
            self.block_position = block_position
        return self

    def __str__(self) -> str:
        where = []
        if self.page_index is not None:
            where.append(f"page {self.page_index}")
        if self.block_position is not None:
            where.append(f"block {self.block_position}")
        if not where:
            return self.message
        return f"{', '.join(where)}: {self.message}"


class UnrecognizedVariantError(CodebookParseError):
    """A variable block has a table count with no known layout."""


class MalformedTableError(CodebookParseError):
    """A selected table does not have the column count its extractor expects."""


class DuplicateVariableError(CodebookParseError):
    """The same variable id appears twice on one page."""
