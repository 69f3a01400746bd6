"""Locate variable blocks on a codebook page and classify their layout."""

from dataclasses import dataclass
from typing import List, Tuple

from bs4 import BeautifulSoup

from gss_codebook.models.records import TABLE_OFFSETS, VARIANT_BY_TABLE_COUNT, Variant

from .errors import MalformedTableError, UnrecognizedVariantError
from .grid import Grid, table_to_grid

DEFAULT_CONTAINER_SELECTOR = "div.variable"
DEFAULT_TABLE_SELECTOR = "table"


@dataclass(frozen=True)
class Block:
    """The tables describing one variable, in document order."""
    position: int
    tables: Tuple[Grid, ...]

    @property
    def table_count(self) -> int:
        return len(self.tables)


def extract_blocks(
    document: BeautifulSoup,
    container_selector: str = DEFAULT_CONTAINER_SELECTOR,
    table_selector: str = DEFAULT_TABLE_SELECTOR,
) -> List[Block]:
    """Return every variable block of a page. An empty page yields []."""
    blocks = []
    for position, container in enumerate(document.select(container_selector)):
        tables = tuple(table_to_grid(t) for t in container.select(table_selector))
        blocks.append(Block(position=position, tables=tables))
    return blocks


def classify(table_count: int) -> Variant:
    """Map a block's table count to its layout."""
    try:
        return VARIANT_BY_TABLE_COUNT[table_count]
    except KeyError:
        known = ", ".join(str(n) for n in sorted(VARIANT_BY_TABLE_COUNT))
        raise UnrecognizedVariantError(
            f"block has {table_count} tables; known layouts have {known}"
        ) from None


def classify_block(block: Block) -> Variant:
    return classify(block.table_count)


def select_table(block: Block, variant: Variant, field: str) -> Grid:
    """The table holding `field` for this layout."""
    offsets = TABLE_OFFSETS[variant]
    if field not in offsets:
        raise KeyError(f"{variant.value} blocks have no {field} table")
    index = offsets[field]
    if index >= block.table_count:
        raise MalformedTableError(
            f"{variant.value} block needs table {index} for {field}, has {block.table_count}"
        )
    return block.tables[index]
