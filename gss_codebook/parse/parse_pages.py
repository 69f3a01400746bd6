"""Assemble variable records from codebook pages and save the final table."""

import argparse
import sys
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Tuple

import pandas as pd
from bs4 import BeautifulSoup

from gss_codebook.config_loader import load_pipeline_config, resolve_path
from gss_codebook.fetch.page_loader import LoadedPage, LocalPageLoader

from .blocks import DEFAULT_CONTAINER_SELECTOR, DEFAULT_TABLE_SELECTOR, classify_block, extract_blocks
from .errors import CodebookParseError, DuplicateVariableError
from .extractors import extract_identity, extract_marginals, extract_properties, extract_text
from .save_variables import COLUMNS, empty_table, save_variable_table

_BASE_COLUMNS = ["id", "description", "properties", "marginals"]


@dataclass
class PipelineResult:
    """Final table plus the pages that contributed nothing because they failed."""
    table: pd.DataFrame
    failed_pages: Dict[int, str] = field(default_factory=dict)


def join_text(base_rows: List[dict], text_rows: List[dict], page_index: Optional[int] = None) -> pd.DataFrame:
    """Left-join question text onto identity/properties/marginals rows by id.

    Ids must be unique within a page; rows without a text match get None.
    """
    base = pd.DataFrame(base_rows, columns=_BASE_COLUMNS, dtype=object)
    # ids are lower-cased later, so uniqueness is checked case-insensitively
    folded = base["id"].str.lower()
    duplicated = base["id"][folded.duplicated(keep=False)].tolist()
    if duplicated:
        raise DuplicateVariableError(
            f"variable ids repeated on page: {', '.join(duplicated)}", page_index=page_index
        )
    text = pd.DataFrame(text_rows, columns=["id", "text"], dtype=object)
    page = base.merge(text, on="id", how="left", validate="many_to_one")
    page["text"] = page["text"].astype(object).where(page["text"].notna(), None)
    return page[COLUMNS]


def parse_page(
    document: BeautifulSoup,
    page_index: Optional[int] = None,
    container_selector: str = DEFAULT_CONTAINER_SELECTOR,
    table_selector: str = DEFAULT_TABLE_SELECTOR,
) -> pd.DataFrame:
    """Parse one page into a table with one row per variable block."""
    base_rows = []
    text_rows = []
    for block in extract_blocks(document, container_selector, table_selector):
        try:
            variant = classify_block(block)
            variable_id, description = extract_identity(block, variant)
            base_rows.append({
                "id": variable_id,
                "description": description,
                "properties": extract_properties(block, variant, variable_id),
                "marginals": extract_marginals(block, variant, variable_id),
            })
            text_rows.append({"id": variable_id, "text": extract_text(block, variant)})
        except CodebookParseError as e:
            raise e.with_context(page_index=page_index, block_position=block.position)
    return join_text(base_rows, text_rows, page_index=page_index)


def _lower_nested_ids(rows: list) -> list:
    return [{**row, "id": row["id"].lower()} if isinstance(row.get("id"), str) else row for row in rows]


def normalize_ids(table: pd.DataFrame) -> pd.DataFrame:
    """Lower-case variable ids, including the id column of each nested table."""
    out = table.copy()
    out["id"] = out["id"].map(str.lower)
    for column in ("properties", "marginals"):
        out[column] = out[column].map(_lower_nested_ids)
    return out


def concat_pages(frames: Sequence[Tuple[int, pd.DataFrame]]) -> pd.DataFrame:
    """Concatenate per-page tables in ascending page order."""
    ordered = [frame for _, frame in sorted(frames, key=lambda item: item[0]) if not frame.empty]
    if not ordered:
        return empty_table()
    return pd.concat(ordered, ignore_index=True)[COLUMNS]


def _run(
    tasks: Iterable,
    parse_one: Callable[..., Tuple[int, Optional[pd.DataFrame], Optional[str]]],
    workers: int,
) -> PipelineResult:
    tasks = list(tasks)
    if workers > 1:
        with ThreadPoolExecutor(max_workers=workers) as executor:
            results = list(executor.map(parse_one, tasks))
    else:
        results = [parse_one(t) for t in tasks]

    frames = []
    failed: Dict[int, str] = {}
    for index, frame, error in results:
        if error is not None:
            failed[index] = error
        else:
            frames.append((index, frame))
    return PipelineResult(table=normalize_ids(concat_pages(frames)), failed_pages=dict(sorted(failed.items())))


def _parse_loaded(
    page: LoadedPage,
    strict: bool,
    container_selector: str,
    table_selector: str,
) -> Tuple[int, Optional[pd.DataFrame], Optional[str]]:
    if not page.ok:
        return page.index, None, str(page.error or "page has no document")
    try:
        return page.index, parse_page(page.document, page.index, container_selector, table_selector), None
    except CodebookParseError as e:
        if strict:
            raise
        return page.index, None, str(e)


def parse_pages(
    pages: Iterable[LoadedPage],
    workers: int = 1,
    strict: bool = True,
    container_selector: str = DEFAULT_CONTAINER_SELECTOR,
    table_selector: str = DEFAULT_TABLE_SELECTOR,
) -> PipelineResult:
    """Parse already-loaded pages into the final, normalized table.

    Pages that failed to load contribute no rows and are listed in
    `failed_pages`. Parse errors propagate unless `strict` is False, in which
    case the failing page is skipped and listed too.
    """
    return _run(
        pages,
        lambda page: _parse_loaded(page, strict, container_selector, table_selector),
        workers,
    )


def run_pipeline(
    loader: LocalPageLoader,
    indices: Iterable[int],
    workers: int = 1,
    strict: bool = True,
    container_selector: str = DEFAULT_CONTAINER_SELECTOR,
    table_selector: str = DEFAULT_TABLE_SELECTOR,
) -> PipelineResult:
    """Like parse_pages, but each worker loads its own page right before parsing it."""
    return _run(
        indices,
        lambda index: _parse_loaded(loader.load_result(index), strict, container_selector, table_selector),
        workers,
    )


def main():
    """Main entry point for parsing stored codebook pages."""
    config = load_pipeline_config()
    parser = argparse.ArgumentParser(
        description="Parse stored codebook pages into a compressed variable table"
    )
    parser.add_argument(
        "--pages-dir",
        type=Path,
        default=resolve_path(config["pages_dir"]),
        help="Directory of zero-padded page files (0001.html, ...)",
    )
    parser.add_argument(
        "--output",
        type=Path,
        default=resolve_path(config["output_path"]),
        help="Output file (.json.gz)",
    )
    parser.add_argument("--first", type=int, help="First page index (default: all stored pages)")
    parser.add_argument("--last", type=int, help="Last page index")
    parser.add_argument("--workers", type=int, default=int(config["workers"]), help="Pages parsed in parallel")
    parser.add_argument(
        "--skip-bad-pages",
        action="store_true",
        help="Skip pages with unrecognized or malformed blocks instead of stopping",
    )
    args = parser.parse_args()

    loader = LocalPageLoader(args.pages_dir, filename_width=int(config["filename_width"]))
    if args.first is not None or args.last is not None:
        available = loader.available_indices()
        first = args.first if args.first is not None else (available[0] if available else 1)
        last = args.last if args.last is not None else (available[-1] if available else first)
        indices = list(range(first, last + 1))
    else:
        indices = loader.available_indices()

    if not indices:
        print(f"No page files found in {args.pages_dir}")
        sys.exit(1)

    print(f"Parsing {len(indices)} page(s) from: {args.pages_dir}")
    try:
        result = run_pipeline(
            loader,
            indices,
            workers=args.workers,
            strict=not args.skip_bad_pages,
            container_selector=config["container_selector"],
            table_selector=config["table_selector"],
        )
    except CodebookParseError as e:
        print(f"  ERROR: {e}")
        sys.exit(1)

    for index, error in result.failed_pages.items():
        print(f"  SKIPPED page {index}: {error}")

    if result.table.empty:
        print("No variables parsed!")
        sys.exit(1)

    output_file = save_variable_table(result.table, args.output)
    print(f"  Parsed {len(result.table)} variables from {len(indices) - len(result.failed_pages)} page(s)")
    print(f"  Saved to: {output_file}")
    print("\n[OK] Parsing complete!")


if __name__ == "__main__":
    main()
