"""Download codebook pages to a flat local directory, one request at a time."""

import argparse
import sys
import time
from pathlib import Path
from typing import Dict, Iterable, Optional

import requests

from gss_codebook.config_loader import load_pipeline_config, resolve_path
from gss_codebook.parse.errors import FetchError

from .page_loader import page_filename

USER_AGENT = "gss-codebook-pipeline/0.1 (+research use)"


def fetch_page(session: requests.Session, url: str, index: int, timeout: float = 30.0) -> bytes:
    """GET one page and return its body bytes undecoded; any failure becomes a FetchError."""
    try:
        response = session.get(url, timeout=timeout)
    except requests.RequestException as e:
        raise FetchError(index, f"request to {url} failed: {e}") from e
    if response.status_code != 200:
        raise FetchError(index, f"{url} returned HTTP {response.status_code}")
    return response.content


def download_pages(
    base_url: str,
    indices: Iterable[int],
    pages_dir: Path,
    filename_width: int = 4,
    request_delay: float = 5.0,
    overwrite: bool = False,
    session: Optional[requests.Session] = None,
) -> Dict[int, str]:
    """Save each page body, byte for byte, to pages_dir/NNNN.html.

    Waits `request_delay` seconds between consecutive requests. Pages already
    on disk are skipped unless `overwrite` is set.

    Args:
        base_url: URL template with an {index} placeholder
        indices: Page numbers to fetch
        pages_dir: Output directory
        filename_width: Zero padding of the file names
        request_delay: Politeness delay in seconds
        overwrite: Re-download pages already present
        session: requests session to use (a new one by default)

    Returns:
        Failed page index -> reason
    """
    pages_dir = Path(pages_dir)
    pages_dir.mkdir(parents=True, exist_ok=True)
    session = session or requests.Session()
    session.headers.update({"User-Agent": USER_AGENT})

    failures: Dict[int, str] = {}
    requested = False
    for index in indices:
        target = pages_dir / page_filename(index, filename_width)
        if target.exists() and not overwrite:
            print(f"  Page {index}: already stored, skipping")
            continue
        if requested and request_delay > 0:
            time.sleep(request_delay)
        requested = True
        url = base_url.format(index=index)
        try:
            markup = fetch_page(session, url, index)
        except FetchError as e:
            failures[index] = e.reason
            print(f"  ERROR: {e}")
            continue
        target.write_bytes(markup)
        print(f"  Page {index}: saved to {target}")
    return failures


def main():
    """Main entry point for downloading codebook pages."""
    config = load_pipeline_config()
    parser = argparse.ArgumentParser(description="Download codebook pages to local storage")
    parser.add_argument("--base-url", default=config["base_url"], help="URL template with {index}")
    parser.add_argument("--first", type=int, default=int(config["first_page"]), help="First page index")
    parser.add_argument("--last", type=int, default=config["last_page"], help="Last page index")
    parser.add_argument(
        "--pages-dir",
        type=Path,
        default=resolve_path(config["pages_dir"]),
        help="Directory for the downloaded pages",
    )
    parser.add_argument("--delay", type=float, default=float(config["request_delay"]), help="Seconds between requests")
    parser.add_argument("--overwrite", action="store_true", help="Re-download pages already stored")
    args = parser.parse_args()

    if not args.base_url or "{index}" not in args.base_url:
        print("A base URL containing {index} is required (config/pipeline.yaml or --base-url)")
        sys.exit(1)
    if args.last is None:
        print("A last page index is required (config/pipeline.yaml or --last)")
        sys.exit(1)

    indices = range(args.first, int(args.last) + 1)
    print(f"Downloading pages {args.first}-{args.last} to: {args.pages_dir}")
    failures = download_pages(
        args.base_url,
        indices,
        args.pages_dir,
        filename_width=int(config["filename_width"]),
        request_delay=args.delay,
        overwrite=args.overwrite,
    )
    if failures:
        print(f"\n{len(failures)} page(s) failed: {', '.join(str(i) for i in sorted(failures))}")
    print("\n[OK] Download complete.")


if __name__ == "__main__":
    main()
