"""Tests for page assembly, normalization, persistence and querying."""

from pathlib import Path

import pandas as pd
import pytest

from gss_codebook.config_loader import DEFAULTS, load_pipeline_config
from gss_codebook.fetch.page_loader import LoadedPage, LocalPageLoader, page_filename
from gss_codebook.parse.errors import (
    DuplicateVariableError,
    FetchError,
    MalformedTableError,
    UnrecognizedVariantError,
)
from gss_codebook.parse.parse_pages import (
    COLUMNS,
    join_text,
    normalize_ids,
    parse_page,
    parse_pages,
    run_pipeline,
)
from gss_codebook.parse.query import filter_variables, unnest
from gss_codebook.parse.save_variables import load_variable_table, save_variable_table

from conftest import html_table


def _bad_block():
    tables = "".join(html_table([[str(i)]]) for i in range(5))
    return f'<div class="variable">{tables}</div>'


# ===== RECORD ASSEMBLER TESTS =====

def test_parse_page_one_row_per_block(make_document, standard_block, short_block):
    page = parse_page(make_document(standard_block(), short_block()), page_index=1)
    assert list(page.columns) == COLUMNS
    assert page["id"].tolist() == ["SEX", "race"]
    assert page["description"].tolist() == ["Respondents sex", "Race of Respondent"]
    assert page["text"].tolist() == ["Code respondent's sex", "None"]


def test_parse_page_nested_ids_match_parent(make_document, standard_block, short_block):
    page = parse_page(make_document(standard_block(), short_block()))
    for _, row in page.iterrows():
        assert row["marginals"] and row["properties"]
        assert all(m["id"] == row["id"] for m in row["marginals"])
        assert all(p["id"] == row["id"] for p in row["properties"])


def test_parse_page_empty(make_document):
    page = parse_page(make_document())
    assert page.empty
    assert list(page.columns) == COLUMNS


def test_parse_page_error_carries_location(make_document, short_block):
    with pytest.raises(UnrecognizedVariantError) as excinfo:
        parse_page(make_document(short_block(), _bad_block()), page_index=7)
    assert excinfo.value.page_index == 7
    assert excinfo.value.block_position == 1
    assert "page 7, block 1" in str(excinfo.value)


def test_parse_page_rejects_duplicate_ids(make_document, standard_block):
    with pytest.raises(DuplicateVariableError):
        parse_page(make_document(standard_block(), standard_block()), page_index=2)


def test_parse_pages_rejects_ids_differing_only_in_case(make_document, standard_block, short_block):
    pages = [LoadedPage(index=1, document=make_document(standard_block(var_id="SEX"), short_block(var_id="sex")))]
    with pytest.raises(DuplicateVariableError) as excinfo:
        parse_pages(pages)
    assert excinfo.value.page_index == 1
    result = parse_pages(pages, strict=False)
    assert result.table.empty
    assert list(result.failed_pages) == [1]


def test_join_text_unmatched_rows_get_none():
    base = [
        {"id": "SEX", "description": "Sex", "properties": [], "marginals": []},
        {"id": "AGE", "description": "Age", "properties": [], "marginals": []},
    ]
    page = join_text(base, [{"id": "SEX", "text": "Code sex"}])
    assert page["text"].tolist() == ["Code sex", None]
    assert page["id"].tolist() == ["SEX", "AGE"]


# ===== NORMALIZATION TESTS =====

def test_normalize_ids_lowercases_once():
    table = pd.DataFrame([
        {"id": "SEX", "description": "", "text": "None",
         "properties": [{"property": "Data type", "value": "numeric", "id": "SEX"}],
         "marginals": [{"cases": "1", "range": "Male", "id": "SEX"}]},
        {"id": "race", "description": "", "text": "None", "properties": [], "marginals": []},
    ], columns=COLUMNS)
    normalized = normalize_ids(table)
    assert normalized["id"].tolist() == ["sex", "race"]
    assert normalized.loc[0, "properties"][0]["id"] == "sex"
    assert normalized.loc[0, "marginals"][0]["id"] == "sex"
    # input untouched
    assert table["id"].tolist() == ["SEX", "race"]
    assert table.loc[0, "marginals"][0]["id"] == "SEX"
    assert normalize_ids(normalized)["id"].tolist() == ["sex", "race"]


# ===== MULTI-PAGE TESTS =====

def test_parse_pages_orders_by_page_index(make_document, standard_block, short_block):
    pages = [
        LoadedPage(index=3, document=make_document(standard_block(var_id="C"))),
        LoadedPage(index=1, document=make_document(standard_block(var_id="A"), short_block(var_id="B"))),
        LoadedPage(index=2, document=make_document()),
    ]
    for workers in (1, 4):
        result = parse_pages(pages, workers=workers)
        assert result.table["id"].tolist() == ["a", "b", "c"]
        assert result.failed_pages == {}


def test_parse_pages_omits_failed_loads(make_document, short_block):
    pages = [
        LoadedPage(index=1, error=FetchError(1, "page file not found")),
        LoadedPage(index=2, document=make_document(short_block())),
    ]
    result = parse_pages(pages)
    assert result.table["id"].tolist() == ["race"]
    assert list(result.failed_pages) == [1]
    assert "page file not found" in result.failed_pages[1]


def test_parse_pages_strict_and_lenient(make_document, short_block):
    pages = [
        LoadedPage(index=1, document=make_document(_bad_block())),
        LoadedPage(index=2, document=make_document(short_block())),
    ]
    with pytest.raises(UnrecognizedVariantError):
        parse_pages(pages)
    result = parse_pages(pages, strict=False)
    assert result.table["id"].tolist() == ["race"]
    assert "page 1, block 0" in result.failed_pages[1]


def test_parse_pages_malformed_table_is_surfaced(make_document, standard_block):
    pages = [LoadedPage(index=1, document=make_document(standard_block(properties=[["a", "b", "c"]])))]
    with pytest.raises(MalformedTableError):
        parse_pages(pages)


def test_parse_pages_nothing_loaded():
    result = parse_pages([])
    assert result.table.empty
    assert list(result.table.columns) == COLUMNS


def test_run_pipeline_from_stored_pages(pages_dir):
    loader = LocalPageLoader(pages_dir)
    result = run_pipeline(loader, [1, 2, 3, 4], workers=2)
    assert result.table["id"].tolist() == ["sex", "race", "age"]
    assert list(result.failed_pages) == [4]
    age = result.table[result.table["id"] == "age"].iloc[0]
    assert age["text"] == "What is your age?"
    assert age["marginals"][1] == {"cases": "14", "range": "No answer", "id": "age"}


# ===== PERSISTENCE TESTS =====

def test_save_and_load_round_trip(pages_dir, tmp_path):
    table = run_pipeline(LocalPageLoader(pages_dir), [1, 2]).table
    out = save_variable_table(table, tmp_path / "parsed" / "variables.json.gz")
    assert out.exists()
    loaded = load_variable_table(out)
    assert list(loaded.columns) == COLUMNS
    assert loaded["id"].tolist() == table["id"].tolist()
    assert loaded["text"].tolist() == table["text"].tolist()
    assert loaded["marginals"].tolist() == table["marginals"].tolist()
    assert loaded["properties"].tolist() == table["properties"].tolist()


def test_rerun_writes_identical_bytes(pages_dir, tmp_path):
    first = save_variable_table(run_pipeline(LocalPageLoader(pages_dir), [1, 2, 3]).table, tmp_path / "a.json.gz")
    second = save_variable_table(
        run_pipeline(LocalPageLoader(pages_dir), [1, 2, 3], workers=3).table, tmp_path / "b.json.gz"
    )
    assert first.read_bytes() == second.read_bytes()


def test_load_missing_table(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_variable_table(tmp_path / "missing.json.gz")


# ===== QUERY TESTS =====

def test_filter_and_unnest(pages_dir):
    table = run_pipeline(LocalPageLoader(pages_dir), [1, 2]).table
    sex = filter_variables(table, "SEX")
    assert sex["id"].tolist() == ["sex"]

    marginals = unnest(sex, "marginals")
    assert list(marginals.columns) == ["cases", "range", "id"]
    assert marginals["range"].tolist() == ["Male", "Female"]

    properties = unnest(table, "properties")
    assert set(properties["id"]) == {"sex", "race", "age"}
    # sibling nested column untouched
    assert sex.iloc[0]["properties"][0]["property"] == "Data type"


def test_unnest_rejects_flat_column(pages_dir):
    table = run_pipeline(LocalPageLoader(pages_dir), [1]).table
    with pytest.raises(ValueError):
        unnest(table, "description")


# ===== PAGE LOADER TESTS =====

def test_page_filename_zero_padded():
    assert page_filename(12) == "0012.html"
    assert page_filename(7, width=3) == "007.html"


def test_local_loader(pages_dir):
    loader = LocalPageLoader(pages_dir)
    assert loader.available_indices() == [1, 2, 3]
    assert loader.page_path(2) == pages_dir / "0002.html"
    assert loader.load(1).select("div.variable")
    with pytest.raises(FetchError):
        loader.load(9)
    results = loader.load_many([1, 9])
    assert [r.ok for r in results] == [True, False]
    assert results[1].error.index == 9


def test_local_loader_missing_directory(tmp_path):
    assert LocalPageLoader(tmp_path / "nope").available_indices() == []


# ===== CONFIG TESTS =====

def test_load_pipeline_config_merges_defaults(tmp_path: Path):
    config_file = tmp_path / "pipeline.yaml"
    config_file.write_text("codebook:\n  workers: 8\n  table_selector: table.data\n  base_url: null\n")
    config = load_pipeline_config(config_file)
    assert config["workers"] == 8
    assert config["table_selector"] == "table.data"
    assert config["container_selector"] == DEFAULTS["container_selector"]
    assert config["base_url"] is None


def test_load_pipeline_config_missing_file(tmp_path: Path):
    assert load_pipeline_config(tmp_path / "missing.yaml") == DEFAULTS



def test_load_pipeline_config_returns_a_copy():
    config = load_pipeline_config()
    config["workers"] = 99
    config["pages_dir"] = "elsewhere"
    fresh = load_pipeline_config()
    assert fresh["workers"] != 99
    assert fresh["pages_dir"] != "elsewhere"
