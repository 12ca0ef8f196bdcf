"""Tests for loading, merging and saving results tables."""

import pytest
import polars as pl

from ewceplot.data import (
    normalise_columns,
    validate_results,
    load_results,
    merge_results,
    save_prepared_results
)
from ewceplot.stats import prepare_results


@pytest.fixture
def legacy_csv(tmp_path):
    """Results file with the column names written by the R package."""
    file_path = tmp_path / 'bootstrap_results.csv'
    file_path.write_text(
        "CellType,annotLevel,p,fold_change,sd_from_mean\n"
        "interneurons,1,0.0004,1.21,3.47\n"
        "microglia,1,0.967,0.88,-1.85\n"
        "pyramidal_SS,1,0.0001,1.24,4.02\n"
    )
    return file_path


@pytest.fixture
def directional_tsv(tmp_path):
    """Tab-separated results file with a direction column."""
    file_path = tmp_path / 'directional_results.tsv'
    file_path.write_text(
        "cell_type\tdirection\tp_value\tsd_from_mean\n"
        "interneurons\tUp\t0.001\t3.1\n"
        "interneurons\tDown\t0.6\t-0.3\n"
    )
    return file_path


def test_load_legacy_results(legacy_csv):
    """Legacy names are renamed and extra columns kept."""
    df = load_results(legacy_csv)

    assert df.height == 3
    assert df.columns == ['cell_type', 'annotLevel', 'p_value', 'fold_change', 'sd_from_mean']
    assert df['cell_type'].to_list() == ['interneurons', 'microglia', 'pyramidal_SS']
    assert df['p_value'].to_list() == pytest.approx([0.0004, 0.967, 0.0001])


def test_load_tab_separated(directional_tsv):
    """TSV suffix selects a tab separator."""
    df = load_results(directional_tsv)

    assert df.columns == ['cell_type', 'direction', 'p_value', 'sd_from_mean']
    assert df['direction'].to_list() == ['Up', 'Down']


def test_load_missing_file(tmp_path):
    """A missing file raises FileNotFoundError."""
    with pytest.raises(FileNotFoundError, match="Results file not found"):
        load_results(tmp_path / 'nonexistent.csv')


def test_load_missing_columns(tmp_path):
    """Files without the required columns are rejected."""
    file_path = tmp_path / 'bad.csv'
    file_path.write_text("CellType,fold_change\ninterneurons,1.2\n")

    with pytest.raises(ValueError, match="Missing required columns in results table: p_value, sd_from_mean"):
        load_results(file_path)


def test_normalise_columns_keeps_existing_names():
    """A legacy column is not renamed over an existing column."""
    df = pl.DataFrame({
        'CellType': ['a'],
        'cell_type': ['b'],
        'list': ['ASD']
    })

    result = normalise_columns(df)

    assert result.columns == ['CellType', 'cell_type', 'list_name']


def test_validate_results_passes_through():
    """Valid tables are returned unchanged."""
    df = pl.DataFrame({'cell_type': ['a'], 'p_value': [0.5], 'sd_from_mean': [0.1]})
    assert validate_results(df) is df


def test_merge_results():
    """Merged tables are labelled by list name and keep their row order."""
    asd = pl.DataFrame({
        'cell_type': ['interneurons', 'microglia'],
        'p_value': [0.001, 0.9],
        'sd_from_mean': [3.0, -1.0]
    })
    scz = pl.DataFrame({
        'cell_type': ['interneurons', 'interneurons'],
        'direction': ['Up', 'Down'],
        'p_value': [0.01, 0.4],
        'sd_from_mean': [2, 0]
    })

    merged = merge_results({'ASD': asd, 'SCZ': scz})

    assert merged.height == 4
    assert merged['list_name'].to_list() == ['ASD', 'ASD', 'SCZ', 'SCZ']
    assert merged['direction'].to_list() == [None, None, 'Up', 'Down']
    assert merged['sd_from_mean'].to_list() == pytest.approx([3.0, -1.0, 2.0, 0.0])


def test_merge_results_overwrites_list_name():
    """An existing list_name column is replaced by the mapping key."""
    df = pl.DataFrame({
        'cell_type': ['a'],
        'p_value': [0.5],
        'sd_from_mean': [0.1],
        'list_name': ['old']
    })

    merged = merge_results({'new': df})

    assert merged['list_name'].to_list() == ['new']


def test_merge_results_empty():
    """Merging nothing is an error."""
    with pytest.raises(ValueError, match="No results tables to merge"):
        merge_results({})


def test_save_prepared_results(tmp_path):
    """Tables are written as CSV or TSV according to the suffix."""
    df = pl.DataFrame({
        'cell_type': ['a', 'b'],
        'q_value': [0.01, 0.5],
        'is_significant': [True, False]
    })

    csv_path = save_prepared_results(df, tmp_path / 'nested' / 'prepared.csv')
    assert csv_path.exists()
    assert pl.read_csv(csv_path).select(['cell_type', 'q_value']).equals(df.select(['cell_type', 'q_value']))

    tsv_path = save_prepared_results(df, tmp_path / 'prepared.tsv')
    assert tsv_path.read_text().splitlines()[0] == "cell_type\tq_value\tis_significant"


def test_load_r_missing_values(tmp_path):
    """NA cells written by R load as nulls and survive correction."""
    file_path = tmp_path / 'r_results.csv'
    file_path.write_text(
        '"CellType","p","sd_from_mean"\n'
        '"a",0.01,2.5\n'
        '"b",NA,NA\n'
        '"c",0.02,-1.0\n'
    )

    df = load_results(file_path)

    assert df.schema['p_value'] == pl.Float64
    assert df.schema['sd_from_mean'] == pl.Float64
    assert df['p_value'].to_list() == [0.01, None, 0.02]

    prepared = prepare_results(df, 'bonferroni')

    # Only the two observed p-values count as tests
    q_values = prepared['q_value'].to_list()
    assert q_values[0] == pytest.approx(0.02)
    assert q_values[1] is None
    assert q_values[2] == pytest.approx(0.04)
    assert prepared['is_significant'].to_list() == [True, False, True]
    assert prepared['abs_deviation'].to_list()[0] == pytest.approx(2.5)
    assert prepared['abs_deviation'].to_list()[2] == pytest.approx(0.0)
