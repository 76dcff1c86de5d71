import math

from outliersim.core.ledger import ResultLedger
from outliersim.reporting.generic import LedgerReporter
from outliersim.stats.schemes.two_group.core import ResultSet


def _ledger() -> ResultLedger:
    ledger = ResultLedger()
    ledger.append("none", ResultSet.from_records([(1, 0.01), (2, 0.5), (3, 0.6), (4, 0.7)]))
    ledger.append("unit:2.5sd:both", ResultSet.from_records([(1, 0.01), (2, 0.02), (3, None)]))
    return ledger


def test_rejection_table() -> None:
    table = LedgerReporter(_ledger()).rejection_table()

    assert table.columns == [
        "label", "rejection_rate", "ci_low", "ci_high", "n_rejected", "n_valid", "n_missing",
    ]
    assert table.get_column("label").to_list() == ["none", "unit:2.5sd:both"]
    assert table.get_column("rejection_rate").to_list() == [0.25, 1.0]
    assert table.get_column("n_missing").to_list() == [0, 1]


def test_alpha_changes_the_rates() -> None:
    table = LedgerReporter(_ledger(), alpha=0.015).rejection_table()
    assert table.get_column("rejection_rate").to_list() == [0.25, 0.5]


def test_density_table_is_long_format() -> None:
    dens = LedgerReporter(_ledger()).density_table()

    assert dens.columns == ["label", "bin", "mid", "density"]
    assert dens.height == 200
    none = dens.filter(dens["label"] == "none")
    assert math.isclose(none.get_column("density").sum() / 100, 1.0)


def test_empty_ledger() -> None:
    reporter = LedgerReporter(ResultLedger())
    assert reporter.rejection_table().height == 0
    assert reporter.density_table().height == 0
    assert len(reporter.render().splitlines()) == 2


def test_render_lists_every_label() -> None:
    text = LedgerReporter(_ledger()).render()
    lines = text.splitlines()

    assert lines[0].startswith("filter")
    assert lines[2].startswith("none")
    assert lines[3].startswith("unit:2.5sd:both")
    assert "1.0000" in lines[3]
