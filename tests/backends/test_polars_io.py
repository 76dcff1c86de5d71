from pathlib import Path

import polars as pl
import pytest

from outliersim.backends.polars.io import (
    CsvFileSink,
    ParquetDirSink,
    ParquetFileSource,
    read_ledger,
    sink_for,
    source_for,
    write_batch,
    write_ledger,
)
from outliersim.core.errors import InvalidArgument
from outliersim.core.ledger import ResultLedger
from outliersim.stats.schemes.two_group.core import PValueRecord, ResultSet
from outliersim.stats.schemes.two_group.generate import generate_batch


def _ledger() -> ResultLedger:
    ledger = ResultLedger()
    ledger.append("none", ResultSet.from_records([(1, 0.03), (2, 0.4)]))
    ledger.append(
        "unit:2.5sd:both",
        ResultSet.from_records([PValueRecord(1, 0.02), PValueRecord.missing(2, "too few units")]),
    )
    return ledger


@pytest.mark.parametrize("suffix", [".parquet", ".csv"])
def test_ledger_round_trip(tmp_path: Path, suffix: str) -> None:
    path = tmp_path / f"ledger{suffix}"
    original = _ledger()
    write_ledger(original, sink_for(path))
    back = read_ledger(source_for(path))

    assert back.labels() == original.labels()
    assert back.frame().equals(original.frame())
    assert back.result_set("unit:2.5sd:both").missing_ids() == [2]


def test_unknown_suffix(tmp_path: Path) -> None:
    with pytest.raises(InvalidArgument):
        sink_for(tmp_path / "ledger.xlsx")
    with pytest.raises(InvalidArgument):
        source_for(tmp_path / "ledger")


def test_write_batch_includes_original_summaries(tmp_path: Path) -> None:
    batch = generate_batch(2, 3, 3, "normal", seed=0)
    path = tmp_path / "batch.parquet"
    write_batch(batch, sink_for(path))
    df = ParquetFileSource(path).read()

    assert df.height == batch.height
    assert {"unit_mean", "unit_sd", "group_mean", "group_sd"} <= set(df.columns)
    assert df.select(["replicate", "group", "unit", "trial", "value"]).equals(batch.observations)


def test_dir_sink_creates_directory(tmp_path: Path) -> None:
    target = tmp_path / "nested" / "out"
    ParquetDirSink(target, filename="x.parquet").write(pl.DataFrame({"x": [1, 2]}))
    assert (target / "x.parquet").exists()


def test_csv_sink_writes_header(tmp_path: Path) -> None:
    path = tmp_path / "x.csv"
    CsvFileSink(path).write(pl.DataFrame({"a": [1], "b": ["q"]}))
    assert path.read_text().splitlines()[0] == "a,b"
