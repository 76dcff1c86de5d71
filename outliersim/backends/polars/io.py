"""
outliersim.backends.polars.io
=============================

Pluggable persistence for batches and result ledgers via **sinks/sources**.

- Parquet (file/dir), CSV file sinks
- Parquet and CSV file sources

This module contains no simulation semantics; just I/O. Helpers
at the bottom pick a sink from a file suffix.

Examples
--------
>>> from outliersim.backends.polars.io import sink_for, source_for
>>> type(sink_for("sweep.csv")).__name__, type(source_for("sweep.parquet")).__name__
('CsvFileSink', 'ParquetFileSource')
>>> sink_for("sweep.xlsx")
Traceback (most recent call last):
...
outliersim.core.errors.InvalidArgument: Unsupported output format: '.xlsx'
"""

from __future__ import annotations
import os
from pathlib import Path
from typing import Protocol, Union

import polars as pl

from outliersim.core.errors import InvalidArgument
from outliersim.core.ledger import ResultLedger
from outliersim.stats.schemes.two_group.core import SimulationBatch


class FrameSink(Protocol):
    """A write-only sink: DataFrame -> storage."""
    def write(self, df: pl.DataFrame) -> None: ...


class FrameSource(Protocol):
    """A read-only source: storage -> DataFrame."""
    def read(self) -> pl.DataFrame: ...


class ParquetFileSink:
    def __init__(self, path: Union[str, Path]) -> None:
        self.path = path
    def write(self, df: pl.DataFrame) -> None:
        df.write_parquet(self.path)


class ParquetDirSink:
    def __init__(self, dirpath: Union[str, Path], filename: str = "records.parquet") -> None:
        self.dirpath = dirpath
        self.filename = filename
    def write(self, df: pl.DataFrame) -> None:
        os.makedirs(self.dirpath, exist_ok=True)
        df.write_parquet(os.path.join(self.dirpath, self.filename))


class CsvFileSink:
    def __init__(self, path: Union[str, Path]) -> None:
        self.path = path
    def write(self, df: pl.DataFrame) -> None:
        df.write_csv(self.path)


class ParquetFileSource:
    def __init__(self, path: Union[str, Path]) -> None:
        self.path = path
    def read(self) -> pl.DataFrame:
        return pl.read_parquet(self.path)


class CsvFileSource:
    def __init__(self, path: Union[str, Path]) -> None:
        self.path = path
    def read(self) -> pl.DataFrame:
        return pl.read_csv(self.path)


def sink_for(path: Union[str, Path]) -> FrameSink:
    """Parquet or CSV sink chosen by file suffix."""
    suffix = Path(path).suffix.lower()
    if suffix == ".parquet":
        return ParquetFileSink(path)
    if suffix == ".csv":
        return CsvFileSink(path)
    raise InvalidArgument(f"Unsupported output format: {suffix or path!r}")


def source_for(path: Union[str, Path]) -> FrameSource:
    suffix = Path(path).suffix.lower()
    if suffix == ".parquet":
        return ParquetFileSource(path)
    if suffix == ".csv":
        return CsvFileSource(path)
    raise InvalidArgument(f"Unsupported input format: {suffix or path!r}")


def write_ledger(ledger: ResultLedger, sink: FrameSink) -> None:
    sink.write(ledger.frame())


def read_ledger(source: FrameSource) -> ResultLedger:
    return ResultLedger.from_frame(source.read())


def write_batch(batch: SimulationBatch, sink: FrameSink) -> None:
    """Write observations annotated with their original summaries."""
    sink.write(batch.annotated())
