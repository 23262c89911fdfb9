from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterator, Protocol, Sequence

import numpy as np
import pandas as pd


class TabularSource(Protocol):
    """Read-only, 1-based cell access to one input sheet."""

    max_row: int
    max_column: int

    def get_cell(self, row: int, col: int) -> Any: ...

    def iter_rows(self) -> Iterator[tuple[int, list[Any]]]: ...


def _plain(value: Any) -> Any:
    if value is None or value is pd.NaT or value is pd.NA:
        return None
    if isinstance(value, pd.Timestamp):
        return value.to_pydatetime()
    if isinstance(value, np.generic):
        value = value.item()
    if isinstance(value, float) and value != value:
        return None
    return value


@dataclass(frozen=True)
class FrameSheet:
    """A sheet backed by a header-less DataFrame (row 1 is the first physical row)."""

    df: pd.DataFrame
    label: str = ""

    @classmethod
    def from_rows(cls, rows: Sequence[Sequence[Any]], label: str = "") -> "FrameSheet":
        width = max((len(r) for r in rows), default=0)
        padded = [list(r) + [None] * (width - len(r)) for r in rows]
        return cls(pd.DataFrame(padded, dtype=object), label=label)

    @property
    def max_row(self) -> int:
        return int(self.df.shape[0])

    @property
    def max_column(self) -> int:
        return int(self.df.shape[1])

    def get_cell(self, row: int, col: int) -> Any:
        if row < 1 or col < 1 or row > self.max_row or col > self.max_column:
            return None
        return _plain(self.df.iat[row - 1, col - 1])

    def iter_rows(self) -> Iterator[tuple[int, list[Any]]]:
        for i in range(self.max_row):
            yield i + 1, [_plain(v) for v in self.df.iloc[i].tolist()]
