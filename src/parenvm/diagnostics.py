"""Source locations and the error base shared by every pipeline stage."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Loc:
    """Source location, 0-indexed. Negative values mean "no location"."""

    row: int = -1
    col: int = -1

    def is_valid(self) -> bool:
        return self.row >= 0 and self.col >= 0


NO_LOC = Loc()


class LangError(Exception):
    """Base error for lexing, parsing, emission and evaluation."""

    def __init__(self, msg: str, loc: Loc = NO_LOC):
        if loc.is_valid():
            super().__init__(f"{msg} at row {loc.row} col {loc.col}")
        else:
            super().__init__(msg)
        self.msg: str = msg
        self.loc: Loc = loc
