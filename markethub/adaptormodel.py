"""Table model that lists adaptors and their current status."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from enum import IntEnum
from typing import Any


class AdaptorType(IntEnum):
    """Direction of an adaptor's data flow."""

    INPUT = 0
    OUTPUT = 1


class AdaptorState(IntEnum):
    """Lifecycle state reported by an adaptor."""

    LOAD = 0
    INIT = 1
    RUNNING = 2
    STOP = 3


class Orientation(IntEnum):
    """Header orientation."""

    HORIZONTAL = 1
    VERTICAL = 2


class Role(IntEnum):
    """Kind of data requested from the model."""

    DISPLAY = 0
    TEXT_ALIGNMENT = 7


#: Centred horizontally and vertically.
HEADER_ALIGNMENT = 0x0084

_TYPE_TEXT = {AdaptorType.INPUT: "Input", AdaptorType.OUTPUT: "Output"}
_STATE_TEXT = {
    AdaptorState.LOAD: "Load",
    AdaptorState.INIT: "Init",
    AdaptorState.RUNNING: "Running",
    AdaptorState.STOP: "Stop",
}


@dataclass
class AdaptorStatus:
    """Status report of one adaptor."""

    id: int
    type: int
    name: str
    status: int


ChangeListener = Callable[[int, int], None]


class AdaptorModel:
    """Rows of adaptor status, one per adaptor id, in order of first report.

    Callables in ``listeners`` are called with ``(first_row, last_row)``
    whenever rows are added or changed.
    """

    def __init__(self) -> None:
        self._headers = ["ID", "Type", "Name", "Status"]
        self._rows: list[AdaptorStatus] = []
        self.listeners: list[ChangeListener] = []

    def _valid(self, row: int, column: int) -> bool:
        return 0 <= row < len(self._rows) and 0 <= column < len(self._headers)

    def data(self, row: int, column: int, role: Role = Role.DISPLAY) -> Any:
        """Display value of a cell, or None for an invalid cell or other role."""
        if not self._valid(row, column) or role != Role.DISPLAY:
            return None
        status = self._rows[row]
        if column == 0:
            return status.id
        if column == 1:
            return _TYPE_TEXT.get(status.type, "Unknown")
        if column == 2:
            return status.name
        if column == 3:
            return _STATE_TEXT.get(status.status, "Unknown")
        return None

    def header_data(
        self, section: int, orientation: Orientation, role: Role = Role.DISPLAY
    ) -> Any:
        """Label or alignment of a horizontal header section."""
        if orientation != Orientation.HORIZONTAL:
            return None
        if role == Role.TEXT_ALIGNMENT:
            return HEADER_ALIGNMENT
        if role != Role.DISPLAY:
            return None
        if not 0 <= section < len(self._headers):
            return None
        return self._headers[section]

    def row_count(self) -> int:
        """Number of adaptors listed."""
        return len(self._rows)

    def column_count(self) -> int:
        """Number of columns."""
        return len(self._headers)

    def clear(self) -> None:
        """Remove every row."""
        self._rows.clear()

    def update_adaptor_status(self, status: AdaptorStatus) -> int:
        """Insert or replace the row for ``status.id``; return its row number."""
        for row, current in enumerate(self._rows):
            if current.id == status.id:
                self._rows[row] = status
                break
        else:
            self._rows.append(status)
            row = len(self._rows) - 1
        for listener in self.listeners:
            listener(row, row)
        return row