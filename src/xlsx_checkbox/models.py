"""Dataclasses representing sheets and checkboxes read from a workbook."""

from __future__ import annotations

from dataclasses import dataclass

from xlsx_checkbox.package import PartHandle
from xlsx_checkbox.services.control_state import ControlStateResolver


@dataclass(frozen=True)
class SheetReference:
    """A sheet declared in the workbook manifest."""

    name: str
    reference_id: str


@dataclass(frozen=True)
class Checkbox:
    """A checkbox form control anchored to a worksheet cell.

    ``reference_id`` is the control's relationship id inside its sheet part
    and is meaningless outside that sheet. ``checked_state_source`` points at
    the control-properties part; the checked state itself is read on demand.
    """

    control_name: str | None
    reference_id: str | None
    row_index: int
    col_index: int
    display_text: str | None = None
    checked_state_source: PartHandle | None = None

    def get_checked_value(self) -> bool:
        """Read the persisted checked state from the control-properties part.

        The part is streamed again on every call. A checkbox without a
        properties part reports ``False``.
        """
        source = self.checked_state_source
        if source is None:
            return False
        return ControlStateResolver(source.package.settings).resolve(source)

    def __str__(self) -> str:
        return (
            f"Checkbox(row={self.row_index}, col={self.col_index}, "
            f"text={self.display_text!r})"
        )
