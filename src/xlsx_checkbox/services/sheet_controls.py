"""Discovery of checkbox controls in a worksheet part.

A worksheet declares its form controls inside ``<controls>``::

    <control r:id="rId3" name="Check Box 14" shapeId="34830">
        <controlPr ...>
            <anchor moveWithCells="1">
                <from>
                    <xdr:col>2</xdr:col><xdr:colOff>0</xdr:colOff>
                    <xdr:row>5</xdr:row><xdr:rowOff>0</xdr:rowOff>
                </from>
                <to>...</to>
            </anchor>
        </controlPr>
    </control>

The sheet is streamed once through a small state machine. When a control
closes, its text is looked up in the sheet's drawing part and its
control-properties part is located through ``r:id``; the resulting
Checkbox is then indexed by its anchor cell.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass
from enum import Enum

from lxml import etree

from xlsx_checkbox.config import Settings, settings
from xlsx_checkbox.models import Checkbox
from xlsx_checkbox.package import OoxmlPackage, PartHandle
from xlsx_checkbox.services.drawing_text import DrawingTextResolver
from xlsx_checkbox.services.xml_stream import find_attribute, local_name, stream_part
from xlsx_checkbox.utils.exceptions import (
    ErrorCode,
    MalformedDocumentError,
    PartNotFoundError,
)
from xlsx_checkbox.utils.logging import PerformanceMetrics, get_logger

logger = get_logger(__name__)

CONTROL = "control"
NAME = "name"
RID = "id"
FROM = "from"
ROW = "row"
COL = "col"


class ParseState(str, Enum):
    """Position of the sheet stream relative to the control being read."""

    IDLE = "idle"
    IN_CONTROL = "in_control"
    IN_ANCHOR = "in_anchor"
    IN_ROW = "in_row"
    IN_COL = "in_col"


@dataclass
class _PendingControl:
    name: str | None
    rid: str | None
    row: int | None = None
    col: int | None = None


class CheckboxIndex:
    """Checkboxes of one sheet keyed by row, then column.

    Each cell keeps its checkboxes in document order; a cell may hold
    several.
    """

    def __init__(self) -> None:
        self._rows: dict[int, dict[int, list[Checkbox]]] = {}
        self._count = 0

    def add(self, checkbox: Checkbox) -> None:
        cols = self._rows.setdefault(checkbox.row_index, {})
        cols.setdefault(checkbox.col_index, []).append(checkbox)
        self._count += 1

    def get(self, row: int, col: int) -> list[Checkbox]:
        """Checkboxes anchored at (row, col), possibly none."""
        return list(self._rows.get(row, {}).get(col, []))

    def rows(self) -> list[int]:
        """Sorted row indices holding at least one checkbox."""
        return sorted(self._rows)

    def cols(self, row: int) -> list[int]:
        """Sorted column indices holding a checkbox in ``row``."""
        return sorted(self._rows.get(row, {}))

    def __iter__(self) -> Iterator[Checkbox]:
        for row in self.rows():
            for col in self.cols(row):
                yield from self._rows[row][col]

    def __len__(self) -> int:
        return self._count


class SheetControlParser:
    """Builds the CheckboxIndex of one worksheet part.

    A parser instance handles a single sheet part; the reader creates a new
    one on every sheet selection.
    """

    def __init__(
        self,
        package: OoxmlPackage,
        sheet_part: PartHandle,
        settings_override: Settings | None = None,
    ) -> None:
        self._package = package
        self._sheet_part = sheet_part
        self._settings = settings_override or settings
        self._drawing_text = DrawingTextResolver(package, self._settings)

    def parse(self, metrics: PerformanceMetrics | None = None) -> CheckboxIndex:
        """Stream the sheet part and index every checkbox control in it.

        Raises:
            MalformedDocumentError: On invalid XML, non-numeric anchors, or an
                unanchored control under the ``error`` policy.
        """
        index = CheckboxIndex()
        state = ParseState.IDLE
        pending: _PendingControl | None = None

        with stream_part(self._sheet_part, huge_tree=self._settings.huge_tree) as events:
            for event, elem in events:
                name = local_name(elem.tag)
                if event == "start":
                    state, pending = self._on_start(state, pending, name, elem)
                    continue

                if state is ParseState.IN_ROW and name == ROW:
                    assert pending is not None
                    pending.row = self._parse_coordinate(elem, ROW)
                    state = ParseState.IN_ANCHOR
                elif state is ParseState.IN_COL and name == COL:
                    assert pending is not None
                    pending.col = self._parse_coordinate(elem, COL)
                    state = ParseState.IN_ANCHOR
                elif state is ParseState.IN_ANCHOR and name == FROM:
                    state = ParseState.IN_CONTROL
                elif state is ParseState.IN_CONTROL and name == CONTROL:
                    assert pending is not None
                    if metrics is not None:
                        metrics.controls_found += 1
                    checkbox = self._finish(pending)
                    if checkbox is not None:
                        index.add(checkbox)
                    pending = None
                    state = ParseState.IDLE

        if metrics is not None:
            metrics.parts_streamed += 1
            metrics.checkboxes_indexed = len(index)
        return index

    @staticmethod
    def _on_start(
        state: ParseState,
        pending: _PendingControl | None,
        name: str,
        elem: etree._Element,
    ) -> tuple[ParseState, _PendingControl | None]:
        if state is ParseState.IDLE and name == CONTROL:
            return ParseState.IN_CONTROL, _PendingControl(
                name=find_attribute(elem, NAME), rid=find_attribute(elem, RID)
            )
        if state is ParseState.IN_CONTROL and name == FROM:
            return ParseState.IN_ANCHOR, pending
        if state is ParseState.IN_ANCHOR and name == ROW:
            return ParseState.IN_ROW, pending
        if state is ParseState.IN_ANCHOR and name == COL:
            return ParseState.IN_COL, pending
        return state, pending

    def _parse_coordinate(self, elem: etree._Element, axis: str) -> int:
        raw = (elem.text or "").strip()
        # digits only: rejects signs, blanks and non-ASCII digits
        if not (raw.isascii() and raw.isdigit()):
            raise MalformedDocumentError(
                f"Invalid anchor {axis} {raw!r} in {self._sheet_part.name}",
                part_name=self._sheet_part.name,
                error_code=ErrorCode.INVALID_ANCHOR,
                details={"axis": axis, "value": raw},
            )
        return int(raw)

    def _finish(self, pending: _PendingControl) -> Checkbox | None:
        if pending.row is None or pending.col is None:
            policy = self._settings.unanchored_controls
            if policy == "skip":
                logger.debug(
                    "Skipping control without anchor",
                    control=pending.name,
                    rid=pending.rid,
                )
                return None
            if policy == "error":
                raise MalformedDocumentError(
                    f"Control {pending.name!r} has no anchor row/col",
                    part_name=self._sheet_part.name,
                    error_code=ErrorCode.INVALID_ANCHOR,
                    details={"control": pending.name},
                )

        text = self._resolve_text(pending)
        source = self._resolve_properties(pending)

        return Checkbox(
            control_name=pending.name,
            reference_id=pending.rid,
            row_index=pending.row or 0,
            col_index=pending.col or 0,
            display_text=text,
            checked_state_source=source,
        )

    def _resolve_text(self, pending: _PendingControl) -> str | None:
        try:
            text = self._drawing_text.resolve(pending.name, self._sheet_part)
        except PartNotFoundError as exc:
            logger.warning(
                "Drawing part missing for control",
                control=pending.name,
                part=exc.part_name,
            )
            return None

        if text is None:
            logger.warning("No drawing shape matches control", control=pending.name)
        return text

    def _resolve_properties(self, pending: _PendingControl) -> PartHandle | None:
        if pending.rid is None:
            logger.warning("Control has no relationship id", control=pending.name)
            return None

        rel = self._package.get_relationship(self._sheet_part, pending.rid)
        if rel is None:
            logger.warning(
                "Control properties relationship not found",
                control=pending.name,
                rid=pending.rid,
            )
            return None

        try:
            return self._package.get_related_part(self._sheet_part, rel)
        except PartNotFoundError as exc:
            logger.warning(
                "Control properties part missing",
                control=pending.name,
                rid=pending.rid,
                part=exc.part_name,
            )
            return None
