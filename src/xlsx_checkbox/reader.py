"""Checkbox query API over a single workbook."""

from __future__ import annotations

from pathlib import Path

from xlsx_checkbox.config import Settings, settings
from xlsx_checkbox.models import Checkbox
from xlsx_checkbox.package import OoxmlPackage
from xlsx_checkbox.services.sheet_controls import CheckboxIndex, SheetControlParser
from xlsx_checkbox.services.sheet_index import SheetIndex
from xlsx_checkbox.utils.exceptions import NoSheetSelectedError, SheetNotFoundError
from xlsx_checkbox.utils.logging import LogContext, get_logger, timed_operation

logger = get_logger(__name__)


class XlsxCheckboxReader:
    """Reads checkbox form controls from an .xlsx workbook.

    The workbook's sheet list is indexed once when the reader is created;
    selecting a sheet streams that sheet (and its drawing) and replaces the
    previously selected sheet's checkboxes. Checked states are read lazily
    from the control-properties parts on every query.

    Not thread-safe: use one reader per thread.

    Example:
        with XlsxCheckboxReader("info.xlsx") as reader:
            reader.select_sheet("Sheet1")
            reader.get_checkbox_value(5, 2, "Yes")
    """

    def __init__(
        self, path: str | Path, settings_override: Settings | None = None
    ) -> None:
        """Open the workbook and index its sheets.

        Args:
            path: Path to the workbook.
            settings_override: Settings to use instead of the global ones.

        Raises:
            PackageOpenError: If the container is missing or invalid.
            MalformedDocumentError: If the workbook part is not valid XML.
        """
        self._settings = settings_override or settings
        self._package = OoxmlPackage(path, self._settings)
        try:
            self._workbook_part = self._package.workbook_part()
            self._sheets = SheetIndex.parse(
                self._workbook_part, huge_tree=self._settings.huge_tree
            )
        except Exception:
            self._package.close()
            raise
        self._selected: str | None = None
        self._index: CheckboxIndex | None = None

        logger.info(
            "Workbook opened",
            path=str(self._package.path),
            sheets=len(self._sheets),
        )

    # ------------------------------------------------------------------ #
    # Lifecycle
    # ------------------------------------------------------------------ #

    def close(self) -> None:
        """Release the workbook file."""
        self._package.close()

    def __enter__(self) -> XlsxCheckboxReader:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    # ------------------------------------------------------------------ #
    # Sheet selection
    # ------------------------------------------------------------------ #

    def sheet_names(self) -> list[str]:
        """Names of the sheets that can be selected."""
        return self._sheets.sheet_names()

    @property
    def selected_sheet(self) -> str | None:
        return self._selected

    def select_sheet(self, name: str) -> None:
        """Select a sheet and index its checkboxes.

        Args:
            name: Sheet display name, as shown on the sheet tab.

        Raises:
            SheetNotFoundError: If the workbook has no such sheet. The
                previous selection stays active.
            PartNotFoundError: If the sheet's part is missing.
            MalformedDocumentError: If the sheet part cannot be parsed.
        """
        rid = self._sheets.resolve(name)
        if rid is None:
            raise SheetNotFoundError(name, available=self.sheet_names())

        rel = self._package.get_relationship(self._workbook_part, rid)
        if rel is None:
            raise SheetNotFoundError(
                name, details={"reason": f"workbook has no relationship {rid}"}
            )
        sheet_part = self._package.get_related_part(self._workbook_part, rel)

        with LogContext(workbook=self._package.path.name, sheet=name):
            with timed_operation(logger, "sheet_parse") as metrics:
                index = SheetControlParser(
                    self._package, sheet_part, self._settings
                ).parse(metrics)

        self._index = index
        self._selected = name
        logger.info("Sheet selected", sheet=name, checkboxes=len(index))

    # ------------------------------------------------------------------ #
    # Queries
    # ------------------------------------------------------------------ #

    def _require_index(self) -> CheckboxIndex:
        if self._index is None:
            raise NoSheetSelectedError()
        return self._index

    def get_checkboxes(self, row: int, col: int) -> list[Checkbox]:
        """All checkboxes anchored at (row, col), in document order."""
        return self._require_index().get(row, col)

    def get_checkbox(self, row: int, col: int, text: str | None) -> Checkbox | None:
        """The first checkbox at (row, col) whose display text equals ``text``."""
        for checkbox in self.get_checkboxes(row, col):
            if checkbox.display_text == text:
                return checkbox
        return None

    def get_checkbox_value(self, row: int, col: int, text: str | None) -> bool:
        """Checked state of the matching checkbox.

        A missing checkbox is reported as unchecked; use get_checkbox() to
        tell the two apart.
        """
        checkbox = self.get_checkbox(row, col, text)
        if checkbox is None:
            logger.debug("No checkbox at position", row=row, col=col, text=text)
            return False
        return checkbox.get_checked_value()

    def list_checkbox_rows(self) -> list[int]:
        """Sorted rows of the selected sheet that hold checkboxes."""
        return self._require_index().rows()

    def list_checkbox_cols(self, row: int) -> list[int]:
        """Sorted columns of ``row`` that hold checkboxes."""
        return self._require_index().cols(row)
