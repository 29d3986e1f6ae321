"""xlsx-checkbox-reader - streaming checkbox extraction from OOXML workbooks."""

from xlsx_checkbox.models import Checkbox, SheetReference
from xlsx_checkbox.reader import XlsxCheckboxReader
from xlsx_checkbox.utils.exceptions import (
    CheckboxReaderError,
    MalformedDocumentError,
    NoSheetSelectedError,
    PackageOpenError,
    PartNotFoundError,
    SheetNotFoundError,
)

__all__ = [
    "Checkbox",
    "CheckboxReaderError",
    "MalformedDocumentError",
    "NoSheetSelectedError",
    "PackageOpenError",
    "PartNotFoundError",
    "SheetNotFoundError",
    "SheetReference",
    "XlsxCheckboxReader",
]
__version__ = "0.1.0"
