"""Sheet name to relationship id index built from the workbook part."""

from __future__ import annotations

from xlsx_checkbox.models import SheetReference
from xlsx_checkbox.package import PartHandle
from xlsx_checkbox.services.xml_stream import find_attribute, local_name, stream_part
from xlsx_checkbox.utils.logging import get_logger

logger = get_logger(__name__)

SHEET = "sheet"
NAME = "name"
RID = "id"


class SheetIndex:
    """Maps sheet display names to the workbook relationship id of the sheet.

    Built from ``<sheet name="Sheet6" sheetId="4" r:id="rId6"/>`` entries.
    Entries lacking either the name or the relationship id are skipped.
    """

    def __init__(self, references: list[SheetReference] | None = None) -> None:
        self._references: dict[str, SheetReference] = {}
        for ref in references or []:
            self._references[ref.name] = ref

    @classmethod
    def parse(cls, workbook_part: PartHandle, huge_tree: bool = False) -> SheetIndex:
        """Stream the workbook part and collect its sheet references."""
        references: list[SheetReference] = []
        with stream_part(workbook_part, huge_tree=huge_tree) as events:
            for event, elem in events:
                if event != "start" or local_name(elem.tag) != SHEET:
                    continue
                name = find_attribute(elem, NAME)
                rid = find_attribute(elem, RID)
                if name is None or rid is None:
                    logger.debug("Skipping sheet without name or id", name=name, rid=rid)
                    continue
                references.append(SheetReference(name=name, reference_id=rid))

        logger.debug("Indexed workbook sheets", part=workbook_part.name, sheets=len(references))
        return cls(references)

    def resolve(self, name: str) -> str | None:
        """Relationship id of the sheet called ``name``, if declared."""
        ref = self._references.get(name)
        return ref.reference_id if ref is not None else None

    def sheet_names(self) -> list[str]:
        return list(self._references)

    def __contains__(self, name: object) -> bool:
        return name in self._references

    def __len__(self) -> int:
        return len(self._references)
