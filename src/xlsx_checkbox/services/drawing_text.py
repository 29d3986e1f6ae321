"""Display text of form controls, read from a sheet's drawing part."""

from __future__ import annotations

from openpyxl.packaging.relationship import Relationship

from xlsx_checkbox.config import Settings, settings
from xlsx_checkbox.package import OoxmlPackage, PartHandle
from xlsx_checkbox.services.xml_stream import find_attribute, local_name, stream_part
from xlsx_checkbox.utils.logging import get_logger

logger = get_logger(__name__)

DRAWING_REL_TYPES: tuple[str, ...] = (
    "http://schemas.openxmlformats.org/officeDocument/2006/relationships/drawing",
    "http://purl.oclc.org/ooxml/officeDocument/relationships/drawing",
)

SHAPE = "sp"
NV_PROPS = "cnvpr"
NAME = "name"
TEXT = "t"


class DrawingTextResolver:
    """Finds the text of the drawing shape that renders a named control.

    Shapes in the drawing part look like::

        <xdr:sp>
            <xdr:nvSpPr><xdr:cNvPr id="1025" name="Check Box 1" hidden="1"/></xdr:nvSpPr>
            ...
            <xdr:txBody><a:p><a:r><a:t>Yes</a:t></a:r></a:p></xdr:txBody>
        </xdr:sp>

    The first shape whose ``cNvPr`` name equals the control name
    (case-insensitive) wins, and its first ``t`` element is the text.
    """

    def __init__(
        self, package: OoxmlPackage, settings_override: Settings | None = None
    ) -> None:
        self._package = package
        self._settings = settings_override or settings

    def drawing_relationships(self, sheet_part: PartHandle) -> list[Relationship]:
        rels = self._package.get_relationships_by_type(sheet_part, *DRAWING_REL_TYPES)
        if self._settings.drawing_search == "first":
            return rels[:1]
        return rels

    def resolve(self, control_name: str | None, sheet_part: PartHandle) -> str | None:
        """Text of the shape named ``control_name`` in the sheet's drawing.

        Returns:
            The shape text, or None when the sheet has no drawing or no shape
            matches.

        Raises:
            PartNotFoundError: If a drawing relationship points at a missing
                part.
            MalformedDocumentError: If the drawing part is not valid XML.
        """
        if not control_name:
            return None

        for rel in self.drawing_relationships(sheet_part):
            drawing_part = self._package.get_related_part(sheet_part, rel)
            text = self._scan(drawing_part, control_name.casefold())
            if text is not None:
                return text
        return None

    def _scan(self, drawing_part: PartHandle, target: str) -> str | None:
        in_shape = False
        matched = False
        with stream_part(drawing_part, huge_tree=self._settings.huge_tree) as events:
            for event, elem in events:
                name = local_name(elem.tag)
                if event == "start":
                    if name == SHAPE:
                        in_shape = True
                        matched = False
                    elif in_shape and not matched and name == NV_PROPS:
                        shape_name = find_attribute(elem, NAME)
                        matched = shape_name is not None and shape_name.casefold() == target
                elif name == SHAPE:
                    in_shape = False
                    matched = False
                elif matched and name == TEXT:
                    return elem.text or ""
        return None
