"""Test fixtures and helpers for building sample workbooks.

Workbooks are assembled directly with zipfile so tests control every part:
the worksheet's ``<controls>`` block, the drawing shapes and the
control-properties parts. The layout matches what Excel writes.

Example usage:
    from tests.fixtures import ControlSpec, SheetSpec, build_workbook

    path = build_workbook(
        tmp_path / "form.xlsx",
        [SheetSpec("Sheet1", [ControlSpec("Check Box 1", row=5, col=2,
                                          text="Yes", checked="Checked")])],
    )
"""

import zipfile
from dataclasses import dataclass, field
from pathlib import Path
from xml.sax.saxutils import escape, quoteattr

MAIN_NS = "http://schemas.openxmlformats.org/spreadsheetml/2006/main"
REL_NS = "http://schemas.openxmlformats.org/officeDocument/2006/relationships"
PKG_REL_NS = "http://schemas.openxmlformats.org/package/2006/relationships"
XDR_NS = "http://schemas.openxmlformats.org/drawingml/2006/spreadsheetDrawing"
A_NS = "http://schemas.openxmlformats.org/drawingml/2006/main"
MC_NS = "http://schemas.openxmlformats.org/markup-compatibility/2006"
X14_NS = "http://schemas.microsoft.com/office/spreadsheetml/2009/9/main"

WORKBOOK_CT = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet.main+xml"
WORKSHEET_CT = "application/vnd.openxmlformats-officedocument.spreadsheetml.worksheet+xml"
DRAWING_CT = "application/vnd.openxmlformats-officedocument.drawing+xml"
CTRL_PROP_CT = "application/vnd.ms-excel.controlproperties+xml"

DRAWING_REL = f"{REL_NS}/drawing"
CTRL_PROP_REL = f"{REL_NS}/ctrlProp"
WORKSHEET_REL = f"{REL_NS}/worksheet"

XML_DECL = '<?xml version="1.0" encoding="UTF-8" standalone="yes"?>\n'


@dataclass
class ControlSpec:
    """One checkbox control.

    Attributes:
        name: Control name, shared by the sheet control and drawing shape.
        row: Anchor row written in ``<from>``; None omits the element.
        col: Anchor column written in ``<from>``; None omits the element.
        text: Shape text in the drawing; None writes no shape at all.
        checked: Raw ``checked`` attribute value; None omits the attribute.
        with_props: Whether the control-properties part and its
            relationship exist.
        shape_name: Drawing shape name when it differs from ``name``.
        raw_row: Literal row text, overriding ``row`` (for malformed input).
    """

    name: str
    row: int | None = 0
    col: int | None = 0
    text: str | None = None
    checked: str | None = None
    with_props: bool = True
    shape_name: str | None = None
    raw_row: str | None = None


@dataclass
class SheetSpec:
    """One worksheet and the controls on it."""

    name: str
    controls: list[ControlSpec] = field(default_factory=list)
    with_drawing: bool = True
    fallback: bool = True
    extra_drawings: list[list[ControlSpec]] = field(default_factory=list)


def _anchor(row: int | None, col: int | None, raw_row: str | None) -> str:
    parts = []
    if col is not None:
        parts.append(f"<xdr:col>{col}</xdr:col><xdr:colOff>0</xdr:colOff>")
    if raw_row is not None:
        parts.append(f"<xdr:row>{escape(raw_row)}</xdr:row><xdr:rowOff>0</xdr:rowOff>")
    elif row is not None:
        parts.append(f"<xdr:row>{row}</xdr:row><xdr:rowOff>0</xdr:rowOff>")
    return "".join(parts)


def worksheet_xml(controls: list[tuple[ControlSpec, str]], fallback: bool = True) -> str:
    """Worksheet part with one ``mc:AlternateContent`` block per control."""
    blocks = []
    for idx, (ctrl, rid) in enumerate(controls):
        shape_id = 1025 + idx
        name = quoteattr(ctrl.name)
        end_row = (ctrl.row or 0) + 1
        end_col = (ctrl.col or 0) + 1
        fallback_xml = (
            f'<mc:Fallback><control shapeId="{shape_id}" r:id="{rid}" name={name}/></mc:Fallback>'
            if fallback
            else ""
        )
        blocks.append(
            f'<mc:AlternateContent xmlns:mc="{MC_NS}">'
            f'<mc:Choice Requires="x14">'
            f'<control shapeId="{shape_id}" r:id="{rid}" name={name}>'
            f'<controlPr defaultSize="0" autoFill="0" autoLine="0" autoPict="0">'
            f'<anchor moveWithCells="1">'
            f"<from>{_anchor(ctrl.row, ctrl.col, ctrl.raw_row)}</from>"
            f"<to><xdr:col>{end_col}</xdr:col><xdr:colOff>0</xdr:colOff>"
            f"<xdr:row>{end_row}</xdr:row><xdr:rowOff>0</xdr:rowOff></to>"
            f"</anchor></controlPr></control></mc:Choice>"
            f"{fallback_xml}</mc:AlternateContent>"
        )

    controls_xml = f"<controls>{''.join(blocks)}</controls>" if blocks else ""
    return (
        f"{XML_DECL}"
        f'<worksheet xmlns="{MAIN_NS}" xmlns:r="{REL_NS}" xmlns:xdr="{XDR_NS}" '
        f'xmlns:mc="{MC_NS}" xmlns:x14="{X14_NS}">'
        f'<dimension ref="A1"/><sheetData><row r="1"><c r="A1"><v>1</v></c></row></sheetData>'
        f'<drawing r:id="rId1"/>'
        f"{controls_xml}"
        f"</worksheet>"
    )


def drawing_xml(controls: list[ControlSpec]) -> str:
    """Drawing part with one hidden shape per control that has text."""
    anchors = []
    for idx, ctrl in enumerate(controls):
        if ctrl.text is None:
            continue
        shape_name = quoteattr(ctrl.shape_name or ctrl.name)
        anchors.append(
            f"<xdr:twoCellAnchor>"
            f"<xdr:from><xdr:col>{ctrl.col or 0}</xdr:col><xdr:colOff>0</xdr:colOff>"
            f"<xdr:row>{ctrl.row or 0}</xdr:row><xdr:rowOff>0</xdr:rowOff></xdr:from>"
            f"<xdr:to><xdr:col>{(ctrl.col or 0) + 1}</xdr:col><xdr:colOff>0</xdr:colOff>"
            f"<xdr:row>{(ctrl.row or 0) + 1}</xdr:row><xdr:rowOff>0</xdr:rowOff></xdr:to>"
            f'<xdr:sp macro="" textlink="">'
            f'<xdr:nvSpPr><xdr:cNvPr id="{1025 + idx}" name={shape_name} hidden="1"/>'
            f"<xdr:cNvSpPr/></xdr:nvSpPr><xdr:spPr/>"
            f"<xdr:txBody><a:bodyPr/><a:lstStyle/><a:p><a:r>"
            f"<a:rPr lang=\"en-US\"/><a:t>{escape(ctrl.text)}</a:t></a:r></a:p></xdr:txBody>"
            f"</xdr:sp><xdr:clientData/></xdr:twoCellAnchor>"
        )
    return (
        f'{XML_DECL}<xdr:wsDr xmlns:xdr="{XDR_NS}" xmlns:a="{A_NS}">'
        f"{''.join(anchors)}</xdr:wsDr>"
    )


def ctrl_prop_xml(checked: str | None) -> str:
    checked_attr = f" checked={quoteattr(checked)}" if checked is not None else ""
    return (
        f'{XML_DECL}<formControlPr xmlns="{X14_NS}" objectType="CheckBox"'
        f'{checked_attr} lmt="$B$2" noThreeD="1"/>'
    )


def _rels_xml(rels: list[tuple[str, str, str]]) -> str:
    entries = "".join(
        f'<Relationship Id="{rid}" Type="{rtype}" Target="{target}"/>'
        for rid, rtype, target in rels
    )
    return f'{XML_DECL}<Relationships xmlns="{PKG_REL_NS}">{entries}</Relationships>'


def content_types_xml(overrides: list[tuple[str, str]]) -> str:
    entries = "".join(
        f'<Override PartName="{name}" ContentType="{ctype}"/>' for name, ctype in overrides
    )
    return (
        f'{XML_DECL}<Types xmlns="http://schemas.openxmlformats.org/package/2006/content-types">'
        f'<Default Extension="rels" ContentType="application/vnd.openxmlformats-package.relationships+xml"/>'
        f'<Default Extension="xml" ContentType="application/xml"/>'
        f"{entries}</Types>"
    )


def build_workbook(
    path: Path,
    sheets: list[SheetSpec],
    extra_sheet_entries: str = "",
    replace_parts: dict[str, str] | None = None,
) -> Path:
    """Write a workbook containing ``sheets`` to ``path``.

    Args:
        path: Destination file.
        sheets: Worksheets to create, in tab order.
        extra_sheet_entries: Raw XML appended inside ``<sheets>``.
        replace_parts: Part name to content overrides applied last.

    Returns:
        The path written.
    """
    parts: dict[str, str] = {}
    overrides: list[tuple[str, str]] = [("/xl/workbook.xml", WORKBOOK_CT)]
    workbook_rels: list[tuple[str, str, str]] = []
    sheet_entries = []
    ctrl_prop_counter = 0
    drawing_counter = 0

    for sheet_no, sheet in enumerate(sheets, start=1):
        sheet_rid = f"rId{sheet_no}"
        sheet_entries.append(
            f"<sheet name={quoteattr(sheet.name)} sheetId=\"{sheet_no}\" r:id=\"{sheet_rid}\"/>"
        )
        workbook_rels.append((sheet_rid, WORKSHEET_REL, f"worksheets/sheet{sheet_no}.xml"))
        overrides.append((f"/xl/worksheets/sheet{sheet_no}.xml", WORKSHEET_CT))

        sheet_rels: list[tuple[str, str, str]] = []
        drawings = [sheet.controls, *sheet.extra_drawings] if sheet.with_drawing else []
        for drawing_no, drawing_controls in enumerate(drawings, start=1):
            drawing_counter += 1
            drawing_name = f"xl/drawings/drawing{drawing_counter}.xml"
            parts[drawing_name] = drawing_xml(drawing_controls)
            overrides.append((f"/{drawing_name}", DRAWING_CT))
            sheet_rels.append(
                (f"rId{drawing_no}", DRAWING_REL, f"../drawings/drawing{drawing_counter}.xml")
            )

        controls_with_rids: list[tuple[ControlSpec, str]] = []
        for ctrl_no, ctrl in enumerate(sheet.controls):
            rid = f"rId{100 + ctrl_no}"
            controls_with_rids.append((ctrl, rid))
            if not ctrl.with_props:
                continue
            ctrl_prop_counter += 1
            prop_name = f"xl/ctrlProps/ctrlProp{ctrl_prop_counter}.xml"
            parts[prop_name] = ctrl_prop_xml(ctrl.checked)
            overrides.append((f"/{prop_name}", CTRL_PROP_CT))
            sheet_rels.append((rid, CTRL_PROP_REL, f"../ctrlProps/ctrlProp{ctrl_prop_counter}.xml"))

        parts[f"xl/worksheets/sheet{sheet_no}.xml"] = worksheet_xml(
            controls_with_rids, fallback=sheet.fallback
        )
        if sheet_rels:
            parts[f"xl/worksheets/_rels/sheet{sheet_no}.xml.rels"] = _rels_xml(sheet_rels)

    parts["xl/workbook.xml"] = (
        f'{XML_DECL}<workbook xmlns="{MAIN_NS}" xmlns:r="{REL_NS}">'
        f"<sheets>{''.join(sheet_entries)}{extra_sheet_entries}</sheets></workbook>"
    )
    parts["xl/_rels/workbook.xml.rels"] = _rels_xml(workbook_rels)
    parts["_rels/.rels"] = _rels_xml(
        [("rId1", f"{REL_NS}/officeDocument", "xl/workbook.xml")]
    )
    parts["[Content_Types].xml"] = content_types_xml(overrides)
    parts.update(replace_parts or {})

    with zipfile.ZipFile(path, "w", zipfile.ZIP_DEFLATED) as archive:
        for name, content in parts.items():
            archive.writestr(name, content)
    return path
