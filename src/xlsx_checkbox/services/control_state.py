"""Checked state of a form control, read from its control-properties part."""

from __future__ import annotations

from xlsx_checkbox.config import Settings, settings
from xlsx_checkbox.package import PartHandle
from xlsx_checkbox.services.xml_stream import find_attribute, local_name, stream_part

FORM_CONTROL_PR = "formcontrolpr"
CHECKED = "checked"


class ControlStateResolver:
    """Streams a ``ctrlProp`` part and reports whether the box is checked.

    A checked box looks like::

        <formControlPr objectType="CheckBox" checked="Checked" noThreeD="1"/>

    Only a ``checked`` attribute equal to ``"checked"`` (any case) counts;
    ``"Mixed"``, a missing attribute or a missing element are all unchecked.
    Nothing is cached.
    """

    def __init__(self, settings_override: Settings | None = None) -> None:
        self._settings = settings_override or settings

    def resolve(self, part: PartHandle) -> bool:
        with stream_part(part, huge_tree=self._settings.huge_tree) as events:
            for event, elem in events:
                if event == "start" and local_name(elem.tag) == FORM_CONTROL_PR:
                    value = find_attribute(elem, CHECKED)
                    return value is not None and value.lower() == CHECKED
        return False
