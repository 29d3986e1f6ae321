from __future__ import annotations

import os
from collections.abc import Iterator
from pathlib import Path
from unittest.mock import patch

import pytest
from openpyxl import Workbook

from tests.fixtures import ControlSpec, SheetSpec, build_workbook
from xlsx_checkbox.config import Settings
from xlsx_checkbox.package import OoxmlPackage


@pytest.fixture
def default_settings() -> Settings:
    """Settings with defaults only, unaffected by the environment."""
    with patch.dict(os.environ, {}, clear=True):
        return Settings(_env_file=None)


@pytest.fixture
def form_workbook(tmp_path: Path) -> Path:
    """Two sheets: a checked "Yes" box on Sheet1, two boxes sharing a cell on Sheet2."""
    return build_workbook(
        tmp_path / "form.xlsx",
        [
            SheetSpec(
                "Sheet1",
                [
                    ControlSpec("Check Box 1", row=5, col=2, text="Yes", checked="checked"),
                    ControlSpec("Check Box 2", row=5, col=3, text="No"),
                    ControlSpec("Check Box 3", row=8, col=1, text="Maybe", checked="Mixed"),
                ],
            ),
            SheetSpec(
                "Sheet2",
                [
                    ControlSpec("Check Box 1", row=10, col=4, text="A"),
                    ControlSpec("Check Box 2", row=10, col=4, text="B", checked="Checked"),
                    ControlSpec("Check Box 3", row=2, col=7, text="C"),
                ],
            ),
        ],
    )


@pytest.fixture
def form_package(form_workbook: Path) -> Iterator[OoxmlPackage]:
    with OoxmlPackage(form_workbook) as package:
        yield package


@pytest.fixture
def plain_workbook(tmp_path: Path) -> Path:
    """A workbook written by openpyxl, without any form controls."""
    wb = Workbook()
    ws = wb.active
    ws.title = "Data"
    ws["A1"] = "Name"
    ws["B1"] = "Approved"
    wb.create_sheet("Summary")
    path = tmp_path / "plain.xlsx"
    wb.save(path)
    return path
