"""Read-only access to the parts and relationships of an OOXML container.

The container is a zip archive. Parts are zip members addressed by their
member name (``xl/workbook.xml``); relationships live in the sibling
``_rels/<part>.rels`` member and are parsed with openpyxl's packaging helpers,
which also turn relative targets into member names.
"""

from __future__ import annotations

import os
import zipfile
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from pathlib import Path
from typing import IO
from xml.etree.ElementTree import ParseError

from lxml import etree
from openpyxl.packaging.manifest import Manifest
from openpyxl.packaging.relationship import (
    Relationship,
    RelationshipList,
    get_dependents,
    get_rels_path,
)
from openpyxl.xml.constants import ARC_CONTENT_TYPES, XLSM, XLSX, XLTM, XLTX

from xlsx_checkbox.config import Settings, settings
from xlsx_checkbox.utils.exceptions import (
    ErrorCode,
    MalformedDocumentError,
    PackageOpenError,
    PartNotFoundError,
)
from xlsx_checkbox.utils.logging import get_logger

logger = get_logger(__name__)

WORKBOOK_CONTENT_TYPES: tuple[str, ...] = (XLSX, XLSM, XLTX, XLTM)


@dataclass(frozen=True)
class PartHandle:
    """Reference to one part of an open package."""

    package: OoxmlPackage = field(repr=False, compare=False)
    name: str

    @contextmanager
    def open(self) -> Iterator[IO[bytes]]:
        """Open the part for reading; the stream is closed on exit."""
        with self.package.open_part(self.name) as stream:
            yield stream


class OoxmlPackage:
    """An OOXML zip container opened for reading.

    Not thread-safe: the zip handle and the relationship cache are shared
    by every stream opened from this package.
    """

    def __init__(
        self, path: str | Path, settings_override: Settings | None = None
    ) -> None:
        """Open the container and read its content-type manifest.

        Args:
            path: Path to the .xlsx/.xlsm file.
            settings_override: Settings to use instead of the global ones.

        Raises:
            PackageOpenError: If the file is missing, too large, not a zip
                archive or has no readable ``[Content_Types].xml``.
        """
        self._settings = settings_override or settings
        self.path = Path(path)
        self._relationships: dict[str, RelationshipList] = {}
        self._closed = False

        if not self.path.is_file():
            raise PackageOpenError(
                f"Package not found: {self.path}",
                package_path=str(self.path),
                error_code=ErrorCode.PACKAGE_NOT_FOUND,
            )

        size = os.path.getsize(self.path)
        if size > self._settings.max_package_size_bytes:
            raise PackageOpenError(
                f"Package size ({size} bytes) exceeds maximum allowed size "
                f"({self._settings.max_package_size_bytes} bytes)",
                package_path=str(self.path),
                error_code=ErrorCode.PACKAGE_TOO_LARGE,
            )

        try:
            self._archive = zipfile.ZipFile(self.path, "r")
        except (zipfile.BadZipFile, OSError) as exc:
            raise PackageOpenError(
                f"Not a valid OOXML package: {exc}", package_path=str(self.path)
            ) from exc

        try:
            self._manifest = self._read_manifest()
        except PackageOpenError:
            self._archive.close()
            raise

        logger.debug(
            "Opened package",
            path=str(self.path),
            parts=len(self._archive.namelist()),
        )

    def _read_manifest(self) -> Manifest:
        try:
            src = self._archive.read(ARC_CONTENT_TYPES)
        except KeyError as exc:
            raise PackageOpenError(
                f"Package has no {ARC_CONTENT_TYPES}", package_path=str(self.path)
            ) from exc
        except (zipfile.BadZipFile, OSError) as exc:
            raise PackageOpenError(
                f"Unreadable {ARC_CONTENT_TYPES}: {exc}", package_path=str(self.path)
            ) from exc

        try:
            return Manifest.from_tree(etree.fromstring(src))
        except (etree.XMLSyntaxError, TypeError, ValueError) as exc:
            raise PackageOpenError(
                f"Invalid {ARC_CONTENT_TYPES}: {exc}", package_path=str(self.path)
            ) from exc

    # ------------------------------------------------------------------ #
    # Lifecycle
    # ------------------------------------------------------------------ #

    @property
    def settings(self) -> Settings:
        """Settings this package was opened with."""
        return self._settings

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        """Release the underlying zip handle."""
        self._closed = True
        self._archive.close()
        self._relationships.clear()

    def __enter__(self) -> OoxmlPackage:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    def _require_open(self) -> None:
        if self._closed:
            raise PackageOpenError(
                f"Package is closed: {self.path}",
                package_path=str(self.path),
                error_code=ErrorCode.PACKAGE_CLOSED,
            )

    # ------------------------------------------------------------------ #
    # Parts
    # ------------------------------------------------------------------ #

    def has_part(self, name: str) -> bool:
        self._require_open()
        try:
            self._archive.getinfo(name)
        except KeyError:
            return False
        return True

    def get_part(self, name: str) -> PartHandle:
        """Get a handle to an existing part.

        Raises:
            PartNotFoundError: If no member of that name exists.
        """
        name = name.lstrip("/")
        if not self.has_part(name):
            raise PartNotFoundError(name, package_path=str(self.path))
        return PartHandle(self, name)

    @contextmanager
    def open_part(self, name: str) -> Iterator[IO[bytes]]:
        """Open a part as a binary stream scoped to the ``with`` block.

        Raises:
            PartNotFoundError: If no member of that name exists.
            PackageOpenError: If the package has been closed.
            MalformedDocumentError: If the member cannot be decompressed.
        """
        self._require_open()
        try:
            stream = self._archive.open(name.lstrip("/"), "r")
        except KeyError as exc:
            raise PartNotFoundError(name, package_path=str(self.path)) from exc
        except zipfile.BadZipFile as exc:
            raise MalformedDocumentError(
                f"Corrupt package member: {exc}", part_name=name
            ) from exc
        try:
            yield stream
        finally:
            stream.close()

    def get_parts_by_content_type(self, *content_types: str) -> list[PartHandle]:
        """List parts whose manifest override matches any of the content types."""
        wanted = set(content_types)
        return [
            PartHandle(self, override.PartName.lstrip("/"))
            for override in self._manifest.Override
            if override.ContentType in wanted
        ]

    def workbook_part(self) -> PartHandle:
        """Locate the workbook manifest part.

        Raises:
            PackageOpenError: If the package declares no workbook part.
        """
        for content_type in WORKBOOK_CONTENT_TYPES:
            parts = self.get_parts_by_content_type(content_type)
            if parts:
                return parts[0]

        # some producers register the workbook through a default entry only
        defaults = {default.ContentType for default in self._manifest.Default}
        if defaults & set(WORKBOOK_CONTENT_TYPES) and self.has_part("xl/workbook.xml"):
            return PartHandle(self, "xl/workbook.xml")

        raise PackageOpenError(
            "File contains no valid workbook part", package_path=str(self.path)
        )

    # ------------------------------------------------------------------ #
    # Relationships
    # ------------------------------------------------------------------ #

    def get_relationships(self, part: PartHandle) -> RelationshipList:
        """All relationships of a part, with targets resolved to member names."""
        cached = self._relationships.get(part.name)
        if cached is not None:
            return cached

        rels_path = get_rels_path(part.name)
        if not self.has_part(rels_path):
            rels = RelationshipList()
        else:
            try:
                rels = get_dependents(self._archive, rels_path)
            except (etree.XMLSyntaxError, ParseError) as exc:
                raise MalformedDocumentError(
                    f"Invalid relationships part: {exc}", part_name=rels_path
                ) from exc

        self._relationships[part.name] = rels
        return rels

    def get_relationship(self, part: PartHandle, rel_id: str) -> Relationship | None:
        """Find a relationship of ``part`` by its id."""
        for rel in self.get_relationships(part):
            if rel.Id == rel_id:
                return rel
        return None

    def get_relationships_by_type(
        self, part: PartHandle, *rel_types: str
    ) -> list[Relationship]:
        """Relationships of ``part`` with any of the given types, in order."""
        wanted = set(rel_types)
        return [rel for rel in self.get_relationships(part) if rel.Type in wanted]

    def get_related_part(self, part: PartHandle, rel: Relationship) -> PartHandle:
        """Follow a relationship to the part it targets.

        Raises:
            PartNotFoundError: If the target is external or missing.
        """
        if rel.TargetMode == "External":
            raise PartNotFoundError(
                rel.Target,
                message=f"Relationship {rel.Id} of {part.name} targets an external resource",
                package_path=str(self.path),
            )
        return self.get_part(rel.Target)
