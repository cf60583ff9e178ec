"""
Material export to an .xlsx workbook.

One row per segment in display order; the category ancestry is flattened into
one column per hierarchy level. The sheet reads right-to-left.
"""
import io
import logging
import re
from dataclasses import dataclass

from openpyxl import Workbook
from openpyxl.cell.cell import ILLEGAL_CHARACTERS_RE
from openpyxl.styles import Alignment, Font
from openpyxl.utils import get_column_letter
from sqlalchemy.orm import Session

from dashboard.config import settings
from dashboard.models.category import MAX_CATEGORY_DEPTH
from dashboard.services.ancestry import SegmentAncestry, resolve_segments_from_db
from dashboard.services.materials import get_material
from dashboard.services.segment_order import SORT_ORDER, ordered_segments

logger = logging.getLogger(__name__)

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

ROW_NUMBER_HEADER = "معرف السجل"
CONTENT_HEADER = "نص الفقرة"
PAGE_HEADER = "رقم الصفحة"
LEVEL_HEADERS = [f"التصنيف {level}" for level in range(1, MAX_CATEGORY_DEPTH + 1)]
EXPORT_HEADERS = [ROW_NUMBER_HEADER, CONTENT_HEADER, PAGE_HEADER, *LEVEL_HEADERS]

DEFAULT_COLUMN_WIDTH = 20
CONTENT_COLUMN_WIDTH = 80
_CELL_ALIGNMENT = Alignment(wrap_text=True, vertical="top", horizontal="right")

# Anything but ASCII letters/digits and the Arabic block
_UNSAFE_FILENAME_CHARS = re.compile(r"[^A-Za-z0-9\u0600-\u06FF]")


@dataclass
class ExportArtifact:
    filename: str
    content: bytes
    media_type: str = XLSX_MEDIA_TYPE


def safe_filename(title: str, extension: str = "xlsx") -> str:
    return f"{_UNSAFE_FILENAME_CHARS.sub('_', title)}.{extension}"


def _cell_value(value):
    # Text is never a formula, and control characters are not valid sheet XML
    if isinstance(value, str):
        return ILLEGAL_CHARACTERS_RE.sub("", value)
    return value


def export_rows(resolved: list[SegmentAncestry]) -> list[list]:
    """Data rows: 1-based row number, content, page, then one cell per level."""
    return [
        [position, item.segment.content, item.segment.page_number, *item.category_path]
        for position, item in enumerate(resolved, start=1)
    ]


def render_workbook(rows: list[list], sheet_name: str = None) -> bytes:
    workbook = Workbook()
    sheet = workbook.active
    sheet.title = sheet_name or settings.EXPORT_SHEET_NAME
    sheet.sheet_view.rightToLeft = True

    sheet.append(EXPORT_HEADERS)
    for row in rows:
        sheet.append([_cell_value(value) for value in row])
        for cell in sheet[sheet.max_row]:
            if isinstance(cell.value, str):
                cell.data_type = "s"

    header_font = Font(bold=True)
    for row_cells in sheet.iter_rows():
        for cell in row_cells:
            cell.alignment = _CELL_ALIGNMENT
            if cell.row == 1:
                cell.font = header_font

    for column in range(1, len(EXPORT_HEADERS) + 1):
        sheet.column_dimensions[get_column_letter(column)].width = DEFAULT_COLUMN_WIDTH
    sheet.column_dimensions[get_column_letter(EXPORT_HEADERS.index(CONTENT_HEADER) + 1)].width = CONTENT_COLUMN_WIDTH

    output = io.BytesIO()
    workbook.save(output)
    return output.getvalue()


def export_material(db: Session, material_id: int) -> ExportArtifact:
    material = get_material(db, material_id)
    segments = ordered_segments(db, material_id, SORT_ORDER)
    rows = export_rows(resolve_segments_from_db(db, segments))
    artifact = ExportArtifact(
        filename=safe_filename(material.title),
        content=render_workbook(rows),
    )
    logger.info("Exported material %s (%d rows) as %s", material_id, len(rows), artifact.filename)
    return artifact
