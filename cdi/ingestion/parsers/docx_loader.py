"""Word document reader that splits content on heading levels."""
from __future__ import annotations

import html
import re
import zipfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, List, Optional, Sequence

from docx import Document
from docx.opc.exceptions import PackageNotFoundError
from docx.table import Table
from docx.text.paragraph import Paragraph

_HEADING_STYLE = re.compile(r"^heading\s*(?P<level>[1-9])$", re.IGNORECASE)


class DocumentError(RuntimeError):
    """Raised when a word-processor document cannot be read."""


@dataclass(slots=True)
class Block:
    """A paragraph, list item, heading or table in document order."""

    kind: str
    text: str
    html: str
    level: Optional[int] = None

    @property
    def is_heading(self) -> bool:
        return self.kind == "heading"


@dataclass(slots=True)
class Section:
    """Content that follows a heading up to the next splitting heading."""

    level: int
    title: str
    blocks: List[Block] = field(default_factory=list)

    @property
    def html(self) -> str:
        return render_html(self.blocks)


@dataclass(slots=True)
class ParsedDocument:
    blocks: List[Block]
    metadata: dict

    def headings(self, levels: Iterable[int] = (1, 2, 3)) -> List[Block]:
        wanted = set(levels)
        return [block for block in self.blocks if block.is_heading and block.level in wanted]


def heading_level(style_name: str | None) -> Optional[int]:
    if not style_name:
        return None
    if style_name.strip().lower() == "title":
        return 1
    match = _HEADING_STYLE.match(style_name.strip())
    return int(match.group("level")) if match else None


def _runs_html(paragraph: Paragraph) -> str:
    parts: List[str] = []
    for run in paragraph.runs:
        if not run.text:
            continue
        text = html.escape(run.text, quote=False)
        if run.italic:
            text = f"<em>{text}</em>"
        if run.bold:
            text = f"<strong>{text}</strong>"
        parts.append(text)
    return "".join(parts)


def _paragraph_block(paragraph: Paragraph) -> Optional[Block]:
    text = paragraph.text.strip()
    if not text:
        return None
    style_name = paragraph.style.name if paragraph.style is not None else ""
    level = heading_level(style_name)
    if level is not None:
        return Block(kind="heading", text=text, html=html.escape(text, quote=False), level=level)
    inner = _runs_html(paragraph) or html.escape(text, quote=False)
    if style_name.lower().startswith("list"):
        return Block(kind="list_item", text=text, html=f"<li>{inner}</li>")
    return Block(kind="paragraph", text=text, html=f"<p>{inner}</p>")


def _table_block(table: Table) -> Optional[Block]:
    rows: List[str] = []
    texts: List[str] = []
    for row in table.rows:
        cells = [cell.text.strip() for cell in row.cells]
        texts.append(" | ".join(cells))
        rows.append(
            "<tr>" + "".join(f"<td>{html.escape(cell, quote=False)}</td>" for cell in cells) + "</tr>"
        )
    if not rows:
        return None
    return Block(kind="table", text="\n".join(texts), html="<table>" + "".join(rows) + "</table>")


def render_html(blocks: Sequence[Block]) -> str:
    """Render *blocks* to HTML, wrapping consecutive list items in ``<ul>``."""

    output: List[str] = []
    in_list = False
    for block in blocks:
        if block.kind == "list_item":
            if not in_list:
                output.append("<ul>")
                in_list = True
            output.append(block.html)
            continue
        if in_list:
            output.append("</ul>")
            in_list = False
        if block.is_heading:
            output.append(f"<h{block.level}>{block.html}</h{block.level}>")
        else:
            output.append(block.html)
    if in_list:
        output.append("</ul>")
    return "".join(output)


def split_sections(blocks: Sequence[Block], levels: Iterable[int]) -> List[Section]:
    """Group *blocks* under the nearest preceding heading whose level is in *levels*.

    Content before the first such heading is dropped; headings of other levels
    stay inside the section body.
    """

    wanted = set(levels)
    sections: List[Section] = []
    current: Optional[Section] = None
    for block in blocks:
        if block.is_heading and block.level in wanted:
            current = Section(level=block.level or 0, title=block.text)
            sections.append(current)
            continue
        if current is not None:
            current.blocks.append(block)
    return sections


def parse_docx(path: Path) -> ParsedDocument:
    """Read *path* into ordered :class:`Block` objects."""

    try:
        document = Document(str(path))
    except (PackageNotFoundError, zipfile.BadZipFile, KeyError, ValueError) as exc:
        raise DocumentError(f"Unable to read document {path}: {exc}") from exc
    blocks: List[Block] = []
    for item in document.iter_inner_content():
        block = _table_block(item) if isinstance(item, Table) else _paragraph_block(item)
        if block is not None:
            blocks.append(block)
    metadata = {
        "source": path.name,
        "blocks": len(blocks),
        "headings": sum(1 for block in blocks if block.is_heading),
    }
    return ParsedDocument(blocks=blocks, metadata=metadata)


__all__ = [
    "Block",
    "DocumentError",
    "ParsedDocument",
    "Section",
    "heading_level",
    "parse_docx",
    "render_html",
    "split_sections",
]
