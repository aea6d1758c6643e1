from __future__ import annotations

import logging
from io import BytesIO

from docx import Document
from docx.enum.text import WD_ALIGN_PARAGRAPH
from docx.opc.constants import CONTENT_TYPE as CT
from docx.opc.constants import RELATIONSHIP_TYPE as RT
from docx.opc.packuri import PackURI
from docx.oxml import parse_xml
from docx.oxml.ns import nsdecls, qn
from docx.parts.numbering import NumberingPart
from docx.shared import Pt, Twips

from app.core.errors import RenderError
from app.render.blocks import Block, RenderedDocument

logger = logging.getLogger(__name__)

DOCX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"

BULLET_GLYPH = "•"
BULLET_LEFT_INDENT = 720
BULLET_HANGING_INDENT = 360

_ALIGNMENTS = {
    "left": WD_ALIGN_PARAGRAPH.LEFT,
    "center": WD_ALIGN_PARAGRAPH.CENTER,
    "justified": WD_ALIGN_PARAGRAPH.JUSTIFY,
}


def _numbering_element(document):
    try:
        return document.part.numbering_part.element
    except NotImplementedError:
        # Templates without numbering.xml; python-docx cannot create the part itself.
        part = NumberingPart(
            PackURI("/word/numbering.xml"),
            CT.WML_NUMBERING,
            parse_xml(f"<w:numbering {nsdecls('w')}/>"),
            document.part.package,
        )
        document.part.relate_to(part, RT.NUMBERING)
        return part.element


def _add_bullet_definition(document, reference: str) -> int:
    """Register the shared bullet list and return the ``numId`` paragraphs point at."""
    numbering = _numbering_element(document)
    existing_ids = [
        int(node.get(qn("w:abstractNumId")))
        for node in numbering.findall(qn("w:abstractNum"))
        if node.get(qn("w:abstractNumId"), "").isdigit()
    ]
    abstract_id = max(existing_ids, default=-1) + 1

    abstract = parse_xml(
        f'<w:abstractNum {nsdecls("w")} w:abstractNumId="{abstract_id}">'
        '<w:multiLevelType w:val="singleLevel"/>'
        f'<w:name w:val="{reference}"/>'
        '<w:lvl w:ilvl="0">'
        '<w:start w:val="1"/>'
        '<w:numFmt w:val="bullet"/>'
        f'<w:lvlText w:val="{BULLET_GLYPH}"/>'
        '<w:lvlJc w:val="left"/>'
        "<w:pPr>"
        f'<w:ind w:left="{BULLET_LEFT_INDENT}" w:hanging="{BULLET_HANGING_INDENT}"/>'
        "</w:pPr>"
        "</w:lvl>"
        "</w:abstractNum>"
    )
    # Schema order: every abstractNum precedes the first num.
    first_num = numbering.find(qn("w:num"))
    if first_num is not None:
        first_num.addprevious(abstract)
    else:
        numbering.append(abstract)

    num = numbering.add_num(abstract_id)
    return int(num.numId)


def _apply_bullet(paragraph, num_id: int) -> None:
    num_pr = paragraph._p.get_or_add_pPr().get_or_add_numPr()
    num_pr.get_or_add_ilvl().val = 0
    num_pr.get_or_add_numId().val = num_id


def _write_block(document, block: Block, bullet_num_id: int | None) -> None:
    paragraph = document.add_paragraph()
    if block.alignment is not None:
        paragraph.alignment = _ALIGNMENTS[block.alignment]
    fmt = paragraph.paragraph_format
    if block.space_before is not None:
        fmt.space_before = Twips(block.space_before)
    if block.space_after is not None:
        fmt.space_after = Twips(block.space_after)
    if block.bulleted and bullet_num_id is not None:
        _apply_bullet(paragraph, bullet_num_id)

    for text_run in block.runs:
        run = paragraph.add_run(text_run.text)
        run.font.size = Pt(text_run.size / 2)
        if text_run.bold:
            run.bold = True
        if text_run.underline:
            run.underline = True


def _build(doc: RenderedDocument):
    document = Document()
    for section in document.sections:
        section.top_margin = Twips(doc.page_margin)
        section.right_margin = Twips(doc.page_margin)
        section.bottom_margin = Twips(doc.page_margin)
        section.left_margin = Twips(doc.page_margin)

    bullet_num_id = None
    if any(block.bulleted for block in doc.blocks):
        bullet_num_id = _add_bullet_definition(document, doc.bullet_list_reference)

    for block in doc.blocks:
        _write_block(document, block, bullet_num_id)
    return document


def serialize(doc: RenderedDocument) -> bytes:
    try:
        document = _build(doc)
        buffer = BytesIO()
        document.save(buffer)
    except Exception as exc:
        logger.exception("docx_serialize_failed blocks=%s", len(doc.blocks))
        raise RenderError("Unable to generate the Word document.") from exc
    payload = buffer.getvalue()
    logger.info("docx_serialized blocks=%s bytes=%s", len(doc.blocks), len(payload))
    return payload
