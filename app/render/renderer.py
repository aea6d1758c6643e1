from __future__ import annotations

from app.render.blocks import (
    BODY_SIZE,
    HEADER_SIZE,
    NAME_SIZE,
    Block,
    RenderedDocument,
    TextRun,
)
from app.schemas.resume import ResolvedResume, ResumeRecord, resolve_record

SPACING_TIGHT = 60
SPACING_ITEM = 120
SPACING_SECTION = 180
SPACING_SUMMARY_END = 240
SPACING_HEADER = 120

SPACING_NAME = 100
SPACING_CONTACT = 50
SPACING_EMAIL = 200
SPACING_COMPANY = 80
SPACING_TECHNICAL_SKILLS = 100

# Dates are pushed right with a literal run of spaces, not a tab stop.
DATES_PADDING = " " * 41

EXPERIENCE_HEADER = "EXPERIENCE"
# Kept as emitted historically; consumers match on this exact text.
EDUCATION_HEADER = "EDUCATON"
CERTIFICATIONS_HEADER = "CERTIFICATIONS"
ACHIEVEMENTS_HEADER = "KEY ACHIEVEMENTS"
SKILLS_HEADER = "SKILLS"
PERSONAL_HEADER = "PERSONAL DETAILS"


def _body(text: str, **kwargs) -> TextRun:
    return TextRun(text=text, size=BODY_SIZE, **kwargs)


def _header(label: str) -> Block:
    return Block(
        runs=(TextRun(text=label, bold=True, size=HEADER_SIZE),),
        space_before=SPACING_HEADER,
        space_after=SPACING_HEADER,
    )


def _bullet(text: str, space_after: int) -> Block:
    return Block(runs=(_body(text),), space_after=space_after, bulleted=True)


def _last_gap(index: int, total: int, *, regular: int, last: int) -> int:
    return last if index == total - 1 else regular


def _contact_blocks(resume: ResolvedResume) -> list[Block]:
    return [
        Block(
            runs=(TextRun(text=resume.name, bold=True, size=NAME_SIZE),),
            alignment="center",
            space_after=SPACING_NAME,
        ),
        Block(
            runs=(_body(f"{resume.location}|{resume.phone}"),),
            alignment="center",
            space_after=SPACING_CONTACT,
        ),
        Block(
            runs=(_body(resume.email, underline=True),),
            alignment="center",
            space_after=SPACING_EMAIL,
        ),
    ]


def _summary_blocks(resume: ResolvedResume) -> list[Block]:
    total = len(resume.summary)
    return [
        Block(
            runs=(_body(paragraph),),
            alignment="justified",
            space_after=_last_gap(index, total, regular=SPACING_ITEM, last=SPACING_SUMMARY_END),
        )
        for index, paragraph in enumerate(resume.summary)
    ]


def _experience_blocks(resume: ResolvedResume) -> list[Block]:
    blocks = [_header(EXPERIENCE_HEADER)]
    job_count = len(resume.experience)
    for job_index, job in enumerate(resume.experience):
        blocks.append(
            Block(
                runs=(_body(job.title, bold=True), _body(f"{DATES_PADDING}{job.dates}")),
                space_after=SPACING_TIGHT,
            )
        )
        blocks.append(Block(runs=(_body(job.company),), space_after=SPACING_COMPANY))

        # Only a job boundary widens the gap; the very last bullet stays tight.
        more_jobs_follow = job_index < job_count - 1
        last_resp = len(job.responsibilities) - 1
        for resp_index, responsibility in enumerate(job.responsibilities):
            widen = resp_index == last_resp and more_jobs_follow
            blocks.append(_bullet(responsibility, SPACING_ITEM if widen else SPACING_TIGHT))
    return blocks


def _education_blocks(resume: ResolvedResume) -> list[Block]:
    blocks = [_header(EDUCATION_HEADER)]
    total = len(resume.education)
    for index, entry in enumerate(resume.education):
        blocks.append(Block(runs=(_body(entry.degree, bold=True),), space_after=SPACING_TIGHT))
        blocks.append(
            Block(
                runs=(_body(f"{entry.institution} | {entry.year}"),),
                space_after=_last_gap(index, total, regular=SPACING_ITEM, last=SPACING_SECTION),
            )
        )
    return blocks


def _bulleted_section(label: str, items: tuple[str, ...]) -> list[Block]:
    if not items:
        return []
    total = len(items)
    return [_header(label)] + [
        _bullet(item, _last_gap(index, total, regular=SPACING_TIGHT, last=SPACING_SECTION))
        for index, item in enumerate(items)
    ]


def _skills_blocks(resume: ResolvedResume) -> list[Block]:
    return [
        _header(SKILLS_HEADER),
        Block(
            runs=(_body("Technical skills: ", bold=True), _body(resume.technical_skills)),
            alignment="justified",
            space_after=SPACING_TECHNICAL_SKILLS,
        ),
        Block(
            runs=(_body("Core competencies: ", bold=True), _body(resume.core_competencies)),
            alignment="justified",
            space_after=SPACING_SECTION,
        ),
    ]


def _personal_blocks(resume: ResolvedResume) -> list[Block]:
    blocks = [_header(PERSONAL_HEADER), _bullet(f"Nationality: {resume.nationality}", SPACING_TIGHT)]
    if resume.languages:
        blocks.append(_bullet(f"Languages: {resume.languages}", SPACING_TIGHT))
    if resume.visa_status:
        blocks.append(_bullet(f"Visa Status: {resume.visa_status}", SPACING_TIGHT))
    blocks.extend(_bullet(detail, SPACING_TIGHT) for detail in resume.other_personal)
    return blocks


def render_resolved(resume: ResolvedResume) -> RenderedDocument:
    blocks: list[Block] = []
    blocks.extend(_contact_blocks(resume))
    blocks.extend(_summary_blocks(resume))
    blocks.extend(_experience_blocks(resume))
    blocks.extend(_education_blocks(resume))
    blocks.extend(_bulleted_section(CERTIFICATIONS_HEADER, resume.certifications))
    blocks.extend(_bulleted_section(ACHIEVEMENTS_HEADER, resume.achievements))
    blocks.extend(_skills_blocks(resume))
    blocks.extend(_personal_blocks(resume))
    return RenderedDocument(blocks=tuple(blocks))


def render(record: ResumeRecord) -> RenderedDocument:
    """Lay out a structured resume as the fixed template's block sequence.

    Pure and deterministic: the same record always yields an equal document.
    The renderer never changes case or content; it only fills placeholders
    (via :func:`resolve_record`) and assigns styling and spacing.
    """
    return render_resolved(resolve_record(record))
