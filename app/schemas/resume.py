from __future__ import annotations

from dataclasses import dataclass
from typing import Annotated, Any

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field

_RECORD_CONFIG = ConfigDict(
    frozen=True,
    extra="ignore",
    populate_by_name=True,
    coerce_numbers_to_str=True,
)


def _absent_if_false(value: Any) -> Any:
    return None if value is False else value


def _loose_text(value: Any) -> Any:
    """Accept what a model tends to put in a text slot: booleans and short lists."""
    if isinstance(value, bool):
        return "true" if value else None
    if isinstance(value, list):
        return ",".join("" if item is None else str(item) for item in value)
    return value


Text = Annotated[str | None, BeforeValidator(_loose_text)]
TextList = Annotated[list[str] | None, BeforeValidator(_absent_if_false)]


class ExperienceEntry(BaseModel):
    model_config = _RECORD_CONFIG

    title: Text = None
    dates: Text = None
    company: Text = None
    responsibilities: TextList = None


class EducationEntry(BaseModel):
    model_config = _RECORD_CONFIG

    degree: Text = None
    institution: Text = None
    year: Text = None


class Skills(BaseModel):
    model_config = _RECORD_CONFIG

    technical: Text = None
    core: Text = None


class PersonalDetails(BaseModel):
    model_config = _RECORD_CONFIG

    nationality: Text = None
    languages: Text = None
    visa_status: Text = Field(default=None, alias="visaStatus")
    other: TextList = None


class ResumeRecord(BaseModel):
    """Structured resume as returned by the language model.

    Every field is optional; placeholders are applied by :func:`resolve_record`,
    never here, so the record mirrors exactly what the model produced.
    """

    model_config = _RECORD_CONFIG

    name: Text = None
    location: Text = None
    phone: Text = None
    email: Text = None
    summary: TextList = None
    experience: Annotated[list[ExperienceEntry] | None, BeforeValidator(_absent_if_false)] = None
    education: Annotated[list[EducationEntry] | None, BeforeValidator(_absent_if_false)] = None
    certifications: TextList = None
    achievements: TextList = None
    skills: Annotated[Skills | None, BeforeValidator(_absent_if_false)] = None
    personal: Annotated[PersonalDetails | None, BeforeValidator(_absent_if_false)] = None


DEFAULT_NAME = "NAME"
DEFAULT_LOCATION = "Location"
DEFAULT_PHONE = "Phone"
DEFAULT_EMAIL = "email@example.com"
DEFAULT_JOB_TITLE = "Job Title"
DEFAULT_JOB_DATES = "Dates"
DEFAULT_COMPANY = "Company Name"
DEFAULT_DEGREE = "Degree"
DEFAULT_INSTITUTION = "Institution"
DEFAULT_YEAR = "Year"
DEFAULT_TECHNICAL_SKILLS = "Skills to be added"
DEFAULT_CORE_COMPETENCIES = "Competencies to be added"
DEFAULT_NATIONALITY = "To be added"


@dataclass(frozen=True)
class ResolvedJob:
    title: str
    dates: str
    company: str
    responsibilities: tuple[str, ...]


@dataclass(frozen=True)
class ResolvedEducation:
    degree: str
    institution: str
    year: str


@dataclass(frozen=True)
class ResolvedResume:
    name: str
    location: str
    phone: str
    email: str
    summary: tuple[str, ...]
    experience: tuple[ResolvedJob, ...]
    education: tuple[ResolvedEducation, ...]
    certifications: tuple[str, ...]
    achievements: tuple[str, ...]
    technical_skills: str
    core_competencies: str
    nationality: str
    languages: str | None
    visa_status: str | None
    other_personal: tuple[str, ...]


def _text(value: str | None, default: str) -> str:
    return value if value else default


def _optional_text(value: str | None) -> str | None:
    return value if value else None


def _items(values: list | None) -> tuple:
    return tuple(values or ())


def resolve_record(record: ResumeRecord) -> ResolvedResume:
    """Apply every documented placeholder so rendering never sees a missing value.

    Empty strings count as absent, and absent collections become empty tuples.
    """
    skills = record.skills or Skills()
    personal = record.personal or PersonalDetails()

    experience = tuple(
        ResolvedJob(
            title=_text(job.title, DEFAULT_JOB_TITLE),
            dates=_text(job.dates, DEFAULT_JOB_DATES),
            company=_text(job.company, DEFAULT_COMPANY),
            responsibilities=_items(job.responsibilities),
        )
        for job in _items(record.experience)
    )
    education = tuple(
        ResolvedEducation(
            degree=_text(entry.degree, DEFAULT_DEGREE),
            institution=_text(entry.institution, DEFAULT_INSTITUTION),
            year=_text(entry.year, DEFAULT_YEAR),
        )
        for entry in _items(record.education)
    )

    return ResolvedResume(
        name=_text(record.name, DEFAULT_NAME),
        location=_text(record.location, DEFAULT_LOCATION),
        phone=_text(record.phone, DEFAULT_PHONE),
        email=_text(record.email, DEFAULT_EMAIL),
        summary=_items(record.summary),
        experience=experience,
        education=education,
        certifications=_items(record.certifications),
        achievements=_items(record.achievements),
        technical_skills=_text(skills.technical, DEFAULT_TECHNICAL_SKILLS),
        core_competencies=_text(skills.core, DEFAULT_CORE_COMPETENCIES),
        nationality=_text(personal.nationality, DEFAULT_NATIONALITY),
        languages=_optional_text(personal.languages),
        visa_status=_optional_text(personal.visa_status),
        other_personal=_items(personal.other),
    )
