# src/profile/models.py — v1
"""Profile data-fetch document schema and the tagged extraction result.

LinkedInProfileDocument mirrors the profile endpoint's JSON. Unknown
fields are ignored. A response that fails validation is reduced by the
lightweight extraction instead of being rejected, and the two outcomes
are kept apart by the ``kind`` tag of ProfileExtraction.
"""

from __future__ import annotations

from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field


class DateParts(BaseModel):
    day: int | None = None
    month: int | None = None
    year: int | None = None


class ExperienceDate(DateParts):
    year: int


class NamedItem(BaseModel):
    name: str


class ProfileExperience(BaseModel):
    company: str
    title: str
    description: str | None = None
    location: str | None = None
    starts_at: ExperienceDate | None = None
    ends_at: ExperienceDate | None = None
    company_linkedin_profile_url: str | None = None


class ProfileEducation(BaseModel):
    school: str
    degree_name: str | None = None
    field_of_study: str | None = None
    starts_at: DateParts | None = None
    ends_at: DateParts | None = None
    school_linkedin_profile_url: str | None = None


class ProfileCertification(BaseModel):
    name: str
    authority: str | None = None
    starts_at: DateParts | None = None
    ends_at: DateParts | None = None


class LinkedInProfileDocument(BaseModel):
    """Profile as returned by the data-fetch endpoint."""

    profile_id: str | None = None
    first_name: str | None = None
    last_name: str | None = None
    full_name: str | None = None
    headline: str | None = None
    location: str | None = None
    summary: str | None = None
    occupation: str | None = None
    image_url: str | None = None
    follower_count: int | None = None
    connection_count: int | None = None
    background_cover_image_url: str | None = None
    experiences: list[ProfileExperience] | None = None
    education: list[ProfileEducation] | None = None
    languages: list[Union[str, NamedItem]] | None = None
    skills: list[Union[str, NamedItem]] | None = None
    certifications: list[ProfileCertification] | None = None

    @property
    def skill_names(self) -> list[str]:
        names = [s if isinstance(s, str) else s.name for s in self.skills or []]
        return [n for n in names if n]

    @property
    def has_usable_data(self) -> bool:
        return bool(
            self.full_name or self.headline or self.summary or self.experiences
        )


# === EXTRACTION RESULT ===


class ValidatedProfile(BaseModel):
    """Document matched the schema as-is."""

    kind: Literal["validated"] = "validated"
    profile: LinkedInProfileDocument


class PartiallyExtracted(BaseModel):
    """Document failed validation; only the lightweight fields were kept."""

    kind: Literal["partial"] = "partial"
    profile: LinkedInProfileDocument
    warnings: list[str] = Field(default_factory=list)


ProfileExtraction = Annotated[
    Union[ValidatedProfile, PartiallyExtracted], Field(discriminator="kind")
]


class FetchedProfile(BaseModel):
    """Cache envelope for one fetched profile."""

    profile_url: str
    extraction: ProfileExtraction
