"""Schemas for the brand documentation pages of a project."""

from __future__ import annotations

from typing import Annotated, Optional

from pydantic import BaseModel, Field, field_validator

from ..core.enums import ARCHETYPES, ASSET_CATEGORIES, COLOR_CATEGORIES, pattern_for


class TargetAudience(BaseModel):
    demographics: str = ""
    psychographics: str = ""
    pain_points: str = ""
    desires: str = ""


class BrandStrategyIn(BaseModel):
    mission: Optional[str] = None
    vision: Optional[str] = None
    values: list[str] = Field(default_factory=list)
    purpose: Optional[str] = None
    what_we_do: Optional[str] = None
    differential: Optional[str] = None
    brand_story: Optional[str] = None
    manifesto: Optional[str] = None
    brand_promise: Optional[str] = None
    golden_why: Optional[str] = None
    golden_how: Optional[str] = None
    golden_what: Optional[str] = None
    archetypes: list[str] = Field(default_factory=list)
    target_audience: TargetAudience = Field(default_factory=TargetAudience)
    original_briefing: Optional[str] = None

    @field_validator("archetypes")
    @classmethod
    def known_archetypes(cls, value: list[str]) -> list[str]:
        unknown = [item for item in value if item not in ARCHETYPES]
        if unknown:
            raise ValueError(f"unknown archetypes: {', '.join(unknown)}")
        # Keep first occurrence order, drop repeats.
        return list(dict.fromkeys(value))

    @field_validator("values")
    @classmethod
    def strip_values(cls, value: list[str]) -> list[str]:
        return [item.strip() for item in value if item and item.strip()]


class BrandStrategyOut(BrandStrategyIn):
    id: int
    project_id: int
    updated_at: str

    class Config:
        from_attributes = True


Tone = Annotated[int, Field(ge=0, le=100)]


class BrandVoiceIn(BaseModel):
    tone_formal: Tone = 50
    tone_technical: Tone = 50
    tone_playful: Tone = 50
    tone_bold: Tone = 50
    tone_personal: Tone = 50
    vocabulary_do: list[str] = Field(default_factory=list)
    vocabulary_dont: list[str] = Field(default_factory=list)
    writing_style: Optional[str] = None
    grammar_rules: Optional[str] = None
    example_headline: Optional[str] = None
    example_body: Optional[str] = None
    example_cta: Optional[str] = None
    example_social: Optional[str] = None
    taglines: list[str] = Field(default_factory=list)


class BrandVoiceOut(BrandVoiceIn):
    id: int
    project_id: int
    updated_at: str

    class Config:
        from_attributes = True


class BrandGuidelineIn(BaseModel):
    logo_usage: Optional[str] = None
    logo_minimum_size: Optional[str] = None
    logo_clear_space: Optional[str] = None
    logo_incorrect_usage: Optional[str] = None
    color_primary_usage: Optional[str] = None
    color_secondary_usage: Optional[str] = None
    color_backgrounds: Optional[str] = None
    color_combinations: Optional[str] = None
    typography_hierarchy: Optional[str] = None
    typography_sizes: Optional[str] = None
    typography_spacing: Optional[str] = None
    imagery_style: Optional[str] = None
    imagery_filters: Optional[str] = None
    imagery_subjects: Optional[str] = None
    application_digital: Optional[str] = None
    application_print: Optional[str] = None
    application_social: Optional[str] = None
    spacing_rules: Optional[str] = None
    grid_system: Optional[str] = None
    notes: Optional[str] = None


class BrandGuidelineOut(BrandGuidelineIn):
    id: int
    project_id: int
    version: int
    updated_at: str

    class Config:
        from_attributes = True


class BrandColorIn(BaseModel):
    category: str = Field(default="primary", pattern=pattern_for(COLOR_CATEGORIES))
    name: str
    hex_code: str
    usage_notes: Optional[str] = None


class BrandColorUpdate(BaseModel):
    name: Optional[str] = None
    hex_code: Optional[str] = None
    usage_notes: Optional[str] = None


class BrandColorOut(BrandColorIn):
    id: int
    project_id: int
    rgb: Optional[str] = None
    cmyk: Optional[str] = None
    sort_order: int

    class Config:
        from_attributes = True


class BrandFontIn(BaseModel):
    role: str
    family_name: str
    font_url: Optional[str] = None
    weight: Optional[str] = "400"
    style: Optional[str] = "normal"
    fallback_stack: Optional[str] = "sans-serif"
    sample_text: Optional[str] = None


class BrandFontUpdate(BaseModel):
    family_name: Optional[str] = None
    font_url: Optional[str] = None
    weight: Optional[str] = None
    style: Optional[str] = None
    fallback_stack: Optional[str] = None
    sample_text: Optional[str] = None


class BrandFontOut(BrandFontIn):
    id: int
    project_id: int
    sort_order: int

    class Config:
        from_attributes = True


class BrandAssetOut(BaseModel):
    id: int
    project_id: int
    category: str = Field(..., pattern=pattern_for(ASSET_CATEGORIES))
    name: str
    file_name: Optional[str] = None
    file_type: Optional[str] = None
    file_size: Optional[int] = None
    tags: list[str] = Field(default_factory=list)
    created_at: str
    url: Optional[str] = None

    class Config:
        from_attributes = True
