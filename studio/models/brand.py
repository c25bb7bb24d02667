"""Brand documentation attached to a project.

Strategy, voice and guidelines are single documents per project (saving is an
upsert). Colours, fonts and assets are ordered collections.
"""

from __future__ import annotations

from sqlalchemy import JSON, Column, ForeignKey, Integer, Text

from ..db.session import Base


class BrandStrategy(Base):
    __tablename__ = "brand_strategies"

    id = Column(Integer, primary_key=True, index=True)
    project_id = Column(Integer, ForeignKey("projects.id"), nullable=False, unique=True)
    mission = Column(Text, nullable=True)
    vision = Column(Text, nullable=True)
    values = Column(JSON, nullable=False, default=list)
    purpose = Column(Text, nullable=True)
    what_we_do = Column(Text, nullable=True)
    differential = Column(Text, nullable=True)
    brand_story = Column(Text, nullable=True)
    manifesto = Column(Text, nullable=True)
    brand_promise = Column(Text, nullable=True)
    golden_why = Column(Text, nullable=True)
    golden_how = Column(Text, nullable=True)
    golden_what = Column(Text, nullable=True)
    archetypes = Column(JSON, nullable=False, default=list)
    target_audience = Column(JSON, nullable=False, default=dict)
    original_briefing = Column(Text, nullable=True)
    updated_at = Column(Text, nullable=False)


class BrandVoice(Base):
    __tablename__ = "brand_voices"

    id = Column(Integer, primary_key=True, index=True)
    project_id = Column(Integer, ForeignKey("projects.id"), nullable=False, unique=True)
    tone_formal = Column(Integer, nullable=False, default=50)
    tone_technical = Column(Integer, nullable=False, default=50)
    tone_playful = Column(Integer, nullable=False, default=50)
    tone_bold = Column(Integer, nullable=False, default=50)
    tone_personal = Column(Integer, nullable=False, default=50)
    vocabulary_do = Column(JSON, nullable=False, default=list)
    vocabulary_dont = Column(JSON, nullable=False, default=list)
    writing_style = Column(Text, nullable=True)
    grammar_rules = Column(Text, nullable=True)
    example_headline = Column(Text, nullable=True)
    example_body = Column(Text, nullable=True)
    example_cta = Column(Text, nullable=True)
    example_social = Column(Text, nullable=True)
    taglines = Column(JSON, nullable=False, default=list)
    updated_at = Column(Text, nullable=False)


class BrandGuideline(Base):
    """Usage rules grouped by tab; ``version`` goes up on every save."""

    __tablename__ = "brand_guidelines"

    id = Column(Integer, primary_key=True, index=True)
    project_id = Column(Integer, ForeignKey("projects.id"), nullable=False, unique=True)
    logo_usage = Column(Text, nullable=True)
    logo_minimum_size = Column(Text, nullable=True)
    logo_clear_space = Column(Text, nullable=True)
    logo_incorrect_usage = Column(Text, nullable=True)
    color_primary_usage = Column(Text, nullable=True)
    color_secondary_usage = Column(Text, nullable=True)
    color_backgrounds = Column(Text, nullable=True)
    color_combinations = Column(Text, nullable=True)
    typography_hierarchy = Column(Text, nullable=True)
    typography_sizes = Column(Text, nullable=True)
    typography_spacing = Column(Text, nullable=True)
    imagery_style = Column(Text, nullable=True)
    imagery_filters = Column(Text, nullable=True)
    imagery_subjects = Column(Text, nullable=True)
    application_digital = Column(Text, nullable=True)
    application_print = Column(Text, nullable=True)
    application_social = Column(Text, nullable=True)
    spacing_rules = Column(Text, nullable=True)
    grid_system = Column(Text, nullable=True)
    notes = Column(Text, nullable=True)
    version = Column(Integer, nullable=False, default=1)
    updated_at = Column(Text, nullable=False)


class BrandColor(Base):
    __tablename__ = "brand_colors"

    id = Column(Integer, primary_key=True, index=True)
    project_id = Column(Integer, ForeignKey("projects.id"), nullable=False, index=True)
    category = Column(Text, nullable=False, default="primary")
    name = Column(Text, nullable=False)
    hex_code = Column(Text, nullable=False)
    rgb = Column(Text, nullable=True)
    cmyk = Column(Text, nullable=True)
    usage_notes = Column(Text, nullable=True)
    sort_order = Column(Integer, nullable=False, default=0)
    created_at = Column(Text, nullable=False)


class BrandFont(Base):
    __tablename__ = "brand_fonts"

    id = Column(Integer, primary_key=True, index=True)
    project_id = Column(Integer, ForeignKey("projects.id"), nullable=False, index=True)
    role = Column(Text, nullable=False)
    family_name = Column(Text, nullable=False)
    font_url = Column(Text, nullable=True)
    weight = Column(Text, nullable=True)
    style = Column(Text, nullable=True)
    fallback_stack = Column(Text, nullable=True)
    sample_text = Column(Text, nullable=True)
    sort_order = Column(Integer, nullable=False, default=0)
    created_at = Column(Text, nullable=False)


class BrandAsset(Base):
    __tablename__ = "brand_assets"

    id = Column(Integer, primary_key=True, index=True)
    project_id = Column(Integer, ForeignKey("projects.id"), nullable=False, index=True)
    category = Column(Text, nullable=False, default="other")
    name = Column(Text, nullable=False)
    file_name = Column(Text, nullable=True)
    storage_filename = Column(Text, nullable=True)
    file_type = Column(Text, nullable=True)
    file_size = Column(Integer, nullable=True)
    tags = Column(JSON, nullable=False, default=list)
    created_at = Column(Text, nullable=False)


__all__ = [
    "BrandStrategy",
    "BrandVoice",
    "BrandGuideline",
    "BrandColor",
    "BrandFont",
    "BrandAsset",
]
