"""
espacos.schema
==============
Pydantic models that define the **only valid shape** for:

• FieldSpec / FormStep – one wizard step and its form fields
• Space                – one row in the `spaces` table
• Actor                – the signed-in user as the views see it

Adding a new column?  Put a sensible **default** here first so older rows
keep validating.
"""
from __future__ import annotations

from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

FieldKind = Literal[
    "text", "textarea", "date", "email", "rating", "tags", "list", "records", "media",
]


# ────────────────────────── helper: form field ──────────────────────────
class FieldSpec(BaseModel):
    model_config = ConfigDict(frozen=True)

    name:   str
    label:  str
    kind:   FieldKind = "text"
    required: bool = False
    validators: List[str] = Field(default_factory=list)
    options: List[str] = Field(default_factory=list)      # for tags
    item_key: Optional[str] = None                         # records: blank → pruned
    item_fields: List[str] = Field(default_factory=list)  # records: keys of one entry

    @property
    def is_sequence(self) -> bool:
        return self.kind in ("tags", "list", "records", "media")

    def zero(self) -> Any:
        """Empty value for this field (what a fresh form starts with)."""
        if self.is_sequence:
            return []
        if self.kind == "rating":
            return 0
        return ""


class FormStep(BaseModel):
    model_config = ConfigDict(frozen=True)

    key:    str
    title:  str
    fields: List[FieldSpec]

    @property
    def field_names(self) -> List[str]:
        return [f.name for f in self.fields]

    def field(self, name: str) -> FieldSpec:
        for f in self.fields:
            if f.name == name:
                return f
        raise KeyError(f"step '{self.key}' has no field '{name}'")


# ────────────────────────────── record parts ────────────────────────────
class InterdisciplinaryAssociation(BaseModel):
    response:    str = ""
    disciplines: List[str] = Field(default_factory=list)


class TechnologyRelationship(BaseModel):
    technologyName: str = ""
    physics:        str = ""
    chemistry:      str = ""
    mathematics:    str = ""


# ─────────────────────────────── space row ──────────────────────────────
class Space(BaseModel):
    id:          Optional[str] = None
    user_id:     Optional[str] = None
    created_at:  Optional[str] = None
    updated_at:  Optional[str] = None

    # about the place
    name:        str = ""
    visit_date:  str = ""
    address:     str = ""
    contact:     str = ""
    email:       str = ""
    description: str = ""
    media_urls:  List[str] = Field(default_factory=list)
    rating:      float = 0

    # characteristics
    access_tags: List[str] = Field(default_factory=list)
    theme_tags:  List[str] = Field(default_factory=list)

    # interdisciplinarity
    disciplines:  List[str] = Field(default_factory=list)
    main_theme:   str = ""
    other_themes: List[str] = Field(default_factory=list)
    interdisciplinary_associations: List[InterdisciplinaryAssociation] = Field(default_factory=list)
    additional_info: str = ""

    # inclusion & accessibility
    inclusion_tags:       List[str] = Field(default_factory=list)
    additional_inclusion: List[str] = Field(default_factory=list)

    # technologies
    digital_technologies:     List[str] = Field(default_factory=list)
    didactic_strategies:      List[str] = Field(default_factory=list)
    technology_relationships: List[TechnologyRelationship] = Field(default_factory=list)
    technology_developments:  List[str] = Field(default_factory=list)

    # pedagogical information
    contents:       List[str] = Field(default_factory=list)
    objectives:     List[str] = Field(default_factory=list)
    methodologies:  List[str] = Field(default_factory=list)
    evaluations:    List[str] = Field(default_factory=list)
    learning_objective:     str = ""
    general_methodology:    str = ""
    society_relationship:   str = ""
    teacher_contribution:   str = ""
    recommended_references: str = ""

    # tolerate extra columns (review_count, website, ...)
    model_config = ConfigDict(extra="allow")

    # NULL columns come back as None from PostgREST
    @field_validator("*", mode="before")
    @classmethod
    def _none_to_default(cls, v, info):
        if v is None:
            fld = cls.model_fields[info.field_name]
            if fld.default_factory is not None:
                return fld.default_factory()
            return fld.default
        return v


class Actor(BaseModel):
    id:    str
    email: Optional[str] = None
    role:  Optional[str] = None
    can_manage: bool = False


def to_record(data: Dict[str, Any]) -> Space:
    return Space.model_validate(data)


__all__ = [
    "FieldSpec", "FormStep", "Space", "Actor",
    "InterdisciplinaryAssociation", "TechnologyRelationship", "to_record",
]
