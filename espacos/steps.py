"""
espacos.steps
=============
The fixed, ordered catalogue of registration steps.

Each `FormStep` owns a disjoint slice of the `spaces` columns.  Order
drives the progress bar and Previous / Next navigation only; it has no
effect on what gets persisted.
"""
from __future__ import annotations

import copy
from typing import Any, Dict, List, Mapping, Optional

from espacos.drafts import prune_blanks
from espacos.schema import FieldSpec, FormStep

# ── option catalogues ───────────────────────────────────────────────────
ACCESS_OPTIONS = [
    "Easy location",
    "Accessibility",
    "Prior scheduling",
    "Difficult location",
    "Online visit",
    "Interdisciplinary class",
    "Monitors",
]

THEME_OPTIONS = [
    "Scientific dissemination",
    "Local culture",
    "Sustainability",
    "Interactive technologies",
    "Environmental preservation",
]

DISCIPLINE_OPTIONS = ["Matemática", "Física", "Química"]

INCLUSION_OPTIONS = [
    "Architectural accessibility",
    "Partial accessibility",
    "Audio describer",
    "Audio description",
    "Libras interpreter",
    "Monitor who knows Libras",
    "Braille interpreter",
    "Hire professional",
    "No accessibility resources",
    "Staff make the visit accessible",
    "Staff do not make the visit accessible",
]


def _req(name: str, label: str, kind: str = "text", *extra: str) -> FieldSpec:
    return FieldSpec(name=name, label=label, kind=kind, required=True,
                     validators=["non_empty", *extra])


# ── the registry ────────────────────────────────────────────────────────
FORM_STEPS: List[FormStep] = [
    FormStep(key="about", title="About the Place", fields=[
        _req("name",        "Place Name"),
        _req("visit_date",  "Date of Visit", "date"),
        _req("address",     "Address"),
        _req("contact",     "Contact"),
        _req("email",       "Email", "email", "email"),
        _req("description", "Description", "textarea"),
        FieldSpec(name="media_urls", label="Photo", kind="media"),
        FieldSpec(name="rating", label="Rating", kind="rating", validators=["rating_range"]),
    ]),
    FormStep(key="characteristics", title="Characteristics", fields=[
        FieldSpec(name="access_tags", label="Access", kind="tags", options=ACCESS_OPTIONS),
        FieldSpec(name="theme_tags",  label="Themes", kind="tags", options=THEME_OPTIONS),
    ]),
    FormStep(key="interdisciplinarity", title="Interdisciplinarity", fields=[
        FieldSpec(name="disciplines", label="Disciplines", kind="tags",
                  options=DISCIPLINE_OPTIONS),
        FieldSpec(name="main_theme",   label="Main theme"),
        FieldSpec(name="other_themes", label="Other themes", kind="list"),
        FieldSpec(name="interdisciplinary_associations", label="Associations",
                  kind="records", item_key="response",
                  item_fields=["response", "disciplines"]),
        FieldSpec(name="additional_info", label="Additional information", kind="textarea"),
    ]),
    FormStep(key="inclusion", title="Inclusion & Accessibility", fields=[
        FieldSpec(name="inclusion_tags", label="Resources", kind="tags",
                  options=INCLUSION_OPTIONS),
        FieldSpec(name="additional_inclusion", label="Other resources", kind="list"),
    ]),
    FormStep(key="technologies", title="Technologies", fields=[
        FieldSpec(name="digital_technologies", label="Digital technologies", kind="list"),
        FieldSpec(name="didactic_strategies",  label="Didactic strategies",  kind="list"),
        FieldSpec(name="technology_relationships", label="Technology relationships",
                  kind="records", item_key="technologyName",
                  item_fields=["technologyName", "physics", "chemistry", "mathematics"]),
        FieldSpec(name="technology_developments", label="Technology developments", kind="list"),
    ]),
    FormStep(key="pedagogical", title="Pedagogical Information", fields=[
        FieldSpec(name="contents",      label="Contents",      kind="list"),
        FieldSpec(name="objectives",    label="Objectives",    kind="list"),
        FieldSpec(name="methodologies", label="Methodologies", kind="list"),
        FieldSpec(name="evaluations",   label="Evaluations",   kind="list"),
        FieldSpec(name="learning_objective",     label="Learning objective",     kind="textarea"),
        FieldSpec(name="general_methodology",    label="General methodology",    kind="textarea"),
        FieldSpec(name="society_relationship",   label="Relationship with society", kind="textarea"),
        FieldSpec(name="teacher_contribution",   label="Contribution to teaching", kind="textarea"),
        FieldSpec(name="recommended_references", label="Recommended references", kind="textarea"),
    ]),
]

STEP_COUNT = len(FORM_STEPS)


def step(step_index: int) -> FormStep:
    if not 0 <= step_index < STEP_COUNT:
        raise IndexError(f"no wizard step {step_index}")
    return FORM_STEPS[step_index]


def record_columns() -> List[str]:
    return [f.name for s in FORM_STEPS for f in s.fields]


def normalize(form_step: FormStep, values: Mapping[str, Any]) -> Dict[str, Any]:
    """Return the emitted shape of `values`: blank list entries pruned."""
    out: Dict[str, Any] = {}
    for fld in form_step.fields:
        val = values.get(fld.name, fld.zero())
        if fld.is_sequence:
            val = prune_blanks(val, fld.item_key)
        out[fld.name] = copy.deepcopy(val)
    return out


def initial_fragment(step_index: int,
                     existing_record: Optional[Mapping[str, Any]] = None) -> Dict[str, Any]:
    """
    Fragment a step starts from.

    Without a record every field gets its zero value.  With one, the
    step's columns are copied out of it (NULL / missing columns fall
    back to the zero value) and normalized like an emitted fragment.
    """
    form_step = step(step_index)
    values: Dict[str, Any] = {}
    for fld in form_step.fields:
        val = None if existing_record is None else existing_record.get(fld.name)
        values[fld.name] = fld.zero() if val is None else val
    return normalize(form_step, values)


__all__ = [
    "FORM_STEPS", "STEP_COUNT", "ACCESS_OPTIONS", "THEME_OPTIONS",
    "DISCIPLINE_OPTIONS", "INCLUSION_OPTIONS",
    "step", "record_columns", "normalize", "initial_fragment",
]
