"""
espacos/utils/fields.py
Step renderer for Streamlit.

Usage
-----
from espacos.utils.fields import render_step
ok = render_step(wizard.form(), prefix="wiz", actor=actor)

Every widget reads its value from the step controller and writes changes
back through `StepForm.on_field_change`, so the wizard sees exactly what
the controller emits.
"""

from __future__ import annotations

import datetime as dt
from typing import Any, Callable, Dict, Optional

import streamlit as st

from espacos.errors import AuthenticationError, GatewayError, UploadInProgress
from espacos.forms import MediaStepForm, StepForm
from espacos.schema import Actor, FieldSpec
from espacos.steps import DISCIPLINE_OPTIONS


# ---------- widget helpers --------------------------------------------------
def _text(form: StepForm, fld: FieldSpec, key: str, **_):
    cur = form.values.get(fld.name) or ""
    val = st.text_input(_label(fld), value=cur, key=key)
    if val != cur:
        form.on_field_change(fld.name, val)


def _textarea(form: StepForm, fld: FieldSpec, key: str, **_):
    cur = form.values.get(fld.name) or ""
    val = st.text_area(_label(fld), value=cur, key=key)
    if val != cur:
        form.on_field_change(fld.name, val)


def _date(form: StepForm, fld: FieldSpec, key: str, **_):
    cur = form.values.get(fld.name) or ""
    try:
        start = dt.date.fromisoformat(cur[:10]) if cur else None
    except ValueError:
        start = None
    val = st.date_input(_label(fld), value=start, key=key)
    iso = val.isoformat() if isinstance(val, dt.date) else ""
    if iso != cur:
        form.on_field_change(fld.name, iso)


def _rating(form: StepForm, fld: FieldSpec, key: str, **_):
    cur = int(form.values.get(fld.name) or 0)
    val = st.slider(fld.label, 0, 5, value=cur, key=key)
    if val != cur:
        form.on_field_change(fld.name, val)


def _tags(form: StepForm, fld: FieldSpec, key: str, **_):
    cur = list(form.values.get(fld.name) or [])
    val = st.multiselect(fld.label, fld.options,
                         default=[t for t in cur if t in fld.options], key=key)
    if val != cur:
        form.on_field_change(fld.name, val)


def _forget_rows(key: str, start: int) -> None:
    # row widgets are keyed by position: after a removal, rows from `start`
    # on must be rebuilt from the controller, not from stale widget state
    head = f"{key}_"
    stale = [k for k in st.session_state.keys()
             if isinstance(k, str) and k.startswith(head)]
    for k in stale:
        row = k[len(head):].split("_", 1)[0]
        if row.isdigit() and int(row) >= start:
            del st.session_state[k]


def _list(form: StepForm, fld: FieldSpec, key: str, **_):
    st.markdown(f"**{fld.label}**")
    if not form.values.get(fld.name):
        form.add_item(fld.name)     # always show one input row
    items = list(form.values.get(fld.name) or [])
    for i, item in enumerate(items):
        c = st.columns([8, 1])
        val = c[0].text_input(f"{fld.label} {i + 1}", value=item, key=f"{key}_{i}",
                              label_visibility="collapsed")
        if val != item:
            form.update_item(fld.name, i, val)
        if c[1].button("❌", key=f"{key}_del{i}"):
            form.remove_item(fld.name, i)
            _forget_rows(key, i)
            st.rerun()
    if st.button(f"Add {fld.label.lower()}", key=f"{key}_add"):
        form.add_item(fld.name)
        st.rerun()


def _records(form: StepForm, fld: FieldSpec, key: str, **_):
    st.markdown(f"**{fld.label}**")
    entries = list(form.values.get(fld.name) or [])
    if not entries:
        form.add_item(fld.name)
        entries = list(form.values.get(fld.name) or [])
    for i, entry in enumerate(entries):
        cols = st.columns(len(fld.item_fields) + 1)
        for c, sub in zip(cols, fld.item_fields):
            cur = entry.get(sub, [] if sub == "disciplines" else "")
            if sub == "disciplines":
                val = c.multiselect(sub, DISCIPLINE_OPTIONS,
                                    default=[d for d in cur if d in DISCIPLINE_OPTIONS],
                                    key=f"{key}_{i}_{sub}")
            else:
                val = c.text_input(sub, value=cur, key=f"{key}_{i}_{sub}")
            if val != cur:
                form.update_item_field(fld.name, i, sub, val)
        if cols[-1].button("❌", key=f"{key}_del{i}"):
            form.remove_item(fld.name, i)
            _forget_rows(key, i)
            st.rerun()
    if st.button(f"Add {fld.label.lower()}", key=f"{key}_add"):
        form.add_item(fld.name)
        st.rerun()


def _media(form: StepForm, fld: FieldSpec, key: str, actor: Optional[Actor] = None, **_):
    st.markdown(f"**{fld.label}**")
    urls = list(form.values.get(fld.name) or [])
    if not isinstance(form, MediaStepForm):
        st.caption("Uploads are unavailable (no storage configured).")
        return

    if urls:
        preview = form.previews.get(urls[0]) if form.previews is not None else None
        st.image(preview[0] if preview else urls[0], width=320)
        if st.button("Remove image", key=f"{key}_rm", disabled=form.is_uploading):
            try:
                form.remove_media()
            except GatewayError as exc:
                st.error(f"Could not delete image from storage: {exc.message}")
            else:
                st.rerun()

    upl = st.file_uploader("Upload image", type=["png", "jpg", "jpeg", "webp"],
                           key=f"{key}_file", disabled=form.is_uploading)
    # the uploader keeps its file across reruns; upload each file once
    token = f"{key}_done"
    if upl is not None and st.session_state.get(token) != upl.file_id:
        try:
            with st.spinner("Uploading…"):
                form.upload(upl.name, upl.getvalue(), upl.type or "application/octet-stream", actor)
        except (AuthenticationError, UploadInProgress) as exc:
            st.error(str(exc))
        except GatewayError as exc:
            st.error(f"Upload failed: {exc.message}")
        else:
            st.session_state[token] = upl.file_id
            st.rerun()


_WIDGETS: Dict[str, Callable[..., None]] = {
    "text":     _text,
    "email":    _text,
    "textarea": _textarea,
    "date":     _date,
    "rating":   _rating,
    "tags":     _tags,
    "list":     _list,
    "records":  _records,
    "media":    _media,
}


def _label(fld: FieldSpec) -> str:
    return f"{fld.label} *" if fld.required else fld.label


# ---------- main render function -------------------------------------------
def render_step(form: StepForm, prefix: str = "wiz", actor: Optional[Actor] = None) -> bool:
    """
    Draw every field of the step and its inline errors.
    Returns True iff the step currently passes its validators.
    """
    errors = form.errors()
    for fld in form.step.fields:
        widget_fn = _WIDGETS.get(fld.kind)
        if widget_fn is None:
            st.warning(f"Unsupported widget: {fld.kind}")
            continue
        widget_fn(form, fld, f"{prefix}_{form.step.key}_{fld.name}", actor=actor)
        if fld.name in errors:
            st.caption(f":red[{errors[fld.name]}]")
    return not errors


def render_value(value: Any) -> None:
    """Read-only rendering used by the detail view."""
    if isinstance(value, list):
        if not value:
            st.caption("—")
        for item in value:
            if isinstance(item, dict):
                st.markdown("- " + " · ".join(
                    f"{k}: {', '.join(v) if isinstance(v, list) else v}" for k, v in item.items() if v))
            else:
                st.markdown(f"- {item}")
    elif value in ("", None):
        st.caption("—")
    else:
        st.write(value)
