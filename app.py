#!/usr/bin/env python3
from __future__ import annotations
import logging

import streamlit as st

from espacos.auth     import resolve_actor, sign_in, sign_out
from espacos.config   import get_settings
from espacos.errors   import (AuthenticationError, FormValidationError, GatewayError,
                              PermissionDenied, WizardStateError)
from espacos.guard    import render_exit_guard
from espacos.spaces   import delete_space, get_space, list_spaces, maps_url, rating_label, search_spaces
from espacos.steps    import FORM_STEPS
from espacos.supabase import default_gateways, make_client
from espacos.utils.fields import render_step, render_value
from espacos.wizard   import edit_wizard, new_wizard

SETTINGS = get_settings()

logging.basicConfig(level=SETTINGS.log_level,
                    format="%(asctime)s %(levelname)-8s %(message)s")
log = logging.getLogger("espacos.app")

st.set_page_config(page_title="🏛️ Espaços", layout="centered")

# ── session defaults ────────────────────────────────────────────────────
# the client holds the signed-in user, so it lives in the session, never the process
if "sb" not in st.session_state:
    st.session_state["sb"] = make_client(SETTINGS)
CLIENT = st.session_state["sb"]
GATEWAY, STORAGE = default_gateways(CLIENT, SETTINGS)

st.session_state.setdefault("view", "list")
st.session_state.setdefault("search", "")
if "actor" not in st.session_state:
    st.session_state["actor"] = resolve_actor(CLIENT)

# ── helpers ─────────────────────────────────────────────────────────────
def go(view: str, **extra):
    st.session_state.update(view=view, **extra)

def go_list():
    for k in ("wizard", "space_id", "pending_delete"):
        st.session_state.pop(k, None)
    go("list")

def start_registration():
    st.session_state["wizard"] = new_wizard(GATEWAY, STORAGE, SETTINGS.validation_mode)
    go("wizard")

def start_edit(space_id: str):
    wiz = edit_wizard(GATEWAY, space_id, STORAGE, SETTINGS.validation_mode)
    if wiz is None:
        st.error("Space not found"); return
    st.session_state["wizard"] = wiz
    go("edit", space_id=space_id)

def can_manage() -> bool:
    actor = st.session_state.get("actor")
    return bool(actor and actor.can_manage)

def confirm_delete(space_id: str):
    try:
        delete_space(GATEWAY, space_id, st.session_state.get("actor"))
    except (AuthenticationError, PermissionDenied) as e:
        st.error(str(e))
    except GatewayError as e:
        st.error(f"Error deleting space: {e.message}")
    else:
        go_list(); st.rerun()

def ask_delete(space_id: str, slot):
    # Delete only arms the confirmation rendered by render_delete_confirm
    if slot.button("Delete", key=f"del{space_id}"):
        st.session_state["pending_delete"] = space_id

def render_delete_confirm(space_id: str):
    if st.session_state.get("pending_delete") != space_id:
        return
    st.warning("Are you sure you want to delete this space?")
    d = st.columns(2)
    if d[0].button("Yes, delete", key=f"yes{space_id}"):
        st.session_state.pop("pending_delete", None)
        confirm_delete(space_id)
    if d[1].button("Cancel", key=f"no{space_id}"):
        st.session_state.pop("pending_delete", None); st.rerun()

# ── login view ──────────────────────────────────────────────────────────
def render_login():
    st.title("🏛️  Espaços")
    with st.form("login_form"):
        email    = st.text_input("Email")
        password = st.text_input("Password", type="password")
        if st.form_submit_button("Sign in"):
            try:
                st.session_state["actor"] = sign_in(CLIENT, email.strip(), password)
            except AuthenticationError as e:
                st.error(f"Sign-in failed: {e}")
            else:
                st.rerun()

# ── list view ───────────────────────────────────────────────────────────
def render_list():
    st.title("🏛️  Espaços")
    query = st.text_input("Search spaces", st.session_state["search"],
                          placeholder="name, description or address")
    st.session_state["search"] = query

    if can_manage():
        st.button("➕ Register new space", on_click=start_registration)

    try:
        spaces = search_spaces(list_spaces(GATEWAY), query)
    except GatewayError as e:
        log.error("listing spaces failed: %s", e.message)
        st.error(f"Could not load spaces: {e.message}"); return

    if not spaces:
        st.info(f'No spaces match "{query}". Try a different search term.'
                if query.strip() else "No spaces yet.")
        return

    for s in spaces:
        with st.container(border=True):
            c = st.columns([1, 2])
            if s.media_urls:
                c[0].image(s.media_urls[0], width="stretch")
            c[1].subheader(s.name)
            c[1].caption(f"⭐ {rating_label(s.rating)} · [{s.address}]({maps_url(s.address)})")
            c[1].write(s.description[:240])
            b = c[1].columns(3)
            b[0].button("Details", key=f"det{s.id}", on_click=go, args=("detail",),
                        kwargs={"space_id": s.id})
            if can_manage():
                b[1].button("Edit", key=f"edit{s.id}", on_click=start_edit, args=(s.id,))
                ask_delete(s.id, b[2])
            render_delete_confirm(s.id)

# ── detail view ─────────────────────────────────────────────────────────
def render_detail():
    st.button("← Back to list", on_click=go_list)
    try:
        space = get_space(GATEWAY, st.session_state["space_id"])
    except GatewayError as e:
        st.error(f"Error fetching space: {e.message}"); return
    if space is None:
        st.error("Space not found"); return

    st.title(space.name)
    st.caption(f"⭐ {rating_label(space.rating, 'Not rated')} · visited {space.visit_date or '—'}")
    if space.media_urls:
        st.image(space.media_urls[0])
    st.write(space.description)
    st.markdown(f"📍 [{space.address}]({maps_url(space.address)})  \n"
                f"📞 {space.contact}  \n✉️ {space.email}")

    data = space.model_dump()
    for step in FORM_STEPS[1:]:
        with st.expander(step.title):
            for fld in step.fields:
                st.markdown(f"**{fld.label}**")
                render_value(data.get(fld.name))

    if can_manage():
        c = st.columns(2)
        c[0].button("Edit", on_click=start_edit, args=(space.id,))
        ask_delete(space.id, c[1])
        render_delete_confirm(space.id)

# ── wizard view (register + edit) ───────────────────────────────────────
def _submit(wiz, save=False):
    try:
        # save() reopens the section the user was on when it fails
        send = wiz.save if save else wiz.submit
        ok, out = send(st.session_state.get("actor"))
    except AuthenticationError as e:
        st.error(f"Authentication error. Please log in again. ({e})"); return
    except PermissionDenied as e:
        st.error(str(e)); return
    except FormValidationError as e:
        for i, errs in sorted(e.errors.items()):
            st.error(f"{FORM_STEPS[i].title}: " + "; ".join(errs.values()))
        return
    except WizardStateError as e:
        st.warning(str(e)); return
    if not ok:
        st.error(f"An error occurred during submission. Please try again. {out}")
        return
    space_id = (out or {}).get("id")
    st.success("Space saved successfully!")
    st.session_state.pop("wizard", None)
    if space_id:
        go("detail", space_id=space_id)
    else:
        go("list")
    st.rerun()

def render_wizard():
    wiz = st.session_state.get("wizard")
    if wiz is None:
        go_list(); st.rerun(); return
    editing = wiz.mode == "edit"

    top = st.columns([1, 4, 2])
    top[0].button("🏠", on_click=go_list, help="Back to list")
    top[1].header("Edit Space" if editing else "Register New Space")
    top[2].caption(f"Step {wiz.current_step + 1} of {wiz.step_count}")

    titles = wiz.titles()
    if editing:
        # free tab-style navigation between sections
        picked = st.radio("Section", titles, index=wiz.current_step, horizontal=True)
        wiz.jump_to(titles.index(picked))
    else:
        st.progress((wiz.current_step + 1) / wiz.step_count,
                    text=" › ".join(t if i != wiz.current_step else f"**{t}**"
                                    for i, t in enumerate(titles)))

    st.subheader(titles[wiz.current_step])
    render_step(wiz.form(), prefix=f"wiz{id(wiz)}", actor=st.session_state.get("actor"))

    nav = st.columns(2)
    if nav[0].button("← Previous", disabled=wiz.current_step == 0 or editing):
        wiz.retreat(); st.rerun()
    if editing:
        if nav[1].button("Save changes", disabled=wiz.is_submitting or not wiz.is_dirty()):
            _submit(wiz, save=True)
    elif not wiz.is_last_step:
        if nav[1].button("Next →"):
            if not wiz.advance():
                st.warning("Fix the highlighted fields before continuing.")
            else:
                st.rerun()
    else:
        label = "Submitting..." if wiz.is_submitting else "Submit Registration"
        if nav[1].button(label, disabled=wiz.is_submitting):
            _submit(wiz)

    render_exit_guard(wiz)

# ── router ──────────────────────────────────────────────────────────────
if st.session_state["actor"] is None:
    render_login()
else:
    view = st.session_state["view"]
    if view in ("wizard", "edit"):
        render_wizard()
    elif view == "detail":
        render_detail()
    else:
        render_list()

    actor = st.session_state["actor"]
    c = st.columns([4, 1])
    c[0].caption(f"v1.0 · {actor.email or actor.id}")
    if c[1].button("Sign out"):
        try:
            sign_out(CLIENT)
        except GatewayError as e:
            log.warning("sign-out failed: %s", e.message)
        st.session_state.clear(); st.rerun()
