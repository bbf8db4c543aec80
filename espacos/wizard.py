"""
Registration / edit wizard
──────────────────────────
  • SpaceWizard        – owns step navigation, the per-step fragments,
                         the pristine snapshot and submission
  • new_wizard / edit_wizard – mount helpers used by the Streamlit views

The merged draft is always recomputed from `fragments`; it is never
stored, so it cannot drift from what the steps reported.
"""
from __future__ import annotations

import copy
import logging
from typing import Any, Dict, List, Optional, Tuple

from espacos.auth import require_manager
from espacos.drafts import deep_equal, merge_fragments, overlay
from espacos.errors import FormValidationError, GatewayError, WizardStateError
from espacos.forms import MediaStepForm, StepForm, validate_fragment
from espacos.media import PreviewRegistry, is_transient
from espacos.schema import Actor
from espacos.steps import FORM_STEPS, STEP_COUNT, initial_fragment

logger = logging.getLogger(__name__)


class SpaceWizard:
    """
    Multi-step form aggregator.

    `gateway` is the table gateway (insert/update), `storage` the media
    bucket used by the photo step.  Passing `existing` (a `spaces` row with
    an `id`) mounts the wizard in edit mode; submit then updates that row.
    """

    def __init__(self, gateway, storage=None,
                 existing: Optional[Dict[str, Any]] = None,
                 validation_mode: str = "soft",
                 previews: Optional[PreviewRegistry] = None):
        if validation_mode not in ("soft", "blocking"):
            raise ValueError(f"unknown validation mode {validation_mode!r}")
        self.gateway = gateway
        self.storage = storage
        self.validation_mode = validation_mode
        self.previews = previews if previews is not None else PreviewRegistry()
        self.space_id: Optional[str] = (existing or {}).get("id")

        self.current_step = 0
        self.fragments: List[Dict[str, Any]] = [
            initial_fragment(i, existing) for i in range(STEP_COUNT)
        ]
        self._pristine = copy.deepcopy(self.draft())

        self.is_submitting = False
        self.done = False
        self.forms: List[StepForm] = [self._make_form(i) for i in range(STEP_COUNT)]

    def _make_form(self, i: int) -> StepForm:
        has_media = any(f.kind == "media" for f in FORM_STEPS[i].fields)
        if has_media and self.storage is not None:
            return MediaStepForm(i, self.storage, initial=self.fragments[i],
                                 on_change=self.receive_fragment,
                                 previews=self.previews)
        return StepForm(i, initial=self.fragments[i], on_change=self.receive_fragment)

    # ── introspection ────────────────────────────────────────────────
    @property
    def mode(self) -> str:
        return "edit" if self.space_id else "create"

    @property
    def step_count(self) -> int:
        return STEP_COUNT

    @property
    def is_last_step(self) -> bool:
        return self.current_step == STEP_COUNT - 1

    @property
    def pristine(self) -> Dict[str, Any]:
        return copy.deepcopy(self._pristine)

    def titles(self) -> List[str]:
        return [s.title for s in FORM_STEPS]

    def form(self, step_index: Optional[int] = None) -> StepForm:
        return self.forms[self.current_step if step_index is None else step_index]

    # ── navigation ───────────────────────────────────────────────────
    def advance(self) -> bool:
        if self.current_step >= STEP_COUNT - 1:
            return False
        if self.validation_mode == "blocking" and self.step_errors(self.current_step):
            return False
        self.current_step += 1
        return True

    def retreat(self) -> bool:
        if self.current_step <= 0:
            return False
        self.current_step -= 1
        return True

    def jump_to(self, step_index: int) -> int:
        """Tab-style navigation for edit mode; clamps out-of-range indexes."""
        self.current_step = max(0, min(STEP_COUNT - 1, int(step_index)))
        return self.current_step

    # ── fragments / draft ────────────────────────────────────────────
    def receive_fragment(self, step_index: int, fragment: Dict[str, Any]) -> None:
        if not 0 <= step_index < STEP_COUNT:
            raise IndexError(f"no wizard step {step_index}")
        self.fragments[step_index] = overlay(self.fragments[step_index], copy.deepcopy(fragment))

    def draft(self) -> Dict[str, Any]:
        return merge_fragments(self.fragments)

    def is_dirty(self) -> bool:
        return not deep_equal(self.draft(), self._pristine)

    # ── validation ───────────────────────────────────────────────────
    def step_errors(self, step_index: int) -> Dict[str, str]:
        return validate_fragment(step_index, self.fragments[step_index])

    def all_errors(self) -> Dict[int, Dict[str, str]]:
        out = {}
        for i in range(STEP_COUNT):
            errs = self.step_errors(i)
            if errs:
                out[i] = errs
        return out

    # ── submission ───────────────────────────────────────────────────
    def submit(self, actor: Optional[Actor]) -> Tuple[bool, Any]:
        """
        Persist the merged draft.

        Returns (True, saved_row) on success or (False, message) when the
        gateway rejected it; the message is the backend's, unchanged.
        Fragments stay as they are on failure so the user can retry.
        """
        if self.done:
            raise WizardStateError("this draft was already submitted")
        if not self.is_last_step:
            raise WizardStateError("submit is only available on the last step")
        if self.is_submitting:
            raise WizardStateError("a submission is already running")

        actor = require_manager(actor)

        if self.validation_mode == "blocking":
            errs = self.all_errors()
            if errs:
                raise FormValidationError(errs)

        record = self.draft()
        self.is_submitting = True
        try:
            if self.mode == "edit":
                saved = self.gateway.update(self.space_id, record)
            else:
                record["user_id"] = actor.id
                saved = self.gateway.insert(record)
        except GatewayError as exc:
            logger.error("saving space failed: %s", exc.message)
            return False, exc.message
        finally:
            self.is_submitting = False

        self._release_previews(record)
        self.done = True
        logger.info("space %s %s by %s", (saved or {}).get("id", "?"),
                    "updated" if self.mode == "edit" else "registered", actor.id)
        return True, saved

    def save(self, actor: Optional[Actor]) -> Tuple[bool, Any]:
        """
        Edit-mode save from whichever section is open.  Submits from the
        last step and puts the user back on their section unless it worked.
        """
        here = self.current_step
        self.jump_to(STEP_COUNT - 1)
        ok = False
        try:
            ok, out = self.submit(actor)
        finally:
            if not ok:
                self.current_step = here
        return ok, out

    def _release_previews(self, record: Dict[str, Any]) -> None:
        for url in record.get("media_urls") or []:
            if is_transient(url):
                self.previews.revoke(url)


def new_wizard(gateway, storage=None, validation_mode: str = "soft") -> SpaceWizard:
    return SpaceWizard(gateway, storage, validation_mode=validation_mode)


def edit_wizard(gateway, space_id: str, storage=None,
                validation_mode: str = "soft") -> Optional[SpaceWizard]:
    """Load `space_id` and mount the wizard on it; None when the row is gone."""
    row = gateway.select_by_id(space_id)
    if row is None:
        return None
    return SpaceWizard(gateway, storage, existing=row, validation_mode=validation_mode)


__all__ = ["SpaceWizard", "new_wizard", "edit_wizard"]
