"""
espacos.forms
=============
Per-step form controllers.

A `StepForm` holds the editable values of ONE wizard step (blank rows of
growable lists included, so the UI can show an empty input) and reports
the normalized fragment upward through `on_change(step_index, fragment)`.

Emission rules
--------------
• blank entries of list fields are pruned before anything is emitted
• a fragment is emitted only when it differs **by value** from the last
  one emitted; re-emitting the same content never reaches the wizard

`MediaStepForm` adds the photo upload of the "About the Place" step.
Its media reference changes only after storage confirms the upload.
"""
from __future__ import annotations

import copy
import logging
import re
from typing import Any, Callable, Dict, List, Optional, Tuple

from espacos.drafts import deep_equal, is_blank
from espacos.errors import AuthenticationError, GatewayError, UploadInProgress
from espacos.media import PreviewRegistry, is_transient, object_path, path_from_url
from espacos.schema import Actor, FieldSpec
from espacos.steps import initial_fragment, normalize, step

logger = logging.getLogger(__name__)

OnChange = Callable[[int, Dict[str, Any]], None]


# ----------------------------------------------------------------------
# 1. Validator registry
#    Each validator gets the field value and returns (bool, error_msg)
# ----------------------------------------------------------------------
_EMAIL_RE = re.compile(r"^[A-Z0-9._%+-]+@[A-Z0-9.-]+\.[A-Z]{2,}$", re.IGNORECASE)


def _non_empty(val: Any, fld: FieldSpec) -> Tuple[bool, str | None]:
    if isinstance(val, (list, tuple)):
        if val:
            return True, None
    elif not is_blank(val):
        return True, None
    return False, f"{fld.label} is required"


def _email(val: Any, fld: FieldSpec) -> Tuple[bool, str | None]:
    if is_blank(val) or _EMAIL_RE.match(str(val).strip()):
        return True, None
    return False, "Invalid email address"


def _rating_range(val: Any, fld: FieldSpec) -> Tuple[bool, str | None]:
    if isinstance(val, (int, float)) and not isinstance(val, bool) and 0 <= val <= 5:
        return True, None
    return False, "Rating must be between 0 and 5"


VALIDATORS: Dict[str, Callable[[Any, FieldSpec], Tuple[bool, str | None]]] = {
    "non_empty": _non_empty,
    "email": _email,
    "rating_range": _rating_range,
}


def validate_fragment(step_index: int, fragment: Dict[str, Any]) -> Dict[str, str]:
    """{field name: first error message} for every invalid field."""
    errors: Dict[str, str] = {}
    for fld in step(step_index).fields:
        val = fragment.get(fld.name, fld.zero())
        for vname in fld.validators:
            ok, err = VALIDATORS[vname](val, fld)
            if not ok:
                errors[fld.name] = err or "Invalid value"
                break  # stop at first error
    return errors


# ----------------------------------------------------------------------
# 2. Plain step controller
# ----------------------------------------------------------------------
class StepForm:
    def __init__(self, step_index: int,
                 initial: Optional[Dict[str, Any]] = None,
                 on_change: Optional[OnChange] = None):
        self.step_index = step_index
        self.step = step(step_index)
        start = initial if initial is not None else initial_fragment(step_index)
        self.values: Dict[str, Any] = {
            f.name: copy.deepcopy(start.get(f.name, f.zero())) for f in self.step.fields
        }
        self._on_change = on_change
        self._last_emitted = self.fragment()

    # ── emitted shape ─────────────────────────────────────────────────
    def fragment(self) -> Dict[str, Any]:
        return normalize(self.step, self.values)

    def _emit(self) -> bool:
        frag = self.fragment()
        if deep_equal(frag, self._last_emitted):
            return False
        self._last_emitted = copy.deepcopy(frag)
        if self._on_change is not None:
            self._on_change(self.step_index, frag)
        return True

    # ── edits ─────────────────────────────────────────────────────────
    def on_field_change(self, name: str, value: Any) -> bool:
        """Set one field; returns True when a new fragment was emitted."""
        self.step.field(name)
        self.values[name] = copy.deepcopy(value)
        return self._emit()

    def _sequence(self, name: str) -> Tuple[FieldSpec, List[Any]]:
        fld = self.step.field(name)
        if not fld.is_sequence:
            raise TypeError(f"field '{name}' is not a list field")
        return fld, list(self.values.get(name) or [])

    def add_item(self, name: str) -> bool:
        fld, items = self._sequence(name)
        if fld.kind == "records":
            items.append({k: ([] if k == "disciplines" else "") for k in fld.item_fields})
        else:
            items.append("")
        return self.on_field_change(name, items)

    def update_item(self, name: str, index: int, value: Any) -> bool:
        _, items = self._sequence(name)
        items[index] = value
        return self.on_field_change(name, items)

    def update_item_field(self, name: str, index: int, key: str, value: Any) -> bool:
        fld, items = self._sequence(name)
        if key not in fld.item_fields:
            raise KeyError(f"'{name}' entries have no '{key}'")
        entry = dict(items[index])
        entry[key] = value
        items[index] = entry
        return self.on_field_change(name, items)

    def remove_item(self, name: str, index: int) -> bool:
        _, items = self._sequence(name)
        del items[index]
        return self.on_field_change(name, items)

    def toggle_tag(self, name: str, tag: str) -> bool:
        _, items = self._sequence(name)
        if tag in items:
            items = [t for t in items if t != tag]
        else:
            items.append(tag)
        return self.on_field_change(name, items)

    # ── validation (soft; the wizard decides whether it blocks) ──────
    def errors(self) -> Dict[str, str]:
        return validate_fragment(self.step_index, self.fragment())

    @property
    def is_valid(self) -> bool:
        return not self.errors()


# ----------------------------------------------------------------------
# 3. Step with a photo upload
# ----------------------------------------------------------------------
class MediaStepForm(StepForm):
    """
    StepForm whose `media` field is backed by object storage.

    Exactly one object per space: a new upload first deletes the previous
    object (best effort, failure only logged) and the new public URL is
    emitted only after the upload succeeded.
    """

    def __init__(self, step_index: int, storage,
                 initial: Optional[Dict[str, Any]] = None,
                 on_change: Optional[OnChange] = None,
                 previews: Optional[PreviewRegistry] = None):
        super().__init__(step_index, initial, on_change)
        media = [f for f in self.step.fields if f.kind == "media"]
        if not media:
            raise ValueError(f"step '{self.step.key}' has no media field")
        self.media_field = media[0].name
        self.storage = storage
        self.previews = previews
        self.is_uploading = False
        urls = self.media_urls
        self.current_path: Optional[str] = (
            path_from_url(urls[0], storage.bucket) if urls and not is_transient(urls[0]) else None
        )

    @property
    def media_urls(self) -> List[str]:
        return list(self.values.get(self.media_field) or [])

    def _previous_path(self) -> Optional[str]:
        urls = self.media_urls
        if not urls or is_transient(urls[0]):
            return None
        return self.current_path or path_from_url(urls[0], self.storage.bucket)

    def _drop_previews(self) -> None:
        if self.previews is None:
            return
        for url in self.media_urls:
            if is_transient(url):
                self.previews.revoke(url)

    def upload(self, filename: str, data: bytes, content_type: str,
               actor: Optional[Actor]) -> str:
        if self.is_uploading:
            raise UploadInProgress("an upload is already running")
        if actor is None:
            raise AuthenticationError("Authentication error. Please log in again.")

        self.is_uploading = True
        try:
            old = self._previous_path()
            if old:
                try:
                    self.storage.remove(old)
                except GatewayError as exc:
                    logger.warning("could not remove previous image %s: %s", old, exc)
            path = object_path(actor.id, filename)
            url = self.storage.upload(path, data, content_type)
        finally:
            self.is_uploading = False

        self._drop_previews()
        self.current_path = path
        self.on_field_change(self.media_field, [url])
        logger.info("uploaded %s", path)
        return url

    def attach_preview(self, data: bytes, content_type: str) -> str:
        """
        Put a local `blob:` image in the media field without uploading it.

        Programmatic hook only: the Streamlit uploader goes through
        `upload()`, which never publishes a URL before the object exists.
        The preview is revoked once the wizard saves successfully.
        """
        if self.previews is None:
            raise RuntimeError("no preview registry attached")
        self._drop_previews()
        url = self.previews.create(data, content_type)
        self.current_path = None
        self.on_field_change(self.media_field, [url])
        return url

    def remove_media(self) -> bool:
        urls = self.media_urls
        if not urls:
            return False
        if is_transient(urls[0]):
            self._drop_previews()
        else:
            path = self._previous_path()
            if not path:
                raise GatewayError("Could not determine the file path to delete.")
            self.storage.remove(path)
        self.current_path = None
        return self.on_field_change(self.media_field, [])


__all__ = ["VALIDATORS", "validate_fragment", "StepForm", "MediaStepForm"]
