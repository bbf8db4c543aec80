import pytest

from espacos.errors import AuthenticationError, GatewayError, UploadInProgress
from espacos.forms import MediaStepForm, StepForm, validate_fragment
from espacos.media import PreviewRegistry


def _collector():
    got = []
    return got, lambda i, frag: got.append((i, frag))


def test_change_emits_full_fragment():
    got, cb = _collector()
    form = StepForm(0, on_change=cb)
    assert form.on_field_change("name", "Museum A")
    assert got == [(0, {
        "name": "Museum A", "visit_date": "", "address": "", "contact": "",
        "email": "", "description": "", "media_urls": [], "rating": 0,
    })]


def test_same_value_is_not_reemitted():
    got, cb = _collector()
    form = StepForm(1, on_change=cb)
    form.toggle_tag("access_tags", "Monitors")
    # a fresh but equal list must not trigger another merge
    assert not form.on_field_change("access_tags", ["Monitors"])
    assert len(got) == 1


def test_blank_list_items_never_emitted():
    got, cb = _collector()
    form = StepForm(3, on_change=cb)
    assert not form.add_item("additional_inclusion")      # blank row only
    assert form.values["additional_inclusion"] == [""]
    form.update_item("additional_inclusion", 0, "Sign language tour")
    form.add_item("additional_inclusion")
    assert form.values["additional_inclusion"] == ["Sign language tour", ""]
    assert got[-1][1]["additional_inclusion"] == ["Sign language tour"]
    assert all("" not in frag["additional_inclusion"] for _, frag in got)


def test_records_pruned_by_item_key():
    got, cb = _collector()
    form = StepForm(4, on_change=cb)
    form.add_item("technology_relationships")
    assert form.fragment()["technology_relationships"] == []
    form.update_item_field("technology_relationships", 0, "physics", "optics")
    assert got == []
    form.update_item_field("technology_relationships", 0, "technologyName", "Laser")
    assert got[-1][1]["technology_relationships"] == [
        {"technologyName": "Laser", "physics": "optics", "chemistry": "", "mathematics": ""}
    ]


def test_remove_and_toggle():
    form = StepForm(2)
    form.on_field_change("other_themes", ["Energy", "Water"])
    form.remove_item("other_themes", 0)
    assert form.fragment()["other_themes"] == ["Water"]
    form.toggle_tag("disciplines", "Física")
    form.toggle_tag("disciplines", "Física")
    assert form.fragment()["disciplines"] == []


def test_change_is_local_to_step():
    a, b = StepForm(0), StepForm(5)
    a.on_field_change("name", "X")
    assert b.fragment()["contents"] == []


def test_unknown_field_rejected():
    with pytest.raises(KeyError):
        StepForm(0).on_field_change("nope", 1)
    with pytest.raises(TypeError):
        StepForm(0).add_item("name")


def test_validation_messages():
    form = StepForm(0)
    errs = form.errors()
    assert errs["name"] == "Place Name is required"
    assert "media_urls" not in errs and "rating" not in errs
    form.on_field_change("email", "not-an-email")
    assert form.errors()["email"] == "Invalid email address"
    form.on_field_change("email", "Contato@Museu.ORG.br")
    assert "email" not in form.errors()
    assert validate_fragment(0, {"rating": 7})["rating"].startswith("Rating")
    assert validate_fragment(1, {}) == {}


# ── media step ──────────────────────────────────────────────────────────
def test_upload_emits_url_only_after_success(storage, actor):
    got, cb = _collector()
    form = MediaStepForm(0, storage, on_change=cb)
    storage.fail_upload = "Payload too large"
    with pytest.raises(GatewayError, match="Payload too large"):
        form.upload("a.png", b"x", "image/png", actor)
    assert got == [] and form.media_urls == [] and not form.is_uploading

    storage.fail_upload = None
    url = form.upload("my photo.png", b"x", "image/png", actor)
    assert got[-1][1]["media_urls"] == [url]
    assert form.current_path.startswith("user-1/") and form.current_path.endswith("-my_photo.png")


def test_replacing_deletes_previous_best_effort(storage, actor):
    initial = {"media_urls": ["https://demo.supabase.co/storage/v1/object/public/spaces/user-1/old.png"]}
    form = MediaStepForm(0, storage, initial=initial)
    storage.fail_remove = "not found"
    form.upload("new.png", b"x", "image/png", actor)
    assert storage.calls[0] == ("remove", "user-1/old.png")
    assert storage.calls[1][0] == "upload"
    assert len(form.media_urls) == 1 and "old.png" not in form.media_urls[0]


def test_upload_requires_actor_and_single_flight(storage, actor):
    form = MediaStepForm(0, storage)
    with pytest.raises(AuthenticationError):
        form.upload("a.png", b"x", "image/png", None)
    assert storage.calls == []
    form.is_uploading = True
    with pytest.raises(UploadInProgress):
        form.upload("a.png", b"x", "image/png", actor)


def test_remove_media_clears_only_on_success(storage, actor):
    form = MediaStepForm(0, storage)
    form.upload("a.png", b"x", "image/png", actor)
    storage.fail_remove = "denied"
    with pytest.raises(GatewayError):
        form.remove_media()
    assert len(form.media_urls) == 1
    storage.fail_remove = None
    assert form.remove_media()
    assert form.media_urls == [] and form.current_path is None


def test_preview_replaced_by_upload_is_revoked(storage, actor):
    previews = PreviewRegistry()
    form = MediaStepForm(0, storage, previews=previews)
    blob = form.attach_preview(b"img", "image/png")
    assert blob.startswith("blob:") and blob in previews
    form.upload("a.png", b"img", "image/png", actor)
    assert blob not in previews
    assert not any(c[0] == "remove" for c in storage.calls)
