from espacos.guard import EXIT_MESSAGE, exit_guard_html, should_confirm_exit
from espacos.wizard import SpaceWizard


def test_guard_follows_dirty_flag(gateway):
    wiz = SpaceWizard(gateway)
    assert not should_confirm_exit(wiz)
    assert "removeEventListener" in exit_guard_html(wiz)

    wiz.form(0).on_field_change("name", "Museu")
    assert should_confirm_exit(wiz)
    html = exit_guard_html(wiz)
    assert 'addEventListener("beforeunload"' in html
    assert EXIT_MESSAGE in html

    wiz.form(0).on_field_change("name", "")
    assert not should_confirm_exit(wiz)


def test_guard_releases_after_submit(gateway, actor):
    wiz = SpaceWizard(gateway)
    wiz.form(0).on_field_change("name", "Museu")
    wiz.jump_to(wiz.step_count - 1)
    wiz.submit(actor)
    assert not should_confirm_exit(wiz)
    assert not should_confirm_exit(None)
