"""
Exit guard
──────────
Asks the browser to confirm before the page is closed or reloaded while
the wizard holds unsaved changes.  Reads wizard state only.
"""
from __future__ import annotations

import json
from typing import Optional

EXIT_MESSAGE = (
    "You have unsaved changes. Are you sure you want to leave? "
    "The information you entered will be lost."
)

# Streamlit components run in an iframe; the handler goes on the parent page.
_INSTALL_JS = """
<script>
  const host = window.parent;
  if (host.__espacosGuard) {{ host.removeEventListener("beforeunload", host.__espacosGuard); }}
  host.__espacosGuard = function (event) {{
    event.preventDefault();
    event.returnValue = {message};
    return event.returnValue;
  }};
  host.addEventListener("beforeunload", host.__espacosGuard);
</script>
"""

_REMOVE_JS = """
<script>
  const host = window.parent;
  if (host.__espacosGuard) {
    host.removeEventListener("beforeunload", host.__espacosGuard);
    host.__espacosGuard = null;
  }
</script>
"""


def should_confirm_exit(wizard) -> bool:
    if wizard is None or wizard.done:
        return False
    return wizard.is_dirty()


def exit_guard_html(wizard, message: Optional[str] = None) -> str:
    if should_confirm_exit(wizard):
        return _INSTALL_JS.format(message=json.dumps(message or EXIT_MESSAGE))
    return _REMOVE_JS


def render_exit_guard(wizard) -> None:
    """Drop the guard script into the current Streamlit page."""
    import streamlit.components.v1 as components
    components.html(exit_guard_html(wizard), height=0)


__all__ = ["EXIT_MESSAGE", "should_confirm_exit", "exit_guard_html", "render_exit_guard"]
