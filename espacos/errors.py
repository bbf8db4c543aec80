"""
espacos.errors
──────────────
Exceptions shared by the wizard, the gateways and the Streamlit views.

• GatewayError        – any Supabase table / storage failure (message kept verbatim)
• AuthenticationError – no signed-in actor
• PermissionDenied    – actor signed in but not allowed to manage spaces
• WizardStateError    – operation not available in the current wizard state
• FormValidationError – blocking validation rejected the draft
• UploadInProgress    – a media upload is already running for the step
"""
from __future__ import annotations

from typing import Dict


class GatewayError(RuntimeError):
    """Opaque failure reported by the hosted backend."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class AuthenticationError(RuntimeError):
    pass


class PermissionDenied(RuntimeError):
    pass


class WizardStateError(RuntimeError):
    pass


class FormValidationError(ValueError):
    """Carries {step_index: {field: message}} for every invalid step."""

    def __init__(self, errors: Dict[int, Dict[str, str]]):
        steps = ", ".join(str(i + 1) for i in sorted(errors))
        super().__init__(f"invalid fields in step(s) {steps}")
        self.errors = errors


class UploadInProgress(RuntimeError):
    pass


__all__ = [
    "GatewayError",
    "AuthenticationError",
    "PermissionDenied",
    "WizardStateError",
    "FormValidationError",
    "UploadInProgress",
]
