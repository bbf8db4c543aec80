# espacos/__init__.py
"""
Package marker + explicit export of the wizard pieces so views and tests
can `from espacos import SpaceWizard` without knowing the module layout.
"""
from espacos.steps import FORM_STEPS, initial_fragment  # noqa: F401
from espacos.wizard import SpaceWizard  # noqa: F401

__version__ = "1.0.0"
