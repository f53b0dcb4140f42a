"""Collaboration requests between accounts and researchers.

A request starts ``pending`` and is answered once by the addressed
researcher, becoming ``accepted`` or ``rejected``. The workflow keeps
local sent/received lists and applies status updates optimistically,
reconciling with the server's answer.
"""

from .workflow import CollaborationWorkflow  # noqa: F401
