"""Models package."""

from .lighthouse_audit import LighthouseAudit
