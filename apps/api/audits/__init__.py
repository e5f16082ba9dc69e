"""Audit and website domain objects."""

from .models import Audit, AuditBody, AuditListItem, AuditStatus, CategorySummary
from .website import Website, WebsiteBody
