"""Routers package."""

from . import (
    health,
    audits,
    websites,
)
