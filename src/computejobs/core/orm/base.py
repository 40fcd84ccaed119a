"""Declarative base for the computejobs tables.

Column types are spelled out in :mod:`.tables`; the annotation map only
makes every ``datetime`` column timezone-aware by default.
"""

from __future__ import annotations

import datetime

from sqlalchemy import DateTime
from sqlalchemy.orm import DeclarativeBase


class ComputeBase(DeclarativeBase):
    type_annotation_map = {
        datetime.datetime: DateTime(timezone=True),
    }
