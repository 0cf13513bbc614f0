"""Operation engines: root resources and relations."""

from __future__ import annotations

from .relation import RelationEngine
from .resource import ResourceEngine

__all__ = ["RelationEngine", "ResourceEngine"]
