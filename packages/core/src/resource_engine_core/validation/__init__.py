"""Validation: pydantic-backed input validator."""

from __future__ import annotations

from .pydantic import PydanticInputValidator

__all__ = ["PydanticInputValidator"]
