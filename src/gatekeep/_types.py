"""Shared type variables."""

from __future__ import annotations

from typing import TypeVar

T = TypeVar("T")
