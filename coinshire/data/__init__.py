"""Seed data package."""

from coinshire.data.demo import demo_expenses

__all__ = ["demo_expenses"]
