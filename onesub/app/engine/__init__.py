"""Rules engine orchestration."""

from .service import Operation, RulesEngine

__all__ = ["Operation", "RulesEngine"]
