"""
Recovery strategies and the per-category strategy table.
"""
from .base import RecoveryStrategy, RetryPredicate
from .builtin import default_strategies
from .table import StrategyTable


__all__ = [
    'RecoveryStrategy',
    'RetryPredicate',
    'StrategyTable',
    'default_strategies'
]
