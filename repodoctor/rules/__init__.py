"""Rule definitions and the built-in rule modules."""

from .base import Rule, RuleModule, define_module, define_rule
from .registry import MODULES, all_rules, categories, get_rule

__all__ = [
    "MODULES",
    "Rule",
    "RuleModule",
    "all_rules",
    "categories",
    "define_module",
    "define_rule",
    "get_rule",
]
