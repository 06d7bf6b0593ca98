"""Action variants, trigger normalization, and the binding table."""

from .actions import Action, ActionCategory, ActionKind, parse_action, parse_actions
from .bindings import BindingTable, default_bindings
from .triggers import Trigger, parse_trigger

__all__ = [
    "Action",
    "ActionCategory",
    "ActionKind",
    "BindingTable",
    "Trigger",
    "default_bindings",
    "parse_action",
    "parse_actions",
    "parse_trigger",
]
