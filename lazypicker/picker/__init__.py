"""Picker state, query editing, and the action-driven state machine."""

from .machine import PickerMachine, SystemOps
from .query import QueryController
from .state import PickerState

__all__ = ["PickerMachine", "PickerState", "QueryController", "SystemOps"]
