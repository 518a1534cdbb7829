"""
Conduit: series-parallel task graphs built in reverse-Polish style.

Graphs are immutable descriptions that can be serialized, shipped, parsed
and bound to a different set of task implementations before being folded
into a label-keyed accumulator.
"""

__version__ = "0.1.0"

from conduit.contracts import ConduitError, TaskOutcome
from conduit.core.canonical import parse
from conduit.core.conduit import Conduit, new_instance

__all__ = [
    "Conduit",
    "ConduitError",
    "TaskOutcome",
    "__version__",
    "new_instance",
    "parse",
]
