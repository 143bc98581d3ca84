"""chatmpl Template package: parsed templates and their runtime objects.

Re-exports the public symbols so that ``from chatmpl.template import Template``
works.

"""

from chatmpl.template.core import Template
from chatmpl.template.loop_context import LoopContext
from chatmpl.template.namespace import Namespace
from chatmpl.template.undefined import UNDEFINED, Undefined

__all__ = [
    "UNDEFINED",
    "LoopContext",
    "Namespace",
    "Template",
    "Undefined",
]
