"""
bfstep: an interactive stepping interpreter for the 8-symbol byte-tape language.

Public API re-exports from kernel/.
"""
from .kernel import *  # noqa: F401, F403
from .kernel import __all__
