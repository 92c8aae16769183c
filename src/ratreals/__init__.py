"""
Exact real numbers as oracles over rational intervals.

This module reexports the content of `core` and `stdlib` and is meant
to be imported as `rr`.
"""

# ruff: noqa

from ratreals.core import *
from ratreals.stdlib import *
