"""irvcert core: assertion evaluation, pruning search, verification and trimming.

Everything here is pure computation on candidate indices and assertion values.
It has **no** dependency on typer, YAML, or file handling; malformed input and
exhausted budgets come back as result values, not exceptions.
"""
from __future__ import annotations
