"""
Auto-import all variant modules to ensure registration side-effects run.

After importing this package, `registry.get_variant()` and `registry.list_pairs()`
know about every available (algorithm, mode) implementation.
"""
from __future__ import annotations

import importlib
import pkgutil

for _module in pkgutil.iter_modules(__path__, __name__ + "."):
    importlib.import_module(_module.name)
