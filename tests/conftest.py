"""Shared test setup: import gcovview from this checkout's src/ tree."""

import sys
from pathlib import Path

_SRC = str(Path(__file__).resolve().parent.parent / "src")
if _SRC not in sys.path:
    sys.path.insert(0, _SRC)

# a gcovview imported before this point may come from site-packages
for _name in [m for m in sys.modules if m == "gcovview" or m.startswith("gcovview.")]:
    del sys.modules[_name]
