from __future__ import annotations

import sys
from pathlib import Path

# Ensure `import lession...` and `import tests.fakes` work when running pytest from the repo root.
REPO_ROOT = Path(__file__).resolve().parent
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))
