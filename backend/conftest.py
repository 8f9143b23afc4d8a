"""Point the app at a throwaway database and export directory before config loads."""

import os
import sys
import tempfile

_TMP = tempfile.mkdtemp(prefix="building-tests-")
os.environ.setdefault("DATABASE_URL", f"sqlite+aiosqlite:///{os.path.join(_TMP, 'test.db')}")
os.environ.setdefault("EXPORT_DIR", os.path.join(_TMP, "exports"))
os.environ.setdefault("STATIC_DIR", os.path.join(_TMP, "no-frontend"))

sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))
