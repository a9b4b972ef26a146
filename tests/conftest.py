"""Keep tests away from the user's real config and data directories."""

import os
import tempfile
from pathlib import Path

_test_root = Path(tempfile.mkdtemp(prefix="indextts-installer-tests-"))
os.environ["INDEXTTS_INSTALLER_CONFIG_PATH"] = str(_test_root / "config.yaml")
os.environ["INDEXTTS_INSTALLER_DATA_DIR"] = str(_test_root / "data")
os.environ["INDEXTTS_INSTALLER_UI_PREFERRED_LANGUAGE"] = "en"
