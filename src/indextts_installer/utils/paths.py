import sys
from pathlib import Path

PACKAGE_DIR = Path(__file__).resolve().parent.parent


def get_resources_dir() -> Path:
    """Directory holding bundled data files such as i18n.json.

    Inside a PyInstaller bundle the package tree is unpacked under
    ``sys._MEIPASS`` rather than next to this module.
    """
    bundle_root = getattr(sys, "_MEIPASS", None)
    if getattr(sys, "frozen", False) and bundle_root:
        return Path(bundle_root) / "indextts_installer" / "resources"
    return PACKAGE_DIR / "resources"
