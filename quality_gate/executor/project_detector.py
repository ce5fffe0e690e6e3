"""
Project Detector
================
Detects how a generated Expo / React Native project is laid out from
marker files: which entry layout it uses, where its file-based route
directory lives, and which navigator files register screens.

Detection is deterministic: same tree always yields the same layout.
No tool is executed. Pure file-existence checks only.
"""
import os
from dataclasses import dataclass, field
from typing import Optional


# ---------------------------------------------------------------------------
# Signal files (ordered by priority)
# ---------------------------------------------------------------------------
# Order matters: first match wins.
ENTRY_FILES: list[str] = [
    "src/app/_layout.tsx",
    "app/_layout.tsx",
    "App.tsx",
    "src/App.tsx",
]

APP_CONFIG_FILES: list[str] = [
    "app.json",
    "app.config.js",
    "app.config.ts",
]

# File-based route roots for Expo Router
ROUTE_DIRS: list[str] = ["app", "src/app"]

# Navigator files → navigator type
NAVIGATION_FILES: list[tuple[str, str]] = [
    ("app/_layout.tsx",                 "stack"),
    ("app/(tabs)/_layout.tsx",          "tab"),
    ("src/app/_layout.tsx",             "stack"),
    ("src/app/(tabs)/_layout.tsx",      "tab"),
    ("src/navigation/index.tsx",        "stack"),
    ("src/navigation/AppNavigator.tsx", "stack"),
    ("src/navigation/TabNavigator.tsx", "tab"),
]


@dataclass
class NavigatorFile:
    """
    A navigator definition found in the project.

    Attributes
    ----------
    path : str
        Project-relative path (forward slashes).
    navigator_type : str
        "stack", "tab" or "drawer".
    file_based : bool
        True for Expo Router layouts, where routes are implied by files.
    """
    path: str
    navigator_type: str
    file_based: bool


@dataclass
class AppLayout:
    """Layout facts for one project root."""
    entry_file: Optional[str] = None
    app_config: Optional[str] = None
    route_dir: Optional[str] = None
    navigators: list[NavigatorFile] = field(default_factory=list)

    @property
    def uses_file_router(self) -> bool:
        return self.route_dir is not None


def _first_existing(project_path: str, candidates: list[str]) -> Optional[str]:
    for rel in candidates:
        if os.path.isfile(os.path.join(project_path, rel)):
            return rel
    return None


def detect_app_layout(project_path: str) -> AppLayout:
    """
    Scan the project root for layout signal files.

    Parameters
    ----------
    project_path : str
        Absolute path to the generated project root.

    Returns
    -------
    AppLayout
        Empty layout (all None / []) when the directory does not exist.
    """
    layout = AppLayout()
    if not os.path.isdir(project_path):
        return layout

    layout.entry_file = _first_existing(project_path, ENTRY_FILES)
    layout.app_config = _first_existing(project_path, APP_CONFIG_FILES)

    for rel in ROUTE_DIRS:
        if os.path.isdir(os.path.join(project_path, rel)):
            layout.route_dir = rel
            break

    for rel, navigator_type in NAVIGATION_FILES:
        if os.path.isfile(os.path.join(project_path, rel)):
            file_based = any(rel.startswith(d + "/") for d in ROUTE_DIRS)
            layout.navigators.append(NavigatorFile(rel, navigator_type, file_based))

    return layout
