"""
Unregistered Route Fix
======================
Generator + applier for "Screen 'X' is not registered" diagnostics.

Navigator choice:
    - a screen living under a ``(tabs)`` group → the tab navigator
    - anything else → the first stack navigator

File-based routers (Expo Router layouts under ``app/``) register routes by
file location, so the fix carries no code and applying it writes nothing
(confidence 0.95). React Navigation navigators get an import plus a
``<Stack.Screen ... />`` element (confidence 0.85, a heuristic edit).
"""
import logging
import os
import re
from typing import Optional

from quality_gate.executor.project_detector import NavigatorFile, detect_app_layout
from quality_gate.fixes.source_edit import EditRejected, edit_file, find_import_block_end
from quality_gate.models.diagnostic import UnregisteredRouteError
from quality_gate.models.fix import ApplyResult, RouteFix
from quality_gate.utils.path_utils import (
    SOURCE_EXTENSIONS,
    normalize_path,
    relative_import_path,
    resolve_in_project,
)

logger = logging.getLogger(__name__)

CONF_FILE_ROUTER = 0.95
CONF_NAVIGATOR_EDIT = 0.85

SCREEN_DIRS: list[str] = ["src/screens", "screens", "app", "src/app"]

_COMPONENT_PREFIX = {"stack": "Stack", "tab": "Tab", "drawer": "Drawer"}


def _find_screen_file(project_root: str, screen_name: str, hint: str) -> Optional[str]:
    """Absolute path of the screen component, or None when it does not exist."""
    if hint:
        hinted = resolve_in_project(project_root, hint)
        stem = os.path.splitext(os.path.basename(hinted))[0]
        if os.path.isfile(hinted) and stem in (screen_name, f"{screen_name}Screen"):
            return hinted
    base_names = [f"{screen_name}Screen", screen_name, screen_name.lower()]
    for rel_dir in SCREEN_DIRS:
        for base in base_names:
            for ext in SOURCE_EXTENSIONS:
                candidate = os.path.join(project_root, rel_dir, base + ext)
                if os.path.isfile(candidate):
                    return candidate
    return None


def _pick_navigator(navigators: list[NavigatorFile], screen_rel: str) -> Optional[NavigatorFile]:
    wanted = "tab" if "(tabs)" in screen_rel else "stack"
    for nav in navigators:
        if nav.navigator_type == wanted:
            return nav
    return navigators[0] if navigators else None


def generate_route_fix(parsed: UnregisteredRouteError, project_root: str) -> Optional[RouteFix]:
    """
    Propose the registration of ``parsed.screen_name``.

    Returns None when the screen file is missing or no navigator exists.
    """
    screen_file = _find_screen_file(project_root, parsed.screen_name, parsed.screen_path)
    if screen_file is None:
        return None
    screen_rel = normalize_path(os.path.relpath(screen_file, project_root))

    layout = detect_app_layout(project_root)
    navigator = _pick_navigator(layout.navigators, screen_rel)
    if navigator is None:
        return None

    if navigator.file_based:
        if not any(screen_rel.startswith(d + "/") for d in ("app", "src/app")):
            # Outside the route directory: registration cannot route it
            return None
        return RouteFix(
            file=navigator.path,
            screen_name=parsed.screen_name,
            screen_path=screen_rel,
            navigator_type=navigator.navigator_type,
            confidence=CONF_FILE_ROUTER,
        )

    nav_abs = resolve_in_project(project_root, navigator.path)
    component = f"{parsed.screen_name}Screen"
    prefix = _COMPONENT_PREFIX.get(navigator.navigator_type, "Stack")
    return RouteFix(
        file=navigator.path,
        screen_name=parsed.screen_name,
        screen_path=screen_rel,
        navigator_type=navigator.navigator_type,
        import_statement=f"import {component} from '{relative_import_path(nav_abs, screen_file)}';",
        screen_element=f'<{prefix}.Screen name="{parsed.screen_name}" component={{{component}}} />',
        confidence=CONF_NAVIGATOR_EDIT,
    )


def apply_route_fix(fix: RouteFix, project_root: str) -> ApplyResult:
    """
    Insert the import and the screen element before ``</X.Navigator>``.

    Already registered (``name="X"`` present) → no-op success.
    """
    if not fix.screen_element:
        return ApplyResult(success=True, changed=False)

    path = resolve_in_project(project_root, fix.file)
    prefix = _COMPONENT_PREFIX.get(fix.navigator_type, "Stack")
    closing = re.compile(rf"^(?P<indent>[ \t]*)</{prefix}\.Navigator>", re.MULTILINE)
    any_closing = re.compile(r"^(?P<indent>[ \t]*)</\w+\.Navigator>", re.MULTILINE)

    def transform(text: str) -> Optional[str]:
        if re.search(rf"""name=["']{re.escape(fix.screen_name)}["']""", text):
            return None
        m = closing.search(text) or any_closing.search(text)
        if m is None:
            raise EditRejected(f"No navigator closing tag found in {fix.file}")

        indent = m.group("indent") + "  "
        text = text[:m.start()] + indent + fix.screen_element + "\n" + text[m.start():]

        if fix.import_statement and fix.import_statement not in text:
            lines = text.split("\n")
            lines.insert(find_import_block_end(lines), fix.import_statement)
            text = "\n".join(lines)
        return text

    return edit_file(path, transform)
