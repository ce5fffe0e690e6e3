"""
Unit Tests — Type Annotation & Route Fixes
==========================================
Tests for type inference, annotation placement, navigator detection and
screen registration, plus the fix registry.
"""
import textwrap

import pytest

from quality_gate.core.constants import FIX_PATTERNS
from quality_gate.fixes.registry import FIX_HANDLERS, get_handler
from quality_gate.fixes.type_annotation import (
    apply_type_annotation_fix,
    generate_type_annotation_fix,
    infer_type,
    infer_type_from_name,
    infer_type_from_usage,
)
from quality_gate.fixes.unregistered_route import (
    CONF_FILE_ROUTER,
    CONF_NAVIGATOR_EDIT,
    apply_route_fix,
    generate_route_fix,
)
from quality_gate.models.diagnostic import TypeAnnotationError, UnregisteredRouteError
from quality_gate.models.fix import TypeAnnotationFix


def _write(root, rel, content):
    path = root / rel
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(textwrap.dedent(content))
    return path


# ===========================================================================
# 1. Type inference
# ===========================================================================
class TestTypeInference:

    @pytest.mark.parametrize("name,expected", [
        ("isVisible", "boolean"),
        ("hasError", "boolean"),
        ("itemCount", "number"),
        ("onPress", "() => void"),
        ("userName", "string"),
        ("imageUrl", "string"),
        ("createdAt", "Date"),
        ("items", "any[]"),
        ("children", "React.ReactNode"),
    ])
    def test_name_conventions(self, name, expected):
        assert infer_type_from_name(name)[0] == expected

    def test_no_convention(self):
        assert infer_type_from_name("data") is None

    def test_use_state_initial_value(self):
        content = "const [draft, setDraft] = useState('');"
        assert infer_type_from_usage("draft", content) == ("string", 0.95)

    def test_string_method_usage(self):
        assert infer_type_from_usage("value", "return value.trim();")[0] == "string"

    def test_array_method_usage(self):
        assert infer_type_from_usage("rows", "rows.map((r) => r.id)")[0] == "any[]"

    def test_more_confident_source_wins(self):
        # Usage says string (0.90), naming says string (0.85)
        assert infer_type("label", "label.toUpperCase()") == ("string", 0.90)


# ===========================================================================
# 2. Type annotation generator + applier
# ===========================================================================
LABEL_SOURCE = """\
export function formatLabel(label) {
  return label.toUpperCase();
}
"""


class TestTypeAnnotation:

    def _fix(self, name, type_name, line=1):
        return TypeAnnotationFix(file="src/a.ts", line=line, variable_name=name,
                                 inferred_type=type_name, confidence=0.9)

    def test_generate_and_apply_parameter(self, tmp_path):
        path = _write(tmp_path, "src/a.ts", LABEL_SOURCE)
        fix = generate_type_annotation_fix(
            TypeAnnotationError(file="src/a.ts", line=1, variable_name="label"), str(tmp_path),
        )
        assert fix.inferred_type == "string"
        result = apply_type_annotation_fix(fix, str(tmp_path))
        assert result.success and result.changed
        assert path.read_text().split("\n")[0] == "export function formatLabel(label: string) {"

    def test_generate_below_threshold(self, tmp_path):
        _write(tmp_path, "src/a.ts", "export function show(data) {\n  console.log(data);\n}\n")
        fix = generate_type_annotation_fix(
            TypeAnnotationError(file="src/a.ts", line=1, variable_name="data"), str(tmp_path),
        )
        assert fix is None

    def test_generate_needs_a_name(self, tmp_path):
        _write(tmp_path, "src/a.ts", LABEL_SOURCE)
        fix = generate_type_annotation_fix(
            TypeAnnotationError(file="src/a.ts", line=1), str(tmp_path),
        )
        assert fix is None

    def test_arrow_parameter(self, tmp_path):
        path = _write(tmp_path, "src/a.ts", "const names = users.map(user => user.name);\n")
        apply_type_annotation_fix(self._fix("user", "User"), str(tmp_path))
        assert path.read_text() == "const names = users.map((user: User) => user.name);\n"

    def test_variable_declaration(self, tmp_path):
        path = _write(tmp_path, "src/a.ts", "let total = 0;\n")
        apply_type_annotation_fix(self._fix("total", "number"), str(tmp_path))
        assert path.read_text() == "let total: number = 0;\n"

    def test_already_annotated(self, tmp_path):
        _write(tmp_path, "src/a.ts", "function f(label: string) {}\n")
        result = apply_type_annotation_fix(self._fix("label", "string"), str(tmp_path))
        assert result.success and not result.changed

    def test_falls_back_to_declaring_line(self, tmp_path):
        path = _write(tmp_path, "src/a.ts", LABEL_SOURCE)
        apply_type_annotation_fix(self._fix("label", "string", line=3), str(tmp_path))
        assert "formatLabel(label: string)" in path.read_text()

    def test_no_location(self, tmp_path):
        _write(tmp_path, "src/a.ts", "return label;\n")
        result = apply_type_annotation_fix(self._fix("label", "string"), str(tmp_path))
        assert not result.success
        assert result.error == "Could not find location to add annotation"

    def test_invalid_line(self, tmp_path):
        _write(tmp_path, "src/a.ts", LABEL_SOURCE)
        result = apply_type_annotation_fix(self._fix("label", "string", line=0), str(tmp_path))
        assert result.error == "Invalid line number"


# ===========================================================================
# 3. Unregistered route
# ===========================================================================
NAVIGATOR_SOURCE = """\
import { createNativeStackNavigator } from '@react-navigation/native-stack';
import HomeScreen from '../screens/HomeScreen';

const Stack = createNativeStackNavigator();

export default function AppNavigator() {
  return (
    <Stack.Navigator>
      <Stack.Screen name="Home" component={HomeScreen} />
    </Stack.Navigator>
  );
}
"""


class TestRouteFix:

    def _react_navigation_project(self, root):
        _write(root, "src/navigation/AppNavigator.tsx", NAVIGATOR_SOURCE)
        _write(root, "src/screens/HomeScreen.tsx", "export default function HomeScreen() { return null; }\n")
        _write(root, "src/screens/SettingsScreen.tsx",
               "export default function SettingsScreen() { return null; }\n")

    def _settings_error(self):
        return UnregisteredRouteError(
            file="src/screens/SettingsScreen.tsx",
            screen_name="Settings",
            screen_path="src/screens/SettingsScreen.tsx",
        )

    def test_react_navigation_registration(self, tmp_path):
        self._react_navigation_project(tmp_path)
        fix = generate_route_fix(self._settings_error(), str(tmp_path))
        assert fix.file == "src/navigation/AppNavigator.tsx"
        assert fix.confidence == CONF_NAVIGATOR_EDIT
        assert fix.import_statement == "import SettingsScreen from '../screens/SettingsScreen';"
        assert fix.describe() == "Registered screen 'Settings' in stack navigator"

        result = apply_route_fix(fix, str(tmp_path))
        assert result.success and result.changed
        text = (tmp_path / "src/navigation/AppNavigator.tsx").read_text()
        assert ('      <Stack.Screen name="Settings" component={SettingsScreen} />\n'
                "    </Stack.Navigator>") in text
        assert text.split("\n")[2] == fix.import_statement

        again = apply_route_fix(fix, str(tmp_path))
        assert again.success and not again.changed

    def test_missing_closing_tag(self, tmp_path):
        self._react_navigation_project(tmp_path)
        fix = generate_route_fix(self._settings_error(), str(tmp_path))
        (tmp_path / "src/navigation/AppNavigator.tsx").write_text("export default null;\n")
        result = apply_route_fix(fix, str(tmp_path))
        assert not result.success
        assert "No navigator closing tag" in result.error

    def test_missing_screen_file(self, tmp_path):
        _write(tmp_path, "src/navigation/AppNavigator.tsx", NAVIGATOR_SOURCE)
        assert generate_route_fix(self._settings_error(), str(tmp_path)) is None

    def test_file_based_router(self, tmp_path):
        _write(tmp_path, "app/_layout.tsx", "export default function Layout() { return null; }\n")
        path = _write(tmp_path, "app/settings.tsx", "export default function Settings() { return null; }\n")
        before = path.read_text()
        fix = generate_route_fix(
            UnregisteredRouteError(file="app/settings.tsx", screen_name="settings",
                                   screen_path="app/settings.tsx"),
            str(tmp_path),
        )
        assert fix.file == "app/_layout.tsx"
        assert fix.confidence == CONF_FILE_ROUTER
        assert fix.screen_element == ""
        result = apply_route_fix(fix, str(tmp_path))
        assert result.success and not result.changed
        assert path.read_text() == before

    def test_tabs_group_uses_tab_layout(self, tmp_path):
        _write(tmp_path, "app/_layout.tsx", "export default null;\n")
        _write(tmp_path, "app/(tabs)/_layout.tsx", "export default null;\n")
        _write(tmp_path, "app/(tabs)/profile.tsx", "export default null;\n")
        fix = generate_route_fix(
            UnregisteredRouteError(file="app/(tabs)/profile.tsx", screen_name="profile",
                                   screen_path="app/(tabs)/profile.tsx"),
            str(tmp_path),
        )
        assert fix.file == "app/(tabs)/_layout.tsx"
        assert fix.navigator_type == "tab"


# ===========================================================================
# 4. Registry
# ===========================================================================
class TestRegistry:

    def test_every_pattern_has_a_handler(self):
        assert set(FIX_HANDLERS) == set(FIX_PATTERNS)

    def test_unknown_pattern(self):
        assert get_handler("unknown") is None
