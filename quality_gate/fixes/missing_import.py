"""
Missing Import Fix
==================
Generator + applier for "Cannot find name 'X'" style diagnostics.

Resolution order:
    1. Curated framework table (React, React Native, Expo, navigation,
       TanStack Query), confidence 0.99.
    2. Project export scan via SymbolIndex, confidence 0.85.
    3. Otherwise no fix.

Applier:
    - Idempotent: an existing binding of the symbol from the module is a
      no-op success.
    - A named symbol joins an existing single-line named import of the
      same module; otherwise a new line goes after the last import.
"""
import logging
from typing import Optional

from quality_gate.fixes.source_edit import (
    edit_file,
    find_import_block_end,
    iter_import_statements,
    parse_import_statement,
    NamedSpecifier,
)
from quality_gate.models.diagnostic import MissingImportError
from quality_gate.models.fix import ApplyResult, ImportFix
from quality_gate.services.symbol_index import SymbolIndex
from quality_gate.utils.path_utils import relative_import_path, resolve_in_project

logger = logging.getLogger(__name__)

CONF_FRAMEWORK = 0.99
CONF_PROJECT_SCAN = 0.85

# symbol → (module, is_default)
COMMON_IMPORTS: dict[str, tuple[str, bool]] = {
    # React
    "React":              ("react", True),
    "useState":           ("react", False),
    "useEffect":          ("react", False),
    "useCallback":        ("react", False),
    "useMemo":            ("react", False),
    "useRef":             ("react", False),
    "useContext":         ("react", False),
    "useReducer":         ("react", False),
    "Fragment":           ("react", False),
    # React Native
    "View":               ("react-native", False),
    "Text":               ("react-native", False),
    "TouchableOpacity":   ("react-native", False),
    "ScrollView":         ("react-native", False),
    "FlatList":           ("react-native", False),
    "SectionList":        ("react-native", False),
    "Image":              ("react-native", False),
    "TextInput":          ("react-native", False),
    "StyleSheet":         ("react-native", False),
    "ActivityIndicator":  ("react-native", False),
    "SafeAreaView":       ("react-native", False),
    "Pressable":          ("react-native", False),
    "Modal":              ("react-native", False),
    "Alert":              ("react-native", False),
    "Platform":           ("react-native", False),
    "Dimensions":         ("react-native", False),
    "KeyboardAvoidingView": ("react-native", False),
    "Switch":             ("react-native", False),
    # Expo
    "StatusBar":          ("expo-status-bar", False),
    "LinearGradient":     ("expo-linear-gradient", False),
    "Ionicons":           ("@expo/vector-icons", False),
    # Navigation
    "useNavigation":      ("@react-navigation/native", False),
    "useRoute":           ("@react-navigation/native", False),
    "NavigationContainer": ("@react-navigation/native", False),
    "useLocalSearchParams": ("expo-router", False),
    "useRouter":          ("expo-router", False),
    "Link":               ("expo-router", False),
    "Stack":              ("expo-router", False),
    "Tabs":               ("expo-router", False),
    # Data fetching
    "useQuery":           ("@tanstack/react-query", False),
    "useMutation":        ("@tanstack/react-query", False),
    "useQueryClient":     ("@tanstack/react-query", False),
    "QueryClient":        ("@tanstack/react-query", False),
    "QueryClientProvider": ("@tanstack/react-query", False),
}


def build_import_statement(symbol: str, module: str, is_default: bool) -> str:
    if is_default:
        return f"import {symbol} from '{module}';"
    return f"import {{ {symbol} }} from '{module}';"


def generate_missing_import_fix(
    parsed: MissingImportError,
    project_root: str,
    symbol_index: Optional[SymbolIndex] = None,
) -> Optional[ImportFix]:
    """
    Propose an import for ``parsed.symbol``.

    Parameters
    ----------
    parsed : MissingImportError
        Categorized diagnostic.
    project_root : str
        Generated project root.
    symbol_index : SymbolIndex | None
        Shared export index; a private one is built when omitted.

    Returns
    -------
    ImportFix | None
        None when the symbol is neither a framework symbol nor exported
        from the project's conventional directories.
    """
    if not parsed.file:
        return None

    if parsed.symbol in COMMON_IMPORTS:
        module, is_default = COMMON_IMPORTS[parsed.symbol]
        confidence = CONF_FRAMEWORK
    else:
        index = symbol_index or SymbolIndex(project_root)
        location = index.lookup(parsed.symbol)
        if location is None:
            return None
        error_file = resolve_in_project(project_root, parsed.file)
        if location.file == error_file:
            return None
        module = relative_import_path(error_file, location.file)
        is_default = location.is_default
        confidence = CONF_PROJECT_SCAN

    return ImportFix(
        file=parsed.file,
        symbol=parsed.symbol,
        module=module,
        is_default=is_default,
        import_statement=build_import_statement(parsed.symbol, module, is_default),
        confidence=confidence,
    )


def apply_import_fix(fix: ImportFix, project_root: str) -> ApplyResult:
    """Insert (or merge) the import described by ``fix``."""
    path = resolve_in_project(project_root, fix.file)

    def transform(text: str) -> Optional[str]:
        if fix.import_statement in text:
            return None
        lines = text.split("\n")
        merge_target = None
        for start, end in iter_import_statements(lines):
            clause = parse_import_statement("\n".join(lines[start:end + 1]))
            if clause is None:
                continue
            if fix.symbol in clause.local_names():
                return None
            if (merge_target is None and not fix.is_default and start == end
                    and clause.module == fix.module and clause.has_braces
                    and not clause.type_only and not clause.namespace):
                merge_target = (start, clause)

        if merge_target is not None:
            index, clause = merge_target
            clause.named.append(NamedSpecifier(fix.symbol, fix.symbol, fix.symbol))
            lines[index] = clause.render()
        else:
            lines.insert(find_import_block_end(lines), fix.import_statement)
        return "\n".join(lines)

    return edit_file(path, transform)
