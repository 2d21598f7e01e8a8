import ast
from pathlib import Path

import densenets.core

CORE_DIR = Path(densenets.core.__file__).parent


def _module_level_imports(path):
    tree = ast.parse(path.read_text(encoding="utf-8"))
    for node in tree.body:
        if isinstance(node, ast.ImportFrom):
            yield node.level, node.module or ""
        elif isinstance(node, ast.Import):
            for alias in node.names:
                yield 0, alias.name


def test_core_modules_only_import_from_core():
    offenders = []
    for path in sorted(CORE_DIR.glob("*.py")):
        for level, module in _module_level_imports(path):
            if level > 1 or (level == 0 and module.split(".")[0] == "densenets"):
                offenders.append(f"{path.name}: {'.' * level}{module}")
    assert offenders == []
