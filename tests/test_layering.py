import ast
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1] / "rocker"

# Inner layers may only import layers listed here, besides themselves.
ALLOWED = {
    "domain": set(),
    "ports": {"domain"},
    "application": {"domain", "ports", "adapters.errors"},
    "adapters": {"domain", "ports"},
}


def _rocker_imports(path: Path) -> list[tuple[str, int]]:
    hits: list[tuple[str, int]] = []
    for node in ast.walk(ast.parse(path.read_text())):
        if isinstance(node, ast.Import):
            hits.extend((alias.name, node.lineno) for alias in node.names)
        elif isinstance(node, ast.ImportFrom) and node.module:
            hits.append((node.module, node.lineno))
    return [(name, line) for name, line in hits if name.startswith("rocker.")]


def _allowed(layer: str, module: str) -> bool:
    target = module.removeprefix("rocker.")
    if target == layer or target.startswith(layer + "."):
        return True
    return any(target == dep or target.startswith(dep + ".") for dep in ALLOWED[layer])


def test_layers_only_import_inward() -> None:
    violations: list[str] = []
    for layer in ALLOWED:
        for path in sorted((ROOT / layer).rglob("*.py")):
            for module, line in _rocker_imports(path):
                if not _allowed(layer, module):
                    violations.append(f"{path}:{line} forbidden import '{module}' in layer {layer}")
    assert not violations, "\n" + "\n".join(violations)
