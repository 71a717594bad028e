"""
Layer boundaries.

1. billing_kernel/** may NOT import billing_engines, billing_services or
   billing_config. The kernel never depends upward.

2. billing_engines/** stay pure: no services, no config, no database,
   models or selectors.

3. billing_kernel/domain/** must not import ORM or DB packages.

These tests read source code via AST. They cannot break anything.
"""

import ast
import glob
from pathlib import Path

ROOT = Path(__file__).resolve().parents[2]


def _python_files(package: str) -> list[Path]:
    return sorted(Path(p) for p in glob.glob(f"{ROOT / package}/**/*.py", recursive=True))


def _extract_imports(filepath: Path) -> list[tuple[int, str]]:
    """(line_number, module) for every import in a file."""
    tree = ast.parse(filepath.read_text(), filename=str(filepath))
    results: list[tuple[int, str]] = []
    for node in ast.walk(tree):
        if isinstance(node, ast.Import):
            for alias in node.names:
                results.append((node.lineno, alias.name))
        elif isinstance(node, ast.ImportFrom) and node.module:
            results.append((node.lineno, node.module))
    return results


def _violations(package: str, forbidden: tuple[str, ...]) -> list[str]:
    found: list[str] = []
    for filepath in _python_files(package):
        for lineno, module in _extract_imports(filepath):
            for prefix in forbidden:
                if module == prefix or module.startswith(f"{prefix}."):
                    found.append(f"  {filepath.relative_to(ROOT)}:{lineno} imports '{module}'")
    return found


class TestKernelNoUpwardDependencies:

    FORBIDDEN_PREFIXES = ("billing_engines", "billing_services", "billing_config")

    def test_packages_present(self):
        assert _python_files("billing_kernel")

    def test_kernel_does_not_import_upward(self):
        violations = _violations("billing_kernel", self.FORBIDDEN_PREFIXES)
        assert not violations, (
            "billing_kernel/** must not import upward packages:\n" + "\n".join(violations)
        )


class TestEnginePurity:

    FORBIDDEN_PREFIXES = (
        "billing_services",
        "billing_config",
        "billing_kernel.db",
        "billing_kernel.models",
        "billing_kernel.selectors",
        "billing_kernel.services",
        "sqlalchemy",
        "yaml",
    )

    def test_engines_have_no_io_dependencies(self):
        violations = _violations("billing_engines", self.FORBIDDEN_PREFIXES)
        assert not violations, (
            "billing_engines/** must stay pure:\n" + "\n".join(violations)
        )


class TestKernelDomainPurity:

    FORBIDDEN_MODULES = ("sqlalchemy", "psycopg2", "sqlite3", "billing_kernel.db", "billing_kernel.models")

    def test_domain_no_orm_imports(self):
        violations = _violations("billing_kernel/domain", self.FORBIDDEN_MODULES)
        assert not violations, (
            "billing_kernel/domain/** must not import ORM or DB packages:\n"
            + "\n".join(violations)
        )


class TestConfigReadOnlyThroughEntrypoint:

    def test_only_config_reads_yaml(self):
        readers = [
            str(path.relative_to(ROOT))
            for package in ("billing_kernel", "billing_engines", "billing_services")
            for path in _python_files(package)
            if any(module == "yaml" for _, module in _extract_imports(path))
        ]
        assert readers == []
