"""Extractor for Python ``import`` statements."""

from __future__ import annotations

import ast
import sys
from collections.abc import Iterable
from pathlib import Path

import structlog

from depsync.engines.source_scanner.registry import register_extractor

log = structlog.get_logger("depsync.scanner")

# Import names whose distribution on PyPI is published under another name.
IMPORT_ALIASES: dict[str, str] = {
    "attr": "attrs",
    "bs4": "beautifulsoup4",
    "cv2": "opencv-python",
    "dateutil": "python-dateutil",
    "dotenv": "python-dotenv",
    "fitz": "PyMuPDF",
    "gi": "PyGObject",
    "google.protobuf": "protobuf",
    "jose": "python-jose",
    "jwt": "PyJWT",
    "magic": "python-magic",
    "MySQLdb": "mysqlclient",
    "OpenSSL": "pyOpenSSL",
    "PIL": "Pillow",
    "pkg_resources": "setuptools",
    "psycopg2": "psycopg2-binary",
    "serial": "pyserial",
    "skimage": "scikit-image",
    "sklearn": "scikit-learn",
    "slugify": "python-slugify",
    "usb": "pyusb",
    "win32api": "pywin32",
    "yaml": "PyYAML",
    "zmq": "pyzmq",
}

_DYNAMIC_IMPORTERS = {"import_module", "__import__"}

_STDLIB = frozenset(sys.stdlib_module_names) | {"__future__", "__main__"}


def _dynamic_target(node: ast.Call) -> str | None:
    """``importlib.import_module("x")`` / ``__import__("x")`` with a literal."""
    func = node.func
    name = func.attr if isinstance(func, ast.Attribute) else getattr(func, "id", None)
    if name not in _DYNAMIC_IMPORTERS or not node.args:
        return None
    arg = node.args[0]
    if isinstance(arg, ast.Constant) and isinstance(arg.value, str) and arg.value:
        return arg.value
    return None


class PythonImportExtractor:
    ecosystem = "pypi"
    file_suffixes = (".py", ".pyw")

    def extract(self, file_path: Path, content: str) -> set[str]:
        try:
            tree = ast.parse(content, filename=str(file_path))
        except (SyntaxError, ValueError) as exc:
            log.warning("scanner.syntax_error", path=str(file_path), error=str(exc))
            return set()

        references: set[str] = set()
        for node in ast.walk(tree):
            if isinstance(node, ast.Import):
                for alias in node.names:
                    references.add(alias.name)
            elif isinstance(node, ast.ImportFrom):
                # Relative imports keep their leading dots
                references.add("." * node.level + (node.module or ""))
            elif isinstance(node, ast.Call):
                target = _dynamic_target(node)
                if target:
                    references.add(target)
        return references

    def local_modules(self, root: Path, files: Iterable[Path]) -> set[str]:
        """Top-level names importable from the project itself.

        Root-level modules and top-level packages count, also under a
        ``src/`` layout. Modules that sit beside a script in a directory
        which is not a package count as well, since running the script
        puts that directory on ``sys.path``. Modules nested in a package
        do not: ``proj/celery.py`` does not hide the ``celery`` distribution.
        """
        rels = [path.relative_to(root) for path in files]
        packages = {rel.parent for rel in rels if rel.name == "__init__.py"}
        local: set[str] = set()
        for rel in rels:
            parts = rel.parts
            if parts[0] == "src" and len(parts) > 1:
                parts = parts[1:]
            if len(parts) > 1:
                local.add(parts[0])
            if len(parts) == 1 or rel.parent not in packages:
                local.add(rel.stem)
        local.discard("__init__")
        return local

    def package_name(self, reference: str, local: set[str]) -> str | None:
        if not reference or reference.startswith("."):
            return None
        top = reference.split(".", 1)[0]
        if top in _STDLIB or top in local:
            return None
        # Namespace packages map on their two leading segments
        two = ".".join(reference.split(".")[:2])
        if two in IMPORT_ALIASES:
            return IMPORT_ALIASES[two]
        return IMPORT_ALIASES.get(top, top)


register_extractor(PythonImportExtractor())
