"""Extractor for JavaScript / TypeScript ``import`` and ``require`` calls."""

from __future__ import annotations

import re
from collections.abc import Iterable
from pathlib import Path

from depsync.engines.source_scanner.registry import register_extractor

_BLOCK_COMMENT_RE = re.compile(r"/\*.*?\*/", re.DOTALL)
# "//" not preceded by ":" or a quote, so URLs inside strings survive
_LINE_COMMENT_RE = re.compile(r"(?<![:'\"\\])//[^\n]*")

_PATTERNS = (
    # import x from 'm'; import {a, b} from "m"; export * from 'm'
    re.compile(r"\b(?:import|export)\s+(?:type\s+)?[^'\";]*?\bfrom\s*['\"]([^'\"\n]+)['\"]"),
    # import 'm' (side effect only)
    re.compile(r"\bimport\s*['\"]([^'\"\n]+)['\"]"),
    # require('m')
    re.compile(r"\brequire\s*\(\s*['\"]([^'\"\n]+)['\"]\s*\)"),
    # import('m')
    re.compile(r"\bimport\s*\(\s*['\"]([^'\"\n]+)['\"]\s*\)"),
)

_PACKAGE_NAME_RE = re.compile(
    r"^(?:@[a-z0-9][a-z0-9._~-]*/)?[a-z0-9][a-z0-9._~-]*$", re.IGNORECASE
)

NODE_BUILTINS = frozenset(
    {
        "assert",
        "async_hooks",
        "buffer",
        "child_process",
        "cluster",
        "console",
        "constants",
        "crypto",
        "dgram",
        "diagnostics_channel",
        "dns",
        "domain",
        "events",
        "fs",
        "http",
        "http2",
        "https",
        "inspector",
        "module",
        "net",
        "os",
        "path",
        "perf_hooks",
        "process",
        "punycode",
        "querystring",
        "readline",
        "repl",
        "stream",
        "string_decoder",
        "sys",
        "timers",
        "tls",
        "trace_events",
        "tty",
        "url",
        "util",
        "v8",
        "vm",
        "wasi",
        "worker_threads",
        "zlib",
    }
)


def strip_comments(content: str) -> str:
    return _LINE_COMMENT_RE.sub("", _BLOCK_COMMENT_RE.sub("", content))


class JavaScriptImportExtractor:
    ecosystem = "npm"
    file_suffixes = (".js", ".mjs", ".cjs", ".jsx", ".ts", ".mts", ".cts", ".tsx")

    def extract(self, file_path: Path, content: str) -> set[str]:
        code = strip_comments(content)
        references: set[str] = set()
        for pattern in _PATTERNS:
            references.update(m.strip() for m in pattern.findall(code))
        references.discard("")
        return references

    def local_modules(self, root: Path, files: Iterable[Path]) -> set[str]:
        # Local code is always reached through a relative or absolute path.
        return set()

    def package_name(self, reference: str, local: set[str]) -> str | None:
        if reference.startswith((".", "/", "~")) or ":" in reference:
            return None
        parts = reference.split("/")
        if reference.startswith("@"):
            if len(parts) < 2 or not parts[1]:
                return None
            name = "/".join(parts[:2])
        else:
            name = parts[0]
        if name in NODE_BUILTINS or name in local:
            return None
        if not _PACKAGE_NAME_RE.match(name):
            return None
        return name


register_extractor(JavaScriptImportExtractor())
