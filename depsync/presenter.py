"""Terminal presentation of sync results. All formatting lives here."""

from __future__ import annotations

import json
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

import click

from depsync.engines.models import ResolutionFailure

if TYPE_CHECKING:
    from depsync.service import SyncReport

_STATUS_ICONS = {
    "completed": "+",
    "failed": "!",
    "skipped": "-",
    "running": "~",
    "pending": ".",
}


@dataclass(frozen=True)
class PresenterStyle:
    """How output looks; passed in explicitly, never global."""

    color: bool = True
    indent: int = 2
    as_json: bool = False


class Presenter:
    def __init__(
        self,
        style: PresenterStyle | None = None,
        echo: Callable[[str], Any] = click.echo,
    ) -> None:
        self.style = style or PresenterStyle()
        self._echo = echo

    def _styled(self, text: str, **kwargs: Any) -> str:
        return click.style(text, **kwargs) if self.style.color else text

    def show(
        self,
        mapping: Mapping[str, str],
        success_label: str,
        empty_label: str,
        *,
        previous: Mapping[str, str] | None = None,
        fg: str = "green",
    ) -> None:
        """Print *mapping* under *success_label*, or *empty_label* if empty."""
        if not mapping:
            self._echo(self._styled(empty_label, dim=True))
            return
        self._echo(self._styled(f"{success_label} ({len(mapping)})", fg=fg, bold=True))
        pad = " " * self.style.indent
        width = max(len(name) for name in mapping)
        for name in sorted(mapping):
            version = mapping[name]
            if previous and name in previous:
                old = previous[name] or "*"
                line = f"{pad}{name:<{width}}  {old} -> {self._styled(version, fg=fg)}"
            else:
                line = f"{pad}{name:<{width}}  {self._styled(version, fg=fg)}"
            self._echo(line)

    def show_failures(self, failures: Iterable[ResolutionFailure]) -> None:
        failures = list(failures)
        if not failures:
            return
        self._echo(self._styled(f"Unresolved ({len(failures)})", fg="red", bold=True))
        pad = " " * self.style.indent
        for failure in failures:
            detail = f" ({failure.detail})" if failure.detail else ""
            self._echo(f"{pad}{failure.name}  {failure.reason}{detail}")

    def show_packages(self, names: Iterable[str], empty_label: str = "No dependencies found.") -> None:
        names = list(names)
        if self.style.as_json:
            self._echo(json.dumps(names, indent=2))
            return
        if not names:
            self._echo(empty_label)
            return
        pad = " " * self.style.indent
        for name in names:
            self._echo(f"{pad}{name}")

    def show_summary(self, summary: Mapping[str, Any]) -> None:
        self._echo(f"\nPipeline summary (total: {summary['total_duration']}s):")
        for p in summary["phases"]:
            icon = _STATUS_ICONS.get(p["status"], "?")
            duration = f" ({p['duration']}s)" if p["duration"] else ""
            detail = f" - {p['detail']}" if p["detail"] else ""
            self._echo(f"  [{icon}] {p['phase']}{duration}{detail}")

    def show_report(self, report: SyncReport, *, update_existing: bool) -> None:
        if self.style.as_json:
            self._echo(json.dumps(report.to_dict(), indent=2, sort_keys=True))
            return

        result = report.pipeline.reconciliation
        if report.manifest_error:
            self._echo(self._styled(f"warning: {report.manifest_error}", fg="yellow"))

        if not report.pipeline.packages:
            self._echo("No dependencies found.")
            return

        self.show(result.added, "New dependencies", "No new dependencies.")
        self.show(
            result.updated,
            "Newer versions available" if not update_existing else "Updated dependencies",
            "No version changes.",
            previous=result.previous,
            fg="yellow",
        )
        self.show(result.unchanged, "Up to date", "Nothing already up to date.", fg="blue")
        self.show_failures(report.pipeline.unresolved)

        if report.written:
            self._echo(self._styled(f"\nWrote {report.manifest_path}", fg="green"))
        elif report.changes and not report.persist:
            self._echo(f"\nDry run: {report.manifest_path or 'manifest'} left untouched.")
        elif report.changes and report.manifest_error:
            self._echo(self._styled("\nManifest not written.", fg="yellow"))
        if result.updated and not update_existing:
            self._echo("Run with --update to write the newer versions.")
