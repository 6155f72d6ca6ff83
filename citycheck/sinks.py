"""Diagnostic sinks that receive reconciliation findings."""

from __future__ import annotations

import sys
from typing import IO, Optional, Protocol

from citycheck.schemas import Finding


class DiagnosticSink(Protocol):
    """Protocol for finding consumers (interface)."""

    def emit(self, finding: Finding) -> None:
        """Consume one finding."""
        ...


class ConsoleSink:
    """Writes one line per finding, as text or JSON, to stdout by default."""

    def __init__(self, stream: Optional[IO[str]] = None, output_format: str = "text"):
        if output_format not in ("text", "json"):
            raise ValueError(f"Unknown output format: {output_format}")
        self.stream = stream
        self.output_format = output_format

    def emit(self, finding: Finding) -> None:
        stream = self.stream if self.stream is not None else sys.stdout
        if self.output_format == "json":
            line = finding.model_dump_json(exclude_none=True)
        else:
            line = finding.message()
        stream.write(line + "\n")
        stream.flush()


class MemorySink:
    """Collects findings in a list."""

    def __init__(self):
        self.findings: list[Finding] = []

    def emit(self, finding: Finding) -> None:
        self.findings.append(finding)

    def messages(self) -> list[str]:
        return [finding.message() for finding in self.findings]

    def clear(self) -> None:
        self.findings.clear()
