"""
Report sinks for comparison results.

A sink receives the located table, one Finding per reported slot in
ascending slot order, and a closing summary. Sinks decide how to render
them; the comparison itself never writes output.
"""

import sys
from abc import ABC, abstractmethod

from enums import FindingKind


def format_finding(finding):
    """Render a Finding as one line per label."""
    old, new = finding.old_entry, finding.new_entry
    lines = []
    for kind in finding.kinds:
        if kind == FindingKind.RELOCATED:
            lines.append(f"warning: file {finding.slot} was relocated ({old.start:08x} -> {new.start:08x})")
        elif kind == FindingKind.RESIZED:
            lines.append(f"warning: file {finding.slot} was resized ({old.size:08x} -> {new.size:08x})")
        elif kind == FindingKind.MODIFIED:
            lines.append(f"warning: file {finding.slot} ({old.start:08x} - {old.end:08x}) was modified")
        else:
            lines.append(f"file {finding.slot} ({old.start:08x} - {old.end:08x}) is unchanged")
    return lines


class ReportSink(ABC):
    def location(self, offset, size):
        """Called once dmadata is located and sized."""
        pass

    @abstractmethod
    def finding(self, finding):
        pass

    @abstractmethod
    def summary(self, changed, residual):
        """Called after the walk. `residual` is only ever True when nothing changed."""
        pass


class StreamReportSink(ReportSink):
    """Writes findings as text lines, to stderr unless another stream is given."""

    def __init__(self, stream=None):
        self._stream = stream

    @property
    def stream(self):
        return self._stream if self._stream is not None else sys.stderr

    def write(self, line):
        self.stream.write(line + "\n")

    def location(self, offset, size):
        self.write(f"dmadata lives at {offset:08x}")

    def finding(self, finding):
        for line in format_finding(finding):
            self.write(line)

    def summary(self, changed, residual):
        if changed:
            return
        self.write("no files referenced by dmadata were modified")
        if residual:
            self.write("(there are differences in blocks not referenced by dmadata, though!)")


class CollectingReportSink(ReportSink):
    """Keeps everything in memory for callers that want structured results."""

    def __init__(self):
        self.offset = None
        self.size = None
        self.findings = []
        self.changed = None
        self.residual = None

    def location(self, offset, size):
        self.offset = offset
        self.size = size

    def finding(self, finding):
        self.findings.append(finding)

    def summary(self, changed, residual):
        self.changed = changed
        self.residual = residual

    def replay(self, sink):
        """Send everything collected so far to another sink, in the original order."""
        if self.offset is not None:
            sink.location(self.offset, self.size)
        for finding in self.findings:
            sink.finding(finding)
        if self.changed is not None:
            sink.summary(self.changed, self.residual)

    @property
    def kinds(self):
        """All (slot, kind) pairs reported, plus (None, RESIDUAL_DIFFERENCE) if set."""
        pairs = [(f.slot, kind) for f in self.findings for kind in f.kinds]
        if self.residual:
            pairs.append((None, FindingKind.RESIDUAL_DIFFERENCE))
        return pairs
