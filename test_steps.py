import logging

import pytest

from enums import FindingKind
from errors import SizeMismatchError, IndexExtentMismatch
from steps import CompareEntriesStep, ResidualCheckStep, default_pipeline


def run(context):
    context.run_pipeline(default_pipeline())
    return context


def kinds_by_slot(context):
    return {f.slot: f.kinds for f in context.get(CompareEntriesStep).changed}


def move_file(data, old_start, new_start, size):
    data[new_start:new_start + size] = data[old_start:old_start + size]


class TestIdenticalImages:
    def test_no_findings(self, image_builder, context_builder):
        context = run(context_builder(image_builder(), image_builder()))
        sink = context.sink
        assert sink.findings == []
        assert sink.changed is False
        assert sink.residual is False
        assert sink.kinds == []

    def test_location_reported(self, image_builder, context_builder):
        context = run(context_builder(image_builder(), image_builder()))
        assert context.sink.offset == 0x3000
        assert context.sink.size == 0x50

    def test_every_slot_unchanged(self, image_builder, context_builder):
        context = run(context_builder(image_builder(), image_builder()))
        findings = context.get(CompareEntriesStep).findings
        assert [f.slot for f in findings] == [0, 1, 2, 3, 4]
        assert all(f.kinds == [FindingKind.UNCHANGED] for f in findings)


class TestEntryFindings:
    def test_relocated_only(self, image_builder, context_builder, standard_entries):
        entries = list(standard_entries)
        entries[3] = (0x6000, 0x6100, 0x6000, 0)
        old = image_builder()
        new = image_builder(entries)
        move_file(new, 0x4000, 0x6000, 0x100)
        # the region now starts at 0x6000 but record_end still bounds it
        context = run(context_builder(old, new))
        found = kinds_by_slot(context)
        assert found[3] == [FindingKind.RELOCATED]
        # the table itself is one of the files and its contents changed
        assert found[2] == [FindingKind.MODIFIED]
        assert set(found) == {2, 3}

    def test_resized_only(self, image_builder, context_builder, standard_entries):
        entries = list(standard_entries)
        entries[4] = (0x5000, 0x5100, 0x5000, 0)
        context = run(context_builder(image_builder(), image_builder(entries)))
        found = kinds_by_slot(context)
        assert found[4] == [FindingKind.RESIZED]
        assert FindingKind.MODIFIED not in found[4]

    def test_modified_only(self, image_builder, context_builder):
        new = image_builder()
        new[0x4010] ^= 0xFF
        context = run(context_builder(image_builder(), new))
        assert kinds_by_slot(context) == {3: [FindingKind.MODIFIED]}
        assert context.sink.residual is False

    def test_relocated_and_modified(self, image_builder, context_builder, standard_entries):
        entries = list(standard_entries)
        entries[3] = (0x6000, 0x6100, 0x6000, 0)
        new = image_builder(entries)
        move_file(new, 0x4000, 0x6000, 0x100)
        new[0x6004] ^= 0xFF
        context = run(context_builder(image_builder(), new))
        assert kinds_by_slot(context)[3] == [FindingKind.RELOCATED, FindingKind.MODIFIED]

    def test_relocated_and_resized(self, image_builder, context_builder, standard_entries):
        entries = list(standard_entries)
        entries[3] = (0x6000, 0x6200, 0x6000, 0)
        context = run(context_builder(image_builder(), image_builder(entries)))
        assert kinds_by_slot(context)[3] == [FindingKind.RELOCATED, FindingKind.RESIZED]

    def test_findings_reported_in_slot_order(self, image_builder, context_builder):
        new = image_builder()
        new[0x5010] ^= 0xFF
        new[0x0100] ^= 0xFF
        new[0x4010] ^= 0xFF
        context = run(context_builder(image_builder(), new))
        assert [f.slot for f in context.sink.findings] == [0, 3, 4]

    def test_verbose_reports_unchanged(self, image_builder, context_builder):
        context = run(context_builder(image_builder(), image_builder(), verbosity=1))
        assert [f.slot for f in context.sink.findings] == [0, 1, 2, 3, 4]
        assert context.sink.changed is False

    def test_region_outside_image_is_not_compared(self, image_builder, context_builder, standard_entries, caplog):
        entries = list(standard_entries)
        entries[4] = (0x7F00, 0x9000, 0x7F00, 0)
        new = image_builder(entries)
        new[0x7F10] ^= 0xFF
        with caplog.at_level(logging.WARNING):
            context = run(context_builder(image_builder(entries), new))
        assert context.sink.findings == []
        assert "lies outside the image" in caplog.text
        # the changed byte is then only visible as a residual difference
        assert context.sink.residual is True

    def test_invalid_entries_are_not_compared(self, image_builder, context_builder, standard_entries):
        entries = list(standard_entries)
        entries[4] = (0x5000, 0x0010, 0x5000, 0)
        new = image_builder(entries)
        new[0x5010] ^= 0xFF
        context = run(context_builder(image_builder(entries), new))
        assert context.sink.findings == []


class TestResidualDifference:
    def test_change_outside_every_file(self, image_builder, context_builder):
        new = image_builder()
        new[0x2500] ^= 0xFF
        context = run(context_builder(image_builder(), new))
        assert context.sink.findings == []
        assert context.sink.changed is False
        assert context.sink.residual is True
        assert context.sink.kinds == [(None, FindingKind.RESIDUAL_DIFFERENCE)]
        assert context.get(ResidualCheckStep).residual is True

    def test_not_checked_when_files_changed(self, image_builder, context_builder):
        new = image_builder()
        new[0x2500] ^= 0xFF
        new[0x4010] ^= 0xFF
        context = run(context_builder(image_builder(), new))
        assert context.sink.changed is True
        assert context.sink.residual is False


class TestErrors:
    def test_size_mismatch(self, image_builder, context_builder):
        context = context_builder(image_builder(), image_builder(size=0x7000))
        with pytest.raises(SizeMismatchError) as excinfo:
            run(context)
        assert excinfo.value.old_size == 0x8000
        assert excinfo.value.new_size == 0x7000

    def test_nothing_reported_on_failure(self, image_builder, context_builder, standard_entries):
        entries = list(standard_entries)
        entries[2] = (0x3000, 0x3060, 0x3000, 0)
        context = context_builder(image_builder(), image_builder(entries))
        with pytest.raises(IndexExtentMismatch):
            run(context)
        assert context.sink.offset is None
        assert context.sink.findings == []
        assert context.sink.changed is None
