import logging

from framework import Step
from enums import FindingKind
from errors import SizeMismatchError
from extractors import DmaLocation, DmaExtent, DmaTable

logger = logging.getLogger(__name__)


class Finding:
    """Classification of one dmadata slot. Carries every label that applies."""

    def __init__(self, slot, kinds, old_entry, new_entry):
        self.slot = slot
        self.kinds = list(kinds) or [FindingKind.UNCHANGED]
        self.old_entry = old_entry
        self.new_entry = new_entry

    @property
    def changed(self):
        return self.kinds != [FindingKind.UNCHANGED]

    def __repr__(self):
        kinds = ",".join(str(k) for k in self.kinds)
        return f"Finding(slot={self.slot}, kinds={kinds})"


def compare_entries(slot, old_entry, new_entry, old_image, new_image):
    """
    Classify one dmadata slot by comparing its old and new entries.

    Args:
        slot (int): Position of the entry in the table
        old_entry, new_entry: Parsed dma_entry_struct containers
        old_image, new_image (Image): The images the entries point into

    Returns:
        Finding: The labels for this slot
    """
    kinds = []

    if old_entry.start != new_entry.start:
        kinds.append(FindingKind.RELOCATED)

    if old_entry.size != new_entry.size:
        kinds.append(FindingKind.RESIZED)
    elif old_entry.size:
        old_data = old_image.read(old_entry.start, old_entry.size)
        new_data = new_image.read(new_entry.start, new_entry.size)
        if old_data is None or new_data is None:
            logger.warning(
                f"file {slot} ({old_entry.start:08x} - {old_entry.end:08x}) lies outside the image, "
                f"contents not compared"
            )
        elif old_data != new_data:
            kinds.append(FindingKind.MODIFIED)

    logger.debug(
        f"{slot:5} : {old_entry.start:08x} - {old_entry.end:08x} vs "
        f"{new_entry.start:08x} - {new_entry.end:08x} -> {','.join(str(k) for k in kinds) or 'unchanged'}"
    )
    return Finding(slot, kinds, old_entry, new_entry)


class CheckImageSizesStep(Step):
    """Both images must be the same length before anything is parsed."""

    def run(self, context):
        if len(context.old) != len(context.new):
            raise SizeMismatchError(len(context.old), len(context.new))


class LocateDmaStep(Step):
    """Resolve dmadata in both images, failing before any finding is reported."""

    def run(self, context):
        self.offset = context.get(DmaLocation).offset
        self.size = context.get(DmaExtent).size
        context.get(DmaTable)
        context.sink.location(self.offset, self.size)


class CompareEntriesStep(Step):
    """Walk both tables slot by slot and report what changed."""

    def run(self, context):
        table = context.get(DmaTable)
        self.findings = []

        for slot, old_entry, new_entry in table.pairs():
            finding = compare_entries(slot, old_entry, new_entry, context.old, context.new)
            self.findings.append(finding)

            if finding.changed or context.verbosity >= 1:
                context.sink.finding(finding)

    @property
    def changed(self):
        return [f for f in self.findings if f.changed]


class ResidualCheckStep(Step):
    """If no file changed, check for differences outside every indexed file."""

    def run(self, context):
        changed = bool(context.get(CompareEntriesStep).changed)
        self.residual = False

        if not changed:
            self.residual = context.old.data != context.new.data

        context.sink.summary(changed, self.residual)


def default_pipeline():
    return [
        CheckImageSizesStep(),
        LocateDmaStep(),
        CompareEntriesStep(),
        ResidualCheckStep(),
    ]
