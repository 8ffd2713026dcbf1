"""
Extractors for the dmadata file table.

dmadata is a flat array of 16-byte big-endian records, each describing the
byte range of one file inside the ROM. The table has no header; it is found
by its well-known first entries and sized by the entry that describes the
table itself.
"""

import logging
from construct import Struct, Int32ub, Array, Computed, this

from framework import Extractor
from scanner import find_bytes
from errors import IndexNotFound, IndexLocationMismatch, IndexExtentNotFound, IndexExtentMismatch

logger = logging.getLogger(__name__)

DMA_ENTRY_SIZE = 16

# The first entry (makerom, 0x0000-0x1060) followed by the start of the second
DMA_MAGIC = bytes.fromhex("00000000 00001060 00000000 00000000 00001060")

# One dmadata record. Region bounds are start = phys_start, end = record_end;
# an end below the start is malformed and yields a zero size.
dma_entry_struct = Struct(
    "record_start" / Int32ub,   # 0x0
    "record_end" / Int32ub,     # 0x4
    "phys_start" / Int32ub,     # 0x8
    "phys_end" / Int32ub,       # 0xC
    "start" / Computed(this.phys_start),
    "end" / Computed(this.record_end),
    "invalid" / Computed(lambda ctx: ctx.end < ctx.start),
    "size" / Computed(lambda ctx: 0 if ctx.invalid else ctx.end - ctx.start),
)


def locate_dma(data):
    """
    Find the dmadata table in a ROM image.

    Args:
        data (bytes): Full ROM contents

    Returns:
        int or None: Offset of the table, or None if the magic pattern is absent
    """
    return find_bytes(data, DMA_MAGIC)


def find_table_record(data, dma_offset):
    """
    Find the record that describes the dmadata table itself.

    Walks the table in record-sized strides looking for the first entry whose
    record_start equals the table's own offset. The last record-width of the
    image is never examined.

    Returns:
        int or None: Absolute offset of the record, or None if not found
    """
    for pos in range(dma_offset, len(data) - DMA_ENTRY_SIZE, DMA_ENTRY_SIZE):
        if int.from_bytes(data[pos:pos + 4], "big") == dma_offset:
            return pos
    return None


class DmaLocation(Extractor):
    """Offset of dmadata, which must be the same in both images."""

    def __init__(self, context):
        super().__init__(context)
        old_offset = locate_dma(self.old.data)
        new_offset = locate_dma(self.new.data)

        missing = [image.path for image, offset in ((self.old, old_offset), (self.new, new_offset)) if offset is None]
        if missing:
            raise IndexNotFound(missing)

        if old_offset != new_offset:
            raise IndexLocationMismatch(old_offset, new_offset, self.old.path, self.new.path)

        self.offset = old_offset
        logger.debug(f"dmadata magic found at {self.offset:08x}")


class DmaExtent(Extractor):
    """Byte length of dmadata, taken from the table's own entry."""

    def __init__(self, context):
        super().__init__(context)
        offset = context.get(DmaLocation).offset

        self.record_offset = find_table_record(self.old.data, offset)
        if self.record_offset is None:
            raise IndexExtentNotFound(self.old.path)

        old_record = self.old.read(self.record_offset, DMA_ENTRY_SIZE)
        new_record = self.new.read(self.record_offset, DMA_ENTRY_SIZE)
        if old_record != new_record:
            raise IndexExtentMismatch(self.record_offset, old_record, new_record)

        record = dma_entry_struct.parse(old_record)
        if record.record_end <= offset:
            raise IndexExtentNotFound(self.old.path, f"table entry at {self.record_offset:08x} has no length")

        self.size = record.record_end - offset
        self.count = (self.size + DMA_ENTRY_SIZE - 1) // DMA_ENTRY_SIZE

        if offset + self.count * DMA_ENTRY_SIZE > len(self.old):
            raise IndexExtentNotFound(self.old.path, f"table of {self.size:#x} bytes runs past end of image")

        logger.info(f"dmadata is {self.size:#x} bytes ({self.count} entries)")


class DmaTable(Extractor):
    """Parsed dmadata entries of both images, in slot order."""

    def __init__(self, context):
        super().__init__(context)
        offset = context.get(DmaLocation).offset
        extent = context.get(DmaExtent)

        self.offset = offset
        self.struct = Array(extent.count, dma_entry_struct)
        table_size = extent.count * DMA_ENTRY_SIZE
        self.old_entries = self.struct.parse(self.old.read(offset, table_size))
        self.new_entries = self.struct.parse(self.new.read(offset, table_size))

    def __len__(self):
        return len(self.old_entries)

    def pairs(self):
        """Yield (slot, old_entry, new_entry) in ascending slot order."""
        for slot, (old_entry, new_entry) in enumerate(zip(self.old_entries, self.new_entries)):
            yield slot, old_entry, new_entry
