"""
Shared fixtures for building synthetic ROM images.

The standard layout mirrors a real dmadata table: entry 0 is makerom
(0x0000-0x1060), entry 1 starts at 0x1060, entry 2 describes the table
itself, and entries 3 and 4 are ordinary files.
"""

import logging

import pytest
from construct import Array, Int32ub

from framework import Image, DiffContext
from report import CollectingReportSink

IMAGE_SIZE = 0x8000
DMA_OFFSET = 0x3000

# (record_start, record_end, phys_start, phys_end)
STANDARD_ENTRIES = [
    (0x0000, 0x1060, 0x0000, 0),
    (0x1060, 0x2000, 0x1060, 0),
    (0x3000, 0x3050, 0x3000, 0),
    (0x4000, 0x4100, 0x4000, 0),
    (0x5000, 0x5200, 0x5000, 0),
]

record_struct = Array(4, Int32ub)


def fill_pattern(size):
    # Consecutive bytes always differ by 7, so no run of zeros can fake a table
    return bytearray((i * 7 + 3) & 0xFF for i in range(size))


def build_image(entries=None, size=IMAGE_SIZE, dma_offset=DMA_OFFSET):
    """Return a bytearray with `entries` written as dmadata at `dma_offset`."""
    if entries is None:
        entries = STANDARD_ENTRIES
    data = fill_pattern(size)
    for slot, entry in enumerate(entries):
        pos = dma_offset + slot * 16
        data[pos:pos + 16] = record_struct.build(list(entry))
    return data


def make_context(old_data, new_data, verbosity=0):
    return DiffContext(
        Image("old.z64", old_data),
        Image("new.z64", new_data),
        CollectingReportSink(),
        verbosity=verbosity,
    )


@pytest.fixture
def image_builder():
    return build_image


@pytest.fixture
def context_builder():
    return make_context


@pytest.fixture
def standard_entries():
    return list(STANDARD_ENTRIES)


@pytest.fixture(autouse=True)
def restore_root_logger():
    """The command line front end reconfigures the root logger; undo it."""
    root = logging.getLogger()
    handlers = root.handlers[:]
    level = root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)
