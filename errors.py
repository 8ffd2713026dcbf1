"""
Error types raised while comparing two ROM images.

Every error is fatal for the run; the command line front end turns any of
them into a diagnostic on stderr and exit status 1.
"""


class Z64DiffError(Exception):
    """Base class for all comparison failures."""

    exit_code = 1


class ArgumentCountError(Z64DiffError):
    def __init__(self, message="args: z64diff old.z64 new.z64"):
        super().__init__(message)


class LoadError(Z64DiffError):
    """One or both input files could not be read in full."""

    def __init__(self, paths):
        self.paths = list(paths)
        super().__init__("\n".join(f"failed to load '{p}'" for p in self.paths))


class SizeMismatchError(Z64DiffError):
    def __init__(self, old_size, new_size):
        self.old_size = old_size
        self.new_size = new_size
        super().__init__(f"files are of different sizes ({old_size:#x} vs {new_size:#x} bytes)")


class IndexNotFound(Z64DiffError):
    """The dmadata magic pattern is absent from one or both images."""

    def __init__(self, paths):
        self.paths = list(paths)
        super().__init__("\n".join(f"failed to find dmadata in file '{p}'" for p in self.paths))


class IndexLocationMismatch(Z64DiffError):
    def __init__(self, old_offset, new_offset, old_path, new_path):
        self.old_offset = old_offset
        self.new_offset = new_offset
        super().__init__(
            "dmadata at different addresses in each file...\n"
            f" -> {old_offset:08x}   {old_path}\n"
            f" -> {new_offset:08x}   {new_path}"
        )


class IndexExtentNotFound(Z64DiffError):
    def __init__(self, path, reason=None):
        self.path = path
        message = f"failed to locate dmadata size in file '{path}'"
        if reason:
            message += f" ({reason})"
        super().__init__(message)


class IndexExtentMismatch(Z64DiffError):
    """The entry describing the dmadata table itself differs between images."""

    def __init__(self, record_offset, old_record, new_record):
        self.record_offset = record_offset
        self.old_record = old_record
        self.new_record = new_record
        super().__init__(
            f"dmadata length mismatch! (record at {record_offset:08x}: "
            f"{old_record.hex()} vs {new_record.hex()})"
        )


class OutputError(Z64DiffError):
    """The report file could not be written."""

    def __init__(self, path, error):
        self.path = path
        super().__init__(f"failed to write report '{path}': {error.strerror or error}")
