"""
Byte search helpers.

Small primitives for locating byte patterns inside a loaded ROM image.
"""


def find_bytes(haystack, needle, start=0):
    """
    Find the first occurrence of a byte pattern in a buffer.

    Args:
        haystack (bytes): Buffer to search
        needle (bytes): Pattern to look for
        start (int): Offset to begin searching at

    Returns:
        int or None: Lowest offset of the pattern, or None if it does not occur
    """
    # Nothing to compare, or the pattern cannot fit
    if not haystack or not needle:
        return None
    if len(needle) > len(haystack) - start:
        return None

    if len(needle) == 1:
        offset = haystack.find(needle[0], start)
    else:
        offset = haystack.find(needle, start)

    return offset if offset >= 0 else None
