"""
ROM image comparison framework.

Provides the shared plumbing for comparing two versions of a ROM image:
lazily created, cached extractors that derive structure from the raw bytes,
and ordered processing steps that consume them.
"""

from abc import ABC, abstractmethod
from typing import List
import logging

logger = logging.getLogger(__name__)


class Image:
    """The full, read-only contents of one ROM file."""

    def __init__(self, path, data):
        self.path = str(path)
        self.data = bytes(data)

    def __len__(self):
        return len(self.data)

    def __repr__(self):
        return f"Image({self.path!r}, {len(self.data):#x} bytes)"

    def read(self, offset, size):
        """Return `size` bytes at `offset`, or None if the range leaves the image."""
        if offset < 0 or size < 0 or offset + size > len(self.data):
            return None
        return self.data[offset:offset + size]


class Extractor(ABC):
    """Base class for context-managed objects derived from both images."""

    def __init__(self, context):
        self.context = context
        self.old = context.old
        self.new = context.new


class Step(ABC):
    """Base class for pipeline steps that run in order."""

    @abstractmethod
    def run(self, context):
        """Execute this step."""
        pass


class ObjectRegistry:
    """Mixin for managing singleton object instances with circular dependency detection."""

    def __init__(self):
        self._objects = {}
        self._creating = set()

    def get(self, obj_class):
        """Get object instance (extractor or step), creating extractors if needed."""
        if obj_class in self._objects:
            return self._objects[obj_class]

        if obj_class in self._creating:
            raise RuntimeError(f"Circular dependency detected: {obj_class.__name__}")

        if issubclass(obj_class, Extractor):
            self._creating.add(obj_class)
            try:
                obj = obj_class(self)
                self._objects[obj_class] = obj
            finally:
                self._creating.remove(obj_class)
        else:
            raise ValueError(f"Step {obj_class.__name__} not found. Make sure it runs before being accessed.")

        return self._objects[obj_class]

    def register_step(self, step):
        """Register step instance by its class. Throws if already present."""
        step_class = type(step)
        if step_class in self._objects:
            raise RuntimeError(f"Step {step_class.__name__} already registered")
        self._objects[step_class] = step


class DiffContext(ObjectRegistry):
    """Holds both images, the report sink, and every derived object for one run."""

    def __init__(self, old, new, sink, verbosity=0):
        super().__init__()
        self.old = old
        self.new = new
        self.sink = sink
        self.verbosity = verbosity

    def run_pipeline(self, steps: List[Step], log_function=None):
        """Run all pipeline steps in order."""
        for step in steps:
            if log_function:
                log_function(f"Running {step.__class__.__name__}...")

            step.run(self)
            self.register_step(step)
