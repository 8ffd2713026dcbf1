import enum


class FindingKind(enum.Enum):
    UNCHANGED = "unchanged"
    RELOCATED = "relocated"
    RESIZED = "resized"
    MODIFIED = "modified"
    RESIDUAL_DIFFERENCE = "residual"

    def __str__(self):
        return self.value
