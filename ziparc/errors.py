class ZipArcError(Exception):
    """Base class for ziparc-specific errors."""


# Container/codec structure
class StructuralError(ZipArcError):
    pass


class ContainerError(StructuralError):
    """Bad magic, truncated header or an entry that overruns the buffer."""

    def __init__(self, message: str, *, field: str = "", offset: int = -1, entry: int = -1):
        self.field = field
        self.offset = offset
        self.entry = entry
        where = []
        if entry >= 0:
            where.append(f"entry {entry}")
        if offset >= 0:
            where.append(f"offset {offset}")
        if where:
            message = f"{message} ({', '.join(where)})"
        super().__init__(message)


class CorruptPayloadError(StructuralError):
    pass


# Lookups
class NotFoundError(ZipArcError):
    pass


class ArchiveNotFoundError(NotFoundError):
    pass


class SourceNotFoundError(NotFoundError):
    pass


class NotAFileError(ZipArcError):
    pass


# Policy
class PolicyViolation(ZipArcError):
    pass


class NothingToDoError(PolicyViolation):
    pass


class EncryptionNotSupported(ZipArcError):
    pass


# Store mutations
class StoreError(ZipArcError):
    pass


class IntegrityError(ZipArcError):
    pass
