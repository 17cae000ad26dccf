"""Error taxonomy and the diagnostics collector.

Only two conditions stop a load: a document that is not parsable XML
(:class:`MalformedDocumentError`) and a link graph that loops back on itself
(:class:`CyclicDescriptionError`). Everything else degrades gracefully and is
reported as a :class:`Diagnostic` in the collector returned with the result.
"""

import enum
import logging
from dataclasses import dataclass
from typing import Iterator, List, Optional


class SceneError(Exception):
    """Base class for fatal errors raised while loading a robot scene."""


class MalformedDocumentError(SceneError, ValueError):
    """The description text could not be parsed as XML."""


class CyclicDescriptionError(SceneError, RecursionError):
    """The link/joint graph contains a cycle reachable from the root link.

    Attributes:
        path: link names from the root to the link that closes the cycle.
    """

    def __init__(self, path: List[str]):
        self.path = list(path)
        super().__init__("cyclic robot description: " + " -> ".join(self.path))


class ZeroAxisError(SceneError, ValueError):
    """A joint axis of zero length cannot be normalized."""


class DiagnosticKind(enum.Enum):
    UNMAPPED_JOINT = "unmapped_joint"
    MISSING_REFERENCE = "missing_reference"
    UNRESOLVED_RESOURCE = "unresolved_resource"
    MALFORMED_VALUE = "malformed_value"
    DUPLICATE_NAME = "duplicate_name"
    ZERO_AXIS = "zero_axis"
    UNEXPECTED_ROOT = "unexpected_root"


@dataclass(frozen=True)
class Diagnostic:
    """A single non-fatal problem found while parsing or building.

    Attributes:
        kind: category of the problem.
        message: human readable description.
        subject: name of the link, joint or path the problem is about.
    """
    kind: DiagnosticKind
    message: str
    subject: Optional[str] = None

    def __str__(self) -> str:
        return f"[{self.kind.value}] {self.message}"


class Diagnostics:
    """Ordered collection of :class:`Diagnostic` records."""

    def __init__(self, logger: Optional[logging.Logger] = None):
        self._items: List[Diagnostic] = []
        self._logger = logger

    def add(self, kind: DiagnosticKind, message: str, subject: Optional[str] = None) -> Diagnostic:
        diagnostic = Diagnostic(kind, message, subject)
        self._items.append(diagnostic)
        if self._logger is not None:
            self._logger.warning("%s", diagnostic)
        return diagnostic

    def extend(self, other: "Diagnostics") -> None:
        self._items.extend(other)

    def of_kind(self, kind: DiagnosticKind) -> List[Diagnostic]:
        return [d for d in self._items if d.kind == kind]

    def subjects(self, kind: DiagnosticKind) -> List[Optional[str]]:
        return [d.subject for d in self.of_kind(kind)]

    def __iter__(self) -> Iterator[Diagnostic]:
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __bool__(self) -> bool:
        return bool(self._items)

    def __repr__(self) -> str:
        return f"Diagnostics({self._items!r})"
