"""
Exceptions raised while dumping a rig to BVH.

Every DumpError is a user-recoverable problem with the rig or the
selection and is raised before any output is written. StateRestoreMismatch
signals a defect in the exporter itself.
"""

from typing import List, Sequence


class DumpError(Exception):
    """Base class for errors that abort an export."""


class NoAnimator(DumpError):
    """The export target has no animation evaluator."""


class NotHumanoid(DumpError):
    """The export target has no humanoid skeleton."""


class ClipNotFound(DumpError):
    """The requested clip does not exist (or no state plays it)."""


class InvalidClip(DumpError):
    """The clip cannot be sampled (non-positive frame rate or negative length)."""


class RootNotDescendant(DumpError):
    """The chosen export root is not under the export target."""


class MissingDefaultRoot(DumpError):
    """No root was chosen and the target has no conventional "Armature" child."""


class AmbiguousRoot(DumpError):
    """The hierarchy did not resolve to exactly one top-level joint."""


class MisplacedEndSite(DumpError):
    """An end site follows other children of its parent bone."""


class UnterminatedBranch(DumpError):
    """
    One or more joints have neither child joints nor an end site.

    Attributes:
        bones: Names of the unterminated joints, in traversal order
    """

    def __init__(self, bones: Sequence[str]):
        self.bones: List[str] = list(bones)
        names = ", ".join(f'"{b}"' for b in self.bones)
        super().__init__(f"Bones not terminated by \"<name>_end\": {names}")


class RigFormatError(DumpError):
    """A rig document could not be parsed."""


class StateRestoreMismatch(RuntimeError):
    """Saved and restored transform counts disagree."""
