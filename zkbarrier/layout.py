"""Namespace layout of the barrier variants.

All functions here are pure. They only compute paths from the variant and its identifiers and never touch the
coordination service.

The layout for the root `/b1`, subgroup `g` and stage `s` is:

  PLAIN, DOUBLE:   /b1/<participant>-0000000000 and /b1/ready
  RESTRICTED:      /b1/g/<participant>-0000000000 and /b1/g/ready
  NESTED:          /b1/g/s/<participant>-0000000000 and /b1/g/s/ready
"""
import enum
import typing

from .tools import join

MARKER = "ready"


class Variant(enum.Enum):
    """Barrier variants differing in the scope of participant entries and in the cleanup cascade."""

    PLAIN = "plain"  # Rendezvous only, participants do not wait for each other on leave
    DOUBLE = "double"
    RESTRICTED = "restricted"
    NESTED = "nested"


def _verify(variant: Variant, subgroup: typing.Optional[str], stage: typing.Optional[str]) -> None:
    if variant in (Variant.RESTRICTED, Variant.NESTED) and not subgroup:
        raise ValueError("The {} barrier requires subgroup.".format(variant.value))
    if variant is Variant.NESTED and not stage:
        raise ValueError("The nested barrier requires stage.")
    if variant is not Variant.NESTED and stage:
        raise ValueError("Stages are supported only by the nested barrier, not by {}.".format(variant.value))


def scope_path(
    variant: Variant,
    root: str,
    subgroup: typing.Optional[str] = None,
    stage: typing.Optional[str] = None,
) -> str:
    """Get the path participant entries and the ready marker are created in."""
    _verify(variant, subgroup, stage)
    if variant is Variant.NESTED:
        return join(root, subgroup, stage)
    if variant is Variant.RESTRICTED:
        return join(root, subgroup)
    return join(root)


def marker_path(scope: str) -> str:
    """Get the path of the ready marker for given scope."""
    return join(scope, MARKER)


def cleanup_cascade(
    variant: Variant,
    root: str,
    subgroup: typing.Optional[str] = None,
    stage: typing.Optional[str] = None,
    is_final: bool = True,
) -> typing.Tuple[str, ...]:
    """Get paths the last leaver removes after its own entry, in the order they have to be removed.

    The ready marker is not part of the cascade as it is removed before the participant's own entry.

    is_final: if this is the last stage of the nested barrier. It is ignored by other variants.
    """
    scope = scope_path(variant, root, subgroup, stage)
    if variant is Variant.RESTRICTED:
        return (scope, join(root))
    if variant is Variant.NESTED:
        if is_final:
            return (scope, join(root, subgroup), join(root))
        return (scope,)
    return ()
