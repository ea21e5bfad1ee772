"""Internal utility tools."""
import logging
import typing

from kazoo.exceptions import NoNodeError, NotEmptyError

logger = logging.getLogger(__name__)

SEQUENCE_DIGITS = 10  # The width of the suffix appended to sequential nodes


def join(*parts: str) -> str:
    """Join namespace path components."""
    return "/" + "/".join(part.strip("/") for part in parts if part.strip("/"))


def sequence_of(name: str) -> int:
    """Get the service assigned sequence number of the sequential node name."""
    return int(name[-SEQUENCE_DIGITS:])


def participants(children: typing.Iterable[str], marker: str) -> typing.List[str]:
    """Filter out the marker from children and sort participant entries by their sequence number."""
    return sorted((child for child in children if child != marker), key=sequence_of)


def delete_benign(client, path: str) -> bool:
    """Delete node and ignore the races with other participants.

    Returns True if node was deleted by us and False if it was already gone or still has children.
    """
    try:
        client.delete(path)
    except NoNodeError:
        logger.debug("Node '%s' is already removed.", path)
        return False
    except NotEmptyError:
        logger.debug("Node '%s' is still in use by others, keeping it.", path)
        return False
    logger.debug("Node '%s' removed.", path)
    return True
