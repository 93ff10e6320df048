import logging
from typing import Optional, Sequence

from llu_uploader.models.librelink import Connection
from llu_uploader.utils.error_handling import ConnectionResolutionError

logger = logging.getLogger(__name__)


def resolve_connection(connections: Sequence[Connection], configured_id: Optional[str] = None) -> Connection:
    """
    Pick the connection whose readings should be uploaded.

    A single connection is always used. With several, the configured patient
    id must match one exactly; without a configured id the first one wins.
    Order is whatever LibreLink Up returned.

    Raises:
        ConnectionResolutionError: No connections, or the configured id is not among them
    """
    if not connections:
        raise ConnectionResolutionError("No LibreLink Up connection found")

    if len(connections) == 1:
        logger.info("Found 1 LibreLink Up connection.")
        return _picked(connections[0])

    logger.debug(f"Found {len(connections)} LibreLink Up connections:")
    for i, connection in enumerate(connections, start=1):
        logger.debug(f"[{i}] {connection.display_name}")

    if not configured_id:
        logger.warning("LINK_UP_CONNECTION not specified, using first one found.")
        return _picked(connections[0])

    for connection in connections:
        if connection.patient_id == configured_id:
            return _picked(connection)

    raise ConnectionResolutionError(f"The specified Patient-ID '{configured_id}' was not found.")


def _picked(connection: Connection) -> Connection:
    logger.info(f"-> Using connection: {connection.display_name}")
    return connection
