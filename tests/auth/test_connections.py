import logging

import pytest

from llu_uploader.auth.connections import resolve_connection
from llu_uploader.models.librelink import Connection
from llu_uploader.utils.error_handling import ConnectionResolutionError


def make_connections(*patient_ids):
    return [
        Connection(patientId=pid, firstName=f"First{i}", lastName=f"Last{i}")
        for i, pid in enumerate(patient_ids)
    ]


def test_no_connections_fails():
    with pytest.raises(ConnectionResolutionError, match="No LibreLink Up connection found"):
        resolve_connection([], None)


def test_single_connection_auto_selected():
    connections = make_connections("only")
    assert resolve_connection(connections, None).patient_id == "only"


def test_single_connection_ignores_configured_id():
    connections = make_connections("only")
    assert resolve_connection(connections, "someone-else").patient_id == "only"


def test_multiple_without_configured_id_picks_first(caplog):
    connections = make_connections("a", "b", "c")
    with caplog.at_level(logging.WARNING, logger="llu_uploader.auth.connections"):
        picked = resolve_connection(connections, None)

    assert picked.patient_id == "a"
    assert "LINK_UP_CONNECTION not specified" in caplog.text


def test_multiple_with_configured_id_matches_exactly():
    connections = make_connections("a", "b", "c")
    assert resolve_connection(connections, "b").patient_id == "b"


def test_multiple_with_unknown_configured_id_fails():
    connections = make_connections("a", "b")
    with pytest.raises(ConnectionResolutionError, match="not found"):
        resolve_connection(connections, "B")


def test_duplicate_ids_resolve_to_first_in_upstream_order():
    connections = [
        Connection(patientId="dup", firstName="First", lastName="One"),
        Connection(patientId="dup", firstName="Second", lastName="Two"),
        Connection(patientId="other"),
    ]
    assert resolve_connection(connections, "dup").first_name == "First"
