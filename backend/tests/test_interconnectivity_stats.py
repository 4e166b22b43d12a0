"""Tests for platform-wide connectivity counts."""
from unittest.mock import MagicMock

import pytest
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

from glbiashara.services.network_matcher import get_interconnectivity_stats, connection_rate


def test_empty_platform_has_zero_rate(db: Session):
    result = get_interconnectivity_stats(db)

    assert result.success
    stats = result.data
    assert stats.total_users == 0
    assert stats.connected_users == 0
    assert stats.connection_rate == 0


def test_counts(db: Session, make_user, make_provider, make_club, make_institution, make_product):
    provider = make_provider()
    club = make_club()
    make_club(slug="yanga-sc", is_active=False)
    institution = make_institution()
    make_user(provider_id=provider.id)
    make_user(club_ids=[club.id])
    both = make_user(institution_id=institution.id, club_ids=[club.id])
    make_user()
    make_product(both, title="Active")
    make_product(both, title="Inactive", is_active=False)

    stats = get_interconnectivity_stats(db).data

    assert stats.total_users == 4
    assert stats.total_providers == 1
    assert stats.total_clubs == 1
    assert stats.total_institutions == 1
    assert stats.total_businesses == 1
    assert stats.connected_users == 3
    assert stats.total_connections == 4
    assert stats.connection_rate == 75


@pytest.mark.parametrize(
    "connected,total,expected",
    [
        (0, 0, 0),
        (1, 3, 33),
        (2, 3, 67),
        (1, 8, 13),
        (1, 200, 1),
        (5, 5, 100),
    ],
)
def test_connection_rate_rounds_half_up(connected, total, expected):
    assert connection_rate(connected, total) == expected


def test_one_failed_count_fails_the_whole_result():
    ok_query = MagicMock()
    ok_query.count.return_value = 3
    ok_query.filter.return_value.count.return_value = 2
    session = MagicMock()
    session.query.side_effect = [
        ok_query,
        ok_query,
        OperationalError("SELECT", {}, Exception("database is down")),
    ]

    result = get_interconnectivity_stats(session)

    assert not result.success
    assert result.data is None
    assert result.error == "Failed to get interconnectivity stats"
    session.rollback.assert_called_once()
