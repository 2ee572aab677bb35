from services import trend_service
from services.trend_service import NOT_ENOUGH_DATA


def test_direction_needs_three_points():
    assert trend_service.trend_direction([]) == NOT_ENOUGH_DATA
    assert trend_service.trend_direction([5, 9]) == NOT_ENOUGH_DATA


def test_equal_values_are_stable():
    assert trend_service.trend_direction([7, 7, 7]) == "stable"
    assert trend_service.trend_direction([3] * 10) == "stable"


def test_direction_follows_moving_average():
    assert trend_service.trend_direction([5, 6, 7, 8]) == "improving"
    assert trend_service.trend_direction([8, 7, 6, 5]) == "declining"
    assert trend_service.trend_direction([7, 7.1, 7, 7.2]) == "stable"


def test_moving_average():
    assert trend_service.moving_average([1, 2, 3, 4]) == [2, 3]
    assert trend_service.moving_average([1, 2]) == []


def test_consistency_against_target():
    assert trend_service.consistency_score([8, 8, 8], target=8) == 100
    assert trend_service.consistency_score([6, 10], target=8) == 80
    assert trend_service.consistency_score([0, 0], target=30) == 0


def test_consistency_day_to_day():
    assert trend_service.consistency_score([7, 8, 7]) == 90
    assert trend_service.consistency_score([5]) == 0


def test_analyze_trend_accepts_points():
    points = [{"date": "2024-01-01", "value": 6}, {"date": "2024-01-02", "value": 8}]
    result = trend_service.analyze_trend(points, target=8)
    assert result.average == 7
    assert result.consistency_score == 90
    assert result.direction == NOT_ENOUGH_DATA


def test_record_trend_maps_sentinel():
    assert trend_service.record_trend(NOT_ENOUGH_DATA) == "stable"
    assert trend_service.record_trend("declining") == "declining"
