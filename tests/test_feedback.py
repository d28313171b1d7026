import pytest

from quest_engines.feedback import CALIBRATION_BODY, message_for
from quest_engines.formatting import format_duration, format_duration_long
from quest_engines.scorer import AccuracyRating, score


def test_spot_on_message():
    message = message_for(score(100, 100), is_calibration_phase=False)
    assert message.headline == "Nailed it!"
    assert message.icon == "bullseye"


def test_close_and_off_report_direction():
    close = message_for(score(90, 120), is_calibration_phase=False)
    assert close.headline == "30s under"
    assert close.body == "Getting dialed in."

    off = message_for(score(160, 120), is_calibration_phase=False)
    assert off.headline == "40s over"
    assert off.icon == "magnifyingglass"


def test_way_off_is_framed_as_discovery():
    result = score(600, 200)
    assert result.rating is AccuracyRating.WAY_OFF

    message = message_for(result, is_calibration_phase=False)
    assert message.headline == "6m 40s over!"
    assert "discovery" in message.body.lower()
    for word in ("wrong", "bad", "fail"):
        assert word not in message.body.lower()


@pytest.mark.parametrize("estimated", [100, 90, 160, 600])
def test_calibration_message_ignores_rating(estimated):
    message = message_for(score(estimated, 120), is_calibration_phase=True)
    assert message.body == CALIBRATION_BODY
    assert message.icon == "chart.line.uptrend.xyaxis"


def test_format_duration_short_and_long():
    assert format_duration(45) == "45s"
    assert format_duration(150.9) == "2m 30s"
    assert format_duration(3910) == "1h 5m 10s"
    assert format_duration_long(0) == "0 seconds"
    assert format_duration_long(61) == "1 minute 1 second"
    assert format_duration_long(7320) == "2 hours 2 minutes"
