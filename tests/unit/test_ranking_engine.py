"""Release stat deltas and provisional chart projection."""

from aetherwave.ranking.ranking_engine import (
    VIRAL_REASON,
    calculate_ranking_update,
    clamp_fame,
    project_chart_position,
)


class TestCalculateRankingUpdate:
    """Draw order is viral roll, market response, then chart movement."""

    def test_high_quality_release(self, fixed_rng):
        update = calculate_ranking_update(0.9, 100, fixed_rng(0.5, 1.0))

        assert update.daily_streams_change == 3000
        assert update.total_streams_change == 21000
        assert update.fanbase_change == 500
        assert update.fame_change == 4
        assert update.chart_position_change == 0
        assert update.reason == "High-quality release"
        assert update.viral is False

    def test_total_streams_are_a_week_of_daily(self, fixed_rng):
        update = calculate_ranking_update(0.6, 40, fixed_rng(0.5, 0.3))
        assert update.total_streams_change == update.daily_streams_change * 7
        assert update.reason == "Average release"

    def test_viral_hit(self, fixed_rng):
        update = calculate_ranking_update(0.9, 100, fixed_rng(0.01, 1.0, 0.5))

        assert update.viral is True
        assert update.reason == VIRAL_REASON
        assert update.daily_streams_change == 15000
        assert update.total_streams_change == 63000
        assert update.fanbase_change == 1500
        # +5 streams, +3 fans, +4 quality
        assert update.fame_change == 12
        assert update.chart_position_change == -20

    def test_viral_chance_is_lower_for_average_quality(self, fixed_rng):
        update = calculate_ranking_update(0.6, 40, fixed_rng(0.03, 1.0))
        assert update.viral is False

    def test_poor_quality_loses_fame(self, fixed_rng):
        update = calculate_ranking_update(0.2, 0, fixed_rng(0.5, 0.0))

        assert update.fame_change == -2
        assert update.daily_streams_change < 0
        assert update.fanbase_change < 0
        assert update.reason == "Poor reception"

    def test_negative_momentum_drops_chart(self, fixed_rng):
        update = calculate_ranking_update(0.0, 0, fixed_rng(0.001, 1.0, 0.0))

        assert update.viral is True
        assert update.daily_streams_change == -7500
        assert update.fanbase_change == -1200
        assert update.chart_position_change == 5

    def test_same_rolls_reproduce_the_update(self, fixed_rng):
        first = calculate_ranking_update(0.75, 80, fixed_rng(0.2, 0.7, 0.4))
        second = calculate_ranking_update(0.75, 80, fixed_rng(0.2, 0.7, 0.4))
        assert first == second

    def test_to_dict(self, fixed_rng):
        data = calculate_ranking_update(0.9, 100, fixed_rng(0.5, 1.0)).to_dict()
        assert set(data) == {
            "fame_change",
            "daily_streams_change",
            "total_streams_change",
            "chart_position_change",
            "fanbase_change",
            "reason",
            "viral",
        }


class TestClampFame:
    def test_bounds(self):
        assert clamp_fame(0) == 1
        assert clamp_fame(-5) == 1
        assert clamp_fame(50) == 50
        assert clamp_fame(140) == 100


class TestProjectChartPosition:
    def test_unranked_user_enters_from_the_bottom(self):
        assert project_chart_position(0, -20) == 80

    def test_unranked_user_without_upward_move_stays_unranked(self):
        assert project_chart_position(0, 0) == 0
        assert project_chart_position(0, 7) == 0

    def test_ranked_user_moves(self):
        assert project_chart_position(40, -15) == 25
        assert project_chart_position(40, 10) == 50

    def test_stays_within_chart(self):
        assert project_chart_position(5, -20) == 0
        assert project_chart_position(95, 19) == 100
