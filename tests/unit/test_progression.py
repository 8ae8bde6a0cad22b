"""Tests for progression levels."""

import pytest

from src.domains.trainees.progression import (
    LEVELS,
    check_level_change,
    current_level,
    next_level,
    progress_to_next_level,
)


class TestCurrentLevel:
    """Tests for level lookup."""

    @pytest.mark.parametrize(
        "points,expected",
        [
            (0, "amateur"),
            (99, "amateur"),
            (100, "beginner"),
            (249, "beginner"),
            (250, "novice"),
            (799, "skilled"),
            (800, "advanced"),
            (1200, "expert"),
            (2499, "elite"),
            (2500, "master"),
            (100_000, "master"),
        ],
    )
    def test_level_boundaries(self, points: int, expected: str):
        assert current_level(points).id == expected

    def test_negative_points_stay_at_first_level(self):
        assert current_level(-25).id == "amateur"

    def test_levels_are_contiguous(self):
        for lower, upper in zip(LEVELS, LEVELS[1:]):
            assert upper.min_points == lower.max_points + 1
        assert LEVELS[-1].max_points is None


class TestNextLevel:
    def test_next_of_amateur(self):
        assert next_level(10).id == "beginner"

    def test_master_has_no_next(self):
        assert next_level(3000) is None


class TestProgressToNextLevel:
    """Tests for progress percentages."""

    def test_halfway(self):
        progress = progress_to_next_level(50)

        assert progress.level.id == "amateur"
        assert progress.next_level.id == "beginner"
        assert progress.progress_percent == 50
        assert progress.points_to_next == 50

    def test_top_level_is_complete(self):
        progress = progress_to_next_level(2600)

        assert progress.next_level is None
        assert progress.progress_percent == 100
        assert progress.points_to_next == 0

    def test_negative_points_clamped(self):
        progress = progress_to_next_level(-10)

        assert progress.progress_percent == 0
        assert progress.points_to_next == 110


class TestCheckLevelChange:
    def test_level_up(self):
        change = check_level_change(95, 105)

        assert change.leveled_up is True
        assert change.old_level.id == "amateur"
        assert change.new_level.id == "beginner"
        assert change.points_gained == 10

    def test_same_level(self):
        assert check_level_change(10, 20).leveled_up is False

    def test_drop_is_not_level_up(self):
        assert check_level_change(105, 95).leveled_up is False
