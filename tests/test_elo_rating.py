"""
Tests for the ELO rating model.

Focus on the update formula and its pair-level properties.
"""

import pytest

from photo_tournament.models import Photo
from photo_tournament.rating import apply_match, expected_score, update_ratings


class TestEloRating:
    """Test rating updates through the public functions."""

    def test_equal_scores_move_by_half_k(self) -> None:
        """Evenly matched photos should move by k/2 each."""
        # Act
        new_winner, new_loser = update_ratings(1000.0, 1000.0)

        # Assert
        assert new_winner == pytest.approx(1016.0)
        assert new_loser == pytest.approx(984.0)

    @pytest.mark.parametrize("a,b", [(1000.0, 1000.0), (1200.0, 800.0), (-50.0, 3000.0)])
    def test_expected_scores_sum_to_one(self, a: float, b: float) -> None:
        """Expected outcomes of a pair should always sum to 1."""
        assert expected_score(a, b) + expected_score(b, a) == pytest.approx(1.0)

    def test_upset_gains_more_than_expected_win(self) -> None:
        """Beating a stronger photo should be worth more than beating a weaker one."""
        # Act
        favourite_new, _ = update_ratings(1200.0, 1000.0)
        underdog_new, _ = update_ratings(1000.0, 1200.0)

        # Assert
        favourite_gain = favourite_new - 1200.0
        underdog_gain = underdog_new - 1000.0
        assert 0 < favourite_gain < underdog_gain, "Upset should earn a bigger gain"

    def test_winner_gains_and_loser_loses(self) -> None:
        """Winner score should rise and loser score should fall."""
        # Act
        new_winner, new_loser = update_ratings(1100.0, 950.0)

        # Assert
        assert new_winner > 1100.0
        assert new_loser < 950.0

    def test_pair_total_is_preserved(self) -> None:
        """The pair's combined score should be unchanged up to rounding."""
        # Act
        new_winner, new_loser = update_ratings(1234.5, 987.6)

        # Assert
        assert new_winner + new_loser == pytest.approx(1234.5 + 987.6)

    def test_k_factor_scales_update(self) -> None:
        """k=0 should leave scores untouched; larger k should move them further."""
        # Act
        unchanged = update_ratings(1000.0, 1000.0, k=0)
        small = update_ratings(1000.0, 1000.0, k=16)
        large = update_ratings(1000.0, 1000.0, k=64)

        # Assert
        assert unchanged == (1000.0, 1000.0)
        assert small[0] - 1000.0 < large[0] - 1000.0

    def test_negative_scores_are_accepted(self) -> None:
        """Scores may be any finite number."""
        # Act
        new_winner, new_loser = update_ratings(-200.0, -100.0)

        # Assert
        assert new_winner > -200.0
        assert new_loser < -100.0

    def test_apply_match_updates_photos_in_place(self) -> None:
        """apply_match should write the new scores onto the photo objects."""
        # Arrange
        winner = Photo(photo_id="item-0", path="a.jpg")
        loser = Photo(photo_id="item-1", path="b.jpg")

        # Act
        apply_match(winner, loser)

        # Assert
        assert winner.score == pytest.approx(1016.0)
        assert loser.score == pytest.approx(984.0)
