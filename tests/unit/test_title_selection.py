"""
Unit tests for episode title candidate ranking.
"""

from services.title_selection import best_episode_title, score_episode_title_candidate

LONG_TITLE = (
    "Turning Air, Water, and Sunlight into Natural Gas: "
    "Casey Handmer's Vision for Sustainable Energy"
)


class TestScoreEpisodeTitleCandidate:
    """Tests for score_episode_title_candidate()"""

    def test_base_is_length(self):
        assert score_episode_title_candidate("Short title") == 11

    def test_length_capped_at_180(self):
        assert score_episode_title_candidate("x" * 400) == 180

    def test_youtube_dash_suffix_penalty(self):
        title = "Great Episode - YouTube"
        assert score_episode_title_candidate(title) == len(title) - 45

    def test_youtube_pipe_suffix_penalty(self):
        title = "Great Episode | youtube"
        assert score_episode_title_candidate(title) == len(title) - 35

    def test_apple_podcasts_penalty(self):
        title = "Great Episode on Apple Podcasts"
        assert score_episode_title_candidate(title) == len(title) - 20

    def test_empty(self):
        assert score_episode_title_candidate("") == 0
        assert score_episode_title_candidate("   ") == 0


class TestBestEpisodeTitle:
    """Tests for best_episode_title()"""

    def test_prefers_title_without_youtube_suffix(self):
        chosen = best_episode_title([f"{LONG_TITLE} - YouTube", LONG_TITLE])
        assert chosen == LONG_TITLE

    def test_returns_trimmed_input_member(self):
        titles = ["  Padded Title  ", "Tiny"]
        assert best_episode_title(titles) == "Padded Title"

    def test_ties_keep_first_seen(self):
        assert best_episode_title(["abcd", "wxyz"]) == "abcd"

    def test_stable_under_duplicates(self):
        titles = ["Episode One", "Episode Two!", "Episode One"]
        assert best_episode_title(titles) == best_episode_title(titles + titles)

    def test_empty_inputs(self):
        assert best_episode_title([]) == ""
        assert best_episode_title(["", "   "]) == ""
        assert best_episode_title(None) == ""
