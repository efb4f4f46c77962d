"""Tests for era, genre, object, and caption keyword detection."""

from identification.models import FrameAnalysis, Label
from identification.stages.keywords import (
    decade_of,
    decade_year,
    detect_decade,
    extract_genres,
    extract_keywords,
    extract_significant_objects,
)


class TestDecadeDetection:
    def test_literal_decade_token(self):
        analysis = FrameAnalysis(caption="Neon-lit street typical of the 1980s")
        assert detect_decade(analysis) == "1980s"

    def test_bare_year_rounds_down_to_decade(self, analysis):
        assert detect_decade(analysis) == "1980s"

    def test_decade_found_in_labels(self):
        analysis = FrameAnalysis(caption="A car", labels=[Label(name="1970s fashion", confidence=0.8)])
        assert detect_decade(analysis) == "1970s"

    def test_no_era(self):
        assert detect_decade(FrameAnalysis(caption="A cat on a sofa")) == ""

    def test_helpers(self):
        assert decade_of(1985) == 1980
        assert decade_of(2000) == 2000
        assert decade_year("1990s") == 1990
        assert decade_year("") is None


class TestGenres:
    def test_genres_in_vocabulary_order(self, analysis):
        assert extract_genres(analysis) == ["action", "sci-fi"]

    def test_case_insensitive(self):
        analysis = FrameAnalysis(caption="A HORROR scene", labels=[Label(name="Comedy", confidence=0.5)])
        assert extract_genres(analysis) == ["comedy", "horror"]

    def test_none(self):
        assert extract_genres(FrameAnalysis(caption="A quiet lake")) == []


class TestSignificantObjects:
    def test_confident_objects_only(self):
        analysis = FrameAnalysis(labels=[
            Label(name="Car", confidence=0.95),
            Label(name="Gun", confidence=0.5),
            Label(name="Tree", confidence=0.99),
        ])
        assert extract_significant_objects(analysis) == ["car"]

    def test_threshold_is_exclusive(self):
        analysis = FrameAnalysis(labels=[Label(name="Robot", confidence=0.7)])
        assert extract_significant_objects(analysis) == []

    def test_duplicates_collapsed(self):
        analysis = FrameAnalysis(labels=[
            Label(name="Car", confidence=0.9),
            Label(name="car", confidence=0.8),
        ])
        assert extract_significant_objects(analysis) == ["car"]


class TestCaptionKeywords:
    def test_long_words_without_punctuation(self):
        assert extract_keywords("A spaceship flies over a desert city.") == ["spaceship", "flies", "desert"]

    def test_refusal_phrases_removed(self):
        keywords = extract_keywords("I'm unable to identify the specific movie, however provide details")
        assert "unable" not in keywords
        assert "specific" not in keywords
        assert keywords == ["details"]

    def test_stop_words_removed(self):
        assert extract_keywords("images would should frame scene provide") == []
