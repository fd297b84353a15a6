import pytest

from weatherscent.schemas import Perfume, PerfumePick, PerfumeSuggestion, WeatherData
from weatherscent.services.recommender import (
    build_candidates,
    find_or_create_perfume,
    match_pick,
    save_weather_recommendations,
    select_recommended,
    similar_perfumes,
)
from weatherscent.storage import MemoryStorage, StorageError
from weatherscent.storage.sample_data import SAMPLE_PERFUMES


@pytest.fixture
def catalogue():
    return [Perfume(**p.model_dump(), id=i) for i, p in enumerate(SAMPLE_PERFUMES, start=1)]


class TestCandidates:
    def test_scent_filter_by_category_and_notes(self, catalogue):
        names = [p.name for p in build_candidates(catalogue, ["플로럴"])]
        assert names == ["English Pear & Freesia", "Flowerbomb"]

        # "자스민" is a note, not a category
        names = [p.name for p in build_candidates(catalogue, ["자스민"])]
        assert names == ["Chance Eau Tendre", "Flowerbomb"]

    def test_no_match_returns_whole_catalogue_by_rating(self, catalogue):
        ratings = [p.rating for p in build_candidates(catalogue, ["시프레"])]
        assert ratings == [49, 48, 47, 46, 45]

    def test_no_scents(self, catalogue):
        assert len(build_candidates(catalogue, [])) == 5


class TestMatchPick:
    def test_name_substring_either_way(self, catalogue):
        assert match_pick(PerfumePick(name="Flowerbomb Nectar", brand="?"), catalogue).name == "Flowerbomb"
        assert match_pick(PerfumePick(name="neroli", brand="?"), catalogue).name == "Neroli Portofino"

    def test_brand_equality(self, catalogue):
        assert match_pick(PerfumePick(name="Libre", brand="yves saint laurent"), catalogue).name == "Black Opium"

    def test_no_match(self, catalogue):
        assert match_pick(PerfumePick(name="Aventus", brand="CREED"), catalogue) is None

    def test_name_match_beats_earlier_same_brand_perfume(self):
        no5 = Perfume(id=1, name="No 5", brand="CHANEL", category="플로럴", rating=44)
        chance = Perfume(id=2, name="Chance Eau Tendre", brand="CHANEL", category="프레시", rating=48)

        matched = match_pick(PerfumePick(name="Chance Eau Tendre", brand="CHANEL"), [no5, chance])

        assert matched.name == "Chance Eau Tendre"

    def test_brand_used_only_without_name_match(self):
        no5 = Perfume(id=1, name="No 5", brand="CHANEL", category="플로럴", rating=44)
        chance = Perfume(id=2, name="Chance Eau Tendre", brand="CHANEL", category="프레시", rating=48)

        matched = match_pick(PerfumePick(name="Coco Mademoiselle", brand="chanel"), [no5, chance])

        assert matched.name == "No 5"


class TestSelectRecommended:
    def test_matched_picks_keep_model_reason(self, catalogue):
        picks = [
            PerfumePick(name="Black Opium", brand="YSL", reason="밤에 어울려요"),
            PerfumePick(name="Black Opium", brand="YSL", reason="duplicate"),
            PerfumePick(name="Aventus", brand="CREED", reason="unknown"),
        ]

        result = select_recommended(picks, catalogue, [], "설레는")

        assert [p.name for p in result] == ["Black Opium"]
        assert result[0].reason == "밤에 어울려요"

    def test_falls_back_to_scent_filter(self, catalogue):
        picks = [PerfumePick(name="Aventus", brand="CREED")]

        result = select_recommended(picks, catalogue, ["우디"], "차분한")

        assert [p.name for p in result] == ["Neroli Portofino"]
        assert "차분한" in result[0].reason
        assert "우디" in result[0].reason

    def test_falls_back_to_top_rated(self, catalogue):
        result = select_recommended([], catalogue, ["시프레"], "차분한")

        assert [p.rating for p in result] == [49, 48, 47]


def test_similar_perfumes_same_category(catalogue):
    flowerbomb = catalogue[4]

    similar = similar_perfumes(flowerbomb, catalogue)

    assert [p.name for p in similar] == ["English Pear & Freesia"]


class TestPersistence:
    @pytest.mark.asyncio
    async def test_find_or_create_reuses_existing(self):
        storage = MemoryStorage()

        perfume = await find_or_create_perfume(
            storage, PerfumeSuggestion(name="flowerbomb", brand="viktor & rolf")
        )

        assert perfume.id == 5
        assert len(await storage.get_all_perfumes()) == 5

    @pytest.mark.asyncio
    async def test_find_or_create_creates_with_scaled_rating(self):
        storage = MemoryStorage()

        perfume = await find_or_create_perfume(
            storage, PerfumeSuggestion(name="Santal 33", brand="LE LABO", confidence=0.87)
        )

        assert perfume.id == 6
        assert perfume.rating == 43
        assert perfume.category == "기타"
        assert perfume.views == 0

    @pytest.mark.asyncio
    async def test_save_continues_after_failure(self, monkeypatch):
        storage = MemoryStorage()
        original = storage.create_recommendation
        calls = {"n": 0}

        async def flaky_create(recommendation):
            calls["n"] += 1
            if calls["n"] == 2:
                raise StorageError("connection lost")
            return await original(recommendation)

        monkeypatch.setattr(storage, "create_recommendation", flaky_create)
        suggestions = [
            PerfumeSuggestion(name="A", brand="X"),
            PerfumeSuggestion(name="B", brand="Y"),
            PerfumeSuggestion(name="C", brand="Z"),
        ]

        saved, failed = await save_weather_recommendations(
            storage, 1, WeatherData(temperature=18, condition="Clouds"), suggestions
        )

        assert (saved, failed) == (2, 1)
        rows = await storage.get_recommendations_by_user_id(1)
        assert len(rows) == 2
        assert rows[0].weather_condition == "Clouds"
        assert rows[0].temperature == 18
