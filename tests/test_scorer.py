from __future__ import annotations

from datetime import datetime, timedelta

import pytest

from jobrank import scorer
from jobrank.config import RankingConfig
from jobrank.models import Seniority
from jobrank.scorer import (
    describe_freshness,
    describe_skill_overlap,
    score_factors,
    score_freshness,
    score_location_fit,
    score_query_relevance,
    score_seniority_alignment,
    score_skill_overlap,
    score_source_quality,
    score_title_match,
    title_match_for,
    top_reasons,
    total_score,
)


class TestTitleMatch:
    def test_tier_ordering(self):
        target = "Product Manager"
        exact = title_match_for("Product Manager", target)
        stripped = title_match_for("Senior Product Manager", target)
        partial = title_match_for("Product Marketing Manager", target)
        none = title_match_for("Data Scientist", target)
        assert exact == 1.0
        assert stripped == 1.0
        assert 0 < partial < stripped
        assert none == 0.0

    def test_extra_words_after_phrase_still_full(self):
        assert title_match_for("Senior Product Manager, Growth", "Product Manager") == 1.0

    def test_qualifier_stripped_from_target(self):
        assert title_match_for("Product Manager", "Lead Product Manager") == 1.0

    def test_single_word_target(self):
        assert title_match_for("Backend Engineer", "Engineer") == 1.0
        assert title_match_for("Data Scientist", "Engineer") == 0.0

    def test_word_count_tiers(self):
        target = "Machine Learning Platform Engineer"
        assert title_match_for("Machine Learning Engineer", target) == 0.8
        assert title_match_for("Machine Learning Researcher", target) == 0.6
        assert title_match_for("Platform Designer", target) == 0.3

    def test_max_over_targets(self, make_job, make_profile):
        job = make_job(title="Data Scientist")
        profile = make_profile(target_titles=("Product Manager", "Data Scientist"))
        assert score_title_match(job, profile) == 1.0

    def test_no_targets_scores_zero(self, make_job, make_profile):
        assert score_title_match(make_job(), make_profile(target_titles=())) == 0.0

    def test_uses_normalized_title(self, make_job, make_profile):
        job = make_job(title="Sr. PM (Remote!!)", normalized_title="Senior Product Manager")
        assert score_title_match(job, make_profile()) == 1.0


class TestSkillOverlap:
    def test_normalized_by_smaller_set(self, make_job, make_profile):
        job = make_job(skills=("python", "sql"))
        profile = make_profile(skills=("python", "sql", "react", "aws", "go"))
        assert score_skill_overlap(job, profile) == 1.0

    def test_case_insensitive(self, make_job, make_profile):
        job = make_job(skills=("Python", "SQL", "Docker"))
        profile = make_profile(skills=("python", "sql"))
        assert score_skill_overlap(job, profile) == 1.0

    def test_partial(self, make_job, make_profile):
        job = make_job(skills=("SQL", "Figma"))
        profile = make_profile(skills=("SQL", "A/B Testing"))
        assert score_skill_overlap(job, profile) == 0.5

    @pytest.mark.parametrize("job_skills, user_skills", [((), ("sql",)), (("sql",), ())])
    def test_empty_side_scores_zero(self, make_job, make_profile, job_skills, user_skills):
        assert score_skill_overlap(make_job(skills=job_skills), make_profile(skills=user_skills)) == 0.0

    def test_description_names_overlap(self, make_job, make_profile):
        job = make_job(skills=("SQL", "Figma"))
        text = describe_skill_overlap(job, make_profile(skills=("sql",)), 1.0)
        assert "SQL" in text
        assert "Figma" not in text


class TestSeniority:
    @pytest.mark.parametrize(
        "job_level, user_level, expected",
        [
            (Seniority.SENIOR, Seniority.SENIOR, 1.0),
            (Seniority.MID, Seniority.SENIOR, 0.8),
            (Seniority.JUNIOR, Seniority.SENIOR, 0.5),
            (Seniority.INTERN, Seniority.SENIOR, 0.2),
            (Seniority.INTERN, Seniority.EXECUTIVE, 0.2),
            (None, Seniority.SENIOR, 0.5),
            (Seniority.SENIOR, None, 0.5),
        ],
    )
    def test_distance_scores(self, make_job, make_profile, job_level, user_level, expected):
        score = score_seniority_alignment(make_job(seniority=job_level), make_profile(seniority=user_level))
        assert score == expected


class TestLocationFit:
    def test_no_preference(self, make_job, make_profile):
        job = make_job(allowed_countries=frozenset({"US"}))
        assert score_location_fit(job, make_profile(locations_allowed=frozenset())) == 1.0

    def test_overlap_and_mismatch(self, make_job, make_profile):
        profile = make_profile(locations_allowed=frozenset({"DE"}))
        assert score_location_fit(make_job(allowed_countries=frozenset({"DE", "FR"})), profile) == 1.0
        assert score_location_fit(make_job(allowed_countries=frozenset({"US"})), profile) == 0.0
        assert score_location_fit(make_job(allowed_countries=frozenset({"Worldwide"})), profile) == 1.0

    def test_country_names_match_codes(self, make_job, make_profile):
        profile = make_profile(locations_allowed=frozenset({"United Kingdom", "usa"}))
        assert score_location_fit(make_job(allowed_countries=frozenset({"GB"})), profile) == 1.0
        assert score_location_fit(make_job(allowed_countries=frozenset({"US"})), profile) == 1.0
        assert score_location_fit(make_job(allowed_countries=frozenset({"DE"})), profile) == 0.0


class TestFreshness:
    @pytest.mark.parametrize(
        "days, expected",
        [(0, 1.0), (7, 1.0), (8, 0.8), (14, 0.8), (15, 0.6), (30, 0.6), (45, 0.4), (60, 0.4), (61, 0.2), (400, 0.2)],
    )
    def test_tiers(self, make_job, now, days, expected):
        assert score_freshness(make_job(days_old=days), now) == expected

    def test_falls_back_to_first_seen(self, make_job, now):
        job = make_job(days_old=None, first_seen_at=now - timedelta(days=20))
        assert score_freshness(job, now) == 0.6

    def test_unknown_date_is_neutral(self, make_job, now):
        job = make_job(days_old=None)
        assert score_freshness(job, now) == 0.5
        assert describe_freshness(job, now) == "Posting date unknown"

    @pytest.mark.parametrize(
        "days, text",
        [(2, "Posted within the last 3 days"), (6, "Posted this week"),
         (10, "Posted within the last 2 weeks"), (40, "Posted 40 days ago")],
    )
    def test_descriptions(self, make_job, now, days, text):
        assert describe_freshness(make_job(days_old=days), now) == text

    def test_naive_posted_at_still_scored(self, make_job, make_profile, now):
        job = make_job(days_old=None, posted_at=datetime(2026, 2, 3, 12))
        factors = {f.factor: f for f in score_factors(job, make_profile(), RankingConfig(), now=now)}
        assert factors["freshness"].raw == 1.0
        assert factors["freshness"].description == "Posted within the last 3 days"


class TestSourceAndQuery:
    def test_source_table(self, make_job):
        cfg = RankingConfig()
        assert score_source_quality(make_job(source_primary="remotive"), cfg) == 1.0
        assert score_source_quality(make_job(source_primary="adzuna"), cfg) == 0.7
        assert score_source_quality(make_job(source_primary="somewhere"), cfg) == 0.5

    def test_source_override(self, make_job):
        cfg = RankingConfig().with_overrides({"source_quality": {"Somewhere": 0.95}})
        assert score_source_quality(make_job(source_primary="somewhere"), cfg) == 0.95

    def test_query_fraction(self, make_job):
        job = make_job(title="Product Manager", description_text="Fintech payments", skills=("SQL",))
        assert score_query_relevance(job, "product payments crypto") == pytest.approx(2 / 3)

    def test_query_ignores_short_words(self, make_job):
        job = make_job(title="Product Manager")
        assert score_query_relevance(job, "pm of product") == 1.0
        assert score_query_relevance(job, "pm ux") == 0.0


class TestAggregation:
    def test_zero_raw_factors_omitted(self, make_job, make_profile, now):
        job = make_job(title="Data Scientist", skills=("R",))
        factors = score_factors(job, make_profile(), RankingConfig(), now=now)
        names = {f.factor for f in factors}
        assert "title_match" not in names
        assert "skill_overlap" not in names
        assert all(f.raw > 0 and f.weighted > 0 for f in factors)

    def test_zero_weight_factor_not_in_reasons(self, make_job, make_profile, now):
        factors = score_factors(make_job(), make_profile(), RankingConfig(), context_score=0.7, now=now)
        reasons = top_reasons(factors)
        assert "profile_context" not in {r.factor for r in reasons}

    def test_reasons_top_five_sorted(self, make_job, make_profile, now):
        factors = score_factors(make_job(), make_profile(), RankingConfig(), query="product", now=now)
        reasons = top_reasons(factors)
        assert len(reasons) == 5
        scores = [r.score for r in reasons]
        assert scores == sorted(scores, reverse=True)

    def test_total_clamped(self):
        big = [scorer.FactorScore("x", 1.0, 80.0, ""), scorer.FactorScore("y", 1.0, 40.0, "")]
        assert total_score(big) == 100
        assert total_score([]) == 0

    def test_failing_factor_contributes_zero(self, make_job, make_profile, now, monkeypatch, caplog):
        def boom(job, profile):
            raise TypeError("bad data")

        monkeypatch.setattr(scorer, "score_title_match", boom)
        factors = score_factors(make_job(), make_profile(), RankingConfig(), now=now)
        assert "title_match" not in {f.factor for f in factors}
        assert "Factor title_match failed" in caplog.text
