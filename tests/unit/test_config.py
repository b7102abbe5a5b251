"""Config 설정 검증 테스트"""

import pytest
from pydantic import ValidationError

from app.core.config import Settings
from app.domains.recommendation.types import ActionType
from app.domains.recommendation.weights import ScoringWeights

VALID_KEY = "valid-internal-api-key-with-32-characters-minimum"


class TestDevelopmentConfig:
    """개발 환경 설정 테스트"""

    def test_development_allows_default_keys(self):
        """개발 환경에서는 기본 키 허용"""
        config = Settings(
            app_env="development",
            internal_api_key="your-internal-api-key-here",
        )
        assert config.is_development
        assert config.internal_api_key == "your-internal-api-key-here"

    def test_cors_origins_from_comma_separated_string(self):
        """쉼표로 구분된 CORS origin 문자열 파싱"""
        config = Settings(cors_origins="http://a.com, http://b.com")
        assert config.cors_origins == ["http://a.com", "http://b.com"]

    def test_cors_origins_from_json_string(self):
        """JSON 배열 형식 CORS origin 파싱"""
        config = Settings(cors_origins='["http://a.com"]')
        assert config.cors_origins == ["http://a.com"]


class TestProductionConfig:
    """프로덕션 환경 설정 검증 테스트"""

    def test_production_rejects_default_internal_api_key(self):
        """프로덕션에서 기본 Internal API Key 거부"""
        with pytest.raises(ValidationError) as exc_info:
            Settings(
                app_env="production",
                internal_api_key="your-internal-api-key-here",
            )

        assert "INTERNAL_API_KEY" in str(exc_info.value)

    def test_production_rejects_short_internal_api_key(self):
        """프로덕션에서 짧은 Internal API Key 거부"""
        with pytest.raises(ValidationError) as exc_info:
            Settings(app_env="production", internal_api_key="short-key")

        assert "32 characters" in str(exc_info.value)

    def test_production_accepts_valid_keys(self):
        """프로덕션에서 유효한 키 허용"""
        config = Settings(app_env="production", internal_api_key=VALID_KEY)
        assert config.is_production
        assert len(config.internal_api_key) >= 32


class TestRecommendationConfig:
    """추천 관련 설정 테스트"""

    def test_defaults(self):
        config = Settings()
        assert config.candidate_pool_size == 200
        assert config.profile_action_window == 1000
        assert config.seen_window == 100
        assert config.exclude_seen is True
        assert config.max_batch_actions == 100
        assert config.max_batch_scenarios == 10

    def test_debug_trace_follows_debug_when_unset(self):
        """include_debug_trace 미지정 시 debug 값을 따름"""
        assert Settings(debug=True).debug_trace_enabled is True
        assert Settings(debug=False).debug_trace_enabled is False

    def test_debug_trace_explicit_override(self):
        config = Settings(debug=True, include_debug_trace=False)
        assert config.debug_trace_enabled is False


class TestScoringWeights:
    """점수 가중치 설정 테스트"""

    def test_default_action_weights(self):
        """좋아요/저장이 조회보다 강한 신호"""
        weights = ScoringWeights()
        assert weights.view == 1.0
        assert weights.like == 5.0
        assert weights.collect == 3.0
        assert weights.comment == 4.0
        assert weights.like > weights.collect > weights.view

    def test_env_prefix_override(self, monkeypatch):
        """SCORING_ 환경 변수로 가중치 조정"""
        monkeypatch.setenv("SCORING_LIKE", "7.5")
        monkeypatch.setenv("SCORING_MAX_CONSECUTIVE_SAME_CATEGORY", "0")

        weights = ScoringWeights()

        assert weights.like == 7.5
        assert weights.max_consecutive_same_category == 0

    def test_candidate_thresholds(self, monkeypatch):
        """품질 하한 0.6, 개인화 최소 행동 수 5 (환경 변수로 조정 가능)"""
        assert ScoringWeights().min_quality_score == 0.6
        assert ScoringWeights().personalization_min_actions == 5

        monkeypatch.setenv("SCORING_MIN_QUALITY_SCORE", "0.3")
        monkeypatch.setenv("SCORING_PERSONALIZATION_MIN_ACTIONS", "10")
        weights = ScoringWeights()

        assert weights.min_quality_score == 0.3
        assert weights.personalization_min_actions == 10

    def test_rejects_negative_coefficient(self):
        with pytest.raises(ValidationError):
            ScoringWeights(quality_coeff=-0.1)

    def test_rejects_positive_unlike_weight(self):
        """unlike 가중치는 0 이하만 허용"""
        with pytest.raises(ValidationError):
            ScoringWeights(unlike=1.0)

    def test_read_time_weight_uses_seconds(self):
        """read_time 가중치 = 체류 시간(초) × read_time_per_second"""
        weights = ScoringWeights(read_time_per_second=0.01)

        assert weights.action_weight(ActionType.READ_TIME, 300) == pytest.approx(3.0)
        assert weights.action_weight(ActionType.READ_TIME, None) == 0.0

    def test_action_weight_by_type(self):
        weights = ScoringWeights()
        assert weights.action_weight(ActionType.LIKE) == 5.0
        assert weights.action_weight(ActionType.UNLIKE) == -5.0
