"""스키마 단위 테스트"""

from datetime import datetime, timezone

from app.core.schemas import (
    APIResponse,
    ErrorDetail,
    ErrorResponse,
    create_response,
)
from app.domains.recommendation.schemas import (
    ProfileResponse,
    RecommendationItem,
    SeedSummary,
    SimilarItem,
)
from app.domains.recommendation.types import (
    Candidate,
    CandidateSource,
    ContentFeatures,
    UserProfile,
)


class TestAPIResponse:
    """APIResponse 테스트"""

    def test_success_response_with_data(self):
        """데이터가 있는 성공 응답"""
        response = APIResponse(
            success=True,
            data={"content_id": "p1", "rank": 1},
            message="조회 성공",
        )

        assert response.success is True
        assert response.message == "조회 성공"
        assert response.data == {"content_id": "p1", "rank": 1}

    def test_success_response_without_data(self):
        """데이터가 없는 성공 응답"""
        response = APIResponse(success=True, message="삭제 성공")

        assert response.success is True
        assert response.data is None

    def test_default_message(self):
        """기본 메시지"""
        response = APIResponse(success=True)

        assert response.message == "요청이 성공적으로 처리되었습니다."

    def test_create_response_factory(self):
        response = create_response(data=[1, 2], message="목록")

        assert response.success is True
        assert response.data == [1, 2]
        assert response.message == "목록"


class TestErrorResponse:
    """ErrorResponse 테스트"""

    def test_error_response_structure(self):
        """에러 응답 구조 검증"""
        error = ErrorResponse(
            message="기준 콘텐츠를 찾을 수 없습니다.",
            error=ErrorDetail(
                code="CONTENT_NOT_FOUND",
                message="기준 콘텐츠를 찾을 수 없습니다.",
                detail={"content_id": "p1"},
            ),
        )

        assert error.success is False
        assert error.error.code == "CONTENT_NOT_FOUND"
        assert error.error.detail == {"content_id": "p1"}


class TestRecommendationSchemas:
    """추천 응답 스키마 변환 테스트"""

    def test_recommendation_item_from_candidate(self):
        candidate = Candidate(
            content_id="p1",
            score=1.23456789,
            rank=2,
            reason="최근 발행된 글",
            reasons=["최근 발행된 글"],
            source=CandidateSource.RECENT,
        )

        item = RecommendationItem.from_candidate(candidate)

        assert item.content_id == "p1"
        assert item.rank == 2
        assert item.score == 1.234568
        assert item.source == "recent"

    def test_similar_item_keeps_reasons_and_features(self):
        candidate = Candidate(
            content_id="p2",
            score=1.5,
            rank=1,
            reason="같은 작가의 다른 글",
            reasons=["같은 작가의 다른 글", "최근 발행된 글"],
            source=CandidateSource.SIMILAR,
            features={"overlap": 1.0},
        )

        item = SimilarItem.from_candidate(candidate)

        assert item.reasons == ["같은 작가의 다른 글", "최근 발행된 글"]
        assert item.features == {"overlap": 1.0}

    def test_seed_summary_from_features(self):
        seed = ContentFeatures(
            content_id="p1",
            title="FastAPI 입문",
            author="kim",
            categories=["tech"],
            tags=["web"],
        )

        summary = SeedSummary.from_features(seed)

        assert summary.content_id == "p1"
        assert summary.title == "FastAPI 입문"
        assert summary.categories == ["tech"]

    def test_profile_response_from_profile(self):
        profile = UserProfile(
            user_id="user-1",
            interests={"tech": 0.75, "life": 0.25},
            segments=["light_user"],
            updated_at=datetime(2026, 10, 1, tzinfo=timezone.utc),
        )

        response = ProfileResponse.from_profile(profile)

        assert response.user_id == "user-1"
        assert response.interests == {"tech": 0.75, "life": 0.25}
        assert response.segments == ["light_user"]
