"""Recommendation 도메인 라우터

추천, 유사 콘텐츠, 행동 기록, 프로필 관리 API 엔드포인트입니다.
모든 엔드포인트는 내부 API Key 인증이 필요합니다.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query

from app.core.dependencies import (
    get_current_user_id,
    get_session_id,
    verify_internal_api_key,
)
from app.core.schemas import APIResponse, create_response
from app.domains.recommendation.dependencies import (
    get_action_recorder,
    get_profile_service,
    get_recommendation_engine,
    require_user_id,
)
from app.domains.recommendation.engine import RecommendationEngine
from app.domains.recommendation.recorder import ActionRecorder
from app.domains.recommendation.schemas import (
    ActionBatchCreate,
    ActionBatchResponse,
    ActionCreate,
    ActionHistoryResponse,
    ActionRecordedResponse,
    ActionResponse,
    BatchRecommendRequest,
    BatchRecommendResponse,
    ProfileDeleteResponse,
    ProfileRefreshResponse,
    ProfileResponse,
    RecommendationItem,
    RecommendationResponse,
    SeedSummary,
    SimilarItem,
    SimilarResponse,
)
from app.domains.recommendation.service import ProfileService
from app.domains.recommendation.types import (
    RecommendationContext,
    RecommendationRequest,
)

router = APIRouter()


def _split_ids(raw: Optional[str]) -> set[str]:
    if not raw:
        return set()
    return {part.strip() for part in raw.split(",") if part.strip()}


@router.get(
    "/recommend",
    response_model=APIResponse[RecommendationResponse],
    dependencies=[Depends(verify_internal_api_key)],
)
async def recommend(
    count: int = 10,
    offset: int = 0,
    current_post_id: Optional[str] = None,
    source: Optional[str] = None,
    session_id: Optional[str] = None,
    device_type: Optional[str] = None,
    exclude_ids: Optional[str] = Query(
        default=None, description="제외할 콘텐츠 ID (쉼표 구분)"
    ),
    user_id: Optional[str] = Depends(get_current_user_id),
    header_session_id: Optional[str] = Depends(get_session_id),
    engine: RecommendationEngine = Depends(get_recommendation_engine),
):
    """추천 목록 조회

    count(1~50), offset(0 이상) 범위를 벗어나면 400을 반환합니다.
    """
    request = RecommendationRequest(
        user_id=user_id,
        count=count,
        offset=offset,
        exclude_ids=_split_ids(exclude_ids),
        context=RecommendationContext(
            current_post_id=current_post_id,
            source=source,
            session_id=session_id or header_session_id,
            device_type=device_type,
        ),
    )
    result = await engine.recommend(request)
    return create_response(
        data=RecommendationResponse(
            recommendations=[
                RecommendationItem.from_candidate(c) for c in result.recommendations
            ],
            session_id=result.session_id,
            has_more=result.has_more,
            debug=result.debug,
        ),
        message="추천 목록을 조회했습니다.",
    )


@router.post(
    "/recommend/batch",
    response_model=APIResponse[BatchRecommendResponse],
    dependencies=[Depends(verify_internal_api_key)],
)
async def recommend_batch(
    body: BatchRecommendRequest,
    user_id: Optional[str] = Depends(get_current_user_id),
    session_id: Optional[str] = Depends(get_session_id),
    engine: RecommendationEngine = Depends(get_recommendation_engine),
):
    """여러 시나리오 일괄 추천 (실패한 시나리오는 빈 목록)"""
    results = await engine.recommend_batch(
        body.scenarios, user_id=user_id, session_id=session_id
    )
    return create_response(
        data=BatchRecommendResponse(
            results={
                key: [RecommendationItem.from_candidate(c) for c in candidates]
                for key, candidates in results.items()
            }
        ),
        message="배치 추천을 완료했습니다.",
    )


@router.get(
    "/similar",
    response_model=APIResponse[SimilarResponse],
    dependencies=[Depends(verify_internal_api_key)],
)
async def similar(
    post_id: str = Query(..., min_length=1, description="기준 콘텐츠 ID"),
    count: int = 5,
    exclude_same_author: bool = False,
    engine: RecommendationEngine = Depends(get_recommendation_engine),
):
    """유사 콘텐츠 조회 (count 1~20)"""
    result = await engine.similar(
        post_id, count=count, exclude_same_author=exclude_same_author
    )
    return create_response(
        data=SimilarResponse(
            similar=[SimilarItem.from_candidate(c) for c in result.similar],
            seed=SeedSummary.from_features(result.seed),
            debug=result.debug,
        ),
        message="유사 콘텐츠를 조회했습니다.",
    )


@router.post(
    "/actions",
    response_model=APIResponse[ActionRecordedResponse],
    status_code=201,
    dependencies=[Depends(verify_internal_api_key)],
)
async def record_action(
    body: ActionCreate,
    user_id: Optional[str] = Depends(get_current_user_id),
    session_id: Optional[str] = Depends(get_session_id),
    recorder: ActionRecorder = Depends(get_action_recorder),
):
    """행동 기록"""
    action_id = await recorder.record(body, user_id, session_id)
    return create_response(
        data=ActionRecordedResponse(action_id=action_id),
        message="행동이 기록되었습니다.",
    )


@router.put(
    "/actions",
    response_model=APIResponse[ActionBatchResponse],
    dependencies=[Depends(verify_internal_api_key)],
)
async def record_actions_batch(
    body: ActionBatchCreate,
    user_id: Optional[str] = Depends(get_current_user_id),
    session_id: Optional[str] = Depends(get_session_id),
    recorder: ActionRecorder = Depends(get_action_recorder),
):
    """배치 행동 기록 (항목별 실패는 failures에 포함)"""
    result = await recorder.record_batch(body.actions, user_id, session_id)
    return create_response(
        data=ActionBatchResponse(**result.model_dump()),
        message="배치 행동 기록을 완료했습니다.",
    )


@router.get(
    "/actions",
    response_model=APIResponse[ActionHistoryResponse],
    dependencies=[Depends(verify_internal_api_key)],
)
async def list_actions(
    action_type: Optional[str] = None,
    limit: int = Query(default=20, ge=1, le=100),
    offset: int = Query(default=0, ge=0),
    user_id: str = Depends(require_user_id),
    service: ProfileService = Depends(get_profile_service),
):
    """행동 이력 조회 (최신순)"""
    history = await service.list_actions(
        user_id, action_type=action_type, limit=limit, offset=offset
    )
    return create_response(
        data=ActionHistoryResponse(
            actions=[ActionResponse.from_action(a) for a in history.actions],
            total=history.total,
            limit=history.limit,
            offset=history.offset,
            has_more=history.has_more,
        ),
        message="행동 이력을 조회했습니다.",
    )


@router.get(
    "/profile",
    response_model=APIResponse[Optional[ProfileResponse]],
    dependencies=[Depends(verify_internal_api_key)],
)
async def get_profile(
    user_id: str = Depends(require_user_id),
    service: ProfileService = Depends(get_profile_service),
):
    """프로필 조회 (행동이 없으면 data는 null)"""
    profile = await service.get_profile(user_id)
    if profile is None:
        return create_response(data=None, message="프로필을 만들 데이터가 부족합니다.")
    return create_response(
        data=ProfileResponse.from_profile(profile),
        message="프로필을 조회했습니다.",
    )


@router.post(
    "/profile/refresh",
    response_model=APIResponse[ProfileRefreshResponse],
    dependencies=[Depends(verify_internal_api_key)],
)
async def refresh_profile(
    user_id: str = Depends(require_user_id),
    service: ProfileService = Depends(get_profile_service),
):
    """프로필 재구성"""
    profile, refreshed = await service.refresh_profile(user_id)
    return create_response(
        data=ProfileRefreshResponse(
            profile=ProfileResponse.from_profile(profile) if profile else None,
            refreshed=refreshed,
        ),
        message=(
            "프로필을 갱신했습니다."
            if refreshed
            else "프로필을 만들 데이터가 부족합니다."
        ),
    )


@router.delete(
    "/profile",
    response_model=APIResponse[ProfileDeleteResponse],
    dependencies=[Depends(verify_internal_api_key)],
)
async def delete_profile(
    delete_actions: bool = False,
    user_id: str = Depends(require_user_id),
    service: ProfileService = Depends(get_profile_service),
):
    """프로필 삭제 (delete_actions=true면 행동 이력도 삭제)"""
    result = await service.delete_profile(user_id, delete_actions=delete_actions)
    return create_response(
        data=ProfileDeleteResponse(**result),
        message="프로필을 삭제했습니다.",
    )
