"""후보 정렬, 다양성 규칙, 페이지네이션"""

from typing import Mapping, Optional, Sequence

from app.core.utils.datetime import ensure_utc
from app.domains.recommendation.types import Candidate, ContentFeatures


def _published_ts(features: Optional[ContentFeatures]) -> float:
    if features is None or features.published_at is None:
        return float("-inf")
    return ensure_utc(features.published_at).timestamp()


def sort_candidates(
    candidates: Sequence[Candidate],
    features: Mapping[str, ContentFeatures],
) -> list[Candidate]:
    """점수 내림차순 → 최근 발행순 → content_id 오름차순"""
    return sorted(
        candidates,
        key=lambda c: (
            -c.score,
            -_published_ts(features.get(c.content_id)),
            c.content_id,
        ),
    )


def diversify(
    ranked: Sequence[Candidate],
    features: Mapping[str, ContentFeatures],
    max_consecutive: int,
) -> list[Candidate]:
    """같은 대표 카테고리가 max_consecutive개를 넘게 연속되지 않도록 재배치

    남은 후보가 모두 같은 카테고리라면 순서대로 그대로 붙입니다.
    카테고리가 없는 후보는 제한을 받지 않습니다. max_consecutive가 0이면 그대로 반환.
    """
    if max_consecutive <= 0:
        return list(ranked)

    def category(candidate: Candidate) -> Optional[str]:
        item = features.get(candidate.content_id)
        return item.primary_category if item else None

    remaining = list(ranked)
    result: list[Candidate] = []
    run_category: Optional[str] = None
    run_length = 0

    while remaining:
        pick = 0
        if run_category is not None and run_length >= max_consecutive:
            for index, candidate in enumerate(remaining):
                if category(candidate) != run_category:
                    pick = index
                    break

        chosen = remaining.pop(pick)
        chosen_category = category(chosen)
        if chosen_category is not None and chosen_category == run_category:
            run_length += 1
        else:
            run_category = chosen_category
            run_length = 1 if chosen_category is not None else 0
        result.append(chosen)

    return result


def paginate(
    ranked: Sequence[Candidate], count: int, offset: int
) -> tuple[list[Candidate], bool]:
    """offset/count 적용 후 1부터 시작하는 전체 순위를 부여

    has_more는 반환 개수 == count 여부입니다 (정확한 전체 개수가 아닌 근사값).
    """
    page = [
        candidate.model_copy(update={"rank": offset + index + 1})
        for index, candidate in enumerate(ranked[offset : offset + count])
    ]
    return page, len(page) == count
