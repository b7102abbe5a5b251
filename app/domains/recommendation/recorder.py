"""사용자 행동 기록

행동을 검증해 이벤트 저장소에 추가하고, 대상 글의 참여 카운터를 갱신합니다.
카운터 갱신 실패는 로그만 남기고 기록 결과에는 영향을 주지 않습니다.
"""

import uuid
from datetime import datetime
from typing import Any, Callable, Mapping, Optional, Sequence, Union

from pydantic import ValidationError

from app.core.exceptions import BaseAPIException, ErrorCode
from app.core.logging import get_logger
from app.core.middlewares.context import get_request_id
from app.core.utils.datetime import now_utc
from app.domains.recommendation.exceptions import (
    AuthRequiredException,
    BatchTooLargeException,
    InvalidActionTypeException,
    TargetIdRequiredException,
)
from app.domains.recommendation.ports import (
    ContentFeatureRepository,
    EngagementField,
    EventStore,
)
from app.domains.recommendation.types import (
    ActionFailure,
    ActionInput,
    ActionType,
    BatchRecordResult,
    UserAction,
)

logger = get_logger(__name__)

ANONYMOUS_PREFIX = "anon:"

# 행동 유형 → (카운터, 증감)
ENGAGEMENT_UPDATES: dict[ActionType, tuple[EngagementField, int]] = {
    ActionType.VIEW: ("views", 1),
    ActionType.LIKE: ("likes", 1),
    ActionType.UNLIKE: ("likes", -1),
    ActionType.COLLECT: ("collects", 1),
    ActionType.COMMENT: ("comments", 1),
    ActionType.SHARE: ("shares", 1),
}


def parse_action_type(value: Any) -> ActionType:
    """문자열 → ActionType (지원하지 않으면 InvalidActionTypeException)"""
    try:
        return ActionType(str(value).strip().lower())
    except ValueError:
        raise InvalidActionTypeException(
            value, allowed=[t.value for t in ActionType]
        ) from None


class ActionRecorder:
    """행동 기록기"""

    def __init__(
        self,
        events: EventStore,
        contents: ContentFeatureRepository,
        *,
        allow_anonymous: bool = False,
        max_batch_actions: int = 100,
        clock: Callable[[], datetime] = now_utc,
    ):
        self.events = events
        self.contents = contents
        self.allow_anonymous = allow_anonymous
        self.max_batch_actions = max_batch_actions
        self.clock = clock

    def resolve_actor(
        self, user_id: Optional[str], session_id: Optional[str] = None
    ) -> str:
        """기록 주체 결정

        Raises:
            AuthRequiredException: 비로그인이고 익명 추적이 꺼져 있는 경우
        """
        if user_id:
            return user_id
        if not self.allow_anonymous:
            raise AuthRequiredException()
        return f"{ANONYMOUS_PREFIX}{session_id or 'unknown'}"

    async def record(
        self,
        action_input: ActionInput,
        user_id: Optional[str],
        session_id: Optional[str] = None,
    ) -> str:
        """행동 한 건 기록

        Returns:
            생성된 action_id

        Raises:
            AuthRequiredException: 비로그인 사용자
            InvalidActionTypeException: 지원하지 않는 action_type
            TargetIdRequiredException: target_id 누락
            UpstreamException: 이벤트 저장소 장애
        """
        actor = self.resolve_actor(user_id, session_id)
        return await self._record_one(actor, action_input, session_id)

    async def record_batch(
        self,
        items: Sequence[Union[ActionInput, Mapping[str, Any]]],
        user_id: Optional[str],
        session_id: Optional[str] = None,
    ) -> BatchRecordResult:
        """여러 행동을 개별적으로 기록

        한 항목의 실패(검증 오류, 저장소 오류)는 failures에 담기고
        나머지 항목은 계속 처리됩니다.

        Raises:
            AuthRequiredException: 비로그인 사용자
            BatchTooLargeException: max_batch_actions 초과
        """
        actor = self.resolve_actor(user_id, session_id)
        if len(items) > self.max_batch_actions:
            raise BatchTooLargeException(len(items), self.max_batch_actions)

        result = BatchRecordResult()
        for index, item in enumerate(items):
            try:
                action_input = (
                    item
                    if isinstance(item, ActionInput)
                    else ActionInput.model_validate(item)
                )
                action_id = await self._record_one(actor, action_input, session_id)
            except ValidationError as e:
                result.failures.append(
                    ActionFailure(
                        index=index,
                        code=ErrorCode.VALIDATION_ERROR.value,
                        message=str(e.errors()[0].get("msg", "invalid action")),
                    )
                )
            except BaseAPIException as e:
                result.failures.append(
                    ActionFailure(
                        index=index, code=_error_code(e), message=e.message
                    )
                )
            else:
                result.action_ids.append(action_id)

        result.recorded_count = len(result.action_ids)
        result.failed_count = len(result.failures)
        logger.info(
            f"Batch actions recorded: user={actor} "
            f"recorded={result.recorded_count} failed={result.failed_count}",
            extra={"request_id": get_request_id(), "user_id": actor},
        )
        return result

    async def _record_one(
        self,
        actor: str,
        action_input: ActionInput,
        session_id: Optional[str],
    ) -> str:
        action_type = parse_action_type(action_input.action_type)
        target_id = (action_input.target_id or "").strip()
        if not target_id:
            raise TargetIdRequiredException()

        context = dict(action_input.context)
        if session_id and "session_id" not in context:
            context["session_id"] = session_id

        action = UserAction(
            id=str(uuid.uuid4()),
            user_id=actor,
            action_type=action_type,
            target_id=target_id,
            target_type=action_input.target_type or "post",
            value=action_input.value,
            context=context,
            created_at=self.clock(),
        )
        await self.events.append(action)

        logger.info(
            f"Action recorded: user={actor} type={action_type.value} "
            f"target={target_id}",
            extra={"request_id": get_request_id(), "action_id": action.id},
        )

        await self._update_engagement(action)
        return action.id

    async def _update_engagement(self, action: UserAction) -> None:
        update = ENGAGEMENT_UPDATES.get(action.action_type)
        if update is None or action.target_type != "post":
            return

        field_name, delta = update
        try:
            await self.contents.increment_engagement(
                action.target_id, field_name, delta
            )
        except Exception as e:
            logger.warning(
                f"Engagement counter update failed: target={action.target_id} "
                f"field={field_name}: {e}",
                extra={"request_id": get_request_id(), "action_id": action.id},
            )


def _error_code(exc: BaseAPIException) -> str:
    code = exc.error_code
    return str(getattr(code, "value", code))
