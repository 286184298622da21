"""Segment planner: splits a request into ordered, timed segments."""

import logging
import math

from openai import OpenAI

from reelsmith.config import get_settings
from reelsmith.models.errors import InvalidConfig
from reelsmith.models.job import JobConfig
from reelsmith.models.segments import SegmentPlan, SegmentRole, SegmentSpec
from reelsmith.planning.parser import extract_descriptions, parse_llm_response
from reelsmith.planning.prompts import SYSTEM_PROMPT, build_description_prompt

logger = logging.getLogger(__name__)


class SegmentPlanner:
    """Plans segment count and durations; describes visuals by LLM or fallback rules.

    Segment count and durations are always computed here. The LLM, when
    configured, only supplies the visual description text.
    """

    def __init__(
        self,
        client: OpenAI | None = None,
        model: str | None = None,
        target_segment_duration: float | None = None,
        max_duration_secs: float | None = None,
    ):
        settings = get_settings()
        self.model = model or settings.openai_model
        self.target_segment_duration = (
            target_segment_duration
            if target_segment_duration is not None
            else settings.target_segment_duration
        )
        self.max_duration_secs = (
            max_duration_secs if max_duration_secs is not None else settings.max_duration_secs
        )
        if self.target_segment_duration <= 0:
            raise ValueError("target_segment_duration must be positive")
        self.client = client
        if self.client is None and settings.openai_api_key:
            self.client = OpenAI(api_key=settings.openai_api_key)

    def validate(self, config: JobConfig) -> None:
        """Reject requests whose duration cannot be planned."""
        duration = config.duration_secs
        if not math.isfinite(duration) or duration <= 0:
            raise InvalidConfig(
                f"Requested duration must be positive, got {duration}",
                details={"duration_secs": duration},
            )
        if duration > self.max_duration_secs:
            raise InvalidConfig(
                f"Requested duration {duration}s exceeds maximum of {self.max_duration_secs}s",
                details={"duration_secs": duration, "max_duration_secs": self.max_duration_secs},
            )

    def segment_count(self, duration_secs: float) -> int:
        # Rounding guards against 12.000000001 / 4 planning a fourth, near-empty segment.
        return max(1, math.ceil(round(duration_secs / self.target_segment_duration, 6)))

    def plan(self, config: JobConfig) -> SegmentPlan:
        """Build the segment plan for a request."""
        self.validate(config)
        count = self.segment_count(config.duration_secs)
        durations = self._durations(config.duration_secs, count)
        roles = self._roles(count)

        descriptions = None
        if self.client:
            try:
                descriptions = self._call_llm(config, roles, durations)
            except Exception as e:
                logger.warning(f"LLM description failed, using fallback: {e}")
        if descriptions is None:
            descriptions = self._fallback_descriptions(config, roles)

        segments = [
            SegmentSpec(
                index=i,
                visual_description=descriptions[i],
                duration_secs=durations[i],
                depends_on_reference=True,
                role=roles[i],
            )
            for i in range(count)
        ]
        return SegmentPlan(segments=segments, target_segment_duration=self.target_segment_duration)

    def _durations(self, total: float, count: int) -> list[float]:
        """Full-length segments followed by one remainder segment."""
        durations = [self.target_segment_duration] * (count - 1)
        remainder = round(total - sum(durations), 4)
        durations.append(remainder if remainder > 0 else self.target_segment_duration)
        return durations

    @staticmethod
    def _roles(count: int) -> list[SegmentRole]:
        if count == 1:
            return [SegmentRole.HOOK]
        return [SegmentRole.HOOK] + [SegmentRole.BODY] * (count - 2) + [SegmentRole.CALL_TO_ACTION]

    def _call_llm(
        self, config: JobConfig, roles: list[SegmentRole], durations: list[float]
    ) -> list[str]:
        prompt = build_description_prompt(
            topic=config.topic,
            style=config.style,
            language=config.language,
            segments=[
                {"index": i, "role": role.value, "duration_secs": durations[i]}
                for i, role in enumerate(roles)
            ],
            target_audience=config.target_audience,
        )

        response = self.client.chat.completions.create(
            model=self.model,
            messages=[
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": prompt},
            ],
            response_format={"type": "json_object"},
            temperature=0.7,
        )

        response_text = response.choices[0].message.content
        return extract_descriptions(parse_llm_response(response_text), len(roles))

    @staticmethod
    def _fallback_descriptions(config: JobConfig, roles: list[SegmentRole]) -> list[str]:
        audience = f" for {config.target_audience}" if config.target_audience else ""
        body_total = sum(1 for r in roles if r == SegmentRole.BODY)
        descriptions = []
        body_seen = 0
        for role in roles:
            if role == SegmentRole.HOOK:
                text = (
                    f"Attention-grabbing opening shot introducing {config.topic}{audience}, "
                    f"close-up with dynamic camera motion"
                )
            elif role == SegmentRole.CALL_TO_ACTION:
                text = (
                    f"Closing shot on {config.topic} with an inviting gesture "
                    f"toward the viewer to like and follow"
                )
            else:
                body_seen += 1
                text = (
                    f"Scene {body_seen} of {body_total} explaining {config.topic}{audience}, "
                    f"clear visual demonstration of the key point"
                )
            descriptions.append(f"{text}, {config.style} style")
        return descriptions
