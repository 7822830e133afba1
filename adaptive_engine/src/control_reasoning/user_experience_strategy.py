"""
User Experience Adaptation Strategy

Maps recurring complaints in user feedback onto code generation settings.
"""

from typing import List, Optional, Sequence, Tuple

from .adaptation_strategy import AdaptationStrategy, KnobLocks, SubRule
from ..domain.interfaces import CodeGenerationOptimizer
from ..domain.models import (
    AdaptationNeed, AdaptationType, AppliedAdaptation, FeedbackSeverity, SystemState,
    UserFeedback, VerbosityLevel
)


_SATISFACTION_BY_SEVERITY = {
    FeedbackSeverity.LOW: 1.0,
    FeedbackSeverity.MEDIUM: 0.5,
    FeedbackSeverity.HIGH: 0.0,
    FeedbackSeverity.CRITICAL: -0.5,
}

NEUTRAL_SATISFACTION = 0.5

CODE_QUALITY_KEYWORDS = ("code quality", "bug", "error")
VERBOSE_KEYWORDS = ("verbose", "too long")
UNCLEAR_KEYWORDS = ("unclear", "confusing")
SLOW_KEYWORDS = ("slow", "timeout")
ERROR_MESSAGE_KEYWORDS = ("error message", "unclear error")
DOCUMENTATION_KEYWORDS = ("documentation", "explanation")


def extract_complaints(feedback: Sequence[UserFeedback]) -> List[str]:
    """Lower-cased content of feedback items with at least medium severity."""
    return [item.content.lower() for item in feedback if item.severity >= FeedbackSeverity.MEDIUM]


def satisfaction_score(feedback: Sequence[UserFeedback]) -> float:
    """Mean satisfaction of the feedback, neutral when there is none."""
    if not feedback:
        return NEUTRAL_SATISFACTION
    return sum(_SATISFACTION_BY_SEVERITY[item.severity] for item in feedback) / len(feedback)


def satisfaction_trend(feedback: Sequence[UserFeedback]) -> float:
    """
    Satisfaction of the newer half of the feedback minus the older half.

    Positive values mean users are getting happier. With an odd number of
    items the middle one belongs to neither half; fewer than two items give 0.0.
    """
    ordered = sorted(feedback, key=lambda item: item.timestamp)
    half = len(ordered) // 2
    if half == 0:
        return 0.0
    return satisfaction_score(ordered[-half:]) - satisfaction_score(ordered[:half])


def mentions_any(complaints: Sequence[str], keywords: Tuple[str, ...]) -> bool:
    return any(keyword in complaint for complaint in complaints for keyword in keywords)


class UserExperienceAdaptationStrategy(AdaptationStrategy):
    """Reacts to complaint keywords with targeted code generation changes."""

    STRATEGY_ID = "UserExperience.Dynamic"

    def __init__(self, code_generation_optimizer: CodeGenerationOptimizer,
                 knob_locks: Optional[KnobLocks] = None):
        super().__init__(knob_locks)
        self._optimizer = code_generation_optimizer

    @property
    def strategy_id(self) -> str:
        return self.STRATEGY_ID

    @property
    def supported_adaptation_type(self) -> AdaptationType:
        return AdaptationType.USER_EXPERIENCE_OPTIMIZATION

    def description(self) -> str:
        return "User experience optimization based on feedback analysis"

    def can_handle(self, need: AdaptationNeed) -> bool:
        return (need.adaptation_type == self.supported_adaptation_type
                and len(need.context.recent_feedback) > 0)

    def _high_severity_count(self, state: SystemState) -> int:
        return sum(1 for item in state.recent_feedback if item.severity >= FeedbackSeverity.HIGH)

    def priority(self, state: SystemState) -> int:
        count = self._high_severity_count(state)
        if count >= 3:
            return 90
        if count == 2:
            return 70
        if count == 1:
            return 50
        return 30

    def estimated_improvement(self, need: AdaptationNeed) -> float:
        count = self._high_severity_count(need.context)
        if count >= 3:
            return 1.5
        if count == 2:
            return 1.3
        if count == 1:
            return 1.2
        return 1.1

    def sub_rules(self) -> List[SubRule]:
        return [
            ("code_quality", self._improve_code_quality),
            ("verbosity", self._adjust_verbosity),
            ("response_time", self._speed_up_responses),
            ("error_messages", self._enhance_error_messages),
            ("documentation", self._enhance_documentation),
        ]

    def _complaints(self, need: AdaptationNeed) -> List[str]:
        return extract_complaints(need.context.recent_feedback)

    def _parameters(self, need: AdaptationNeed, keywords: Tuple[str, ...]) -> dict:
        feedback = need.context.recent_feedback
        complaints = extract_complaints(feedback)
        return {
            "matched_keywords": [k for k in keywords if mentions_any(complaints, (k,))],
            "complaint_count": len(complaints),
            "satisfaction": satisfaction_score(feedback),
            "satisfaction_trend": satisfaction_trend(feedback),
        }

    async def _improve_code_quality(self, need: AdaptationNeed) -> Optional[AppliedAdaptation]:
        if not mentions_any(self._complaints(need), CODE_QUALITY_KEYWORDS):
            return None

        await self._apply(
            "codegen.quality",
            self._optimizer.enable_enhanced_validation,
            self._optimizer.increase_test_coverage,
        )
        return self._adaptation(
            "CodeGeneration.QualityImprovement",
            "Enabled enhanced validation and increased test coverage",
            1.4,
            self._parameters(need, CODE_QUALITY_KEYWORDS),
        )

    async def _adjust_verbosity(self, need: AdaptationNeed) -> Optional[AppliedAdaptation]:
        # One verbosity knob: complaints about length win over requests for detail.
        complaints = self._complaints(need)
        if mentions_any(complaints, VERBOSE_KEYWORDS):
            level, keywords = VerbosityLevel.CONCISE, VERBOSE_KEYWORDS
            adaptation_type, description, factor = (
                "CodeGeneration.VerbosityReduction", "Reduced output verbosity", 1.2
            )
        elif mentions_any(complaints, UNCLEAR_KEYWORDS):
            level, keywords = VerbosityLevel.DETAILED, UNCLEAR_KEYWORDS
            adaptation_type, description, factor = (
                "CodeGeneration.VerbosityIncrease", "Increased output detail", 1.3
            )
        else:
            return None

        await self._apply("codegen.verbosity", lambda: self._optimizer.set_verbosity_level(level))
        return self._adaptation(adaptation_type, description, factor, self._parameters(need, keywords))

    async def _speed_up_responses(self, need: AdaptationNeed) -> Optional[AppliedAdaptation]:
        if not mentions_any(self._complaints(need), SLOW_KEYWORDS):
            return None

        await self._apply("codegen.speed", self._optimizer.enable_speed_optimization)
        return self._adaptation(
            "ResponseTime.SpeedOptimization",
            "Enabled speed optimizations",
            1.5,
            self._parameters(need, SLOW_KEYWORDS),
        )

    async def _enhance_error_messages(self, need: AdaptationNeed) -> Optional[AppliedAdaptation]:
        if not mentions_any(self._complaints(need), ERROR_MESSAGE_KEYWORDS):
            return None

        await self._apply("codegen.error_messages", self._optimizer.enable_enhanced_error_messages)
        return self._adaptation(
            "ErrorHandling.EnhancedMessages",
            "Enabled enhanced error messages",
            1.3,
            self._parameters(need, ERROR_MESSAGE_KEYWORDS),
        )

    async def _enhance_documentation(self, need: AdaptationNeed) -> Optional[AppliedAdaptation]:
        if not mentions_any(self._complaints(need), DOCUMENTATION_KEYWORDS):
            return None

        await self._apply("codegen.documentation", self._optimizer.enable_enhanced_documentation)
        return self._adaptation(
            "Documentation.Enhancement",
            "Enabled enhanced documentation",
            1.2,
            self._parameters(need, DOCUMENTATION_KEYWORDS),
        )
