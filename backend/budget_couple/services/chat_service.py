"""Chat service: orchestrates financial-assistant conversations.

Flow:
  1. Build the couple's report for the requested period (read-only).
  2. Render it as the system prompt.
  3. Send the prompt plus the last N client-supplied messages to the
     configured LLM provider.
  4. If the provider fails, answer with a "try again" message that still
     surfaces the computed insights. Chat never raises on provider errors.
"""

from datetime import datetime

import structlog

from budget_couple.config import settings
from budget_couple.schemas.ai import ChatContextInfo, ChatResponse, HistoryMessage
from budget_couple.schemas.dashboard import ChatContext
from budget_couple.schemas.finance import Insight, PeriodKeyword
from budget_couple.services.llm_provider import (
    LLMProviderBase,
    LLMProviderError,
    get_llm_provider,
)
from budget_couple.services.ports import FinanceStore
from budget_couple.services.prompt import build_system_prompt
from budget_couple.services.report_service import FinanceReportService

logger = structlog.get_logger()

RETRY_MESSAGE = "Sorry, I can't reach the assistant right now. Please try again in a moment."


def fallback_answer(insights: list[Insight]) -> str:
    """Retry message, followed by whatever the engine already computed."""
    if not insights:
        return RETRY_MESSAGE
    lines = [RETRY_MESSAGE, "", "Meanwhile, here is what stands out in your finances:"]
    lines.extend(f"- {insight.message}" for insight in insights)
    return "\n".join(lines)


def trim_history(history: list[HistoryMessage], limit: int) -> list[dict]:
    """Keep the ``limit`` most recent messages as provider-ready dicts."""
    recent = history[-limit:] if limit > 0 else []
    return [{"role": m.role, "content": m.content} for m in recent]


class ChatService:
    def __init__(self, store: FinanceStore, provider: LLMProviderBase | None = None):
        self.reports = FinanceReportService(store)
        self.provider = provider or get_llm_provider()

    async def chat(
        self,
        user_id: int,
        content: str,
        conversation_history: list[HistoryMessage] | None = None,
        period: str | PeriodKeyword | None = PeriodKeyword.MONTH,
        now: datetime | None = None,
    ) -> ChatResponse:
        context = await self.reports.build_chat_context(user_id, period, now)
        report = context.report
        system_prompt = build_system_prompt(
            context.profile,
            report.summary,
            report.goals,
            report.trend.insights,
            trend=report.trend,
            period=report.period,
            yearly=report.yearly_summary,
            recent=report.recent_transactions,
        )

        messages = trim_history(conversation_history or [], settings.ai_chat_history_length)
        messages.append({"role": "user", "content": content})

        info = self._context_info(context)
        try:
            answer = await self.provider.chat(system_prompt, messages)
        except LLMProviderError as e:
            logger.warning(
                "chat_provider_failed",
                user_id=user_id,
                provider=e.provider,
                detail=e.detail,
            )
            return ChatResponse(
                message=fallback_answer(report.trend.insights),
                error=str(e),
                context=info,
            )

        logger.info(
            "chat_answered",
            user_id=user_id,
            provider=self.provider.name,
            history=len(messages) - 1,
            prompt_chars=len(system_prompt),
        )
        return ChatResponse(message=answer, context=info)

    def _context_info(self, context: ChatContext) -> ChatContextInfo:
        report = context.report
        return ChatContextInfo(
            has_data=report.has_data,
            period=report.period.period,
            total_income=report.summary.total_income,
            total_expenses=report.summary.total_expenses,
            balance=report.summary.balance,
            savings_rate=report.summary.savings_rate,
            spending_trend=report.trend.spending_trend,
            goals=len(report.goals),
            insights=len(report.trend.insights),
            provider=self.provider.name,
        )
