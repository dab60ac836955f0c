"""
Recovery Summary Gateway - one structured completion per finished plan.

The model is forced to answer through a single tool call, whose arguments
are validated against RecoverySummary. Anything unparseable becomes the
neutral fallback summary.
"""
import json
import logging

import httpx
from pydantic import ValidationError

from petdoc.config import Settings, get_settings
from petdoc.errors import GatewayError, GatewayTimeoutError
from petdoc.schemas.chat import CheckinSnapshot, RecoverySummary
from petdoc.schemas.enums import Language, RecoveryTrend
from petdoc.services.ai_client import auth_headers, build_client, raise_for_gateway_status
from petdoc.services.labels import APPETITE_LABELS, ENERGY_LABELS, SYMPTOM_STATUS_LABELS, label_for
from petdoc.services.triage_config import TriageConfig, get_triage_config

logger = logging.getLogger(__name__)

SYSTEM_PROMPTS = {
    Language.ZH: """你是一位温和、专业的宠物健康观察助手。你的任务是根据主人记录的恢复观察数据，提供一个简短的恢复状态总结。

重要规则：
- 不要给出医学诊断
- 不要建议具体药物
- 保持语言温和、支持性
- 如果趋势不好，建议考虑就医检查
- 总结要简洁，2-3句话即可""",
    Language.EN: """You are a gentle, professional pet health observation assistant. Based on the recovery observations the owner recorded, give a short summary of the recovery status.

Rules:
- Do not give a medical diagnosis
- Do not suggest specific medication
- Keep the tone gentle and supportive
- If the trend is poor, suggest considering a vet visit
- Keep the summary to 2-3 sentences""",
}

DAY_LINE = {
    Language.ZH: "第{day}天: 食欲={appetite}, 精力={energy}, 症状={symptom}",
    Language.EN: "Day {day}: appetite={appetite}, energy={energy}, symptoms={symptom}",
}

USER_PROMPT = {
    Language.ZH: "宠物名字：{pet_name}\n观察的主要症状：{main_symptom}\n\n恢复观察记录：\n{lines}\n\n请根据以上记录给出恢复总结。",
    Language.EN: "Pet name: {pet_name}\nMain symptom observed: {main_symptom}\n\nRecovery observations:\n{lines}\n\nPlease summarize the recovery based on these records.",
}


def render_checkin_lines(checkins: list[CheckinSnapshot], language: Language) -> str:
    ordered = sorted(checkins, key=lambda c: c.day_index)
    return "\n".join(
        DAY_LINE[language].format(
            day=c.day_index,
            appetite=label_for(APPETITE_LABELS, c.appetite, language),
            energy=label_for(ENERGY_LABELS, c.energy, language),
            symptom=label_for(SYMPTOM_STATUS_LABELS, c.symptom_status, language),
        )
        for c in ordered
    )


def fallback_summary(config: TriageConfig, language: Language) -> RecoverySummary:
    return RecoverySummary(
        trend=RecoveryTrend(config.recovery.fallback_trend),
        summary=config.recovery.fallback_summary(language),
        suggestion=config.recovery.fallback_suggestion(language),
    )


def summary_tool(name: str, language: Language) -> dict:
    text_language = "Chinese" if language == Language.ZH else "English"
    return {
        "type": "function",
        "function": {
            "name": name,
            "description": "Provide a structured recovery summary",
            "parameters": {
                "type": "object",
                "properties": {
                    "trend": {
                        "type": "string",
                        "enum": [t.value for t in RecoveryTrend],
                        "description": "The overall recovery trend",
                    },
                    "summary": {
                        "type": "string",
                        "description": f"A 2-3 sentence summary in {text_language}",
                    },
                    "suggestion": {
                        "type": "string",
                        "description": f"Suggestion in {text_language} (continue observing or consider vet visit)",
                    },
                },
                "required": ["trend", "summary", "suggestion"],
                "additionalProperties": False,
            },
        },
    }


class SummaryGateway:
    """Non-streamed, tool-call completion producing a RecoverySummary."""

    def __init__(
        self,
        settings: Settings | None = None,
        config: TriageConfig | None = None,
        client: httpx.AsyncClient | None = None,
    ):
        self.settings = settings or get_settings()
        self._config = config
        self.client = client or build_client(self.settings)

    @property
    def config(self) -> TriageConfig:
        return self._config or get_triage_config()

    def build_payload(
        self,
        pet_name: str,
        main_symptom: str,
        checkins: list[CheckinSnapshot],
        language: Language,
    ) -> dict:
        tool_name = self.config.gateway.summary_tool_name
        user_prompt = USER_PROMPT[language].format(
            pet_name=pet_name,
            main_symptom=main_symptom,
            lines=render_checkin_lines(checkins, language),
        )
        payload = {
            "model": self.settings.ai_model,
            "messages": [
                {"role": "system", "content": SYSTEM_PROMPTS[language]},
                {"role": "user", "content": user_prompt},
            ],
            "tools": [summary_tool(tool_name, language)],
            "tool_choice": {"type": "function", "function": {"name": tool_name}},
        }
        if self.config.gateway.temperature is not None:
            payload["temperature"] = self.config.gateway.temperature
        return payload

    async def summarize(
        self,
        pet_name: str,
        main_symptom: str,
        checkins: list[CheckinSnapshot],
        language: Language,
    ) -> RecoverySummary:
        """
        Ask for a summary of the given checkins.

        Returns the fallback when the tool output is missing or invalid.
        Raises RateLimitedError / QuotaExceededError / GatewayError /
        GatewayTimeoutError for transport and status failures.
        """
        payload = self.build_payload(pet_name, main_symptom, checkins, language)

        try:
            response = await self.client.post(
                self.settings.ai_gateway_url,
                headers=auth_headers(self.settings),
                json=payload,
                timeout=self.settings.summary_timeout_seconds,
            )
        except httpx.TimeoutException as e:
            raise GatewayTimeoutError(str(e)) from e
        except httpx.HTTPError as e:
            logger.error("Could not reach AI gateway", extra={"error": str(e)})
            raise GatewayError(str(e)) from e

        raise_for_gateway_status(response, response.text, self.config.gateway.log_body_chars)

        summary = self.parse_response(response)
        if summary is None:
            logger.warning("Summary tool output unusable, using fallback", extra={"checkins": len(checkins)})
            return fallback_summary(self.config, language)
        return summary

    @staticmethod
    def parse_response(response: httpx.Response) -> RecoverySummary | None:
        try:
            data = response.json()
            arguments = data["choices"][0]["message"]["tool_calls"][0]["function"]["arguments"]
            parsed = json.loads(arguments) if isinstance(arguments, str) else arguments
            return RecoverySummary.model_validate(parsed)
        except (ValueError, KeyError, IndexError, TypeError, ValidationError) as e:
            logger.warning("Could not parse summary tool call", extra={"error": str(e)})
            return None

    async def aclose(self) -> None:
        await self.client.aclose()
