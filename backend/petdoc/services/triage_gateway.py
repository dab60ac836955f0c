"""
AI Triage Gateway - constrained, streamed chat completion.

The system prompt pins the assistant to the closed treatment-code
vocabulary, low/mid/high cost bands, one of three urgency labels and a fixed
disclaimer. Responses are streamed back as content deltas.
"""
import asyncio
import logging
from collections.abc import AsyncIterator

import httpx

from petdoc.config import Settings, get_settings
from petdoc.errors import GatewayError, GatewayTimeoutError
from petdoc.schemas.chat import ChatMessage, PetInfo
from petdoc.schemas.enums import Language
from petdoc.services.ai_client import auth_headers, build_client, raise_for_gateway_status
from petdoc.services.sse import SSEStreamParser
from petdoc.services.triage_config import TriageConfig, get_triage_config

logger = logging.getLogger(__name__)

NO_CODE_AVAILABLE = {
    Language.EN: "No standard treatment code available yet.",
    Language.ZH: "暂无对应的标准治疗代码。",
}

DISCLAIMER = {
    Language.ZH: "本内容仅供参考，不构成医疗诊断。如症状紧急或恶化，请立即前往有执照的兽医处就诊。",
    Language.EN: (
        "This content is for informational purposes only and is not a medical diagnosis. "
        "For urgent or worsening symptoms, please seek care from a licensed veterinarian immediately."
    ),
}

RESPOND_IN = {
    Language.ZH: "请使用中文回答。",
    Language.EN: "Respond in English.",
}

_PROMPT_HEAD = """You are 宠博士 (Pet Doctor), an AI veterinary triage and care-preparation assistant.

IMPORTANT RULES (must follow strictly):
- You are NOT a licensed veterinarian.
- You do NOT diagnose diseases.
- You do NOT prescribe medications or dosages.
- You provide INFORMATION ONLY to help pet owners prepare for a veterinary visit.
- You must NOT claim certainty or final conclusions.

Your responsibilities:
1. Assess urgency based on symptoms (informational only).
2. Suggest common veterinary diagnostic and treatment steps.
3. ALWAYS express steps using existing Treatment Codes from the system.
4. Explain costs using LOW / MID / HIGH ranges only.
5. Encourage consultation with a licensed veterinarian.

You must NEVER:
- Name a specific disease as a confirmed diagnosis.
- Give medical instructions or drug dosing.
- Invent Treatment Codes.
- Use treatment names that are not in the system.

If suitable Treatment Codes are not available, say:
"{no_code_en}" / "{no_code_zh}"
"""


def build_system_prompt(config: TriageConfig, pet_info: PetInfo | None, language: Language) -> str:
    codes = "\n".join(
        f"- {item.code}: {item.bilingual_name} "
        f"[{item.cost_low[language]} / {item.cost_mid[language]} / {item.cost_high[language]}]"
        for item in config.treatment_codes
    )
    urgency_choices = " / ".join(
        f"{zh}/{en}" for zh, en in zip(config.urgency.labels_zh, config.urgency.labels_en)
    )
    heading = f"{config.urgency.heading_zh} / {config.urgency.heading_en}"

    prompt = _PROMPT_HEAD.format(
        no_code_en=NO_CODE_AVAILABLE[Language.EN],
        no_code_zh=NO_CODE_AVAILABLE[Language.ZH],
    )
    prompt += f"""
Available Treatment Codes (low / mid / high cost bands):
{codes}

OUTPUT FORMAT (follow exactly, respond in the user's language):

**{heading}:**
(Choose ONE only: {urgency_choices})

**建议就诊时间 / Suggested Timing:**
(1-2 short sentences)

**常见诊疗路径 / Common Diagnostic and Treatment Path:**
For each item include:
- Treatment Code
- Treatment name
- Necessity: 必需/required | 可选/optional | 视情况/conditional
- Plain-language explanation

**预估费用范围 / Estimated Cost Range:**
- 低档 / Low range (explanation)
- 中档 / Mid range (explanation)
- 高档 / High range (explanation)
- Note what usually increases cost
Only quote the bands listed above, never exact prices.

**给宠物主人的建议 / Notes for Pet Owner:**
- Questions to ask the veterinarian
- Information to prepare before the visit

**免责声明 / Disclaimer:**
{DISCLAIMER[Language.ZH]}
{DISCLAIMER[Language.EN]}

{RESPOND_IN[language]}"""

    if pet_info is not None:
        weight = f"{pet_info.weight:g} kg" if pet_info.weight else "Unknown"
        prompt += (
            "\n\nPet Information:"
            f"\n- Species: {pet_info.species or 'Unknown'}"
            f"\n- Age: {pet_info.age or 'Unknown'}"
            f"\n- Weight: {weight}"
            f"\n- Name: {pet_info.name or 'Unknown'}"
        )
    return prompt


class TriageStream:
    """An open, status-checked upstream response yielding content deltas."""

    def __init__(self, response: httpx.Response):
        self._response = response
        self._parser = SSEStreamParser()

    async def deltas(self, deadline: float | None = None) -> AsyncIterator[str]:
        """Content deltas in arrival order. `deadline` is an event-loop time."""
        chunks = self._response.aiter_bytes()
        try:
            while not self._parser.done:
                try:
                    async with asyncio.timeout_at(deadline):
                        chunk = await anext(chunks)
                except StopAsyncIteration:
                    for delta in self._parser.flush():
                        yield delta
                    break
                for delta in self._parser.feed(chunk):
                    yield delta
        except TimeoutError as e:
            raise GatewayTimeoutError("triage stream passed its deadline") from e
        except httpx.TimeoutException as e:
            raise GatewayTimeoutError(str(e)) from e
        except httpx.HTTPError as e:
            logger.error("Triage stream interrupted", extra={"error": str(e)})
            raise GatewayError(str(e)) from e
        finally:
            await self.aclose()

    async def aclose(self) -> None:
        await self._response.aclose()


class TriageGateway:
    """Opens streamed triage completions against the configured gateway."""

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
        messages: list[ChatMessage],
        pet_info: PetInfo | None,
        language: Language,
    ) -> dict:
        payload = {
            "model": self.settings.ai_model,
            "messages": [
                {"role": "system", "content": build_system_prompt(self.config, pet_info, language)},
                *({"role": m.role.value, "content": m.content} for m in messages),
            ],
            "stream": True,
        }
        if self.config.gateway.temperature is not None:
            payload["temperature"] = self.config.gateway.temperature
        return payload

    async def open_stream(
        self,
        messages: list[ChatMessage],
        pet_info: PetInfo | None,
        language: Language,
    ) -> TriageStream:
        """
        Send the request and check the status before any content is read.

        Raises RateLimitedError / QuotaExceededError / GatewayError here, so
        callers can reject the turn before appending a placeholder.
        """
        request = self.client.build_request(
            "POST",
            self.settings.ai_gateway_url,
            headers=auth_headers(self.settings),
            json=self.build_payload(messages, pet_info, language),
        )

        try:
            response = await self.client.send(request, stream=True)
        except httpx.TimeoutException as e:
            raise GatewayTimeoutError(str(e)) from e
        except httpx.HTTPError as e:
            logger.error("Could not reach AI gateway", extra={"error": str(e)})
            raise GatewayError(str(e)) from e

        if not response.is_success:
            body = (await response.aread()).decode("utf-8", errors="replace")
            await response.aclose()
            raise_for_gateway_status(response, body, self.config.gateway.log_body_chars)

        logger.info("Triage stream opened", extra={"message_count": len(messages), "language": language.value})
        return TriageStream(response)

    async def aclose(self) -> None:
        await self.client.aclose()
