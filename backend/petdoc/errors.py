"""
Error taxonomy for the triage and recovery core.

Every error carries an HTTP status, a stable machine code and a bilingual
user-facing message. Raw upstream payloads never end up in these messages.
"""
from petdoc.schemas.enums import Language


class PetDocError(Exception):
    status_code: int = 500
    code: str = "internal_error"
    messages: dict[Language, str] = {
        Language.ZH: "服务出错，请稍后重试",
        Language.EN: "Something went wrong, please try again",
    }

    def __init__(self, detail: str | None = None):
        # detail is for logs only
        self.detail = detail
        super().__init__(detail or self.messages[Language.EN])

    def localized(self, language: Language) -> str:
        return self.messages[language]


# Validation

class IntakeIncompleteError(PetDocError):
    status_code = 422
    code = "intake_incomplete"
    messages = {
        Language.ZH: "请选择主要症状、持续时间和严重程度",
        Language.EN: "Please choose the main symptom, duration and severity",
    }


class CheckinIncompleteError(PetDocError):
    status_code = 422
    code = "checkin_incomplete"
    messages = {
        Language.ZH: "请完成所有问题",
        Language.EN: "Please answer all questions",
    }


class InvalidDayIndexError(PetDocError):
    status_code = 422
    code = "invalid_day_index"
    messages = {
        Language.ZH: "观察天数无效",
        Language.EN: "Invalid observation day",
    }


class PlanNotEligibleError(PetDocError):
    status_code = 422
    code = "plan_not_eligible"
    messages = {
        Language.ZH: "该情况需要尽快就医，不适合居家观察",
        Language.EN: "This case needs prompt veterinary care and is not suited to home observation",
    }


# Transient gateway

class GatewayError(PetDocError):
    status_code = 502
    code = "gateway_error"
    messages = {
        Language.ZH: "发送失败，请重试",
        Language.EN: "Failed to send, please try again",
    }


class RateLimitedError(GatewayError):
    status_code = 429
    code = "rate_limited"
    messages = {
        Language.ZH: "请求过于频繁，请稍后再试",
        Language.EN: "Rate limited, please try again later",
    }


class QuotaExceededError(GatewayError):
    status_code = 402
    code = "quota_exceeded"
    messages = {
        Language.ZH: "服务额度已用完",
        Language.EN: "Service quota exceeded",
    }


class GatewayTimeoutError(GatewayError):
    status_code = 504
    code = "gateway_timeout"
    messages = {
        Language.ZH: "AI 响应超时，请重试",
        Language.EN: "The AI took too long to answer, please try again",
    }


# Persistence conflicts

class DuplicateCheckinError(PetDocError):
    status_code = 409
    code = "duplicate_checkin"
    messages = {
        Language.ZH: "今天已经记录过了",
        Language.EN: "Today's check-in has already been recorded",
    }


class ActivePlanExistsError(PetDocError):
    status_code = 409
    code = "active_plan_exists"
    messages = {
        Language.ZH: "该宠物已有进行中的恢复观察",
        Language.EN: "This pet already has an active recovery plan",
    }


class PlanCompletedError(PetDocError):
    status_code = 409
    code = "plan_completed"
    messages = {
        Language.ZH: "恢复观察已完成",
        Language.EN: "This recovery plan is already completed",
    }


# Session state

class NoPetSelectedError(PetDocError):
    status_code = 409
    code = "no_pet_selected"
    messages = {
        Language.ZH: "请先选择宠物",
        Language.EN: "Please select a pet first",
    }


class SessionBusyError(PetDocError):
    status_code = 409
    code = "session_busy"
    messages = {
        Language.ZH: "请等待当前回复完成",
        Language.EN: "Please wait for the current reply to finish",
    }


class InvalidSessionStateError(PetDocError):
    status_code = 409
    code = "invalid_session_state"
    messages = {
        Language.ZH: "当前无法执行该操作",
        Language.EN: "That action is not available right now",
    }


# Lookup / auth

class NotFoundError(PetDocError):
    status_code = 404
    code = "not_found"
    messages = {
        Language.ZH: "未找到",
        Language.EN: "Not found",
    }


class NotAuthenticatedError(PetDocError):
    status_code = 401
    code = "not_authenticated"
    messages = {
        Language.ZH: "请先登录",
        Language.EN: "Please sign in",
    }
