"""
Symptom Intake - structured symptom data gathered before the first triage turn.

The collector holds the form state; `render_seed_message` turns a submitted
intake into the first user message in the caller's language. The rendered
text is for display only; the IntakeData itself is what gets stored.
"""
from pydantic import BaseModel, Field, model_validator

from petdoc.errors import IntakeIncompleteError
from petdoc.schemas.enums import DurationCode, IntakeSeverity, Language, SymptomCode
from petdoc.services.labels import (
    DURATION_LABELS,
    INTAKE_CAPTIONS,
    SEVERITY_LABELS,
    label_for,
    symptom_label,
)


class IntakeData(BaseModel):
    main_symptom: SymptomCode
    duration: DurationCode
    severity: IntakeSeverity
    additional_symptoms: list[SymptomCode] = Field(default_factory=list)
    additional_notes: str | None = None

    @model_validator(mode="after")
    def _normalize_additional(self) -> "IntakeData":
        # Deduplicate, keep selection order, never repeat the main symptom
        seen: list[SymptomCode] = []
        for code in self.additional_symptoms:
            if code != self.main_symptom and code not in seen:
                seen.append(code)
        self.additional_symptoms = seen

        if self.additional_notes is not None:
            self.additional_notes = self.additional_notes.strip() or None
        return self


class IntakeCollector:
    """Mutable intake form with two exits: submit() and skip()."""

    def __init__(self):
        self.main_symptom: SymptomCode | None = None
        self.duration: DurationCode | None = None
        self.severity: IntakeSeverity | None = None
        self.additional_symptoms: list[SymptomCode] = []
        self.additional_notes: str | None = None
        self.skipped = False

    def select_main_symptom(self, code: SymptomCode) -> None:
        self.main_symptom = SymptomCode(code)
        if self.main_symptom in self.additional_symptoms:
            self.additional_symptoms.remove(self.main_symptom)

    def select_duration(self, code: DurationCode) -> None:
        self.duration = DurationCode(code)

    def select_severity(self, code: IntakeSeverity) -> None:
        self.severity = IntakeSeverity(code)

    def toggle_additional_symptom(self, code: SymptomCode) -> None:
        code = SymptomCode(code)
        if code == self.main_symptom:
            return
        if code in self.additional_symptoms:
            self.additional_symptoms.remove(code)
        else:
            self.additional_symptoms.append(code)

    def set_notes(self, notes: str | None) -> None:
        self.additional_notes = notes

    @property
    def can_submit(self) -> bool:
        return (
            not self.skipped
            and self.main_symptom is not None
            and self.duration is not None
            and self.severity is not None
        )

    def submit(self) -> IntakeData:
        if not self.can_submit:
            raise IntakeIncompleteError()

        return IntakeData(
            main_symptom=self.main_symptom,
            duration=self.duration,
            severity=self.severity,
            additional_symptoms=list(self.additional_symptoms),
            additional_notes=self.additional_notes,
        )

    def skip(self) -> None:
        """Leave the form for free chat; a skipped form can no longer be submitted."""
        self.skipped = True


def render_seed_message(intake: IntakeData, language: Language) -> str:
    """
    Render an intake as the first user message.

    One line per field, "<caption><colon><label>", so the same intake always
    renders to the same text.
    """
    captions = INTAKE_CAPTIONS[language]
    colon = captions["colon"]

    lines = [
        captions["intro"],
        f"{captions['main_symptom']}{colon}{symptom_label(intake.main_symptom, language)}",
        f"{captions['duration']}{colon}{label_for(DURATION_LABELS, intake.duration, language)}",
        f"{captions['severity']}{colon}{label_for(SEVERITY_LABELS, intake.severity, language)}",
    ]

    if intake.additional_symptoms:
        others = captions["separator"].join(
            symptom_label(code, language) for code in intake.additional_symptoms
        )
        lines.append(f"{captions['additional_symptoms']}{colon}{others}")

    if intake.additional_notes:
        lines.append(f"{captions['additional_notes']}{colon}{intake.additional_notes}")

    return "\n".join(lines)
