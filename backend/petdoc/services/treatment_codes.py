"""
Treatment Codes - the closed vocabulary the triage assistant may reference.

The assistant is only allowed to name items from this table, and costs are
only ever expressed as the low / mid / high bands listed here.
"""
from dataclasses import dataclass, field

from petdoc.schemas.enums import Language


@dataclass(frozen=True)
class TreatmentCode:
    code: str
    name: dict[Language, str]
    category: dict[Language, str]
    # Cost bands as display strings, per language (currency differs)
    cost_low: dict[Language, str] = field(default_factory=dict)
    cost_mid: dict[Language, str] = field(default_factory=dict)
    cost_high: dict[Language, str] = field(default_factory=dict)

    @property
    def bilingual_name(self) -> str:
        return f"{self.name[Language.ZH]} ({self.name[Language.EN]})"

    def to_display(self, language: Language) -> dict[str, str]:
        return {
            "code": self.code,
            "name": self.name[language],
            "category": self.category[language],
            "cost_low": self.cost_low.get(language, ""),
            "cost_mid": self.cost_mid.get(language, ""),
            "cost_high": self.cost_high.get(language, ""),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "TreatmentCode":
        """Build from a YAML mapping with *_zh / *_en keys."""
        def pair(prefix: str) -> dict[Language, str]:
            return {
                Language.ZH: str(data.get(f"{prefix}_zh", "")),
                Language.EN: str(data.get(f"{prefix}_en", "")),
            }

        return cls(
            code=data["code"],
            name=pair("name"),
            category=pair("category"),
            cost_low=pair("cost_low"),
            cost_mid=pair("cost_mid"),
            cost_high=pair("cost_high"),
        )

    def to_dict(self) -> dict[str, str]:
        data = {"code": self.code}
        for prefix in ("name", "category", "cost_low", "cost_mid", "cost_high"):
            values = getattr(self, prefix)
            for language in Language:
                data[f"{prefix}_{language.value}"] = values.get(language, "")
        return data


def _code(code, name_zh, name_en, cat_zh, cat_en, low, mid, high) -> TreatmentCode:
    # low/mid/high are (zh, en) tuples
    return TreatmentCode(
        code=code,
        name={Language.ZH: name_zh, Language.EN: name_en},
        category={Language.ZH: cat_zh, Language.EN: cat_en},
        cost_low={Language.ZH: low[0], Language.EN: low[1]},
        cost_mid={Language.ZH: mid[0], Language.EN: mid[1]},
        cost_high={Language.ZH: high[0], Language.EN: high[1]},
    )


DEFAULT_TREATMENT_CODES: list[TreatmentCode] = [
    _code("EXAM-001", "基础体检", "Basic Examination", "检查", "Examination",
          ("¥50-100", "$20-40"), ("¥100-200", "$40-80"), ("¥200-300", "$80-120")),
    _code("EXAM-002", "全面体检", "Comprehensive Examination", "检查", "Examination",
          ("¥200-300", "$80-120"), ("¥300-500", "$120-200"), ("¥500-800", "$200-320")),
    _code("BLOOD-001", "血常规检查", "Complete Blood Count", "化验", "Lab Tests",
          ("¥80-150", "$30-60"), ("¥150-250", "$60-100"), ("¥250-400", "$100-160")),
    _code("BLOOD-002", "血液生化检查", "Blood Chemistry Panel", "化验", "Lab Tests",
          ("¥150-300", "$60-120"), ("¥300-500", "$120-200"), ("¥500-800", "$200-320")),
    _code("XRAY-001", "X光检查", "X-Ray", "影像", "Imaging",
          ("¥100-200", "$40-80"), ("¥200-400", "$80-160"), ("¥400-600", "$160-240")),
    _code("ULTRA-001", "B超检查", "Ultrasound", "影像", "Imaging",
          ("¥150-300", "$60-120"), ("¥300-500", "$120-200"), ("¥500-800", "$200-320")),
    _code("VACC-001", "常规疫苗接种", "Routine Vaccination", "预防", "Prevention",
          ("¥50-100", "$20-40"), ("¥100-200", "$40-80"), ("¥200-400", "$80-160")),
    _code("DEWORM-001", "体内驱虫", "Internal Deworming", "预防", "Prevention",
          ("¥30-60", "$15-25"), ("¥60-120", "$25-50"), ("¥120-200", "$50-80")),
    _code("DEWORM-002", "体外驱虫", "External Deworming", "预防", "Prevention",
          ("¥50-100", "$20-40"), ("¥100-200", "$40-80"), ("¥200-350", "$80-140")),
    _code("DENTAL-001", "牙齿清洁", "Dental Cleaning", "牙科", "Dental",
          ("¥300-500", "$120-200"), ("¥500-800", "$200-320"), ("¥800-1500", "$320-600")),
    _code("DENTAL-002", "拔牙手术", "Tooth Extraction", "牙科", "Dental",
          ("¥200-400", "$80-160"), ("¥400-800", "$160-320"), ("¥800-1500", "$320-600")),
    _code("SURG-001", "绝育手术", "Spay/Neuter Surgery", "手术", "Surgery",
          ("¥500-800", "$200-320"), ("¥800-1500", "$320-600"), ("¥1500-3000", "$600-1200")),
    _code("SURG-002", "软组织手术", "Soft Tissue Surgery", "手术", "Surgery",
          ("¥1000-2000", "$400-800"), ("¥2000-5000", "$800-2000"), ("¥5000-10000", "$2000-4000")),
    _code("HOSP-001", "住院观察", "Hospitalization", "住院", "Hospitalization",
          ("¥200-400/天", "$80-160/day"), ("¥400-800/天", "$160-320/day"), ("¥800-1500/天", "$320-600/day")),
    _code("IV-001", "静脉输液", "IV Fluids", "治疗", "Treatment",
          ("¥100-200", "$40-80"), ("¥200-400", "$80-160"), ("¥400-600", "$160-240")),
    _code("MED-001", "口服药物治疗", "Oral Medication", "用药", "Medication",
          ("¥30-80", "$15-30"), ("¥80-200", "$30-80"), ("¥200-500", "$80-200")),
    _code("MED-002", "注射药物治疗", "Injectable Medication", "用药", "Medication",
          ("¥50-150", "$20-60"), ("¥150-300", "$60-120"), ("¥300-600", "$120-240")),
    _code("SKIN-001", "皮肤刮片检查", "Skin Scraping", "化验", "Lab Tests",
          ("¥50-100", "$20-40"), ("¥100-200", "$40-80"), ("¥200-300", "$80-120")),
    _code("FECAL-001", "粪便检查", "Fecal Examination", "化验", "Lab Tests",
          ("¥50-100", "$20-40"), ("¥100-150", "$40-60"), ("¥150-250", "$60-100")),
    _code("URINE-001", "尿液检查", "Urinalysis", "化验", "Lab Tests",
          ("¥50-100", "$20-40"), ("¥100-200", "$40-80"), ("¥200-300", "$80-120")),
]


def search_treatment_codes(codes: list[TreatmentCode], query: str | None) -> list[TreatmentCode]:
    """Filter by code, name or category in either language (case-insensitive)."""
    if not query or not query.strip():
        return list(codes)

    needle = query.strip().lower()
    matches = []
    for item in codes:
        haystack = [item.code, *item.name.values(), *item.category.values()]
        if any(needle in value.lower() for value in haystack):
            matches.append(item)
    return matches
