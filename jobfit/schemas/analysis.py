from __future__ import annotations

import types
from typing import Any, Union, get_args, get_origin

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


# Integer scores stay integers on the wire; fractional ones are kept as sent.
Score = Union[int, float]


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ResultModel(CamelModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)


class JobInput(CamelModel):
    # Defaults keep FastAPI from answering 422 so the service can report every
    # missing field in one notification.
    resume_text: str = ""
    job_description: str = ""
    company_name: str = ""
    role_title: str = ""


class MatchBreakdown(ResultModel):
    skills_match: Score
    experience_match: Score
    education_match: Score
    potential_fit: Score


class MatchEvidence(ResultModel):
    skills: str
    experience: str
    education: str
    potential: str


class AtsBreakdown(ResultModel):
    keyword_match: Score
    formatting: Score
    readability: Score
    structure: Score
    warnings: list[str]


class StarComponents(ResultModel):
    situation: str
    task: str
    action: str
    result: str


class TailoredBulletPoint(ResultModel):
    improved: str
    star_components: StarComponents


class SalaryInsights(ResultModel):
    range: str
    market_context: str


class ReferralStrategy(ResultModel):
    target_roles: list[str]
    networking_script: str
    advice: list[str]


class AnalysisResult(ResultModel):
    match_score: Score
    match_breakdown: MatchBreakdown
    match_evidence: MatchEvidence
    ats_score: Score
    ats_breakdown: AtsBreakdown
    match_reasoning: str
    missing_skills: list[str]
    matched_skills: list[str]
    strengths: list[str]
    weaknesses: list[str]
    tailored_bullet_points: list[TailoredBulletPoint]
    salary_insights: SalaryInsights
    cover_letter: str
    referral_strategy: ReferralStrategy


class JobDetails(CamelModel):
    company_name: str = ""
    role_title: str = ""


class AutofillRequest(CamelModel):
    job_description: str = ""


class ExtractedDocument(CamelModel):
    filename: str
    content_type: str
    source_type: str
    text: str
    characters: int = Field(ge=0)
    pages_processed: int | None = None
    total_pages: int | None = None
    truncated: bool = False


_SCALAR_NODES: dict[type, str] = {
    str: "STRING",
    float: "NUMBER",
    int: "NUMBER",
    bool: "BOOLEAN",
}


def _node_for(annotation: Any) -> dict[str, Any]:
    origin = get_origin(annotation)
    if origin in (Union, types.UnionType):
        members = [arg for arg in get_args(annotation) if arg is not type(None)]
        if members and all(member in (int, float) for member in members):
            return {"type": "NUMBER"}
        if len(members) != 1:
            raise TypeError(f"Unsupported union in response schema: {annotation!r}")
        return _node_for(members[0])
    if origin is list:
        (item,) = get_args(annotation)
        return {"type": "ARRAY", "items": _node_for(item)}
    if isinstance(annotation, type) and issubclass(annotation, BaseModel):
        return schema_descriptor(annotation)
    if annotation in _SCALAR_NODES:
        return {"type": _SCALAR_NODES[annotation]}
    raise TypeError(f"Unsupported type in response schema: {annotation!r}")


def schema_descriptor(model: type[BaseModel]) -> dict[str, Any]:
    """Describe ``model`` as nested OBJECT/ARRAY/STRING/NUMBER nodes.

    Property names use the wire aliases and every object node lists its
    required properties, so the backend can constrain its output to exactly
    what ``model.model_validate`` accepts.
    """
    properties: dict[str, Any] = {}
    required: list[str] = []
    for name, field in model.model_fields.items():
        key = field.alias or name
        properties[key] = _node_for(field.annotation)
        if field.is_required():
            required.append(key)
    return {"type": "OBJECT", "properties": properties, "required": required}
