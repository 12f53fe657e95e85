from __future__ import annotations

import json
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from string import Template
from typing import Callable, Dict, Mapping

import yaml

from .models import EnhanceRequest, RequestKind

PROMPT_TEMPLATE_DIR = Path(__file__).resolve().parent / "prompt_templates"
DEFAULT_PROMPT_SET = "ats_v1"

_NOT_SPECIFIED = "Not specified"
_NOT_PROVIDED = "Not provided"


@dataclass(frozen=True)
class PromptTemplate:
    body: str
    preserve: str = ""

    def render(self, variables: Mapping[str, str], preserve_user_content: bool) -> str:
        clause = self.preserve if preserve_user_content else ""
        rendered = Template(self.body).substitute(variables, preserve_clause=clause)
        return rendered.strip()


@dataclass(frozen=True)
class PromptSet:
    name: str
    description: str
    templates: Dict[RequestKind, PromptTemplate]

    def render(self, request: EnhanceRequest) -> str:
        template = self.templates[request.kind]
        variables = PROMPT_VARIABLES[request.kind](request)
        return template.render(variables, request.preserveUserContent)


def _or(value: str | None, default: str) -> str:
    if value is None or not value.strip():
        return default
    return value


def _text_variables(request: EnhanceRequest) -> Dict[str, str]:
    return {"text": request.text or ""}


def _summary_variables(request: EnhanceRequest) -> Dict[str, str]:
    return {
        "experience": "\n".join(request.experience or []) or _NOT_PROVIDED,
        "skills": ", ".join(request.skills or []) or _NOT_PROVIDED,
    }


def _skills_variables(request: EnhanceRequest) -> Dict[str, str]:
    return {"experience": "\n".join(request.experience or []) or _NOT_PROVIDED}


def _improve_variables(request: EnhanceRequest) -> Dict[str, str]:
    return {"description": _or(request.description, _NOT_PROVIDED)}


def _experience_variables(request: EnhanceRequest) -> Dict[str, str]:
    context = request.experienceContext
    return {
        "title": _or(context.title, _NOT_SPECIFIED),
        "company": _or(context.company, _NOT_SPECIFIED),
        "location": _or(context.location, _NOT_SPECIFIED),
        "start_date": _or(context.startDate, _NOT_SPECIFIED),
        "end_date": _or(context.endDate, "Present"),
        "description": _or(context.description, "No previous description provided"),
    }


def _education_variables(request: EnhanceRequest) -> Dict[str, str]:
    context = request.educationContext
    # Date suggestions assume a bachelor's programme when no degree is given.
    degree_default = (
        "Bachelor's" if request.kind is RequestKind.education_dates else _NOT_SPECIFIED
    )
    return {
        "institution": _or(context.institution, _NOT_SPECIFIED),
        "degree": _or(context.degree, degree_default),
        "field": _or(context.field, _NOT_SPECIFIED),
        "level": _or(context.level, "Bachelor's"),
        "location": _or(context.location, _NOT_SPECIFIED),
        "status": _or(context.status, "Graduated"),
    }


def _full_resume_variables(request: EnhanceRequest) -> Dict[str, str]:
    return {
        "source_data": json.dumps(
            request.linkedinData or {}, ensure_ascii=False, indent=2, default=str
        ),
        "template": _or(request.resumeTemplate, "modern"),
    }


PROMPT_VARIABLES: Dict[RequestKind, Callable[[EnhanceRequest], Dict[str, str]]] = {
    RequestKind.summarize: _text_variables,
    RequestKind.ats_scan: _text_variables,
    RequestKind.summary: _summary_variables,
    RequestKind.skills: _skills_variables,
    RequestKind.improve: _improve_variables,
    RequestKind.experience_description: _experience_variables,
    RequestKind.education_degree: _education_variables,
    RequestKind.education_institution: _education_variables,
    RequestKind.education_description: _education_variables,
    RequestKind.education_dates: _education_variables,
    RequestKind.full_resume: _full_resume_variables,
}


def available_prompt_sets() -> list[str]:
    return sorted(path.stem for path in PROMPT_TEMPLATE_DIR.glob("*.yaml"))


@lru_cache(maxsize=None)
def load_prompt_set(name: str = DEFAULT_PROMPT_SET) -> PromptSet:
    path = PROMPT_TEMPLATE_DIR / f"{name}.yaml"
    if not path.is_file():
        raise ValueError(f"Unknown prompt set: {name}")
    data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    raw_templates = data.get("templates")
    if not isinstance(raw_templates, dict):
        raise ValueError(f"Prompt set {name} has no templates")
    templates: Dict[RequestKind, PromptTemplate] = {}
    for kind in RequestKind:
        entry = raw_templates.get(kind.value)
        if not isinstance(entry, dict) or not isinstance(entry.get("body"), str):
            raise ValueError(f"Prompt set {name} is missing a template for {kind.value}")
        templates[kind] = PromptTemplate(
            body=entry["body"], preserve=str(entry.get("preserve") or "")
        )
    return PromptSet(
        name=str(data.get("name") or name),
        description=str(data.get("description") or ""),
        templates=templates,
    )


def render_prompt(request: EnhanceRequest, prompt_set: str = DEFAULT_PROMPT_SET) -> str:
    return load_prompt_set(prompt_set).render(request)
