from __future__ import annotations

import json

import pytest

from libs.core import prompts
from libs.core.models import EnhanceRequest, RequestKind

_PAYLOADS = {
    RequestKind.summarize: {"text": "Ran the support desk for three offices."},
    RequestKind.ats_scan: {"text": "Jane Doe, Backend Engineer"},
    RequestKind.summary: {"experience": ["Backend engineer at Acme", "Intern at Globex"]},
    RequestKind.skills: {"experience": ["Built ETL jobs in Python"]},
    RequestKind.improve: {"description": "Responsible for the billing service."},
    RequestKind.experience_description: {"experienceContext": {"title": "SRE"}},
    RequestKind.education_degree: {"educationContext": {"field": "Physics"}},
    RequestKind.education_institution: {"educationContext": {"degree": "BSc"}},
    RequestKind.education_description: {"educationContext": {"degree": "BSc"}},
    RequestKind.education_dates: {"educationContext": {}},
    RequestKind.full_resume: {"linkedinData": {"name": "Jane Doe"}},
}


def _request(kind: RequestKind, **overrides) -> EnhanceRequest:
    payload = {"type": kind.value, **_PAYLOADS[kind], **overrides}
    return EnhanceRequest.model_validate(payload)


def test_prompt_sets_are_discoverable() -> None:
    assert {"ats_v1", "standard_v1"} <= set(prompts.available_prompt_sets())


@pytest.mark.parametrize("prompt_set", ["ats_v1", "standard_v1"])
@pytest.mark.parametrize("kind", list(RequestKind))
def test_every_kind_renders_in_every_prompt_set(prompt_set: str, kind: RequestKind) -> None:
    rendered = prompts.render_prompt(_request(kind), prompt_set)
    assert rendered
    assert "preserve_clause" not in rendered


@pytest.mark.parametrize("kind", list(RequestKind))
def test_preserve_flag_adds_no_fabrication_clause(kind: RequestKind) -> None:
    template = prompts.load_prompt_set("ats_v1").templates[kind]
    assert template.preserve

    relaxed = prompts.render_prompt(_request(kind, preserveUserContent=False))
    strict = prompts.render_prompt(_request(kind, preserveUserContent=True))

    assert template.preserve not in relaxed
    assert template.preserve in strict


def test_summary_prompt_embeds_experience_lines_and_skills() -> None:
    request = _request(RequestKind.summary, skills=["Python", "Kafka"])
    rendered = prompts.render_prompt(request)
    assert "Backend engineer at Acme\nIntern at Globex" in rendered
    assert "Python, Kafka" in rendered


def test_summary_prompt_marks_missing_skills() -> None:
    rendered = prompts.render_prompt(_request(RequestKind.summary))
    assert "Core Skills:\nNot provided" in rendered


def test_experience_prompt_defaults_missing_context() -> None:
    rendered = prompts.render_prompt(_request(RequestKind.experience_description))
    assert "Job Title: SRE" in rendered
    assert "Company: Not specified" in rendered
    assert "to Present" in rendered
    assert "No previous description provided" in rendered


def test_education_dates_prompt_assumes_bachelors() -> None:
    rendered = prompts.render_prompt(_request(RequestKind.education_dates))
    assert "Degree Level: Bachelor's" in rendered
    assert "Current Status: Graduated" in rendered


def test_full_resume_prompt_embeds_source_data_and_template() -> None:
    request = _request(RequestKind.full_resume, resumeTemplate="minimal")
    rendered = prompts.render_prompt(request)
    assert json.dumps({"name": "Jane Doe"}, indent=2) in rendered
    assert '"minimal" template' in rendered


def test_literal_dollar_signs_survive_rendering() -> None:
    rendered = prompts.render_prompt(_request(RequestKind.improve))
    assert "$ amounts" in rendered


def test_unknown_prompt_set_is_rejected() -> None:
    with pytest.raises(ValueError, match="Unknown prompt set"):
        prompts.load_prompt_set("does_not_exist")
