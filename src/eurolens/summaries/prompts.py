"""Prompt construction for plain-language bill summaries."""

from __future__ import annotations

BASE_SYSTEM_PROMPT = """You are a non-partisan political analyst for EuroLens, an EU legislation tracker.
Your role is to make complex EU legislative documents accessible to ordinary citizens.

Guidelines:
- Be factual and balanced - never show political bias
- Use simple language that a high school student would understand
- Avoid jargon - if you must use a technical term, explain it
- Focus on concrete impacts, not abstract policy language
- Be concise - citizens are busy"""

PERSONA_LABELS: dict[str, str] = {
    "general": "General Citizen",
    "student": "Student",
    "small-business-owner": "Small Business Owner",
    "farmer": "Farmer",
    "worker": "Worker",
    "parent": "Parent",
}

PERSONA_FOCUS: dict[str, str] = {
    "student": "education, employment prospects, cost of living, and youth opportunities",
    "small-business-owner": "regulations, compliance costs, market access, and business opportunities",
    "farmer": "agriculture, subsidies, environmental regulations, and food production",
    "worker": "labor rights, working conditions, job security, and wages",
    "parent": "family life, childcare, education, health, and consumer safety",
}

COUNTRY_LABELS: dict[str, str] = {
    "general": "All EU Countries",
    "DE": "Germany",
    "FR": "France",
    "ES": "Spain",
    "IT": "Italy",
    "PL": "Poland",
    "NL": "Netherlands",
}

# Answer languages for the supported country editions
LOCALE_LABELS: dict[str, str] = {
    "en": "English",
    "de": "German",
    "fr": "French",
    "es": "Spanish",
    "it": "Italian",
    "pl": "Polish",
    "nl": "Dutch",
}

RESPONSE_FORMAT = """Provide your response in this exact format:

## What is it?
[One clear sentence explaining what this legislation does]

## Why does it matter?
[One clear sentence on the real-world impact for ordinary people]

## Who is involved?
[One sentence about which political groups or stakeholders support or oppose this, if known]"""


def normalize_persona(persona: str | None) -> str:
    return persona if persona in PERSONA_LABELS else "general"


def normalize_country(country: str | None) -> str:
    return country if country in COUNTRY_LABELS else "general"


def normalize_locale(locale: str | None) -> str:
    """``de-AT`` -> ``de``; unsupported locales fall back to English."""
    code = (locale or "en").split("-")[0].split("_")[0].lower()
    return code if code in LOCALE_LABELS else "en"


def build_system_prompt(persona: str = "general", country: str = "general", locale: str = "en") -> str:
    persona = normalize_persona(persona)
    country = normalize_country(country)
    locale = normalize_locale(locale)

    prompt = BASE_SYSTEM_PROMPT
    if persona != "general" or country != "general":
        prompt += "\n\nContext about the reader:"
        if persona != "general":
            prompt += f"\n- They are a {PERSONA_LABELS[persona].lower()}"
            prompt += f". Focus on impacts related to {PERSONA_FOCUS[persona]}."
        if country != "general":
            prompt += f"\n- They live in {COUNTRY_LABELS[country]}. Mention any country-specific implications if relevant."

    if locale != "en":
        prompt += (
            f"\n\nWrite your answer in {LOCALE_LABELS[locale]}."
            " Keep the three section headings exactly as given, in English."
        )
    return prompt


def build_user_prompt(title: str, summary: str | None = None, subjects: list[str] | None = None) -> str:
    prompt = (
        "Summarize this EU legislation for a general audience.\n\n"
        f"**Title:** {title}\n\n"
        f"**Summary/Description:** {summary or 'No summary available.'}"
    )
    if subjects:
        prompt += f"\n\n**Policy Areas:** {', '.join(subjects)}"
    return f"{prompt}\n\n{RESPONSE_FORMAT}"
