"""
Evaluation Prompts
app/scoring/prompts.py

Prompt templates for the AI raters. Wording is tunable; the raters only rely
on the holistic prompt asking for a leading "Rating: N" line.
"""

from typing import Iterable, Optional, Tuple


def core_document_prompt(field_name: str) -> str:
    return (
        f"Evaluate the attached document provided for the field '{field_name}'. "
        "Assess its compliance and completeness based on typical procurement "
        "requirements for such a document. Provide a numerical rating (0-10, "
        "where 10 is excellent) and concise reasoning based strictly on the "
        "document's content."
    )


def experience_document_prompt(field_name: str, value_threshold: float) -> str:
    return f"""Evaluate the attached experience document provided for the field named '{field_name}'.
Assess the following criteria based strictly on the document's content:
1.  **Accuracy:** Is the information presented verifiable and factually sound?
2.  **Value Threshold:** Does the project/experience described explicitly state or strongly imply a value exceeding {value_threshold:,.0f} (50% of the current tender value)?
3.  **Applicability:** Is the experience described directly relevant and applicable to the requirements suggested by the field name '{field_name}'?

Provide a single overall numerical rating (0-10, where 10 means all criteria are excellently met) and concise reasoning addressing each of the three criteria (Accuracy, Value Threshold, Applicability)."""


def team_file_prompt(field: str, role: str, profession: Optional[str]) -> str:
    return (
        f"Rate the relevance and quality of this {field} document for a "
        f"{profession or 'professional'} in the role of {role}. Focus on clarity, "
        "completeness, and relevance to the role requirements."
    )


def member_summary(
    role: str,
    full_name,
    profession,
    years_experience,
    file_ratings: Iterable[Tuple[str, float, str]],
) -> str:
    """Plain-text member profile handed to the holistic rater."""
    lines = [
        f"Member Role: {role}",
        f"Full Name: {full_name or 'N/A'}",
        f"Profession: {profession or 'N/A'}",
        f"Years of Experience: {years_experience if years_experience not in (None, '') else 'N/A'}",
    ]
    for field, rating, reasoning in file_ratings:
        lines.append(f"{field.capitalize()} Rating: {rating:g}/10 ({reasoning})")
    return "\n".join(lines) + "\n"


def member_overall_prompt(role: str, summary: str) -> str:
    return (
        "Based on the following information and individual document ratings, "
        f"provide an overall suitability rating (0-10) for this team member ({role}) "
        "and brief reasoning. Start your answer with a line of the form "
        "'Rating: <number>' followed by the reasoning.\n\n"
        f"{summary}"
    )
