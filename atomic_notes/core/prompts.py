from __future__ import annotations

import re
from typing import Optional

from atomic_notes.core.models import Clipping, ExtractionPolicy, ExtractionRequest


EXTRACTION_SYSTEM_PROMPT = """
You extract concise atomic ideas from clippings.
Return only JSON; no prose or Markdown.
Each idea is 1-2 sentences and has a short label (<= 6 words).
Return between {min_ideas} and {max_ideas} ideas, aiming for about {target_ideas} distinct ideas.
Prefer fewer, broader ideas over many small fragments when in doubt.
Never split one conceptual idea into multiple slightly-different ideas.
Do not simply summarize the clipping, extract the ideas.
Fields: label (string), idea (string), tags (optional string array).
Never invent content; stay faithful to the clipping.
""".strip()

EXTRACTION_USER_PROMPT = """
Extract distinct atomic ideas from this clipping and return a JSON array.
Example shape:
[{{"label":"Idea","idea":"One or two sentences.","tags":["topic"]}}]
{summary_section}Clipping:
\"\"\"
{text}
\"\"\"
""".strip()

SUMMARY_SECTION = """
First, use this summary to identify the main conceptual ideas. Do not repeat the same idea multiple times:
\"\"\"
{summary}
\"\"\"

Then, use the full clipping text below to refine and fill any missing ideas while avoiding duplicates.
"""

SUMMARY_HEADING = re.compile(r"^#{1,6}\s+.*summary.*$", re.IGNORECASE)
ANY_HEADING = re.compile(r"^#{1,6}\s+")


def build_extraction_request(clipping: Clipping, policy: ExtractionPolicy) -> ExtractionRequest:
    system = EXTRACTION_SYSTEM_PROMPT.format(
        min_ideas=policy.min_ideas,
        max_ideas=policy.max_ideas,
        target_ideas=policy.target_ideas,
    )
    custom_prompt = policy.custom_prompt.strip()
    if custom_prompt:
        system = f"{system}\nCustom instructions: {custom_prompt}"

    summary = extract_summary_section(clipping.text)
    summary_section = SUMMARY_SECTION.format(summary=summary) if summary else ""
    user = EXTRACTION_USER_PROMPT.format(summary_section=summary_section, text=clipping.text)
    return ExtractionRequest(system=system, user=user)


def extract_summary_section(text: str) -> Optional[str]:
    in_summary = False
    lines = []
    for line in text.split("\n"):
        stripped = line.strip()
        if not in_summary:
            if SUMMARY_HEADING.match(stripped):
                in_summary = True
            continue
        if ANY_HEADING.match(stripped):
            break
        lines.append(line)
    summary = "\n".join(lines).strip()
    return summary or None
