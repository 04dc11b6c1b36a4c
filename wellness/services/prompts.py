"""Jinja templates for the recommendation and tip detail prompts."""

from __future__ import annotations

from jinja2 import Template

from wellness.config import MAX_TIP_COUNT
from wellness.models.profile import GOAL_DESCRIPTIONS, GOAL_LABELS, UserProfile
from wellness.models.tip import WellnessTip

DETAIL_STEP_COUNT = 5
DETAIL_BENEFIT_COUNT = 4

RECOMMENDATION_PROMPT = Template(
    """
You are a professional wellness coach. Generate {{ tip_count }} personalised, practical and achievable wellness tips for this person.

Profile:
- Age: {{ age }}
- Gender: {{ gender }}
{% if name %}- Name: {{ name }}
{% endif %}
Goals:
{% for goal in goals %}- {{ goal.value }} ({{ goal.label }}): {{ goal.description }}
{% endfor %}
Rules you MUST follow:
- Return exactly {{ tip_count }} tips covering a mix of physical, mental, dietary and lifestyle actions.
- "title" is short and catchy (under 8 words).
- "description" is one sentence of at most 20 words.
- "category" MUST be one of: {{ allowed_categories }}.
- Do not use markdown, code fences or any text outside the JSON.

{% raw %}
Respond with ONLY a JSON array in this exact structure:
[
  {"title": "short tip title", "description": "one sentence", "category": "goal-value"}
]
{% endraw %}
""".strip()
)

DETAIL_PROMPT = Template(
    """
You are a wellness expert. Expand the wellness tip below into a detailed, actionable guide.

Tip: "{{ title }}" - {{ description }}
Category: {{ category }}

Person: {{ age }}-year-old {{ gender }} focused on {{ goals }}.

Rules you MUST follow:
- "longDescription" is 2-3 short paragraphs in plain text.
- "steps" has exactly {{ step_count }} short, concrete steps.
- "benefits" has exactly {{ benefit_count }} short benefit statements.
- "timeRequired" is a short phrase such as "10 minutes daily".
- "difficulty" is one of "easy", "medium" or "hard".
- Do not use markdown, code fences or any text outside the JSON.

{% raw %}
Respond with ONLY the JSON object in this exact structure:
{
  "longDescription": "plain text",
  "steps": ["step"],
  "benefits": ["benefit"],
  "timeRequired": "duration",
  "difficulty": "easy|medium|hard"
}
{% endraw %}
""".strip()
)


def build_recommendation_prompt(profile: UserProfile, *, tip_count: int = MAX_TIP_COUNT) -> str:
    """Render the prompt asking for a JSON array of ``tip_count`` tips."""

    goals = [
        {
            "value": goal.value,
            "label": GOAL_LABELS[goal],
            "description": profile.description_for(goal) or GOAL_DESCRIPTIONS[goal],
        }
        for goal in profile.goals
    ]
    return RECOMMENDATION_PROMPT.render(
        tip_count=tip_count,
        age=profile.age,
        gender=profile.gender.value,
        name=profile.name,
        goals=goals,
        allowed_categories=", ".join(goal.value for goal in profile.goals),
    ).strip()


def build_detail_prompt(tip: WellnessTip, profile: UserProfile) -> str:
    """Render the prompt asking for one JSON object with the tip's details."""

    return DETAIL_PROMPT.render(
        title=tip.title,
        description=tip.short_description,
        category=GOAL_LABELS[tip.category],
        age=profile.age,
        gender=profile.gender.value,
        goals=", ".join(GOAL_LABELS[goal] for goal in profile.goals),
        step_count=DETAIL_STEP_COUNT,
        benefit_count=DETAIL_BENEFIT_COUNT,
    ).strip()
