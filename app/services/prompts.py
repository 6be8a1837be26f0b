"""
AI prompt templates for the daily bloating insight.

Prompts follow medical ethics guidelines:
- Use qualified language ("may be associated with", not "causes")
- Never diagnose conditions
- Acknowledge limitations of small, self-reported samples
"""
import json

from app.services.insight_schemas import NarrativePayload
from app.services.trigger_categories import KNOWN_CATEGORIES, display_name

# Tracking phases by days tracked, highest first
TRACKING_PHASES = (
    (30, "advanced"),
    (21, "strong"),
    (7, "developing"),
    (0, "new"),
)

PHASE_GUIDANCE = {
    "new": (
        "User has less than 7 days of data. Acknowledge their effort. Explain we "
        "need more data for confident patterns. Point out any early observations. "
        "Encourage specific logging. Give one simple tip."
    ),
    "developing": (
        "User has 7-21 days of data. Start identifying patterns. Share confidence "
        "levels. Explain WHY in simple language. Suggest a first elimination "
        "experiment (cut out a specific food for 3 days). Motivate continued logging."
    ),
    "strong": (
        "User has 21-30 days of data. Share confident insights with data. List top "
        "triggers with their numbers. Explain FODMAP categories for each trigger. "
        "Design an elimination protocol. Build a safe foods list."
    ),
    "advanced": (
        "User has 30+ days of data. Reference previous patterns. Show progress and "
        "changes. Identify time-based insights. Note any patterns from their notes. "
        "Suggest subcategory testing (e.g., lactose-free vs regular). Fine-tune "
        "their safe foods list."
    ),
}


def tracking_phase(days_tracked: int) -> str:
    for min_days, phase in TRACKING_PHASES:
        if days_tracked >= min_days:
            return phase
    return "new"


# =============================================================================
# DAILY INSIGHT (Sonnet)
# =============================================================================

DAILY_INSIGHT_SYSTEM_PROMPT = """You are a friendly, encouraging nutritionist who helps people understand their bloating patterns using simple language. You are like a health coach who has been tracking their journey and genuinely cares about their progress.

IMPORTANT RULES:
- Talk like a human, not a textbook: "Your gut is not happy" > "You're experiencing gastrointestinal distress"
- Use simple analogies: "FODMAPs are like food for gut bacteria; they throw a party and produce gas"
- Be encouraging but honest about what the data shows
- Be direct about experiments: "Cut out X completely for 3 days" not "Consider reducing X"
- Use qualified language: "may be linked to", never "causes"
- Never diagnose a medical condition
- Keep paragraphs short: 2-3 sentences max
- Use their actual numbers from the data provided
- Bloating is rated on a 1-5 scale (1 = no bloat, 5 = awful)

The app tracks these trigger categories: {categories}.

RESPONSE FRAMEWORK for tracking phase "{phase}":
- {guidance}

OUTPUT FORMAT (JSON only, no markdown code blocks):
{{
  "insight_text": "The full personalized insight. Use \\n between paragraphs. 2-4 short paragraphs.",
  "action_items": ["Specific action item 1", "Specific action item 2"],
  "confidence_level": "low|developing|high|very_high",
  "triggers_mentioned": ["dairy", "gluten"]
}}"""


def build_daily_insight_system_prompt(days_tracked: int) -> str:
    phase = tracking_phase(days_tracked)
    return DAILY_INSIGHT_SYSTEM_PROMPT.format(
        categories=", ".join(display_name(c) for c in KNOWN_CATEGORIES),
        phase=phase,
        guidance=PHASE_GUIDANCE[phase],
    )


def build_daily_insight_user_message(payload: NarrativePayload) -> str:
    """Render the narrative payload as the user turn."""
    data = payload.model_dump(mode="json")
    time_patterns = data["time_patterns"]
    worst_time = time_patterns["worst_time"]
    if worst_time == "unknown":
        worst_time = "not enough data"

    return f"""Here is the user's bloating tracking data:

Days tracked: {data["days_tracked"]}
Total logged meals: {data["total_logs"]}

Recent food entries (last 14 days):
{json.dumps(data["food_entries"], indent=2)}

Identified triggers from pattern analysis:
{json.dumps(data["identified_triggers"], indent=2)}

Time patterns:
- Worst time for bloating: {worst_time}
- High bloat meal times: {json.dumps(time_patterns["distribution"])}

Overall stats:
- Average bloating: {data["avg_bloating"]}/5
- High bloating meals (4-5): {data["high_bloating_count"]}
- Low bloating meals (1-2): {data["low_bloating_count"]}

Generate a personalized daily insight for this user based on their current data."""
