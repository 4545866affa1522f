"""Prompts and output schema for thread analysis."""

SYSTEM_PROMPT = (
    "You are an expert forum thread analyzer. Provide structured, factual "
    "analysis of discussions."
)

THREAD_ANALYSIS_PROMPT = """Analyze this forum thread and provide a structured summary.

Thread Title: {title}
Thread Body: {body}
Posts ({post_count} total):
{posts}

Return a JSON object with:
- summary: Array of 3-5 bullet points covering main discussion points
- keyPoints: Array of 3-5 unique viewpoints, including disagreements
- contributors: Array of 2-4 users who provided valuable insights (quality over quantity)
- sentiment: Overall tone (Positive/Neutral/Mixed/Negative)
- healthScore: Constructiveness rating 1-10 (10 = highly constructive, 1 = toxic/unhelpful)

Focus on factual, neutral analysis. Represent disagreements fairly."""

SUMMARY_SCHEMA = {
    "type": "object",
    "properties": {
        "summary": {"type": "array", "items": {"type": "string"}, "maxItems": 5},
        "keyPoints": {
            "type": "array",
            "items": {"type": "string"},
            "minItems": 3,
            "maxItems": 5,
        },
        "contributors": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "username": {"type": "string"},
                    "contribution": {"type": "string"},
                },
                "required": ["username", "contribution"],
            },
            "minItems": 2,
            "maxItems": 4,
        },
        "sentiment": {
            "type": "string",
            "enum": ["Positive", "Neutral", "Mixed", "Negative"],
        },
        "healthScore": {"type": "integer", "minimum": 1, "maximum": 10},
    },
    "required": ["summary", "keyPoints", "contributors", "sentiment", "healthScore"],
    "additionalProperties": False,
}

RESPONSE_FORMAT = {
    "type": "json_schema",
    "json_schema": {"name": "thread_summary", "schema": SUMMARY_SCHEMA},
}
