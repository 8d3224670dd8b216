"""System message sent with every stage request."""

SYSTEM_PROMPT = (
    "You are a sustainability and pricing expert specializing in product value "
    "assessment. Always respond with strictly valid JSON."
)

CONNECTIVITY_PROBE_PROMPT = 'Return {"status":"ready"} to confirm API health.'
