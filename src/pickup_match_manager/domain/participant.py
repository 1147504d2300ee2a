type ParticipantId = str


def raw_id(value: object) -> ParticipantId:
    """Extract a bare snowflake from a mention (``<@123>``, ``<@!123>``) or return the value as a string."""
    text = str(value).strip()
    if text.startswith("<@") and text.endswith(">"):
        text = text[2:-1].lstrip("!&")
    return text
