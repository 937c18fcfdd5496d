from __future__ import annotations


def device_id_from_topic(*, topic_filter: str, topic: str) -> str | None:
    """Return the topic segment that sits under the filter's first `+` wildcard."""
    filter_parts = topic_filter.split("/")
    topic_parts = topic.split("/")
    try:
        index = filter_parts.index("+")
    except ValueError:
        return None
    if index >= len(topic_parts):
        return None
    return topic_parts[index] or None
