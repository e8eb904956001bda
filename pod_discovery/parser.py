"""Decoding of API server response bodies."""

from pydantic import ValidationError

from pod_discovery.errors import UnmarshalError
from pod_discovery.models import PodList


def body_text(body: bytes) -> str:
    """Decode a response body for log and error messages. Never fails."""
    return body.decode("utf-8", errors="replace")


def snippet(text: str, limit: int = 512) -> str:
    cleaned = text.strip()
    if len(cleaned) > limit:
        return f"{cleaned[:limit]}..."
    return cleaned


def parse_pod_list(body: bytes) -> PodList:
    """Parse a JSON pod list, raising UnmarshalError when it does not conform."""
    try:
        return PodList.model_validate_json(body)
    except ValidationError as exc:
        text = body_text(body)
        raise UnmarshalError(
            f"Failed to unmarshal Kubernetes API response: {snippet(text) or 'empty body.'}",
            body=text,
        ) from exc
