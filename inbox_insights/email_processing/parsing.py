"""
Response text extraction and JSON recovery for LLM output.

Model responses arrive in several shapes (plain strings, content-part
lists, provider completion objects) and the JSON inside them is often
wrapped in prose or markdown fences. This module turns a raw response into
text, then text into a structured value, trying a fixed sequence of
strategies before giving up with ParseError.
"""

import json
import logging
import re
from typing import Any, Callable, Dict, List, Optional

from inbox_insights.errors import ParseError

logger = logging.getLogger(__name__)

FENCED_BLOCK = re.compile(r"```(?:json)?\s*([\s\S]*?)\s*```")
ARRAY_OF_OBJECTS = re.compile(r"\[\s*\{[\s\S]*\}\s*\]")

DEBUG_DUMP_FILENAME = "json-extraction-error.txt"

# Defaults used when a project field cannot be recovered at a given index
DEFAULT_PROJECT_SKILLS = ['AI Integration', 'React.js', 'Next.js', 'Node.js', 'Responsive Design']
DEFAULT_DIFFICULTY = 'Intermediate'
DEFAULT_TIME_TO_COMPLETE = '2-3 weeks'
DEFAULT_WHY_RELEVANT = 'This project showcases in-demand skills and modern technologies'
DEFAULT_RECOVERED_CONFIDENCE = 0.85

_PROJECT_FIELD_PATTERNS = {
    "projectTitle": re.compile(r'"projectTitle"\s*:\s*"([^"]+)"'),
    "projectDescription": re.compile(r'"projectDescription"\s*:\s*"([^"]+)"'),
    "relevantSkills": re.compile(r'"relevantSkills"\s*:\s*\[([^\]]+)\]'),
    "difficultyLevel": re.compile(r'"difficultyLevel"\s*:\s*"([^"]+)"'),
    "estimatedTimeToComplete": re.compile(r'"estimatedTimeToComplete"\s*:\s*"([^"]+)"'),
    "whyRelevant": re.compile(r'"whyRelevant"\s*:\s*"([^"]+)"'),
}

DebugSink = Callable[[str, str], Any]


def _field(obj: Any, name: str) -> Any:
    if isinstance(obj, dict):
        return obj.get(name)
    return getattr(obj, name, None)


def _part_text(part: Any) -> Optional[str]:
    if isinstance(part, str):
        return part
    if _field(part, "type") == "text":
        text = _field(part, "text")
        return text if isinstance(text, str) else None
    return None


def _structural_dump(raw: Any) -> str:
    if hasattr(raw, "model_dump_json"):
        try:
            return raw.model_dump_json()
        except (TypeError, ValueError):
            pass
    try:
        return json.dumps(raw, default=str)
    except (TypeError, ValueError):
        return repr(raw)


def extract_text(raw_response: Any) -> str:
    """
    Extract the textual payload from a raw model response.

    Provider completion objects are unwrapped to their first choice's
    message. A string ``content`` is returned verbatim; a list of content
    parts is concatenated in order, skipping non-text parts; a top-level
    ``text`` field is used next; anything else is dumped structurally so
    the caller still gets a string to report on.

    Args:
        raw_response: Completion object, message object, dict or string

    Returns:
        The response text. This function never raises.
    """
    if isinstance(raw_response, str):
        return raw_response

    message = raw_response
    choices = _field(raw_response, "choices")
    if isinstance(choices, (list, tuple)) and choices:
        message = _field(choices[0], "message") or raw_response

    content = _field(message, "content")
    if isinstance(content, str):
        return content
    if isinstance(content, (list, tuple)):
        return "".join(text for text in map(_part_text, content) if text is not None)

    text = _field(message, "text")
    if isinstance(text, str) and text:
        return text

    logger.warning(f"Unexpected response shape {type(raw_response).__name__}, falling back to structural dump")
    return _structural_dump(raw_response)


def _split_skills(skills_text: str) -> List[str]:
    return [s.strip().replace('"', '') for s in skills_text.split(',') if s.strip()]


def recover_portfolio_projects(text: str) -> Optional[List[Dict[str, Any]]]:
    """
    Lossy field-level recovery of portfolio project objects.

    Each known field is scanned independently and the n-th match of every
    field is zipped into the n-th project. Fields missing at an index get a
    fixed default. Recovery only counts as successful when at least one
    ``projectTitle`` is found.

    Args:
        text: Raw model output that failed strict JSON parsing

    Returns:
        Reconstructed project dictionaries, or None if no title was found
    """
    matches = {
        name: pattern.findall(text)
        for name, pattern in _PROJECT_FIELD_PATTERNS.items()
    }
    titles = matches["projectTitle"]
    if not titles:
        return None

    def at(name: str, index: int) -> Optional[str]:
        values = matches[name]
        return values[index] if index < len(values) else None

    projects = []
    for i, title in enumerate(titles):
        skills_text = at("relevantSkills", i)
        projects.append({
            "projectTitle": title or f"Project {i + 1}",
            "projectDescription": at("projectDescription", i) or f"Description for project {i + 1}",
            "relevantSkills": _split_skills(skills_text) if skills_text else list(DEFAULT_PROJECT_SKILLS),
            "difficultyLevel": at("difficultyLevel", i) or DEFAULT_DIFFICULTY,
            "estimatedTimeToComplete": at("estimatedTimeToComplete", i) or DEFAULT_TIME_TO_COMPLETE,
            "whyRelevant": at("whyRelevant", i) or DEFAULT_WHY_RELEVANT,
            "confidence": DEFAULT_RECOVERED_CONFIDENCE,
        })

    logger.info(f"Manually extracted {len(projects)} projects")
    return projects


def extract_json(
    text: str,
    allow_array_pattern: bool = False,
    recover_projects: bool = False,
    debug_sink: Optional[DebugSink] = None
) -> Any:
    """
    Extract a JSON value from model output text.

    Strategies, first success wins:
        1. The interior of a ```json fenced block
        2. The first ``[ { ... } ]`` span (when allow_array_pattern)
        3. The whole trimmed text
        4. Field-level project recovery (when recover_projects)

    Args:
        text: Model output text
        allow_array_pattern: Enable the bracketed-array strategy
        recover_projects: Enable lossy portfolio project recovery
        debug_sink: Called as ``debug_sink(text, filename)`` on total failure

    Returns:
        The parsed JSON value

    Raises:
        ParseError: When every enabled strategy fails, chained to the first
                    decode error encountered
    """
    text = text or ""
    first_error: Optional[json.JSONDecodeError] = None

    candidates = []
    fenced = FENCED_BLOCK.search(text)
    if fenced and fenced.group(1):
        candidates.append(("fenced block", fenced.group(1).strip()))
    if allow_array_pattern:
        array_match = ARRAY_OF_OBJECTS.search(text)
        if array_match:
            candidates.append(("array pattern", array_match.group(0)))
    candidates.append(("whole text", text.strip()))

    for strategy, candidate in candidates:
        try:
            value = json.loads(candidate)
            logger.debug(f"Extracted JSON using {strategy}")
            return value
        except json.JSONDecodeError as e:
            logger.debug(f"JSON extraction via {strategy} failed: {e}")
            if first_error is None:
                first_error = e

    if recover_projects:
        projects = recover_portfolio_projects(text)
        if projects:
            return projects
        logger.error("Fallback project extraction found no project titles")

    logger.error(f"Error extracting JSON from text: {first_error}")
    logger.debug(f"Raw text received (first 500 chars): {text[:500]}...")
    if debug_sink is not None:
        debug_sink(text, DEBUG_DUMP_FILENAME)

    raise ParseError(f"Could not extract JSON from model output: {first_error}", raw_text=text) from first_error
