"""
On-disk persistence for pipeline outputs.

Everything the tool writes lands in a single output directory created on
demand. The results file is read once when the store is loaded and then
rewritten in full after every processed message; the market analysis
artifacts are overwritten each run. Write failures surface internally as
PersistenceError and are logged and reported through the boolean return
value, so public methods never raise.
"""

import json
import logging
import os
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Iterable, List, TextIO

from inbox_insights.errors import PersistenceError

logger = logging.getLogger(__name__)

RESULTS_FILENAME = "analysis-results.json"
SKILL_DEMAND_FILENAME = "skill-demand-analysis.json"
PORTFOLIO_FILENAME = "portfolio-suggestions.json"


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _as_record(item: Any) -> Any:
    if hasattr(item, "to_record"):
        return item.to_record()
    return item


class ResultStore:
    """
    Manages every file under the output directory.

    Attributes:
        output_dir: Directory holding all artifacts
        results: In-memory copy of analysis-results.json
    """

    def __init__(self, output_dir: str = "public"):
        self.output_dir = output_dir
        self.results: List[Dict[str, Any]] = []

    def path_for(self, filename: str) -> str:
        return os.path.join(self.output_dir, filename)

    def load_results(self) -> List[Dict[str, Any]]:
        """
        Load existing results, best-effort.

        A single legacy object is wrapped into a one-element list. A missing,
        empty or unparsable file resets the results to an empty list.
        """
        path = self.path_for(RESULTS_FILENAME)
        try:
            with open(path, 'r', encoding='utf-8') as f:
                content = f.read().strip()
            if not content:
                self.results = []
            else:
                data = json.loads(content)
                self.results = data if isinstance(data, list) else [data]
            logger.info(f"Loaded {len(self.results)} existing results from {path}")
        except FileNotFoundError:
            logger.info(f"No existing results at {path}, starting fresh")
            self.results = []
        except (OSError, ValueError) as e:
            # ValueError covers both undecodable bytes and malformed JSON
            logger.warning(f"Could not read existing results from {path}, starting fresh: {e}")
            self.results = []
        return self.results

    def append_result(self, result: Any) -> bool:
        """
        Append one processed email and rewrite the results file.

        Args:
            result: ProcessedEmail (or an equivalent record dictionary)

        Returns:
            True if the file was written
        """
        record = dict(_as_record(result))
        record["processedAt"] = _utc_now_iso()
        self.results.append(record)
        return self._write_json(RESULTS_FILENAME, self.results)

    def save_skill_demand(self, analysis: Any) -> bool:
        return self._write_json(SKILL_DEMAND_FILENAME, {
            "generatedAt": _utc_now_iso(),
            "analysis": _as_record(analysis),
        })

    def save_portfolio_suggestions(self, suggestions: Iterable[Any]) -> bool:
        return self._write_json(PORTFOLIO_FILENAME, {
            "generatedAt": _utc_now_iso(),
            "suggestions": [_as_record(s) for s in suggestions],
        })

    def save_debug_text(self, text: str, filename: str) -> bool:
        """Dump raw model output for inspection. Best-effort."""
        try:
            self._write_file(filename, lambda f: f.write(text or ""))
            logger.debug(f"Saved debug text to {self.path_for(filename)}")
            return True
        except PersistenceError as e:
            logger.error(str(e))
            return False

    def _write_json(self, filename: str, payload: Any) -> bool:
        try:
            self._write_file(filename, lambda f: json.dump(payload, f, indent=2, ensure_ascii=False))
            logger.info(f"Saved {filename} to {self.path_for(filename)}")
            return True
        except PersistenceError as e:
            logger.error(str(e))
            return False

    def _write_file(self, filename: str, write: Callable[[TextIO], Any]) -> None:
        """
        Create the output directory and write one artifact.

        Raises:
            PersistenceError: If the directory or file cannot be written, or
                the payload cannot be serialized
        """
        path = self.path_for(filename)
        try:
            os.makedirs(self.output_dir, exist_ok=True)
            with open(path, 'w', encoding='utf-8') as f:
                write(f)
        except (OSError, TypeError, ValueError) as e:
            raise PersistenceError(f"Failed to save {filename} to {path}: {e}") from e
