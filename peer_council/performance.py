"""Per-model performance analytics kept in an injected key/value repository.

The store never touches global state: callers hand it a Repository and own
its lifetime (``open``/``close`` or ``with repo:``).
"""

import json
import logging
import os
import tempfile
import time
import uuid
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any

from peer_council.aggregation import StatsSource
from peer_council.models import ModelStats

logger = logging.getLogger(__name__)

_ANALYTICS_KEY = "model_analytics"
_MAX_INTERACTIONS = 1000


class Repository(ABC):
    """String-keyed store of JSON-serialisable values."""

    def open(self) -> None:
        """Acquire whatever backing resource the repository needs."""

    def close(self) -> None:
        """Release the backing resource."""

    def __enter__(self) -> "Repository":
        self.open()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    @abstractmethod
    def get(self, key: str, default: Any = None) -> Any:
        ...

    @abstractmethod
    def put(self, key: str, value: Any) -> None:
        ...

    @abstractmethod
    def delete(self, key: str) -> None:
        ...


class InMemoryRepository(Repository):
    def __init__(self) -> None:
        self._data: dict[str, Any] = {}

    def get(self, key: str, default: Any = None) -> Any:
        return self._data.get(key, default)

    def put(self, key: str, value: Any) -> None:
        self._data[key] = value

    def delete(self, key: str) -> None:
        self._data.pop(key, None)


class JsonFileRepository(Repository):
    """Whole-document JSON file. Loaded on open, rewritten on every change."""

    def __init__(self, path: Path) -> None:
        self._path = path
        self._data: dict[str, Any] | None = None

    def open(self) -> None:
        """Load the file. A corrupt file is moved aside and the store starts empty."""
        if not self._path.exists():
            self._data = {}
            return
        try:
            with self._path.open("r", encoding="utf-8") as f:
                self._data = json.load(f)
        except json.JSONDecodeError as exc:
            backup = self._path.with_name(self._path.name + ".corrupt")
            os.replace(self._path, backup)
            logger.warning("Analytics file %s is not valid JSON (%s), moved to %s", self._path, exc, backup)
            self._data = {}

    def close(self) -> None:
        self._data = None

    def _loaded(self) -> dict[str, Any]:
        if self._data is None:
            raise RuntimeError(f"Repository {self._path} is not open")
        return self._data

    def _flush(self) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp = tempfile.mkstemp(dir=self._path.parent, suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(self._loaded(), f, indent=2)
            os.replace(tmp, self._path)
        except Exception:
            os.unlink(tmp)
            raise

    def get(self, key: str, default: Any = None) -> Any:
        return self._loaded().get(key, default)

    def put(self, key: str, value: Any) -> None:
        self._loaded()[key] = value
        self._flush()

    def delete(self, key: str) -> None:
        if self._loaded().pop(key, None) is not None:
            self._flush()


def calculate_quality_score(content: str, response_time: float, error: str | None = None) -> int:
    """Cheap 0-100 heuristic for an answer. Response time is in seconds."""
    if error:
        return 0

    score = 50
    length = len(content)
    if 50 < length < 2000:
        score += 20
    elif length < 20:
        score -= 20

    if 0 < response_time < 5:
        score += 10
    elif response_time > 30:
        score -= 10

    if "?" in content or "!" in content:
        score += 5
    if len(content.split("\n")) > 1:
        score += 5

    return max(0, min(100, score))


def _empty_analytics() -> dict[str, Any]:
    return {"interactions": [], "model_stats": {}, "task_type_stats": {}}


class PerformanceStore(StatsSource):
    """Records model interactions and serves aggregate stats for ranker weighting."""

    def __init__(self, repository: Repository) -> None:
        self._repo = repository

    def _load(self) -> dict[str, Any]:
        data = self._repo.get(_ANALYTICS_KEY)
        if not data:
            return _empty_analytics()
        return {
            "interactions": data.get("interactions", []),
            "model_stats": data.get("model_stats", {}),
            "task_type_stats": data.get("task_type_stats", {}),
        }

    def _save(self, data: dict[str, Any]) -> None:
        data["last_updated"] = time.time()
        self._repo.put(_ANALYTICS_KEY, data)

    def record_interaction(
        self,
        model_id: str,
        model_name: str,
        response_time: float = 0.0,
        total_tokens: int = 0,
        quality_score: float | None = None,
        error: str | None = None,
        task_type: str = "general",
    ) -> dict[str, Any]:
        """Append one interaction and fold it into the model and task-type stats.

        A quality score of 0 is stored as unscored so failures only count
        towards the error rate.
        """
        if not quality_score:
            quality_score = None
        data = self._load()
        record = {
            "id": f"interaction_{uuid.uuid4().hex[:12]}",
            "timestamp": time.time(),
            "model_id": model_id,
            "model_name": model_name,
            "task_type": task_type,
            "response_time": response_time,
            "total_tokens": total_tokens,
            "quality_score": quality_score,
            "error": error,
        }
        data["interactions"].append(record)
        data["interactions"] = data["interactions"][-_MAX_INTERACTIONS:]

        stats = data["model_stats"].setdefault(model_id, {
            "model_id": model_id,
            "model_name": model_name,
            "total_interactions": 0,
            "total_response_time": 0.0,
            "total_tokens": 0,
            "total_quality_score": 0.0,
            "quality_score_count": 0,
            "error_count": 0,
            "last_used": record["timestamp"],
        })
        stats["total_interactions"] += 1
        stats["total_response_time"] += response_time
        stats["total_tokens"] += total_tokens
        stats["last_used"] = record["timestamp"]
        if quality_score is not None:
            stats["total_quality_score"] += quality_score
            stats["quality_score_count"] += 1
        if error:
            stats["error_count"] += 1

        task = data["task_type_stats"].setdefault(task_type, {"total_interactions": 0, "models": {}})
        task["total_interactions"] += 1
        task_model = task["models"].setdefault(model_id, {
            "model_id": model_id,
            "model_name": model_name,
            "count": 0,
            "total_quality_score": 0.0,
            "quality_score_count": 0,
        })
        task_model["count"] += 1
        if quality_score is not None:
            task_model["total_quality_score"] += quality_score
            task_model["quality_score_count"] += 1

        self._save(data)
        logger.debug("Recorded interaction for %s (quality=%s, error=%s)", model_id, quality_score, error)
        return record

    @staticmethod
    def _to_model_stats(raw: dict[str, Any]) -> ModelStats:
        total = raw["total_interactions"]
        return ModelStats(
            model_id=raw["model_id"],
            model_name=raw["model_name"],
            total_interactions=total,
            avg_quality_score=(
                raw["total_quality_score"] / raw["quality_score_count"]
                if raw["quality_score_count"] > 0 else None
            ),
            error_rate=raw["error_count"] / total if total > 0 else 0.0,
            avg_response_time=raw["total_response_time"] / total if total > 0 else 0.0,
            total_tokens=raw["total_tokens"],
            last_used=raw["last_used"],
        )

    def stats_for(self, model_id: str) -> ModelStats | None:
        raw = self._load()["model_stats"].get(model_id)
        return self._to_model_stats(raw) if raw else None

    def all_stats(self) -> list[ModelStats]:
        return [self._to_model_stats(raw) for raw in self._load()["model_stats"].values()]

    def best_model_for_task(self, task_type: str) -> str | None:
        """Model id with the best average quality for ``task_type``.

        Scored models beat unscored ones; quality within 0.1 is a tie broken by
        usage count.
        """
        task = self._load()["task_type_stats"].get(task_type)
        if not task or not task["models"]:
            return None

        def avg(m: dict[str, Any]) -> float:
            return m["total_quality_score"] / m["quality_score_count"]

        best: dict[str, Any] | None = None
        for candidate in task["models"].values():
            if best is None:
                best = candidate
            elif candidate["quality_score_count"] == 0:
                if best["quality_score_count"] == 0 and candidate["count"] > best["count"]:
                    best = candidate
            elif best["quality_score_count"] == 0:
                best = candidate
            else:
                diff = avg(candidate) - avg(best)
                if abs(diff) < 0.1:
                    if candidate["count"] > best["count"]:
                        best = candidate
                elif diff > 0:
                    best = candidate
        return best["model_id"] if best else None

    def recent_interactions(self, limit: int = 50) -> list[dict[str, Any]]:
        """Newest first."""
        return list(reversed(self._load()["interactions"][-limit:]))

    def clear(self) -> None:
        self._repo.delete(_ANALYTICS_KEY)
