"""
Round log storage implementation.

Persists round snapshots to an append-only JSONL log, keeps a small JSON index
of the latest round per tournament for resume, and appends every judgment to
a separate JSONL history.
"""

import json
import os
import typing
from collections.abc import Iterable
from pathlib import Path
from typing import Any

from pydantic import TypeAdapter, ValidationError as PydanticValidationError
from typing_extensions import TypedDict, override

from ..config import config_from_dict, config_to_dict
from ..exceptions import ConfigurationError, StorageError, ValidationError
from ..interfaces import JudgmentState, PhotoState, SnapshotState, SnapshotStore
from ..logging_config import get_logger
from ..models import Judgment, Photo, RoundSnapshot

# Module-level logger
logger = get_logger("round_log_storage")


class IndexEntry(TypedDict):
    """Location of a tournament's latest round in the log."""
    round: int
    line: int


def photo_to_dict(photo: Photo) -> PhotoState:
    return {
        "id": photo.photo_id,
        "path": photo.path,
        "score": photo.score,
        "round": photo.round,
        "eliminated": photo.eliminated,
        "createdAt": photo.created_at,
    }


def photo_from_dict(data: PhotoState) -> Photo:
    return Photo(
        photo_id=data["id"],
        path=data["path"],
        score=float(data["score"]),
        round=data["round"],
        eliminated=data["eliminated"],
        created_at=float(data["createdAt"]),
    )


def judgment_to_dict(judgment: Judgment) -> JudgmentState:
    return {
        "id": judgment.judgment_id,
        "photoA": judgment.photo_a,
        "photoB": judgment.photo_b,
        "photoAPath": judgment.photo_a_path,
        "photoBPath": judgment.photo_b_path,
        "winner": judgment.winner,
        "explanation": judgment.explanation,
        "timestamp": judgment.timestamp,
        "round": judgment.round,
        "model": judgment.model,
        "fallback": judgment.fallback,
    }


def judgment_from_dict(data: JudgmentState) -> Judgment:
    winner = data["winner"]
    if winner not in ("a", "b"):
        raise ValidationError(f"Invalid judgment winner: {winner!r}")
    return Judgment(
        judgment_id=data["id"],
        photo_a=data["photoA"],
        photo_b=data["photoB"],
        photo_a_path=data["photoAPath"],
        photo_b_path=data["photoBPath"],
        winner=winner,
        explanation=data["explanation"],
        timestamp=float(data["timestamp"]),
        round=data["round"],
        model=data["model"],
        fallback=data.get("fallback", False),
    )


def snapshot_to_dict(snapshot: RoundSnapshot) -> SnapshotState:
    return {
        "tournamentId": snapshot.tournament_id,
        "round": snapshot.round,
        "timestamp": snapshot.timestamp,
        "config": config_to_dict(snapshot.config),
        "photos": [photo_to_dict(p) for p in snapshot.photos],
        "judgments": [judgment_to_dict(j) for j in snapshot.judgments],
    }


def snapshot_from_dict(data: object) -> RoundSnapshot:
    """
    Validate and rebuild a snapshot.

    Raises:
        StorageError: If the data does not describe a valid snapshot
    """
    try:
        state = TypeAdapter(SnapshotState).validate_python(data)
        return RoundSnapshot(
            tournament_id=state["tournamentId"],
            round=state["round"],
            timestamp=float(state["timestamp"]),
            config=config_from_dict(typing.cast(dict[str, Any], state["config"])),
            photos=[photo_from_dict(p) for p in state["photos"]],
            # Older snapshots may lack the judgment history
            judgments=[judgment_from_dict(j) for j in state.get("judgments", [])],
        )
    except (PydanticValidationError, ValidationError, ConfigurationError) as e:
        raise StorageError(f"Invalid snapshot: {e}") from e


class RoundLogStorage(SnapshotStore):
    """
    JSONL round log with a latest-round index.

    rounds.jsonl is append-only and holds every round of every tournament;
    index.json maps tournament id to the log line of its latest round so
    resume never has to parse filenames or scan the whole log.
    """

    results_dir: Path
    rounds_path: Path
    index_path: Path
    judgments_path: Path

    def __init__(self, results_dir: Path):
        """
        Initialize round log storage.

        Args:
            results_dir: Directory holding rounds.jsonl, index.json and judgments.jsonl
        """
        self.results_dir = Path(results_dir)
        self.rounds_path = self.results_dir / "rounds.jsonl"
        self.index_path = self.results_dir / "index.json"
        self.judgments_path = self.results_dir / "judgments.jsonl"

        self.results_dir.mkdir(parents=True, exist_ok=True)

        logger.info(
            f"Round log storage initialized: rounds={self.rounds_path}, index={self.index_path}, judgments={self.judgments_path}"
        )

    @override
    def save_round(self, snapshot: RoundSnapshot) -> None:
        """Append a round snapshot to the log and point the index at it."""
        try:
            index = self._load_index()
        except StorageError as e:
            logger.warning(f"{e}; rebuilding index from {self.rounds_path}")
            index = self._rebuild_index()

        # An interrupted write can leave a partial last line
        if not self._ends_with_newline(self.rounds_path):
            with open(self.rounds_path, "a", encoding="utf-8") as f:
                f.write("\n")
        line_number = self._count_lines(self.rounds_path)

        with open(self.rounds_path, "a", encoding="utf-8") as f:
            json.dump(snapshot_to_dict(snapshot), f, ensure_ascii=False)
            f.write("\n")

        index[snapshot.tournament_id] = {"round": snapshot.round, "line": line_number}
        self._write_index(index)

        logger.info(
            f"Saved round {snapshot.round} of {snapshot.tournament_id} to {self.rounds_path} (line {line_number})"
        )

    @override
    def load_latest(self, tournament_id: str) -> RoundSnapshot | None:
        """Load the latest completed round of a tournament via the index."""
        index = self._load_index()
        entry = index.get(tournament_id)
        if entry is None:
            logger.debug(f"No rounds recorded for {tournament_id}")
            return None

        line = self._read_line(entry["line"])
        if line is None:
            raise StorageError(
                f"Index points at missing line {entry['line']} of {self.rounds_path}"
            )

        try:
            data: object = json.loads(line.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise StorageError(f"Corrupt snapshot line {entry['line']}: {e}") from e

        snapshot = snapshot_from_dict(data)
        if snapshot.tournament_id != tournament_id or snapshot.round != entry["round"]:
            raise StorageError(
                f"Index entry for {tournament_id} round {entry['round']} points at "
                f"{snapshot.tournament_id} round {snapshot.round}"
            )

        logger.info(f"Loaded round {snapshot.round} of {tournament_id}")
        return snapshot

    def load_round(self, tournament_id: str, round_number: int) -> RoundSnapshot | None:
        """Load a specific round; the last matching log entry wins."""
        found: RoundSnapshot | None = None
        for snapshot in self._iter_snapshots():
            if snapshot.tournament_id == tournament_id and snapshot.round == round_number:
                found = snapshot
        return found

    def list_rounds(self, tournament_id: str) -> list[int]:
        """All persisted round numbers of a tournament, ascending."""
        return sorted(
            {s.round for s in self._iter_snapshots() if s.tournament_id == tournament_id}
        )

    def list_tournaments(self) -> list[str]:
        """All tournament ids with at least one persisted round."""
        return sorted(self._load_index())

    @override
    def persist_judgment(self, tournament_id: str, judgment: Judgment) -> None:
        """Append a judgment to judgments.jsonl."""
        data = {"tournamentId": tournament_id, **judgment_to_dict(judgment)}
        with open(self.judgments_path, "a", encoding="utf-8") as f:
            json.dump(data, f, ensure_ascii=False)
            f.write("\n")

        logger.debug(f"Persisted judgment {judgment.judgment_id} to {self.judgments_path}")

    def load_judgments(self, tournament_id: str | None = None) -> Iterable[Judgment]:
        """Load persisted judgments, optionally for one tournament only."""
        if not self.judgments_path.exists():
            return

        # Binary reads so one undecodable line cannot end the iteration
        with open(self.judgments_path, "rb") as f:
            for raw in f:
                raw = raw.strip()
                if not raw:
                    continue

                try:
                    data = typing.cast(dict[str, Any], json.loads(raw.decode("utf-8")))
                    if tournament_id is not None and data.get("tournamentId") != tournament_id:
                        continue
                    state = TypeAdapter(JudgmentState).validate_python(data)
                    yield judgment_from_dict(state)
                except (
                    UnicodeDecodeError,
                    json.JSONDecodeError,
                    PydanticValidationError,
                    ValidationError,
                ) as e:
                    # Skip corrupted or invalid lines
                    logger.warning(f"Skipping invalid judgment line in {self.judgments_path}: {e}")
                    continue

    def _iter_snapshots(self) -> Iterable[RoundSnapshot]:
        if not self.rounds_path.exists():
            return

        with open(self.rounds_path, "rb") as f:
            for raw in f:
                raw = raw.strip()
                if not raw:
                    continue
                try:
                    yield snapshot_from_dict(json.loads(raw.decode("utf-8")))
                except (UnicodeDecodeError, json.JSONDecodeError, StorageError) as e:
                    logger.warning(f"Skipping invalid snapshot line in {self.rounds_path}: {e}")
                    continue

    def _load_index(self) -> dict[str, IndexEntry]:
        if not self.index_path.exists():
            return {}
        try:
            with open(self.index_path, "r", encoding="utf-8") as f:
                return TypeAdapter(dict[str, IndexEntry]).validate_python(json.load(f))
        except (UnicodeDecodeError, json.JSONDecodeError, PydanticValidationError) as e:
            raise StorageError(f"Corrupt round index {self.index_path}: {e}") from e

    def _rebuild_index(self) -> dict[str, IndexEntry]:
        """Recover the index by scanning the log; later lines win."""
        index = dict[str, IndexEntry]()
        if not self.rounds_path.exists():
            return index

        with open(self.rounds_path, "rb") as f:
            for line_number, raw in enumerate(f):
                if not raw.strip():
                    continue
                try:
                    snapshot = snapshot_from_dict(json.loads(raw.decode("utf-8")))
                except (UnicodeDecodeError, json.JSONDecodeError, StorageError):
                    continue
                index[snapshot.tournament_id] = {"round": snapshot.round, "line": line_number}
        return index

    def _write_index(self, index: dict[str, IndexEntry]) -> None:
        tmp_path = self.index_path.with_suffix(".json.tmp")
        with open(tmp_path, "w", encoding="utf-8") as f:
            json.dump(index, f, indent=2, ensure_ascii=False)
        os.replace(tmp_path, self.index_path)

    def _read_line(self, line_number: int) -> bytes | None:
        if not self.rounds_path.exists():
            return None
        with open(self.rounds_path, "rb") as f:
            for i, line in enumerate(f):
                if i == line_number:
                    return line
        return None

    @staticmethod
    def _ends_with_newline(path: Path) -> bool:
        if not path.exists() or path.stat().st_size == 0:
            return True
        with open(path, "rb") as f:
            _ = f.seek(-1, os.SEEK_END)
            return f.read(1) == b"\n"

    @staticmethod
    def _count_lines(path: Path) -> int:
        if not path.exists():
            return 0
        with open(path, "rb") as f:
            return sum(1 for _ in f)
