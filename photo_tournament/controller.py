"""
Tournament controller for photo elimination tournaments.

Coordinates the photo fetcher, judgment oracle, rating model, elimination
algorithm and snapshot store, one round at a time.
"""

import random
import time
from collections.abc import Sequence
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from loguru import Logger

from .eliminators import create_algorithm
from .eliminators.base import active_photos, rank_by_score
from .exceptions import ConfigurationError, StorageError
from .interfaces import EliminationAlgorithm, PhotoFetcher, PhotoSource, SnapshotStore
from .judges.oracle import JudgmentOracle
from .logging_config import get_logger
from .models import (
    JudgeOutcome,
    Judgment,
    Photo,
    RoundSnapshot,
    TournamentConfig,
    TournamentResult,
    TournamentState,
)
from .rating import apply_match

MAX_COMPARISONS_PER_ROUND = 10
COMPARISONS_PER_ACTIVE_PHOTO = 2


def standings(photos: Sequence[Photo]) -> list[Photo]:
    """Survivors by score, then eliminated photos by how long they lasted."""
    survivors = rank_by_score(active_photos(photos))
    eliminated = sorted(
        (p for p in photos if p.eliminated),
        key=lambda p: (p.round, p.score),
        reverse=True,
    )
    return survivors + eliminated


class TournamentController:
    """Round-by-round state machine for an elimination tournament."""

    def __init__(
        self,
        config: TournamentConfig,
        oracle: JudgmentOracle,
        storage: SnapshotStore | None = None,
        fetcher: PhotoFetcher | None = None,
        sources: Sequence[PhotoSource] | None = None,
        dry_run: bool = False,
        resume: bool = False,
        max_workers: int = 1,
    ):
        """
        Initialize controller with all components.

        Args:
            config: Tournament configuration
            oracle: Fallback-wrapping judgment oracle
            storage: Snapshot store (required unless dry_run)
            fetcher: Source of photos for a fresh tournament
            sources: Explicit (path, created_at) list, used instead of fetcher
            dry_run: Skip judging and persistence; only run eliminations
            resume: Continue from the latest persisted round if one exists
            max_workers: Concurrent judge calls (pairs never share a photo in flight)

        Raises:
            ConfigurationError: If the algorithm is unknown or components are missing
        """
        if max_workers <= 0:
            raise ConfigurationError(f"max_workers must be positive, got {max_workers}")
        if storage is None and (resume or not dry_run):
            raise ConfigurationError("storage is required unless running a fresh dry run")
        if fetcher is None and sources is None:
            raise ConfigurationError("either a fetcher or explicit photo sources is required")

        self.config: TournamentConfig = config
        self.oracle: JudgmentOracle = oracle
        self.storage: SnapshotStore | None = storage
        self.fetcher: PhotoFetcher | None = fetcher
        self.sources: list[PhotoSource] | None = list(sources) if sources is not None else None
        self.dry_run: bool = dry_run
        self.resume: bool = resume
        self.max_workers: int = max_workers

        self.rng: random.Random = random.Random(config.seed)
        self.algorithm: EliminationAlgorithm = create_algorithm(config.algorithm, rng=self.rng)

        # Runtime state, owned exclusively by this controller
        self.state: TournamentState = TournamentState.INITIALIZING
        self.photos: list[Photo] = []
        self.judgments: list[Judgment] = []
        self.start_round: int = 0
        self.rounds_played: int = 0

        self.logger: Logger = get_logger("controller", tournament_id=self.tournament_id)

    @property
    def tournament_id(self) -> str:
        # Always set by TournamentConfig.__post_init__
        assert self.config.tournament_id is not None
        return self.config.tournament_id

    def run(self) -> TournamentResult:
        """Run rounds until one photo remains or the configured rounds are used up."""
        self.logger.info(f"Starting photo tournament with config: {self.config}")
        self._initialize()
        self.logger.info(
            f"Tournament {self.tournament_id}: {len(self.photos)} photos, starting after round {self.start_round}"
        )

        last_round = self.start_round
        for round_number in range(self.start_round + 1, self.config.rounds + 1):
            active = active_photos(self.photos)
            if len(active) <= 1:
                self.logger.info("Tournament complete - only one photo remaining")
                break

            self.state = TournamentState.ROUND_ACTIVE
            self.logger.info(f"=== Round {round_number} === ({len(active)} active photos)")

            if not self.dry_run:
                self._run_comparisons(active, round_number)

            self.photos = self.algorithm.apply(self.photos, self.config, round_number)

            eliminated_now = [
                p.photo_id for p in self.photos if p.eliminated and p.round == round_number
            ]
            self.logger.info(f"Eliminated {len(eliminated_now)} photos in round {round_number}: {eliminated_now}")

            if not self.dry_run:
                self._save_snapshot(round_number)

            self.state = TournamentState.ROUND_ACTIONS_COMPLETE
            self.rounds_played += 1
            last_round = round_number

        self.state = TournamentState.TERMINAL
        result = self._build_result(last_round)

        if result.winner is None:
            self.logger.warning(f"Tournament {self.tournament_id} ended with no surviving photos")
        elif result.completed:
            self.logger.info(f"Winner: {result.winner.photo_id} ({result.winner.path}), score {result.winner.score:.2f}")
        else:
            self.logger.info(
                f"Rounds exhausted with {len(result.survivors)} survivors; "
                f"leader {result.winner.photo_id} ({result.winner.score:.2f})"
            )
        return result

    def _initialize(self) -> None:
        """Resume from the latest snapshot or build a fresh photo set."""
        self.state = TournamentState.INITIALIZING

        if self.resume:
            snapshot = self._load_resume_snapshot()
            if snapshot is not None:
                self.photos = snapshot.photos
                self.judgments = snapshot.judgments
                self.start_round = snapshot.round
                self.logger.info(
                    f"Resuming tournament {self.tournament_id} from round {self.start_round} "
                    f"with {len(self.judgments)} existing judgments"
                )
                return
            self.logger.info("No existing results found, starting fresh")

        self.photos = self._fresh_photos()
        self.judgments = []
        self.start_round = 0

    def _load_resume_snapshot(self) -> RoundSnapshot | None:
        assert self.storage is not None
        try:
            return self.storage.load_latest(self.tournament_id)
        except StorageError as e:
            self.logger.warning(f"Could not load snapshot for {self.tournament_id}, starting fresh: {e}")
            return None

    def _fresh_photos(self) -> list[Photo]:
        if self.sources is not None:
            sources = self.sources
        else:
            assert self.fetcher is not None
            sources = self.fetcher.list_photos()

        return [
            Photo(photo_id=f"item-{i}", path=source.path, created_at=source.created_at)
            for i, source in enumerate(sources)
        ]

    def _plan_pairs(self, active: Sequence[Photo]) -> list[tuple[Photo, Photo]]:
        """
        Draw this round's comparison pairs.

        Each draw picks both photos independently; a photo drawn against itself
        uses up the draw without producing a comparison.
        """
        draws = min(MAX_COMPARISONS_PER_ROUND, len(active) * COMPARISONS_PER_ACTIVE_PHOTO)
        pairs = list[tuple[Photo, Photo]]()
        for _ in range(draws):
            photo_a = self.rng.choice(active)
            photo_b = self.rng.choice(active)
            if photo_a.photo_id == photo_b.photo_id:
                self.logger.debug(f"Skipping self-pairing of {photo_a.photo_id}")
                continue
            pairs.append((photo_a, photo_b))
        return pairs

    def _run_comparisons(self, active: Sequence[Photo], round_number: int) -> None:
        pairs = self._plan_pairs(active)
        self.logger.info(f"Judging {len(pairs)} pairs in round {round_number}")

        if self.max_workers == 1:
            for photo_a, photo_b in pairs:
                self.logger.info(f"Comparing {photo_a.photo_id} vs {photo_b.photo_id}...")
                outcome = self.oracle.evaluate(photo_a, photo_b, self.config.model, round_number)
                self._record(photo_a, photo_b, outcome, round_number)
        else:
            self._run_comparisons_parallel(pairs, round_number)

    def _run_comparisons_parallel(
        self, pairs: list[tuple[Photo, Photo]], round_number: int
    ) -> None:
        """
        Judge independent pairs concurrently.

        Workers only call the oracle. Scores are updated here, on the calling
        thread, one completed comparison at a time, and a photo is never part
        of two in-flight comparisons.
        """
        pending = list(pairs)
        in_flight = set[str]()

        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            futures = dict[Future[JudgeOutcome], tuple[Photo, Photo]]()

            while pending or futures:
                i = 0
                while i < len(pending) and len(futures) < self.max_workers:
                    photo_a, photo_b = pending[i]
                    if photo_a.photo_id in in_flight or photo_b.photo_id in in_flight:
                        i += 1
                        continue
                    _ = pending.pop(i)
                    future = executor.submit(
                        self.oracle.evaluate, photo_a, photo_b, self.config.model, round_number
                    )
                    futures[future] = (photo_a, photo_b)
                    in_flight.update((photo_a.photo_id, photo_b.photo_id))
                    self.logger.debug(f"Submitted {photo_a.photo_id} vs {photo_b.photo_id}, in-flight: {len(in_flight)}")

                done, _ = wait(futures.keys(), return_when=FIRST_COMPLETED)
                for future in done:
                    photo_a, photo_b = futures.pop(future)
                    in_flight.difference_update((photo_a.photo_id, photo_b.photo_id))
                    self._record(photo_a, photo_b, future.result(), round_number)

    def _record(
        self, photo_a: Photo, photo_b: Photo, outcome: JudgeOutcome, round_number: int
    ) -> None:
        """Apply a verdict to the scores and append it to the judgment history."""
        verdict = outcome.verdict
        winner, loser = (photo_a, photo_b) if verdict.winner == "a" else (photo_b, photo_a)
        before = (winner.score, loser.score)
        apply_match(winner, loser)

        # Round and history position make the id unique
        judgment_id = (
            f"{photo_a.photo_id}-vs-{photo_b.photo_id}-{int(time.time() * 1000)}"
            f"-r{round_number}-{len(self.judgments)}"
        )
        judgment = Judgment(
            judgment_id=judgment_id,
            photo_a=photo_a.photo_id,
            photo_b=photo_b.photo_id,
            photo_a_path=photo_a.path,
            photo_b_path=photo_b.path,
            winner=verdict.winner,
            explanation=verdict.rationale,
            timestamp=verdict.timestamp,
            round=round_number,
            model=self.config.model,
            fallback=outcome.is_fallback,
        )
        self.judgments.append(judgment)

        self.logger.info(f"  Winner: {winner.photo_id} ({verdict.rationale})")
        self.logger.debug(
            f"  {winner.photo_id}: {before[0]:.2f}->{winner.score:.2f}, "
            f"{loser.photo_id}: {before[1]:.2f}->{loser.score:.2f}"
        )

    def _save_snapshot(self, round_number: int) -> None:
        assert self.storage is not None
        snapshot = RoundSnapshot(
            tournament_id=self.tournament_id,
            round=round_number,
            photos=list(self.photos),
            config=self.config,
            judgments=list(self.judgments),
        )
        self.storage.save_round(snapshot)

        # The judgment log only ever holds rounds that reached a snapshot
        for judgment in self.judgments:
            if judgment.round == round_number:
                self.storage.persist_judgment(self.tournament_id, judgment)

    def _build_result(self, last_round: int) -> TournamentResult:
        survivors = rank_by_score(active_photos(self.photos))
        return TournamentResult(
            tournament_id=self.tournament_id,
            winner=survivors[0] if survivors else None,
            survivors=survivors,
            photos=list(self.photos),
            judgments=list(self.judgments),
            rounds_played=self.rounds_played,
            last_round=last_round,
            state=self.state,
        )
