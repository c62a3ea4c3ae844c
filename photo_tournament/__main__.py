"""
CLI entry point for the photo tournament system.

Parses arguments, loads the tournament config, and wires components.
"""

import argparse
import shutil
import sys
from argparse import Namespace
from collections.abc import Sequence
from pathlib import Path
from typing import TypedDict

from prettytable import PrettyTable

from .config import load_config
from .controller import TournamentController, standings
from .exceptions import ConfigurationError
from .fetchers.directory_fetcher import DirectoryPhotoFetcher
from .interfaces import Judge
from .judges.dummy_judge import DummyJudge
from .judges.openrouter_judge import OpenRouterJudge
from .judges.oracle import JudgmentOracle
from .judges.sim_judge import SimulatedJudge
from .logging_config import get_logger, setup_logging
from .models import TournamentConfig, TournamentResult
from .storage.round_log_storage import RoundLogStorage


class CLIArgs(TypedDict):
    """Typed representation of parsed CLI arguments."""
    config: str | None
    photos_dir: str
    results_dir: str
    dry_run: bool
    resume: bool
    judge_type: str
    workers: int
    seed: int | None
    noise: float
    ranked_links: bool
    debug: bool
    log_level: str


def parse_args(argv: Sequence[str] | None = None) -> Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Photo Tournament - Elimination Tournaments with Pairwise Judging"
    )

    _ = parser.add_argument(
        "config",
        nargs="?",
        default=None,
        help="Tournament config as a JSON object or a path to a JSON file (default: elo, 3 rounds)"
    )
    _ = parser.add_argument(
        "--photos-dir",
        default="./photos",
        help="Directory of .jpg/.jpeg/.png photos (default: ./photos)"
    )
    _ = parser.add_argument(
        "--results-dir",
        default="./results",
        help="Directory for the round log and judgments (default: ./results)"
    )
    _ = parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Skip judging and persistence; only run eliminations"
    )
    _ = parser.add_argument(
        "--resume",
        action="store_true",
        help="Resume the tournament from its latest persisted round"
    )
    _ = parser.add_argument(
        "--judge-type",
        choices=["openrouter", "simulated", "dummy"],
        default="openrouter",
        help="Type of judge to use (default: openrouter)"
    )
    _ = parser.add_argument(
        "--workers",
        type=int,
        default=1,
        help="Number of concurrent judge calls (default: 1)"
    )
    _ = parser.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Random seed for pairing and elimination (overrides config)"
    )
    _ = parser.add_argument(
        "--noise",
        type=float,
        default=0.1,
        help="Noise level for simulated judge (0-1, default: 0.1)"
    )
    _ = parser.add_argument(
        "--ranked-links",
        action="store_true",
        help="Write a ranked/ directory of symlinks into the results directory"
    )
    _ = parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging"
    )
    _ = parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        default="INFO",
        help="Set logging level (default: INFO)"
    )

    return parser.parse_args(argv)


def args_to_typed(ns: Namespace) -> CLIArgs:
    """Convert argparse Namespace to typed CLIArgs."""
    return CLIArgs(
        config=ns.config,
        photos_dir=ns.photos_dir,
        results_dir=ns.results_dir,
        dry_run=ns.dry_run,
        resume=ns.resume,
        judge_type=ns.judge_type,
        workers=ns.workers,
        seed=ns.seed,
        noise=ns.noise,
        ranked_links=ns.ranked_links,
        debug=ns.debug,
        log_level=ns.log_level,
    )


def create_judge(args: CLIArgs, fetcher: DirectoryPhotoFetcher) -> Judge:
    """Build the judge selected on the command line."""
    logger = get_logger("create_judge")

    if args["judge_type"] == "openrouter":
        judge = OpenRouterJudge()
        logger.info("OpenRouter judge created")
    elif args["judge_type"] == "simulated":
        # Later photos are treated as better; ids follow fetch order
        sources = fetcher.list_photos()
        ground_truth = {
            f"item-{i}": float(i + 1) / len(sources) for i in range(len(sources))
        }
        judge = SimulatedJudge(ground_truth, noise=args["noise"], seed=args["seed"])
        logger.info(f"Simulated judge created with {len(ground_truth)} photos, noise={args['noise']}")
    elif args["judge_type"] == "dummy":
        judge = DummyJudge(mode="deterministic")
        logger.info("Dummy judge created")
    else:
        raise ConfigurationError(f"Unknown judge type: {args['judge_type']}")
    return judge


def wire_components(args: CLIArgs, config: TournamentConfig) -> TournamentController:
    """Wire dependency injection components."""
    logger = get_logger("wire_components")

    logger.info("Creating photo fetcher")
    fetcher = DirectoryPhotoFetcher(Path(args["photos_dir"]))
    if not args["resume"] and not fetcher.list_photos():
        raise ConfigurationError(f"No photo files found in {args['photos_dir']}")

    logger.info("Creating storage")
    storage = RoundLogStorage(Path(args["results_dir"]))

    logger.info(f"Creating {args['judge_type']} judge")
    oracle = JudgmentOracle(create_judge(args, fetcher))

    return TournamentController(
        config=config,
        oracle=oracle,
        storage=storage,
        fetcher=fetcher,
        dry_run=args["dry_run"],
        resume=args["resume"],
        max_workers=args["workers"],
    )


def print_results(result: TournamentResult) -> None:
    """Print final standings."""
    print("\n=== Tournament Complete ===")
    if result.winner is None:
        print("No photos survived.")
    else:
        label = "Winner" if result.completed else "Leader"
        print(f"{label}: {result.winner.photo_id} ({result.winner.path})")
        print(f"Final score: {result.winner.score:.2f}")
    print(f"Survivors: {len(result.survivors)}")
    print(f"Rounds played: {result.rounds_played} (last round {result.last_round})")
    print(f"Judgments: {len(result.judgments)} ({sum(j.fallback for j in result.judgments)} fallback)")

    table = PrettyTable()
    table.field_names = ["Rank", "Photo ID", "Score", "Status", "Round", "Path"]
    table.align["Rank"] = "r"
    table.align["Score"] = "r"
    table.align["Round"] = "r"
    table.align["Path"] = "l"

    for rank, photo in enumerate(standings(result.photos), 1):
        table.add_row([
            rank,
            photo.photo_id,
            f"{photo.score:.2f}",
            "eliminated" if photo.eliminated else "active",
            photo.round,
            photo.path,
        ])

    print(table)


def create_ranked_directory(result: TournamentResult, output_dir: Path) -> None:
    """
    Create a ranked directory with symlinks to photos in standings order.

    Args:
        result: Finished tournament result
        output_dir: Output directory path
    """
    logger = get_logger("create_ranked_directory")

    ranked_dir = output_dir / "ranked"
    if ranked_dir.exists():
        shutil.rmtree(ranked_dir)
        logger.info(f"Cleared existing ranked directory: {ranked_dir}")
    ranked_dir.mkdir(parents=True)

    ordered = standings(result.photos)
    for rank, photo in enumerate(ordered, 1):
        photo_path = Path(photo.path).resolve()
        symlink_path = ranked_dir / f"{rank}_{photo.photo_id}{photo_path.suffix}"
        symlink_path.symlink_to(photo_path)
        logger.debug(f"Created symlink: {symlink_path.name} -> {photo_path}")

    logger.info(f"Created {len(ordered)} ranked symlinks in {ranked_dir}")
    print(f"Created ranked directory with {len(ordered)} symlinks: {ranked_dir}")


def main(argv: Sequence[str] | None = None) -> None:
    """Main CLI entry point."""
    args = args_to_typed(parse_args(argv))

    setup_logging(level=args["log_level"], debug=args["debug"], log_dir=Path(args["results_dir"]))
    logger = get_logger("main")

    try:
        config = load_config(args["config"])
        if args["seed"] is not None:
            config.seed = args["seed"]

        print("Photo Tournament - Elimination Tournaments with Pairwise Judging")
        print("=" * 60)
        print(f"Tournament ID: {config.tournament_id}")
        print(f"Algorithm: {config.algorithm}")
        print(f"Rounds: {config.rounds}")
        print(f"Model: {config.model}")
        print(f"Elimination rate: {config.effective_elimination_rate}")
        if config.algorithm == "nwise":
            print(f"Batch size: {config.effective_batch_size}")
        print(f"Photos directory: {args['photos_dir']}")
        print(f"Results directory: {args['results_dir']}")
        print(f"Judge type: {args['judge_type']}")
        print(f"Dry run: {args['dry_run']}")
        print(f"Resume: {args['resume']}")
        print("=" * 60)

        controller = wire_components(args, config)
        result = controller.run()
    except (ConfigurationError, FileNotFoundError, NotADirectoryError) as e:
        logger.error(f"Tournament setup failed: {e}")
        print(f"Error: {e}")
        sys.exit(1)
    except KeyboardInterrupt:
        logger.warning("Tournament interrupted by user")
        print("\nTournament interrupted by user")
        sys.exit(1)

    print_results(result)

    if args["ranked_links"]:
        create_ranked_directory(result, Path(args["results_dir"]))


if __name__ == "__main__":
    main()
