"""
Command line interface for the Perspective Research tool.

Loads API keys from environment variables (via `.env`), then enters an
interactive loop: every topic typed at the prompt gets its own
`ResearchOrchestrator` run and the report is printed as plain text.
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv
from pydantic import ValidationError

from research_engine import ResearchFault, ResearchOrchestrator
from research_state_manager import FinalReport, ResearchDepth, ResearchRequest

# --- Logging configuration ---
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Multi-perspective research reports from a language model.")
    parser.add_argument(
        "--depth",
        default=ResearchDepth.EXTREME.value,
        choices=[depth.value for depth in ResearchDepth],
        help="Depth of the initial research per perspective.",
    )
    parser.add_argument("--iterations", type=int, default=5, help="Perspective coverage (1-8).")
    parser.add_argument("--constraints", default="", help="Extra constraints appended to research prompts.")
    parser.add_argument("--model", default=None, help="Model id (defaults to RESEARCH_MODEL_ID).")
    parser.add_argument("--output", type=Path, default=None, help="Also write each report to this text file.")
    return parser


def run_topic(request: ResearchRequest, args: argparse.Namespace) -> FinalReport:
    """Run one research request; the orchestrator is always cancelled afterwards."""

    orchestrator = ResearchOrchestrator(model_id=args.model, constraints=args.constraints)
    try:
        return orchestrator.conduct_research(request.topic, request.depth, request.iterations)
    finally:
        orchestrator.cancel()
        orchestrator.close()


def main(argv: Optional[List[str]] = None) -> int:
    """Run the command line loop for the research tool."""
    args = build_parser().parse_args(argv)
    logger.info("Loading environment variables from .env file...")
    load_dotenv()

    print(
        "\nWelcome to the Perspective Research tool!\n"
        "Type a research topic and press Enter.  Type 'quit' to exit.\n"
    )

    while True:
        try:
            topic = input("> ").strip()
        except EOFError:
            logger.info("EOF received; exiting.")
            break

        if not topic:
            continue
        if topic.lower() in {"quit", "exit", "q"}:
            logger.info("User requested exit.")
            break

        try:
            request = ResearchRequest(topic=topic, depth=args.depth, iterations=args.iterations)
        except ValidationError as exc:
            print(f"Invalid request: {exc.errors()[0]['msg']}\n")
            continue

        try:
            logger.info("Researching topic: %s", request.topic)
            report = run_topic(request, args)
        except EnvironmentError as exc:
            logger.error("Configuration error: %s", exc)
            return 1
        except ResearchFault as exc:
            logger.error("Research failed: %s", exc)
            print(f"Research failed: {exc}\n")
            continue
        except KeyboardInterrupt:
            logger.info("Research cancelled by user.")
            print("Research cancelled.\n")
            continue

        text = report.to_text()
        print(f"\n{text}\n")
        if args.output:
            args.output.write_text(text, encoding="utf-8")
            logger.info("Saved report to %s", args.output)
        logger.info("Report delivered successfully.")

    logger.info("Session ended. Goodbye!")
    print("Goodbye!")
    return 0


if __name__ == "__main__":
    sys.exit(main())
