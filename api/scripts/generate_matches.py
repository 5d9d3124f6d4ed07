import argparse
import json
import logging
import sys
from pathlib import Path

sys.path.append(str(Path(__file__).resolve().parents[1]))

from weekly_match import main as m
from weekly_match.errors import PromptNotFound


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Generate weekly matches for one prompt")
    parser.add_argument("--prompt-id", type=str, required=True)
    parser.add_argument("--force", action="store_true", help="delete this prompt's existing matches first")
    parser.add_argument("--validate-only", action="store_true", help="only check stored matches for mutuality")
    parser.add_argument("--verbose", action="store_true")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )

    out: dict = {}
    if not args.validate_only:
        try:
            out["generation"] = m.repo_generate_matches_for_prompt(args.prompt_id, force=args.force)
        except PromptNotFound as exc:
            print(str(exc), file=sys.stderr)
            return 2
    out["validation"] = m.repo_validate_match_mutuality(args.prompt_id)

    print(json.dumps(out, indent=2, default=str))
    return 0 if out["validation"]["is_valid"] else 1


if __name__ == "__main__":
    sys.exit(main())
