"""
Console Test Harness for the Mentorship Scoring Engine

Scores one or more encounter JSON files and prints section scores and
KPIs. Each file holds either a live-form object ({..., 'assessment_skills':
{...}, 'treatment_skills': {...}}) or a list of bulk-import rows.

Usage:
    python main.py encounter.json [more.json ...] [--checklist path] [--payload]
"""

import argparse
import json
import logging
import sys

from mentorship.core.answer_store import AnswerStore
from mentorship.core.checklist_loader import DEFAULT_CHECKLIST_PATH, load_checklist
from mentorship.core.row_mapper import answers_from_row
from mentorship.core.scoring_engine import ScoringEngine
from mentorship.utils.display_helpers import format_result_for_display

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


def print_separator(char="=", length=60):
    """Print a separator line"""
    print(char * length)


def print_result(title, result):
    """Print one scored encounter"""
    display = format_result_for_display(result)

    print_separator()
    print(f"{title}  overall: {display['overall']}")
    print_separator()

    for row in display['sections']:
        print(f"  {row['label']:<40} {row['score']:>3}/{row['maxScore']:<3} {row['display']}")

    print("-" * 60)
    print("KPIs:")
    for row in display['kpis']:
        print(f"  {row['label']:<40} {row['score']:>3}/{row['maxScore']:<3} {row['display']}")

    if display['diagnostics']:
        print("-" * 60)
        print("DIAGNOSTICS:")
        for line in display['diagnostics']:
            print(f"  {line}")


def load_encounters(path):
    """
    Read encounters from a JSON file.

    Returns:
        list of (title, AnswerStore, import problems)
    """
    with open(path, 'r', encoding='utf-8') as f:
        data = json.load(f)

    if isinstance(data, list):
        encounters = []
        for index, row in enumerate(data):
            answers, problems = answers_from_row(row)
            encounters.append((f"{path} row {index + 1}", answers, problems))
        return encounters

    return [(path, AnswerStore.from_form_data(data), [])]


def main(argv=None):
    """Run console harness"""
    parser = argparse.ArgumentParser(description="Score IMNCI mentorship encounters")
    parser.add_argument('files', nargs='+', help="Encounter JSON files")
    parser.add_argument('--checklist', default=str(DEFAULT_CHECKLIST_PATH), help="Checklist JSON")
    parser.add_argument('--payload', action='store_true', help="Print the flat persisted payload instead")
    args = parser.parse_args(argv)

    try:
        engine = ScoringEngine(load_checklist(args.checklist))
    except (OSError, ValueError) as e:
        print(f"\nFailed to load checklist: {e}")
        return 1

    exit_code = 0
    for path in args.files:
        try:
            encounters = load_encounters(path)
        except (OSError, ValueError) as e:
            print(f"\nCould not read {path}: {e}")
            exit_code = 1
            continue

        for title, answers, problems in encounters:
            for problem in problems:
                print(f"  rejected cell {problem.node}: {problem.message}")

            result = engine.score(answers)
            if args.payload:
                print(json.dumps(result.to_payload(), indent=2))
            else:
                print_result(title, result)

    return exit_code


if __name__ == "__main__":
    sys.exit(main())
