# Command line entry point for the double elimination bracket engine

import argparse
import logging
import os
import sys
import yaml
from brackets.models import Entrant
from brackets.evaluator import evaluate, final_placements
from brackets.mutations import record_result, clear_result, overrides_from_slots

BASE_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
DATA_DIR = os.environ.get('BRACKET_DATA_DIR', os.path.join(BASE_DIR, 'data'))
LOG_LEVEL = os.environ.get('BRACKET_LOG_LEVEL', 'INFO').upper()

logger = logging.getLogger('brackets.cli')

EXIT_BAD_INPUT = 1
EXIT_UNKNOWN_MATCH = 2


class InputError(Exception):
    pass


def load_entrants(file_path):
    """
    Load entrants from YAML. Either a list of mappings
    (id, name, ranking) or a mapping of name -> ranking.
    """
    try:
        with open(file_path, mode='r', encoding='utf-8') as file:
            data = yaml.safe_load(file)
    except (OSError, yaml.YAMLError) as e:
        raise InputError(f"Cannot read entrants from {file_path}: {e}")

    if not data:
        return []
    if isinstance(data, dict) and 'entrants' in data:
        data = data['entrants']
    if isinstance(data, dict):
        return [Entrant(name, name, ranking=ranking) for name, ranking in data.items()]
    if not isinstance(data, list):
        raise InputError(f"{file_path}: expected a list of entrants")
    try:
        return [Entrant.from_dict(item) for item in data]
    except ValueError as e:
        raise InputError(f"{file_path}: {e}")


def load_results(file_path):
    """Load the results map (slot id -> result) from YAML. A missing file means no results."""
    if not file_path or not os.path.exists(file_path):
        return {}
    try:
        with open(file_path, mode='r', encoding='utf-8') as file:
            data = yaml.safe_load(file)
    except (OSError, yaml.YAMLError) as e:
        raise InputError(f"Cannot read results from {file_path}: {e}")
    if not data:
        return {}
    if not isinstance(data, dict):
        raise InputError(f"{file_path}: expected a mapping of match id -> result")
    return data


def dump_results(slots):
    """Results YAML reproducing the given match list."""
    return yaml.dump(overrides_from_slots(slots), default_flow_style=False, sort_keys=True)


def _entrant_names(entrants):
    names = {e.id: e.name for e in entrants}

    def name_of(entrant_id):
        if entrant_id is None:
            return 'TBD'
        return names.get(entrant_id, 'BYE' if str(entrant_id).startswith('bye-') else str(entrant_id))
    return name_of


def print_bracket(slots, entrants, out=sys.stdout):
    name_of = _entrant_names(entrants)
    current_label = None
    for slot in slots:
        heading = f"{slot.segment}: {slot.label}"
        if heading != current_label:
            print(f"\n# {slot.label}", file=out)
            current_label = heading
        score = ''
        if slot.score1 is not None or slot.score2 is not None:
            score = f" {slot.score1}-{slot.score2}"
        court = f" @{slot.court}" if slot.court else ''
        print(f"{slot.id}: {name_of(slot.entrant1_id)} vs {name_of(slot.entrant2_id)}{score} [{slot.status}]{court}",
              file=out)


def print_placements(slots, entrants, out=sys.stdout):
    name_of = _entrant_names(entrants)
    placements = final_placements(slots)
    if not placements:
        print("No placements decided yet.", file=out)
        return
    for place, entrant_id in placements.items():
        print(f"{place:>2}. {name_of(entrant_id)}", file=out)


def build_parser():
    parser = argparse.ArgumentParser(description='32-entrant double elimination bracket')
    parser.add_argument('--entrants', default=os.path.join(DATA_DIR, 'entrants.yaml'),
                        help='Entrants YAML file (default: %(default)s)')
    parser.add_argument('--results', default=os.path.join(DATA_DIR, 'results.yaml'),
                        help='Results YAML file (default: %(default)s)')
    subparsers = parser.add_subparsers(dest='command')

    subparsers.add_parser('show', help='Print every match of the bracket')
    subparsers.add_parser('placements', help='Print the final standings decided so far')

    record = subparsers.add_parser('record', help='Record a result, print the updated results YAML')
    record.add_argument('match_id')
    record.add_argument('score1', type=int)
    record.add_argument('score2', type=int)
    record.add_argument('--winner', default=None, help='Explicit winner id')

    clear = subparsers.add_parser('clear', help='Clear a result, print the updated results YAML')
    clear.add_argument('match_id')
    return parser


def main(argv=None):
    logging.basicConfig(level=getattr(logging, LOG_LEVEL, logging.INFO),
                        format='%(levelname)s %(name)s: %(message)s')
    args = build_parser().parse_args(argv)
    command = args.command or 'show'

    try:
        entrants = load_entrants(args.entrants)
        results = load_results(args.results)
        slots = evaluate(entrants, results)
    except (InputError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_BAD_INPUT

    if command == 'show':
        print_bracket(slots, entrants)
    elif command == 'placements':
        print_placements(slots, entrants)
    elif command in ('record', 'clear'):
        if not any(slot.id == args.match_id for slot in slots):
            print(f"Error: unknown match {args.match_id}", file=sys.stderr)
            return EXIT_UNKNOWN_MATCH
        if command == 'record':
            slots = record_result(slots, args.match_id, args.score1, args.score2, [], entrants,
                                  winner_id=args.winner)
            updated = next(slot for slot in slots if slot.id == args.match_id)
            logger.info(f"{args.match_id}: {updated.score1}-{updated.score2} ({updated.status})")
        else:
            slots = clear_result(slots, args.match_id, entrants)
            logger.info(f"{args.match_id}: result cleared")
        sys.stdout.write(dump_results(slots))
    return 0


if __name__ == '__main__':
    sys.exit(main())
