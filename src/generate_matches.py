import os
import sys
import logging
from storage import load_players_file
from core.models import DISCIPLINES
from core.roster import balance_roster
from core.formats import generate_round_robin


def format_matches(teams, players, matches):
    """Group matches by discipline as '# <discipline>' headers followed by 'A vs B' lines."""
    names = {p.id: p.name for p in players}
    names.update({t.id: t.name for t in teams})

    lines = []
    for discipline in DISCIPLINES:
        discipline_matches = [m for m in matches if m.discipline_id == discipline.id]
        if not discipline_matches:
            continue
        if lines:
            lines.append('')
        lines.append(f"# {discipline.name}")
        for match in discipline_matches:
            lines.append(f"{names.get(match.player1_id, match.player1_id)} vs {names.get(match.player2_id, match.player2_id)}")
    return lines


def main():
    logging.basicConfig(level=logging.WARNING, format='%(levelname)s %(name)s: %(message)s')

    script_dir = os.path.dirname(__file__)
    base_dir = os.path.dirname(script_dir)

    # Use command line argument if provided, otherwise use the seed roster
    players_file = sys.argv[1] if len(sys.argv) > 1 else os.path.join(base_dir, 'data', 'players.yaml')

    players = load_players_file(players_file)
    if not players:
        print(f"No players loaded. Check {players_file}", file=sys.stderr)
        return

    teams = balance_roster(players)
    print("# Teams")
    for team in teams:
        print(f"{team.name} (weight {team.total_weight})")
    print()

    matches = generate_round_robin(teams, players)
    for line in format_matches(teams, players, matches):
        print(line)


if __name__ == '__main__':
    main()
