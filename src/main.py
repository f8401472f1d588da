# Entry point: print standings and the projected running order for a data directory

import sys
import logging
from storage import TournamentStore, DATA_DIR
from core.models import DISCIPLINES, OVERALL
from core.standings import compute_standings
from core.allocation import LiveScheduler


def main():
    logging.basicConfig(level=logging.INFO, format='%(levelname)s %(name)s: %(message)s')

    data_dir = sys.argv[1] if len(sys.argv) > 1 else DATA_DIR
    store = TournamentStore(data_dir)

    if not store.is_initialized():
        print(f"Tournament not initialized in {data_dir}. POST /api/init first.")
        return

    users, teams, matches = store.load_snapshot()
    names = {u.id: u.name for u in users}
    names.update({t.id: t.name for t in teams})

    print("--- Overall Standings ---")
    for position, row in enumerate(compute_standings(matches, users, teams, OVERALL), start=1):
        print(f"{position:2d}. {row.player_name:<20} {row.points:3d} pts  "
              f"{row.won}W {row.drawn}D {row.lost}L  diff {row.diff:+d}")

    scheduler = LiveScheduler(teams, DISCIPLINES, store.load_settings())
    scheduler.allocate(matches)

    print("\n--- Live Schedule ---")
    for field in scheduler.get_schedule_output():
        print(f"\nField: {field['field']}")
        if not field['matches']:
            print("  No matches pending.")
        for match in field['matches']:
            p1 = names.get(match['player1Id'], match['player1Id'])
            p2 = names.get(match['player2Id'], match['player2Id'])
            print(f"  {match['startTime']} - {match['endTime']} [{match['status']}]: {p1} vs {p2}")

    if scheduler.unscheduled:
        print(f"\nWARNING: {len(scheduler.unscheduled)} matches could not be placed")


if __name__ == '__main__':
    main()
