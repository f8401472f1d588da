"""
YAML file storage for users, teams and matches.
"""
import os
import logging
import yaml
from filelock import FileLock
from core.models import Player, Team, Match, generate_id
from core.formats import generate_round_robin, involves_player
from core.roster import balance_roster

logger = logging.getLogger(__name__)

BASE_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
DATA_DIR = os.environ.get('TOURNAMENT_DATA_DIR', os.path.join(BASE_DIR, 'data'))
SEED_PLAYERS_FILE = os.path.join(BASE_DIR, 'data', 'players.yaml')

INITIALIZED_MARKER = '.initialized'


def get_default_settings():
    """Return default settings."""
    return {
        'tournament_name': 'Nolimpiadi',
        'match_duration_minutes': 10,
        'day_start_time': '09:00',
        'max_time_slots': 100,
    }


def load_players_file(file_path):
    """Load a roster YAML file (``players:`` list of user dicts)."""
    with open(file_path, mode='r', encoding='utf-8') as f:
        data = yaml.safe_load(f)
    if not data:
        return []
    return [Player.from_dict(p) for p in data.get('players', [])]


class UserInUseError(Exception):
    """A user cannot be deleted while teams or matches reference them."""


class TournamentStore:
    def __init__(self, data_dir=None):
        self.data_dir = data_dir or DATA_DIR
        os.makedirs(self.data_dir, exist_ok=True)
        self.lock = FileLock(os.path.join(self.data_dir, '.lock'), timeout=10)

    def _file_path(self, filename):
        return os.path.join(self.data_dir, filename)

    def _load_list(self, filename, key):
        path = self._file_path(filename)
        if not os.path.exists(path):
            return []
        with open(path, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f)
        if not data:
            return []
        return data.get(key, [])

    def _save_list(self, filename, key, items):
        with open(self._file_path(filename), 'w', encoding='utf-8') as f:
            yaml.dump({key: [item.to_dict() for item in items]}, f, default_flow_style=False,
                      allow_unicode=True, sort_keys=False)

    # --- Settings ---

    def load_settings(self):
        """Load settings from YAML file, merging with defaults."""
        defaults = get_default_settings()
        path = self._file_path('settings.yaml')
        if not os.path.exists(path):
            return defaults
        with open(path, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f)
        if not data:
            return defaults
        return {**defaults, **data}

    def save_settings(self, settings):
        with open(self._file_path('settings.yaml'), 'w', encoding='utf-8') as f:
            yaml.dump(settings, f, default_flow_style=False)

    # --- Entities ---

    def load_users(self):
        return [Player.from_dict(u) for u in self._load_list('users.yaml', 'users')]

    def save_users(self, users):
        self._save_list('users.yaml', 'users', users)

    def load_teams(self):
        return [Team.from_dict(t) for t in self._load_list('teams.yaml', 'teams')]

    def save_teams(self, teams):
        self._save_list('teams.yaml', 'teams', teams)

    def load_matches(self):
        return [Match.from_dict(m) for m in self._load_list('matches.yaml', 'matches')]

    def save_matches(self, matches):
        self._save_list('matches.yaml', 'matches', matches)

    def load_snapshot(self):
        """Users, teams and matches as one consistent read."""
        with self.lock:
            return self.load_users(), self.load_teams(), self.load_matches()

    # --- Tournament lifecycle ---

    def is_initialized(self):
        return os.path.exists(self._file_path(INITIALIZED_MARKER))

    def initialize_tournament(self, players, disciplines=None):
        """
        Balance the roster into teams and create the round-robin matches.

        Returns False without touching anything when the tournament has
        already been initialized.
        """
        with self.lock:
            if self.is_initialized():
                logger.info("Tournament in %s already initialized", self.data_dir)
                return False
            teams = balance_roster(players)
            matches = generate_round_robin(teams, players, disciplines)
            existing = {u.id: u for u in self.load_users()}
            for player in players:
                existing[player.id] = player
            self.save_users(list(existing.values()))
            self.save_teams(teams)
            self.save_matches(matches)
            with open(self._file_path(INITIALIZED_MARKER), 'w', encoding='utf-8') as f:
                f.write('true\n')
        logger.info("Initialized tournament: %d players, %d teams, %d matches",
                    len(players), len(teams), len(matches))
        return True

    def reset_tournament(self):
        """Drop teams and matches so the tournament can be initialized again. Users are kept."""
        with self.lock:
            users = self.load_users()
            for user in users:
                user.team_id = None
            self.save_users(users)
            for filename in ('teams.yaml', 'matches.yaml', INITIALIZED_MARKER):
                path = self._file_path(filename)
                if os.path.exists(path):
                    os.remove(path)
        logger.info("Tournament in %s reset", self.data_dir)

    # --- Matches ---

    def get_match(self, match_id):
        return next((m for m in self.load_matches() if m.id == match_id), None)

    def update_match(self, match):
        """Replace one match by id. Returns False when it does not exist."""
        return self.update_matches([match]) == 1

    def update_matches(self, updated):
        by_id = {m.id: m for m in updated}
        count = 0
        with self.lock:
            matches = self.load_matches()
            for i, match in enumerate(matches):
                if match.id in by_id:
                    matches[i] = by_id[match.id]
                    count += 1
            if count:
                self.save_matches(matches)
        return count

    def add_matches(self, new_matches):
        with self.lock:
            matches = self.load_matches()
            matches.extend(new_matches)
            self.save_matches(matches)

    # --- Users ---

    def get_user(self, user_id):
        return next((u for u in self.load_users() if u.id == user_id), None)

    def add_user(self, user):
        with self.lock:
            users = self.load_users()
            if not user.id or any(u.id == user.id for u in users):
                user.id = generate_id()
            users.append(user)
            self.save_users(users)
        return user

    def update_user(self, user):
        with self.lock:
            users = self.load_users()
            for i, existing in enumerate(users):
                if existing.id == user.id:
                    users[i] = user
                    self.save_users(users)
                    return True
        return False

    def delete_user(self, user_id):
        """
        Delete a user. Refused with UserInUseError while a team or match
        references them. Returns False for unknown users.
        """
        with self.lock:
            users = self.load_users()
            if not any(u.id == user_id for u in users):
                return False
            teams = self.load_teams()
            teams_by_id = {t.id: t for t in teams}
            if any(user_id in t.player_ids for t in teams):
                raise UserInUseError(f'User {user_id} belongs to a team')
            if any(involves_player(m, user_id, teams_by_id) for m in self.load_matches()):
                raise UserInUseError(f'User {user_id} is referenced by matches')
            self.save_users([u for u in users if u.id != user_id])
        return True
