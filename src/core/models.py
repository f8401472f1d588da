import uuid

ROUND_ROBIN = 'ROUND_ROBIN'
QUARTER_FINAL = 'QUARTER_FINAL'
SEMI_FINAL = 'SEMI_FINAL'
FINAL = 'FINAL'
PHASES = (ROUND_ROBIN, QUARTER_FINAL, SEMI_FINAL, FINAL)

QUARTER_A = 'Quarti A'
QUARTER_B = 'Quarti B'
SEMI_A = 'Semi A'
SEMI_B = 'Semi B'
FINAL_LABEL = 'Finalissima'

WIN_POINTS = 3
DRAW_POINTS = 1
LOSS_POINTS = 0

OVERALL = 'overall'

CATEGORY_WEIGHTS = {'RAGAZZO': 2, 'GIOVANE': 4, 'ADULTO': 6}


def generate_id():
    return uuid.uuid4().hex[:9]


class Player:
    def __init__(self, id, name, weight, username=None, category=None, team_id=None, attributes=None):
        self.id = id
        self.name = name
        self.weight = weight
        self.username = username
        self.category = category
        self.team_id = team_id
        self.attributes = attributes if attributes else {}

    @classmethod
    def from_dict(cls, data):
        known = {'id', 'name', 'weight', 'username', 'category', 'teamId'}
        return cls(
            id=data['id'],
            name=data.get('name', data['id']),
            weight=data.get('weight', CATEGORY_WEIGHTS.get(data.get('category'), 0)),
            username=data.get('username'),
            category=data.get('category'),
            team_id=data.get('teamId'),
            attributes={k: v for k, v in data.items() if k not in known},
        )

    def to_dict(self):
        data = dict(self.attributes)
        data.update({
            'id': self.id,
            'name': self.name,
            'username': self.username,
            'category': self.category,
            'weight': self.weight,
        })
        if self.team_id:
            data['teamId'] = self.team_id
        return data

    def __repr__(self):
        return f"Player(id={self.id}, name={self.name}, weight={self.weight}, team_id={self.team_id})"


class Team:
    def __init__(self, id, name, player_ids, total_weight=0):
        self.id = id
        self.name = name
        self.player_ids = list(player_ids)
        self.total_weight = total_weight

    @classmethod
    def from_dict(cls, data):
        return cls(
            id=data['id'],
            name=data.get('name', data['id']),
            player_ids=data.get('playerIds', []),
            total_weight=data.get('totalWeight', 0),
        )

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'playerIds': list(self.player_ids),
            'totalWeight': self.total_weight,
        }

    def __repr__(self):
        return f"Team(id={self.id}, name={self.name}, player_ids={self.player_ids}, total_weight={self.total_weight})"


class Discipline:
    def __init__(self, id, name, is_team, rules=''):
        self.id = id
        self.name = name
        self.is_team = is_team
        self.rules = rules

    def to_dict(self):
        return {'id': self.id, 'name': self.name, 'isTeam': self.is_team, 'rules': self.rules}

    def __repr__(self):
        return f"Discipline(id={self.id}, is_team={self.is_team})"


DISCIPLINES = [
    Discipline('PING_PONG', 'Ping Pong', True, '2vs2 - Vince chi arriva prima a 11 punti'),
    Discipline('CALCIOBALILLA', 'Calciobalilla', True, '2vs2 - Vince chi segna 5 goal'),
    Discipline('FRECCETTE', 'Freccette', False, '1vs1 - 301 Chiude con doppia'),
    Discipline('BASKET', 'Basket Tiri', False, '1vs1 - Gara a 10 tiri liberi'),
]


def get_discipline(discipline_id, disciplines=None):
    """Look up a catalog entry by id. Returns None for unknown ids."""
    for discipline in (disciplines if disciplines is not None else DISCIPLINES):
        if discipline.id == discipline_id:
            return discipline
    return None


class Match:
    def __init__(self, id, discipline_id, player1_id, player2_id, score1=None, score2=None,
                 is_completed=False, phase=ROUND_ROBIN, round_label=None, winner_id=None):
        self.id = id
        self.discipline_id = discipline_id
        self.player1_id = player1_id
        self.player2_id = player2_id
        self.score1 = score1
        self.score2 = score2
        self.is_completed = is_completed
        self.phase = phase
        self.round_label = round_label
        self.winner_id = winner_id

    @classmethod
    def from_dict(cls, data):
        return cls(
            id=data['id'],
            discipline_id=data['disciplineId'],
            player1_id=data.get('player1Id') or '',
            player2_id=data.get('player2Id') or '',
            score1=data.get('score1'),
            score2=data.get('score2'),
            is_completed=bool(data.get('isCompleted', False)),
            phase=data.get('phase', ROUND_ROBIN),
            round_label=data.get('roundLabel'),
            winner_id=data.get('winnerId'),
        )

    def to_dict(self):
        data = {
            'id': self.id,
            'disciplineId': self.discipline_id,
            'player1Id': self.player1_id,
            'player2Id': self.player2_id,
            'score1': self.score1,
            'score2': self.score2,
            'isCompleted': self.is_completed,
            'phase': self.phase,
        }
        if self.round_label:
            data['roundLabel'] = self.round_label
        if self.winner_id:
            data['winnerId'] = self.winner_id
        return data

    def copy(self):
        return Match.from_dict(self.to_dict())

    @property
    def participant_ids(self):
        return (self.player1_id, self.player2_id)

    @property
    def is_resolved(self):
        """Both sides are known (bracket slots start with an empty participant)."""
        return bool(self.player1_id) and bool(self.player2_id)

    def __eq__(self, other):
        if not isinstance(other, Match):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    def __repr__(self):
        return (f"Match(id={self.id}, discipline_id={self.discipline_id}, phase={self.phase}, "
                f"{self.player1_id} vs {self.player2_id}, score={self.score1}-{self.score2})")


class Participant:
    """A match side: an individual player or a team, resolved by discipline."""

    INDIVIDUAL = 'individual'
    TEAM = 'team'

    def __init__(self, kind, id, player_ids):
        self.kind = kind
        self.id = id
        self.player_ids = list(player_ids)

    @classmethod
    def individual(cls, player_id):
        return cls(cls.INDIVIDUAL, player_id, [player_id])

    @classmethod
    def team(cls, team):
        return cls(cls.TEAM, team.id, team.player_ids)

    @property
    def is_team(self):
        return self.kind == self.TEAM

    def __eq__(self, other):
        if not isinstance(other, Participant):
            return NotImplemented
        return (self.kind, self.id, self.player_ids) == (other.kind, other.id, other.player_ids)

    def __repr__(self):
        return f"Participant(kind={self.kind}, id={self.id}, player_ids={self.player_ids})"


class StandingRow:
    def __init__(self, player_id, player_name='', points=0, played=0, won=0, lost=0, diff=0):
        self.player_id = player_id
        self.player_name = player_name
        self.points = points
        self.played = played
        self.won = won
        self.lost = lost
        self.diff = diff

    @property
    def drawn(self):
        return self.played - self.won - self.lost

    def add(self, other):
        self.points += other.points
        self.played += other.played
        self.won += other.won
        self.lost += other.lost
        self.diff += other.diff

    def to_dict(self):
        return {
            'playerId': self.player_id,
            'playerName': self.player_name,
            'points': self.points,
            'played': self.played,
            'won': self.won,
            'lost': self.lost,
            'drawn': self.drawn,
            'diff': self.diff,
        }

    def __repr__(self):
        return f"StandingRow(player_id={self.player_id}, points={self.points}, diff={self.diff})"
