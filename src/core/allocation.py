import datetime
import logging

from core.formats import participant_player_ids
from core.models import DISCIPLINES

logger = logging.getLogger(__name__)

PLAYING = 'PLAYING'
UP_NEXT = 'UP_NEXT'
LATER = 'LATER'


class ScheduledMatch:
    def __init__(self, match, start_time, end_time, status=LATER):
        self.match = match
        self.start_time = start_time
        self.end_time = end_time
        self.status = status

    def to_dict(self):
        data = self.match.to_dict()
        data.update({
            'startTime': self.start_time.strftime('%H:%M'),
            'endTime': self.end_time.strftime('%H:%M'),
            'status': self.status,
        })
        return data

    def __repr__(self):
        return f"ScheduledMatch(match={self.match.id}, start={self.start_time.strftime('%H:%M')}, status={self.status})"


class LiveScheduler:
    """
    Projects a running order for unplayed matches.

    Every discipline has one field. The clock starts at ``day_start_time`` and
    moves in steps of one match duration; at each step every free field takes
    the first pending match (in list order) whose participants are all free.
    A participant is busy while any match involving it, or any of its players,
    is running.
    """

    def __init__(self, teams, disciplines=None, settings=None):
        self.teams = {team.id: team for team in teams}
        self.disciplines = list(disciplines) if disciplines is not None else list(DISCIPLINES)
        self.settings = settings if settings else {}
        self.schedule = {d.id: [] for d in self.disciplines}  # discipline_id: [ScheduledMatch]
        self.unscheduled = []

    def _parse_time(self, time_str):
        return datetime.datetime.strptime(time_str, '%H:%M').time()

    def _datetime_from_time(self, time_obj, base_date=None):
        base_date = base_date or datetime.date.today()
        return datetime.datetime.combine(base_date, time_obj)

    def _match_duration(self):
        return datetime.timedelta(minutes=self.settings.get('match_duration_minutes', 10))

    def _busy_keys(self, match):
        keys = set()
        for participant_id in match.participant_ids:
            keys.add(participant_id)
            keys.update(participant_player_ids(participant_id, self.teams))
        return keys

    def _is_free(self, keys, free_at, current_time):
        return all(free_at.get(key, current_time) <= current_time for key in keys)

    def _schedulable(self, matches):
        known = set(self.schedule)
        pending = []
        for match in matches:
            if match.is_completed:
                continue
            if not match.is_resolved:
                logger.debug("Not projecting match %s: participants not decided yet", match.id)
                continue
            if match.discipline_id not in known:
                logger.debug("Not projecting match %s: unknown discipline %s", match.id, match.discipline_id)
                continue
            pending.append(match)
        return pending

    def allocate(self, matches, base_date=None):
        """Simulate the running order and return the scheduled matches sorted by start time."""
        self.schedule = {d.id: [] for d in self.disciplines}
        self.unscheduled = []

        match_duration = self._match_duration()
        max_slots = self.settings.get('max_time_slots', 100)
        current_time = self._datetime_from_time(
            self._parse_time(self.settings.get('day_start_time', '09:00')), base_date)

        field_free_at = {d.id: current_time for d in self.disciplines}
        participant_free_at = {}
        pending = self._schedulable(matches)

        slot = 0
        while pending and slot < max_slots:
            for discipline in self.disciplines:
                if field_free_at[discipline.id] > current_time:
                    continue
                for index, match in enumerate(pending):
                    if match.discipline_id != discipline.id:
                        continue
                    keys = self._busy_keys(match)
                    if not self._is_free(keys, participant_free_at, current_time):
                        continue

                    end_time = current_time + match_duration
                    field_free_at[discipline.id] = end_time
                    for key in keys:
                        participant_free_at[key] = end_time
                    self.schedule[discipline.id].append(ScheduledMatch(match, current_time, end_time))
                    del pending[index]
                    break

            current_time += match_duration
            slot += 1

        if pending:
            logger.warning("Live schedule stopped after %d time slots with %d matches unplaced",
                           slot, len(pending))
            self.unscheduled = pending

        self._assign_statuses()
        return self.get_running_order()

    def _assign_statuses(self):
        for scheduled in self.schedule.values():
            scheduled.sort(key=lambda s: s.start_time)
            for position, item in enumerate(scheduled):
                if position == 0:
                    item.status = PLAYING
                elif position == 1:
                    item.status = UP_NEXT
                else:
                    item.status = LATER

    def get_running_order(self):
        running = [item for scheduled in self.schedule.values() for item in scheduled]
        order = {d.id: i for i, d in enumerate(self.disciplines)}
        running.sort(key=lambda s: (s.start_time, order[s.match.discipline_id]))
        return running

    def get_schedule_output(self):
        output = []
        for discipline in self.disciplines:
            field_info = {"discipline_id": discipline.id, "field": discipline.name, "matches": []}
            for item in self.schedule[discipline.id]:
                field_info["matches"].append(item.to_dict())
            output.append(field_info)
        return output


def project_schedule(matches, teams, disciplines=None, settings=None, base_date=None):
    """Projected start time and status for every unplayed match. Nothing is persisted."""
    scheduler = LiveScheduler(teams, disciplines, settings)
    return scheduler.allocate(matches, base_date)
