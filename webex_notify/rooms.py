"""
Resolve a team title and a room title to the room messages are posted to.
"""
import logging

from webex_notify.exception import RequestError, ResponseParseError, RoomCreationFailed, TeamNotFound

LOG = logging.getLogger(__name__)


def _first_titled(rooms, title):
    """
    Return the first room whose title equals ``title`` exactly, or None.

    The API does not guarantee a listing order, so when several rooms share the
    title the pick may change between runs. A warning is logged in that case.
    """
    matches = [room for room in rooms if room.title == title]
    if len(matches) > 1:
        LOG.warning("%d rooms are titled >>%s<<; using %s", len(matches), title, matches[0].id)
    return matches[0] if matches else None


class RoomResolver:
    """
    Finds the team, then finds or creates the room under it.
    """
    def __init__(self, api):
        """
        Arguments:
            api (WebexApi): Client used for every lookup and for room creation.
        """
        self.api = api

    def find_team_id(self, team_title):
        """
        The team is identified through the team's general room, which carries the team's title.

        Raises:
            TeamNotFound: if no group room with that title belongs to a team.
        """
        rooms = [room for room in self.api.list_rooms() if room.team_id]
        team_room = _first_titled(rooms, team_title)
        if team_room is None:
            raise TeamNotFound(team_title)
        LOG.debug("Team >>%s<< has id %s", team_title, team_room.team_id)
        return team_room.team_id

    def find_room(self, team_id, room_title):
        return _first_titled(self.api.list_rooms(team_id=team_id), room_title)

    def create_room(self, team_id, room_title):
        """
        Raises:
            RoomCreationFailed: if the API refuses or fails the creation call.
        """
        try:
            room = self.api.create_room(room_title, team_id)
        except (RequestError, ResponseParseError) as exc:
            raise RoomCreationFailed(f"cannot create room >>{room_title}<<: {exc}") from exc
        LOG.info("Created room >>%s<< (%s)", room_title, room.id)
        return room

    def resolve(self, team_title, room_title):
        """
        Return the room titled ``room_title`` under the team titled ``team_title``,
        creating it when the team has no such room.

        Returns:
            Room
        """
        team_id = self.find_team_id(team_title)
        room = self.find_room(team_id, room_title)
        if room is not None:
            LOG.info("Found room >>%s<< (%s)", room_title, room.id)
            return room
        return self.create_room(team_id, room_title)
