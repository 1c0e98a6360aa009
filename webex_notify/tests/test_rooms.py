"""
Tests for resolving the team and room a message is posted to.
"""
import json
import logging
import unittest
from unittest import mock

import responses
from ddt import data, ddt

from webex_notify.exception import RoomCreationFailed, TeamNotFound
from webex_notify.rooms import RoomResolver
from webex_notify.tests.webex_helpers import (
    ROOMS_URL,
    TEST_ROOM,
    TEST_ROOM_ID,
    TEST_TEAM,
    TEST_TEAM_ID,
    make_config,
    mock_all_rooms,
    mock_create_room,
    mock_resolvable_room,
    mock_team_rooms,
    room_json,
)
from webex_notify.webex_api import Room, WebexApi


def _calls(method):
    return [call for call in responses.calls if call.request.method == method]


@ddt
class TestRoomResolver(unittest.TestCase):
    """
    Test the team lookup, room lookup and room creation sequence.
    """
    def setUp(self):
        super().setUp()
        self.resolver = RoomResolver(WebexApi(make_config()))

    @responses.activate
    @data(
        [],
        [room_json('OTHER', 'Some other team', 'TEAM2')],
        # Title matching is case sensitive.
        [room_json('GENERAL', TEST_TEAM.lower(), TEST_TEAM_ID)],
        # A room that does not belong to a team cannot identify one.
        [room_json('LONE', TEST_TEAM)],
    )
    def test_team_not_found(self, items):
        mock_all_rooms(items)

        with self.assertRaises(TeamNotFound) as context:
            self.resolver.resolve(TEST_TEAM, TEST_ROOM)

        self.assertIn(TEST_TEAM, str(context.exception))
        # Only the team lookup happened: no room listing, no creation.
        self.assertEqual(len(responses.calls), 1)
        self.assertEqual(_calls('POST'), [])

    @responses.activate
    def test_room_found(self):
        mock_resolvable_room()

        room = self.resolver.resolve(TEST_TEAM, TEST_ROOM)

        self.assertEqual(room.id, TEST_ROOM_ID)
        self.assertEqual(room.team_id, TEST_TEAM_ID)
        self.assertEqual(len(_calls('GET')), 2)
        self.assertEqual(_calls('POST'), [])

    @responses.activate
    def test_room_created(self):
        mock_all_rooms([room_json('GENERAL', TEST_TEAM, TEST_TEAM_ID)])
        mock_team_rooms([room_json('GENERAL', TEST_TEAM, TEST_TEAM_ID), room_json('X', 'room1', TEST_TEAM_ID)])
        mock_create_room(room_id='NEW', title=TEST_ROOM)

        room = self.resolver.resolve(TEST_TEAM, TEST_ROOM)

        self.assertEqual(room.id, 'NEW')
        posts = _calls('POST')
        self.assertEqual(len(posts), 1)
        self.assertEqual(posts[0].request.url, ROOMS_URL)
        self.assertEqual(json.loads(posts[0].request.body), {'title': TEST_ROOM, 'teamId': TEST_TEAM_ID})

    @responses.activate
    @data(403, 409, 500)
    def test_room_creation_failed(self, status_code):
        mock_all_rooms([room_json('GENERAL', TEST_TEAM, TEST_TEAM_ID)])
        mock_team_rooms([])
        mock_create_room(status=status_code)

        with self.assertRaises(RoomCreationFailed) as context:
            self.resolver.resolve(TEST_TEAM, TEST_ROOM)

        self.assertIn(TEST_ROOM, str(context.exception))

    @responses.activate
    def test_room_creation_malformed_response(self):
        mock_all_rooms([room_json('GENERAL', TEST_TEAM, TEST_TEAM_ID)])
        mock_team_rooms([])
        responses.add(responses.POST, ROOMS_URL, body='<html>', status=200)

        with self.assertRaises(RoomCreationFailed):
            self.resolver.resolve(TEST_TEAM, TEST_ROOM)

    @responses.activate
    def test_duplicate_titles_use_first_and_warn(self):
        mock_all_rooms([room_json('GENERAL', TEST_TEAM, TEST_TEAM_ID)])
        mock_team_rooms([
            room_json('FIRST', TEST_ROOM, TEST_TEAM_ID),
            room_json('SECOND', TEST_ROOM, TEST_TEAM_ID),
        ])

        logger = logging.getLogger('webex_notify.rooms')
        with mock.patch.object(logger, 'warning') as mock_warning:
            room = self.resolver.resolve(TEST_TEAM, TEST_ROOM)

        self.assertEqual(room.id, 'FIRST')
        mock_warning.assert_called_once()

    def test_lookups_use_resolved_team(self):
        api = mock.Mock()
        api.list_rooms.side_effect = [
            [Room.from_json(room_json('GENERAL', TEST_TEAM, TEST_TEAM_ID))],
            [Room.from_json(room_json(TEST_ROOM_ID, TEST_ROOM, TEST_TEAM_ID))],
        ]

        room = RoomResolver(api).resolve(TEST_TEAM, TEST_ROOM)

        self.assertEqual(room.id, TEST_ROOM_ID)
        self.assertEqual(api.list_rooms.call_args_list, [mock.call(), mock.call(team_id=TEST_TEAM_ID)])
        api.create_room.assert_not_called()
