import pytest

import protocol
from protocol import (
    CatInfo, Join, Move, CatUpdate, FlowersRequest, FlowerPlace, PlayerSnapshot,
    ProtocolError, parse_client_event, flower_to_wire, flower_from_wire,
)
from player import UP, DOWN
from world import Flower


def test_join_with_cat():
    join = parse_client_event(protocol.JOIN, {
        'id': 'p1', 'nickname': ' Ann ', 'x': 10, 'y': 20.5,
        'cat': {'type': 'siamese', 'name': 'Cream'},
    })
    assert join == Join('p1', 'Ann', 10.0, 20.5, CatInfo('siamese', 'Cream'))


def test_join_defaults():
    join = parse_client_event(protocol.JOIN, {'id': 'p1'})
    assert join == Join('p1', 'Guest', 0.0, 0.0, None)


@pytest.mark.parametrize("payload", [
    {},
    {'id': ''},
    {'id': 42},
    {'id': 'p1', 'x': 'left'},
    {'id': 'p1', 'x': True},
    {'id': 'p1', 'y': float('nan')},
    ['p1'],
    None,
])
def test_bad_joins(payload):
    with pytest.raises(ProtocolError):
        parse_client_event(protocol.JOIN, payload)


def test_move():
    move = parse_client_event(protocol.MOVE, {'x': 1, 'y': 2, 'direction': UP, 'isMoving': True})
    assert move == Move(1.0, 2.0, UP, True)


@pytest.mark.parametrize("direction", [7, -1, 'up', None, True])
def test_move_with_odd_direction_faces_down(direction):
    move = Move.from_payload({'x': 1, 'y': 2, 'direction': direction})
    assert move.direction == DOWN


def test_move_needs_coordinates():
    with pytest.raises(ProtocolError):
        Move.from_payload({'x': 1})
    with pytest.raises(ProtocolError):
        Move.from_payload({'x': 1, 'y': float('inf')})


def test_cat_update():
    assert parse_client_event(protocol.CAT_UPDATE, {'type': 'black', 'name': 'Shadow'}) == \
        CatUpdate(CatInfo('black', 'Shadow'))
    assert parse_client_event(protocol.CAT_UPDATE, None) == CatUpdate(None)


def test_cat_info_fallbacks():
    assert CatInfo.from_payload({'type': 'lion'}) == CatInfo('tabby', 'Tabby')
    assert CatInfo.from_payload({'type': 'orange', 'name': '   '}) == CatInfo('orange', 'Orange')
    with pytest.raises(ProtocolError):
        CatInfo.from_payload('tabby')


def test_flowers_request_ignores_payload():
    assert parse_client_event(protocol.FLOWERS_REQUEST, None) == FlowersRequest()


def test_flower_place():
    place = parse_client_event(protocol.FLOWER_PLACE, {'x': 5, 'y': 6, 'imageData': 'img', 'createdBy': 'Ann'})
    assert place == FlowerPlace(5.0, 6.0, 'img', 'Ann')
    assert FlowerPlace.from_payload({'x': 5, 'y': 6, 'imageData': 'img'}).created_by is None


def test_flower_place_needs_an_image():
    with pytest.raises(ProtocolError):
        FlowerPlace.from_payload({'x': 5, 'y': 6, 'imageData': ''})


def test_unknown_event():
    with pytest.raises(ProtocolError):
        parse_client_event('teleport', {})


def test_protocol_error_is_a_value_error():
    assert issubclass(ProtocolError, ValueError)


def test_snapshot_payload():
    snap = PlayerSnapshot('p1', 'Ann', 1.0, 2.0, UP, True, CatInfo('tabby', 'Kit'))
    payload = snap.to_payload()
    assert payload == {'id': 'p1', 'nickname': 'Ann', 'x': 1.0, 'y': 2.0,
                       'direction': UP, 'isMoving': True,
                       'cat': {'type': 'tabby', 'name': 'Kit'}}
    assert 'cat' not in snap.to_payload(with_cat=False)
    assert PlayerSnapshot.from_payload(payload) == snap
    assert PlayerSnapshot('p2').to_payload()['cat'] is None


def test_snapshot_needs_an_id():
    with pytest.raises(ProtocolError):
        PlayerSnapshot.from_payload({'x': 1, 'y': 2})


def test_flower_wire_shape():
    flower = Flower('f1', 3.0, 4.0, 'img', 'Ann', '2026-01-01T00:00:00.000Z')
    assert flower_to_wire(flower) == {
        'id': 'f1', 'x': 3.0, 'y': 4.0, 'image_data': 'img',
        'created_by': 'Ann', 'created_at': '2026-01-01T00:00:00.000Z',
    }


def test_flower_from_either_shape():
    snake = flower_from_wire({'id': 'f1', 'x': 3, 'y': 4, 'image_data': 'img',
                              'created_by': 'Ann', 'created_at': 't'})
    camel = flower_from_wire({'id': 'f1', 'x': 3, 'y': 4, 'imageData': 'img',
                              'createdBy': 'Ann', 'createdAt': 't'})
    for f in (snake, camel):
        assert (f.id, f.x, f.y, f.image_data, f.created_by, f.created_at) == \
            ('f1', 3.0, 4.0, 'img', 'Ann', 't')


def test_flower_without_creator_is_a_guest():
    assert flower_from_wire({'x': 1, 'y': 1, 'imageData': 'img'}).created_by == 'Guest'


def test_flower_without_image_is_rejected():
    with pytest.raises(ProtocolError):
        flower_from_wire({'x': 1, 'y': 1})


@pytest.mark.parametrize("payload", [
    {'id': 'p1', 'x': 10 ** 400},
    {'id': 'p1', 'nickname': 'Ann\udc80'},
    {'id': '\ud800'},
])
def test_joins_that_cannot_be_represented(payload):
    with pytest.raises(ProtocolError):
        parse_client_event(protocol.JOIN, payload)


def test_long_nickname_is_truncated():
    join = parse_client_event(protocol.JOIN, {'id': 'p1', 'nickname': 'A' * 100})
    assert join.nickname == 'A' * 24


@pytest.mark.parametrize("cat", ['tabby', 7, ['black']])
def test_join_with_a_garbled_cat_keeps_the_player(cat):
    join = parse_client_event(protocol.JOIN, {'id': 'p1', 'nickname': 'Ann', 'cat': cat})
    assert join == Join('p1', 'Ann', 0.0, 0.0, None)
    assert PlayerSnapshot.from_payload({'id': 'p1', 'cat': cat}).cat is None


def test_flower_place_image_limits():
    ok = 'data:image/png;base64,' + 'A' * 100
    assert FlowerPlace.from_payload({'x': 1, 'y': 1, 'imageData': ok}).image_data == ok
    for image in ('A' * (512 * 1024 + 1), 'data:image/png;base64,é'):
        with pytest.raises(ProtocolError):
            FlowerPlace.from_payload({'x': 1, 'y': 1, 'imageData': image})


def test_flower_with_unencodable_text_is_rejected():
    with pytest.raises(ProtocolError):
        flower_from_wire({'id': 'f1', 'x': 1, 'y': 1, 'image_data': 'img', 'created_by': '\udfff'})
