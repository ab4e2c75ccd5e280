from datetime import datetime


def test_health_with_no_rooms(client):
    res = client.get('/health')
    assert res.status_code == 200
    data = res.get_json()
    assert data['status'] == 'healthy'
    assert data['activeRooms'] == 0
    # ISO-8601 timestamp
    assert datetime.fromisoformat(data['timestamp'])


def test_health_counts_live_rooms(client, sio_factory):
    first = sio_factory()
    second = sio_factory()
    first.emit('create-room', {'playerName': 'Alice'})
    second.emit('create-room', {'playerName': 'Bob'})
    assert client.get('/health').get_json()['activeRooms'] == 2

    first.disconnect()
    assert client.get('/health').get_json()['activeRooms'] == 1


def test_list_rooms_command(flask_app, sio_client):
    runner = flask_app.test_cli_runner()
    result = runner.invoke(args=['list-rooms'])
    assert 'No active rooms.' in result.output

    sio_client.emit('create-room', {'playerName': 'Alice'})
    room_id = sio_client.get_received()[0]['args'][0]['roomId']
    result = runner.invoke(args=['list-rooms'])
    assert room_id in result.output
    assert 'X=Alice' in result.output
