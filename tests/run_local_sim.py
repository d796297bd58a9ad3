"""Two players against a running server (python app.py + tests/setup_db.py)."""
import random
import time

import requests
import socketio

SERVER = 'http://127.0.0.1:5000'
CONNECT_TIMEOUT = 5
USERS = ('sim-ana', 'sim-ben')

clients = {user: socketio.Client() for user in USERS}
state = {'match': None, 'question': None}


def api(user, method, path, **body):
    resp = requests.request(method, SERVER + path, json=body,
                            headers={'X-User-Id': user}, timeout=5)
    data = resp.json()
    if data.get('status') != 'ok':
        print(f'[{user}] {path} ->', data)
    return data


def wire(user, client):
    @client.on('match_updated')
    def on_match(d):
        state['match'] = d['match']
        state['question'] = d.get('question')
        print(f"[{user}] match v{d['match']['version']} phase={d['match']['phase']} "
              f"turn={d['match']['current_player_id']}")

    @client.on('question_result')
    def on_result(d):
        print(f'[{user}] result', {k: d.get(k) for k in ('player_id', 'correct', 'timed_out', 'character_won')})

    @client.on('timer_update')
    def on_timer(d):
        pass

    @client.on('match_error')
    def on_error(d):
        print(f'[{user}] match_error', d)


def connect_client(name, client):
    try:
        client.connect(SERVER, wait=True, wait_timeout=CONNECT_TIMEOUT)
        print(f'{name} connected')
    except socketio.exceptions.ConnectionError as e:
        print(f'{name} connect error', e)


def play_one_step():
    match = state['match']
    user = match['current_player_id']
    client = clients[user]
    base = {'match_id': match['id'], 'user_id': user, 'expected_version': match['version']}
    if match['phase'] == 'wheel':
        client.emit('match_spin', base)
    elif match['phase'] == 'questions' and state['question']:
        n = len(state['question']['options'])
        client.emit('match_answer', {**base, 'option_index': random.randrange(n)})
    elif match['phase'] == 'character-round':
        if state['question']:
            n = len(state['question']['options'])
            client.emit('match_answer', {**base, 'option_index': random.randrange(n)})
        else:
            categories = api(user, 'GET', '/api/trivia/categories')['categories']
            mine = next(p for p in state.get('players', []) if p['user_id'] == user) \
                if state.get('players') else {'characters_collected': []}
            free = [c['id'] for c in categories if c['id'] not in mine['characters_collected']]
            client.emit('match_choose_character', {**base, 'category_id': random.choice(free)})


def run():
    for user, client in clients.items():
        wire(user, client)
        connect_client(user, client)

    first = api(USERS[0], 'POST', '/api/matches', level='libre', username=USERS[0])
    match_id = first['match']['id']
    api(USERS[1], 'POST', '/api/matches/join', match_code=first['match']['match_code'], username=USERS[1])

    for user, client in clients.items():
        client.on('players_updated', lambda d: state.update(players=d['players']))
        client.emit('user_subscribe', {'user_id': user})
        client.emit('match_subscribe', {'match_id': match_id})

    time.sleep(1)
    for _ in range(200):
        if not state['match'] or state['match']['status'] == 'finished':
            break
        play_one_step()
        time.sleep(0.5)

    print('Final:', api(USERS[0], 'GET', f'/api/matches/{match_id}').get('match'))
    for client in clients.values():
        client.disconnect()


if __name__ == '__main__':
    run()
