import os
import sys

import pytest

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from studyloop_app import create_app, db
from studyloop_app.config import Config
from studyloop_app.models import Card, Deck, User


class TestConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SQLALCHEMY_ENGINE_OPTIONS = {
        'connect_args': {'check_same_thread': False}
    }
    WTF_CSRF_ENABLED = False
    LOG_LEVEL = 'WARNING'
    LOG_DIR = None


@pytest.fixture
def app():
    app = create_app(TestConfig)
    with app.app_context():
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


def login_client(client, user_id):
    with client.session_transaction() as session:
        session['_user_id'] = str(user_id)
        session['_fresh'] = True


def make_user(user_id='user-1', username=None):
    user = User(user_id=user_id, username=username or user_id, email=f'{user_id}@example.com')
    user.set_password('password')
    db.session.add(user)
    db.session.commit()
    return user


def make_deck(user_id, title='Capitals', cards=(('France', 'Paris'), ('Japan', 'Tokyo'), ('Peru', 'Lima'))):
    """Create a deck. The catalog lists its cards newest first."""
    deck = Deck(user_id=user_id, title=title)
    db.session.add(deck)
    db.session.flush()
    for front, back in cards:
        db.session.add(Card(deck_id=deck.id, front=front, back=back))
        db.session.flush()
    db.session.commit()
    return deck


@pytest.fixture
def user(app):
    return make_user('user-1')


@pytest.fixture
def other_user(app):
    return make_user('user-2')


@pytest.fixture
def deck(user):
    return make_deck(user.user_id)


@pytest.fixture
def auth_client(client, user):
    login_client(client, user.user_id)
    return client
