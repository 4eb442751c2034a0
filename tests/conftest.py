import pytest
import mongomock
from bson import ObjectId
from datetime import datetime

from ticketing import db
from ticketing.app import app


@pytest.fixture
def mock_database():
    """
    Binds the app to an in-memory MongoDB (mongomock) for the duration of a test.
    """
    database = mongomock.MongoClient()["event_ticketing_test"]
    db.bind(database)
    yield database


@pytest.fixture
def event(mock_database):
    doc = {
        '_id': ObjectId(),
        'eventTitle': 'Rock Concert 2024',
        'time': '20:00',
        'event_organizer': 'Live Nation',
        'status': 'Active',
        'description': 'An electrifying night of live rock music.',
        'location': 'Indoor Stadium',
        'price': 120.0,
        'seats': 500,
        'images': ['https://example.com/rock.jpg'],
        'createdAt': datetime(2023, 12, 1, 9, 0),
    }
    mock_database['events'].insert_one(doc)
    return doc


@pytest.fixture
def users(mock_database):
    docs = [
        {
            '_id': ObjectId(),
            'userName': 'Alice',
            'email': 'alice@example.com',
            'userRole': 'attendee',
            'registrationDate': datetime(2023, 11, 5, 14, 30),
            'status': 'Active',
            'ticketsPurchased': 0,
        },
        {
            '_id': ObjectId(),
            'userName': 'Bob',
            'email': 'bob@example.com',
            'userRole': 'attendee',
            'registrationDate': datetime(2023, 11, 6, 8, 0),
            'status': 'Active',
            'ticketsPurchased': 0,
        },
    ]
    mock_database['users'].insert_many(docs)
    return docs


@pytest.fixture
def add_ticket(mock_database):
    """
    Inserts a ticket directly and keeps the user's counter consistent.
    """
    def _add(user, event, purchased, price=120.0):
        doc = {
            'userId': user['_id'],
            'eventId': event['_id'],
            'userName': user['userName'],
            'partyName': None,
            'ticketId': None,
            'purchasedDate': purchased,
            'price': price,
            'promoCode': None,
        }
        doc['_id'] = mock_database['tickets'].insert_one(doc).inserted_id
        mock_database['users'].update_one({'_id': user['_id']}, {'$inc': {'ticketsPurchased': 1}})
        return doc
    return _add


@pytest.fixture
def test_client(mock_database):
    app.config['TESTING'] = True
    with app.test_client() as client:
        yield client
