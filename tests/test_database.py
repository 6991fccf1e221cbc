import time
from concurrent.futures import ThreadPoolExecutor

import mongomock

import database


def test_get_db_connects_once_under_concurrent_first_use(monkeypatch):
    created = []

    def slow_client(uri):
        time.sleep(0.05)
        client = mongomock.MongoClient()
        created.append(client)
        return client

    monkeypatch.setattr(database, "MongoClient", slow_client)
    monkeypatch.setattr(database, "_client", None)
    monkeypatch.setattr(database, "_db", None)

    with ThreadPoolExecutor(max_workers=8) as pool:
        dbs = list(pool.map(lambda _: database.get_db(), range(8)))

    assert len(created) == 1
    assert all(db is dbs[0] for db in dbs)
    assert "username_1" in dbs[0][database.USERS].index_information()


def test_close_db_resets_the_connection(monkeypatch):
    monkeypatch.setattr(database, "MongoClient", lambda uri: mongomock.MongoClient())
    monkeypatch.setattr(database, "_client", None)
    monkeypatch.setattr(database, "_db", None)

    first = database.get_db()
    database.close_db()
    assert database._db is None
    assert database.get_db() is not first
