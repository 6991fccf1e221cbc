"""Fixture data and database snapshots shared by the API tests."""

from database import BLOGS, USERS

INITIAL_BLOGS = [
    {
        "title": "React patterns",
        "author": "Michael Chan",
        "url": "https://reactpatterns.com/",
        "likes": 7,
    },
    {
        "title": "Go To Statement Considered Harmful",
        "author": "Edsger W. Dijkstra",
        "url": "http://www.u.arizona.edu/~rubinson/copyright_violations/Go_To_Considered_Harmful.html",
        "likes": 5,
    },
    {
        "title": "Canonical string reduction",
        "author": "Edsger W. Dijkstra",
        "url": "http://www.cs.utexas.edu/~EWD/transcriptions/EWD08xx/EWD808.html",
        "likes": 12,
    },
    {
        "title": "First class tests",
        "author": "Robert C. Martin",
        "url": "http://blog.cleancoder.com/uncle-bob/2017/05/05/TestDefinitions.htmll",
        "likes": 10,
    },
    {
        "title": "TDD harms architecture",
        "author": "Robert C. Martin",
        "url": "http://blog.cleancoder.com/uncle-bob/2017/03/03/TDD-Harms-Architecture.html",
        "likes": 0,
    },
    {
        "title": "Type wars",
        "author": "Robert C. Martin",
        "url": "http://blog.cleancoder.com/uncle-bob/2016/05/01/TypeWars.html",
        "likes": 2,
    },
]

INITIAL_USERS = [
    {"username": "seviche", "name": "Seviche CC", "password": "okbyby"},
    {"username": "mluukkai", "name": "Matti Luukkainen", "password": "salainen"},
]


def seed_blogs(db):
    db[BLOGS].insert_many([dict(b) for b in INITIAL_BLOGS])


def blogs_in_db(db):
    return list(db[BLOGS].find({}))


def users_in_db(db):
    return list(db[USERS].find({}))


def login_headers(client, username, password):
    r = client.post("/api/login", json={"username": username, "password": password})
    return {"Authorization": f"Bearer {r.json()['token']}"}
