from fastapi.testclient import TestClient

from student_portal.api.server import create_app
from student_portal.config import Config
from student_portal.db import connect
from student_portal.seed import DEMO_PASSWORD, insert_demo_data

from .conftest import TEST_JWT_SECRET


def test_seed_is_inserted_once(dsn):
    with connect(dsn) as conn:
        assert insert_demo_data(conn) is True
    with connect(dsn) as conn:
        assert insert_demo_data(conn) is False
        assert conn.execute("SELECT COUNT(*) AS n FROM students").fetchone()["n"] == 2
        assert conn.execute("SELECT COUNT(*) AS n FROM fees").fetchone()["n"] == 5


def test_app_seeds_on_startup_and_demo_login_works(tmp_path):
    cfg = Config(
        DB_DSN=str(tmp_path / "seeded.sqlite"),
        AUTH_JWT_SECRET=TEST_JWT_SECRET,
        APP_ENV="test",
        SEED_DEMO_DATA=True,
        CORS_ALLOW_ORIGINS="",
    )
    with TestClient(create_app(cfg)) as c:
        r = c.post("/api/auth/login", json={"email": "john.doe@university.edu", "password": DEMO_PASSWORD})
        assert r.status_code == 200
        token = r.json()["data"]["token"]

        courses = c.get("/api/courses", headers={"Authorization": f"Bearer {token}"}).json()["data"]["courses"]
        assert {x["course_code"] for x in courses} == {"CS301", "CS302"}


def test_config_helpers():
    cfg = Config(APP_ENV="Development", CORS_ALLOW_ORIGINS=" http://a.test , ,http://b.test")
    assert cfg.is_development
    assert cfg.cors_origins() == ["http://a.test", "http://b.test"]
    assert not Config(APP_ENV="production").is_development
