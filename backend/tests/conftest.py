import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from callcenter_english.main import app
from callcenter_english.db import Base, get_db
from callcenter_english.seed import seed_database
from callcenter_english.settings import settings


@pytest.fixture
def engine():
	eng = create_engine("sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool)
	Base.metadata.create_all(bind=eng)
	yield eng
	eng.dispose()


@pytest.fixture
def session_factory(engine):
	return sessionmaker(bind=engine, autocommit=False, autoflush=False)


@pytest.fixture
def db_session(session_factory):
	db = session_factory()
	try:
		yield db
	finally:
		db.close()


@pytest.fixture
def temp_dirs(tmp_path, monkeypatch):
	uploads = tmp_path / "uploads"
	audio = tmp_path / "audio_output"
	monkeypatch.setattr(settings, "uploads_dir", str(uploads))
	monkeypatch.setattr(settings, "audio_output_dir", str(audio))
	return uploads, audio


@pytest.fixture
def client(session_factory, temp_dirs, monkeypatch):
	# No provider key: any adapter call that is not patched fails like a provider outage
	monkeypatch.setattr(settings, "openai_api_key", None)

	def _override_get_db():
		db = session_factory()
		try:
			yield db
		finally:
			db.close()

	app.dependency_overrides[get_db] = _override_get_db
	try:
		yield TestClient(app)
	finally:
		app.dependency_overrides.clear()


@pytest.fixture
def seeded(db_session):
	seed_database(db_session)
	return db_session


def signup(client, email="agent@example.com", password="S3cret!pass", first="Mona", last="Hassan"):
	return client.post(
		"/api/auth/signup",
		json={"email": email, "password": password, "firstName": first, "lastName": last},
	)


@pytest.fixture
def auth_headers(client):
	resp = signup(client)
	assert resp.status_code == 201, resp.text
	return {"Authorization": f"Bearer {resp.json()['token']}"}


@pytest.fixture
def other_auth_headers(client):
	resp = signup(client, email="second@example.com", first="Omar", last="Adel")
	assert resp.status_code == 201, resp.text
	return {"Authorization": f"Bearer {resp.json()['token']}"}
