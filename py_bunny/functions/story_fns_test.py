"""Tests for the story_fns module."""

import json

import pytest
from common import config, models, story_operations
from functions import function_utils, story_fns
from google.api_core import exceptions as google_exceptions
from services import chat_client, firestore, upstream


class DummyReq:
  """Simple request stub for testing."""

  def __init__(self, data=None, args=None, path="", method='POST',
               headers=None):
    self._data = data
    self.args = args or {}
    self.path = path
    self.method = method
    self.headers = headers or {}
    self.is_json = data is not None

  def get_json(self, silent=False):
    del silent
    return self._data


def _body(resp) -> dict:
  return json.loads(resp.get_data(as_text=True))


_STORY_INPUT = {"name": "Mia", "gender": "girl", "keywords": "dragons"}


@pytest.fixture(autouse=True)
def secrets(monkeypatch):
  monkeypatch.setenv(config.DEEPSEEK_API_KEY_SECRET, "sk-test")
  monkeypatch.setenv(config.REPLICATE_API_TOKEN_SECRET, "r8-test")


def test_generate_story_returns_title_and_content(monkeypatch):
  monkeypatch.setattr(chat_client, "complete",
                      lambda *_a, **_k: "# The Dragon\n\nOnce upon a time.")

  resp = story_fns.generate_story(DummyReq(data=_STORY_INPUT))

  assert resp.status_code == 200
  assert _body(resp) == {
    "title": "The Dragon",
    "content": "Once upon a time."
  }


def test_generate_story_rejects_get():
  resp = story_fns.generate_story(DummyReq(method='GET'))

  assert resp.status_code == 405


def test_generate_story_missing_field_is_validation_error(monkeypatch):
  called = []
  monkeypatch.setattr(chat_client, "complete",
                      lambda *_a, **_k: called.append(1))

  resp = story_fns.generate_story(
    DummyReq(data={
      "name": "Mia",
      "gender": "girl"
    }))

  assert resp.status_code == 400
  assert _body(resp)["errorType"] == "validation_error"
  assert not called


def test_generate_story_missing_key_is_configuration_error(monkeypatch):
  monkeypatch.delenv(config.DEEPSEEK_API_KEY_SECRET)

  resp = story_fns.generate_story(DummyReq(data=_STORY_INPUT))

  assert resp.status_code == 500
  assert _body(resp) == {
    "error": "Service is not configured",
    "errorType": "configuration_error",
  }


def test_generate_story_upstream_rate_limited(monkeypatch):

  def rate_limited(*_a, **_k):
    raise upstream.UpstreamRateLimitedError("429", status_code=429)

  monkeypatch.setattr(chat_client, "complete", rate_limited)

  resp = story_fns.generate_story(DummyReq(data=_STORY_INPUT))

  assert resp.status_code == 429
  assert _body(resp)["errorType"] == "rate_limited"


def test_generate_story_health_check():
  resp = story_fns.generate_story(DummyReq(path="/__/health", method='GET'))

  assert resp.status_code == 200


def test_generate_cover_returns_image_url(monkeypatch):
  calls = []
  monkeypatch.setattr(
    story_operations, "generate_cover", lambda prompt, image:
    (calls.append((prompt, image)) or "https://img/cover.png"))

  resp = story_fns.generate_cover(DummyReq(data={"prompt": "a bunny"}))

  assert resp.status_code == 200
  assert _body(resp) == {"imageUrl": "https://img/cover.png"}
  assert calls == [("a bunny", None)]


def test_generate_cover_requires_prompt():
  resp = story_fns.generate_cover(DummyReq(data={"prompt": "  "}))

  assert resp.status_code == 400
  assert _body(resp)["errorType"] == "validation_error"


def test_generate_cover_missing_token(monkeypatch):
  monkeypatch.delenv(config.REPLICATE_API_TOKEN_SECRET)

  resp = story_fns.generate_cover(DummyReq(data={"prompt": "a bunny"}))

  assert resp.status_code == 500
  assert _body(resp)["errorType"] == "configuration_error"


def test_create_story_requires_auth():
  resp = story_fns.create_story(DummyReq(data=_STORY_INPUT))

  assert resp.status_code == 401
  assert _body(resp)["errorType"] == "unauthenticated"


def test_create_story_returns_story_cover_and_usage(monkeypatch):
  monkeypatch.setattr(function_utils.auth, "verify_id_token",
                      lambda _token: {"uid": "u1"})
  captured = {}

  def fake_create(user_id, request):
    captured["user_id"] = user_id
    captured["request"] = request
    return models.StoryBundle(
      story=models.StoryResult(title="T", content="C"),
      cover_error=story_operations.COVER_ERROR_MESSAGE,
      usage=models.UserQuota(user_id="u1", monthly_generations=1),
    )

  monkeypatch.setattr(story_operations, "create_story_for_user", fake_create)

  resp = story_fns.create_story(
    DummyReq(data=_STORY_INPUT, headers={"Authorization": "Bearer tok"}))

  assert resp.status_code == 200
  body = _body(resp)
  assert body["title"] == "T"
  assert body["imageUrl"] is None
  assert body["coverError"] == story_operations.COVER_ERROR_MESSAGE
  assert body["usage"]["monthlyGenerations"] == 1
  assert body["usage"]["canGenerate"] is True
  assert captured["user_id"] == "u1"
  assert captured["request"].keywords == "dragons"


class _MemorySnapshot:

  def __init__(self, data):
    self.exists = data is not None
    self._data = data

  def to_dict(self):
    return dict(self._data or {})


class _MemoryDoc:

  def __init__(self, docs, doc_id):
    self._docs = docs
    self._id = doc_id

  def create(self, data):
    if self._id in self._docs:
      raise google_exceptions.AlreadyExists("exists")
    self._docs[self._id] = dict(data)

  def get(self):
    return _MemorySnapshot(self._docs.get(self._id))

  def update(self, data):
    if self._id not in self._docs:
      raise google_exceptions.NotFound("missing")
    doc = self._docs[self._id]
    for field, value in data.items():
      if isinstance(value, tuple) and value[0] == "INC":
        doc[field] = doc.get(field, 0) + value[1]
      else:
        doc[field] = value


class _MemoryDB:

  def __init__(self):
    self.docs = {}

  def collection(self, _name):
    return self

  def document(self, doc_id):
    return _MemoryDoc(self.docs, doc_id)


@pytest.fixture(name='empty_store')
def empty_store_fixture(monkeypatch):
  store = _MemoryDB()
  monkeypatch.setattr(firestore, "db", lambda: store)
  monkeypatch.setattr(firestore, "SERVER_TIMESTAMP", "TS")
  monkeypatch.setattr(firestore, "Increment", lambda n: ("INC", n))
  return store


def test_create_story_for_first_time_user(monkeypatch, empty_store):
  monkeypatch.setattr(function_utils.auth, "verify_id_token",
                      lambda _token: {"uid": "new-user"})
  monkeypatch.setattr(chat_client, "complete",
                      lambda *_a, **_k: "# The Dragon\n\nOnce upon a time.")
  monkeypatch.setattr(story_operations, "generate_cover",
                      lambda _prompt, _image: "https://img/cover.png")

  resp = story_fns.create_story(
    DummyReq(data=_STORY_INPUT, headers={"Authorization": "Bearer tok"}))

  assert resp.status_code == 200
  body = _body(resp)
  assert body["title"] == "The Dragon"
  assert body["imageUrl"] == "https://img/cover.png"
  assert body["usage"]["monthlyGenerations"] == 1
  assert body["usage"]["remainingGenerations"] == 2
  assert empty_store.docs["new-user"] == {
    "createdAt": "TS",
    "monthlyGenerations": 1,
    "shareCount": 0,
  }
