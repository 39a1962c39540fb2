import inspect
import json
import os

# Must be set before shadowing.settings is imported
os.environ["DATABASE_URL"] = "sqlite:///:memory:"
os.environ["XAI_API_KEY"] = ""
os.environ["RATE_LIMIT_PER_MINUTE"] = "1000"

import httpx
import pytest
from fastapi.testclient import TestClient

from shadowing.deps import get_line_client, get_tutor_client, rate_limiter
from shadowing.main import app
from shadowing.xai_client import XaiClient


def chat_reply(content, status_code=200):
	"""httpx.Response shaped like an xAI chat completion."""
	return httpx.Response(status_code, json={"choices": [{"message": {"role": "assistant", "content": content}}]})


def tutor_json(**fields):
	return json.dumps(fields, ensure_ascii=False)


class FakeModel:
	"""Mock transport for the xAI endpoint that records every request."""

	def __init__(self, responder):
		self.responder = responder
		self.requests = []

	async def __call__(self, request):
		self.requests.append(request)
		result = self.responder(request)
		if inspect.isawaitable(result):
			result = await result
		return result

	@property
	def calls(self):
		return len(self.requests)

	def payload(self, index=-1):
		return json.loads(self.requests[index].content)

	def client(self, api_key="test-key", **kwargs):
		return XaiClient(api_key=api_key, transport=httpx.MockTransport(self), **kwargs)


@pytest.fixture
def fake_model():
	def make(responder):
		return FakeModel(responder)
	return make


@pytest.fixture
def client():
	rate_limiter.reset()
	with TestClient(app) as c:
		yield c
	app.dependency_overrides.clear()


@pytest.fixture
def use_model(client):
	"""Route /api/feedback and /api/grok through a FakeModel."""
	def install(model, /, **client_kwargs):
		async def override():
			xai = model.client(**client_kwargs)
			try:
				yield xai
			finally:
				await xai.aclose()
		app.dependency_overrides[get_tutor_client] = override
		app.dependency_overrides[get_line_client] = override
		return model
	return install
