"""Shared fixtures for sdkgen tests.

SAMPLE_SPEC is a small OpenAPI document covering the shapes the generator
has to handle: path/query/header parameters, flat and discriminated request
bodies, a streaming response mode, a binary download and self-referencing
components.
"""

from __future__ import annotations

import copy
import importlib
import sys
from typing import Any

import pytest

from sdkgen.codegen import generate
from sdkgen.context_builder import build_context

BASE_URL = "https://api.example.test/v1"


def _closed(properties: dict[str, Any], required: list[str]) -> dict[str, Any]:
    return {
        "type": "object",
        "additionalProperties": False,
        "properties": properties,
        "required": required,
    }


SAMPLE_SPEC: dict[str, Any] = {
    "openapi": "3.0.3",
    "info": {"title": "Sample API", "version": "1.2.0"},
    "servers": [{"url": BASE_URL + "/"}],
    "components": {
        "schemas": {
            "ChatDetail": {
                "type": "object",
                "description": "A chat and its messages.",
                "properties": {
                    "id": {"type": "string"},
                    "name": {"type": "string", "nullable": True},
                    "privacy": {"type": "string", "enum": ["public", "private"]},
                    "legacyUrl": {"type": "string", "deprecated": True},
                },
                "required": ["id", "privacy"],
            },
            "ChatSummary": {
                "type": "object",
                "properties": {
                    "id": {"type": "string"},
                    "favorite": {"type": "boolean"},
                },
                "required": ["id"],
            },
            "ErrorBody": {
                "anyOf": [
                    _closed({"message": {"type": "string"}, "code": {"type": "string"}}, ["message"]),
                    _closed({"flattenedError": {"type": "object"}}, ["flattenedError"]),
                ],
            },
            "MessageCreate": {
                "allOf": [
                    {
                        "type": "object",
                        "properties": {"chatId": {"type": "string"}},
                        "required": ["chatId"],
                    },
                    {
                        "anyOf": [
                            _closed({"message": {"type": "string"}}, ["message"]),
                            _closed({"attachment": {"type": "string"}}, ["attachment"]),
                        ],
                    },
                ],
            },
            "Node": {
                "type": "object",
                "properties": {
                    "name": {"type": "string"},
                    "children": {"type": "array", "items": {"$ref": "#/components/schemas/Node"}},
                },
                "required": ["name"],
            },
            "Metadata": {
                "type": "object",
                "properties": {"owner": {"type": "string"}},
                "additionalProperties": True,
            },
        }
    },
    "paths": {
        "/items/{id}": {
            "get": {
                "operationId": "items.getById",
                "summary": "Get an item by ID.",
                "parameters": [
                    {"name": "id", "in": "path", "required": True, "schema": {"type": "string"}},
                ],
                "responses": {
                    "200": {
                        "description": "The item",
                        "content": {
                            "application/json": {
                                "schema": {
                                    "type": "object",
                                    "properties": {
                                        "id": {"type": "string"},
                                        "name": {"type": "string"},
                                    },
                                    "required": ["id"],
                                }
                            }
                        },
                    }
                },
            }
        },
        "/chats": {
            "get": {
                "operationId": "chats.find",
                "parameters": [
                    {"name": "limit", "in": "query", "schema": {"type": "integer"}},
                    {"name": "isFavorite", "in": "query", "schema": {"type": "string", "enum": ["true", "false"]}},
                ],
                "responses": {
                    "200": {
                        "description": "Chats",
                        "content": {
                            "application/json": {
                                "schema": {
                                    "type": "object",
                                    "properties": {
                                        "data": {
                                            "type": "array",
                                            "items": {"$ref": "#/components/schemas/ChatSummary"},
                                        }
                                    },
                                    "required": ["data"],
                                }
                            }
                        },
                    }
                },
            },
            "post": {
                "operationId": "chats.create",
                "description": "Create a chat.\n\nThe response streams when requested.",
                "requestBody": {
                    "content": {
                        "application/json": {
                            "schema": {
                                "type": "object",
                                "properties": {
                                    "message": {"type": "string"},
                                    "responseMode": {
                                        "type": "string",
                                        "enum": ["sync", "async", "experimental_stream"],
                                    },
                                },
                                "required": ["message"],
                            }
                        }
                    }
                },
                "responses": {
                    "200": {
                        "description": "The chat",
                        "content": {
                            "application/json": {"schema": {"$ref": "#/components/schemas/ChatDetail"}}
                        },
                    }
                },
            },
        },
        "/chats/init": {
            "post": {
                "operationId": "chats.init.create",
                "requestBody": {
                    "content": {
                        "application/json": {
                            "schema": {
                                "type": "object",
                                "properties": {"name": {"type": "string"}},
                                "required": ["name"],
                            }
                        }
                    }
                },
                "responses": {"200": {"description": "ok"}},
            }
        },
        "/chats/{chatId}/messages": {
            "parameters": [
                {"name": "chatId", "in": "path", "required": True, "schema": {"type": "string"}},
            ],
            "post": {
                "operationId": "chats.sendMessage",
                "requestBody": {
                    "content": {
                        "application/json": {"schema": {"$ref": "#/components/schemas/MessageCreate"}}
                    }
                },
                "responses": {
                    "200": {
                        "description": "ok",
                        "content": {"application/json": {"schema": {"$ref": "#/components/schemas/ChatDetail"}}},
                    }
                },
            },
        },
        "/chats/{chatId}/download": {
            "get": {
                "operationId": "chats.download",
                "deprecated": True,
                "parameters": [
                    {"name": "chatId", "in": "path", "required": True, "schema": {"type": "string"}},
                ],
                "responses": {
                    "200": {"description": "Archive", "content": {"application/zip": {"schema": {}}}},
                },
            }
        },
        "/user": {
            "get": {
                "operationId": "user.get",
                "parameters": [
                    {"name": "x-scope", "in": "header", "schema": {"type": "string"}},
                    {"name": "session", "in": "cookie", "schema": {"type": "string"}},
                ],
                "responses": {
                    "200": {
                        "description": "The user",
                        "content": {"application/json": {"schema": {"$ref": "#/components/schemas/Metadata"}}},
                    }
                },
            },
            "delete": {
                "summary": "No operationId, never generated",
                "responses": {"204": {"description": "gone"}},
            },
        },
    },
}


@pytest.fixture
def sample_spec() -> dict[str, Any]:
    """A fresh copy of SAMPLE_SPEC, safe to mutate."""
    return copy.deepcopy(SAMPLE_SPEC)


@pytest.fixture
def sample_components(sample_spec) -> dict[str, Any]:
    return sample_spec["components"]["schemas"]


@pytest.fixture
def generated_client(tmp_path, monkeypatch, sample_spec):
    """Generate SAMPLE_SPEC into a temporary package and import it."""
    package = "sample_client"
    generate(build_context(sample_spec, api_key_env="SAMPLE_API_KEY"), tmp_path / package)
    monkeypatch.syspath_prepend(str(tmp_path))
    monkeypatch.setenv("SAMPLE_API_KEY", "env-key")
    module = importlib.import_module(package)
    yield module
    for name in [m for m in sys.modules if m == package or m.startswith(package + ".")]:
        sys.modules.pop(name, None)
