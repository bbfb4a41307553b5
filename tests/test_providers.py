"""Tests for the provider registry and file backend reader."""

from __future__ import annotations

import asyncio
import json

import pytest

from agent_secrets.config.schema import SecretsConfig
from agent_secrets.errors import (
    InvalidFilePayloadError,
    MissingEnvVarError,
    MissingFileKeyError,
    SecretRefError,
    UnknownProviderError,
)
from agent_secrets.secrets.providers import FileSecretCache, ProviderRegistry, lookup_json_pointer
from agent_secrets.secrets.refs import SecretRef


def _registry(section=None, env=None, cache=None) -> ProviderRegistry:
    return ProviderRegistry(SecretsConfig.model_validate(section or {}), env or {}, cache)


def _write_json(path, payload) -> str:
    path.write_text(json.dumps(payload), encoding="utf-8")
    return str(path)


# ── Env provider ─────────────────────────────────────────────────────────


class TestEnvResolution:
    def test_reads_supplied_env(self):
        reg = _registry(env={"OPENAI_API_KEY": "sk-env"})
        ref = SecretRef(source="env", provider="default", id="OPENAI_API_KEY")
        assert asyncio.run(reg.resolve(ref)) == "sk-env"

    def test_ignores_process_env(self, monkeypatch):
        monkeypatch.setenv("ONLY_IN_PROCESS", "leak")
        reg = _registry(env={})
        ref = SecretRef(source="env", id="ONLY_IN_PROCESS")
        with pytest.raises(MissingEnvVarError, match="ONLY_IN_PROCESS"):
            asyncio.run(reg.resolve(ref))

    def test_missing_names_location(self):
        reg = _registry(env={})
        ref = SecretRef(source="env", provider="default", id="NOPE")
        with pytest.raises(MissingEnvVarError) as exc_info:
            asyncio.run(reg.resolve(ref, location="hooks.token"))
        assert exc_info.value.location == "hooks.token"
        assert str(exc_info.value).startswith("hooks.token: ")

    def test_empty_value_is_missing(self):
        reg = _registry(env={"EMPTY": ""})
        with pytest.raises(MissingEnvVarError):
            asyncio.run(reg.resolve(SecretRef(source="env", id="EMPTY")))

    def test_unknown_env_provider(self):
        reg = _registry(env={"X": "1"})
        with pytest.raises(UnknownProviderError, match="'corp'"):
            asyncio.run(reg.resolve(SecretRef(source="env", provider="corp", id="X")))

    def test_named_env_provider_allowlist(self):
        section = {"providers": {"corp": {"source": "env", "allowlist": ["ALLOWED"]}}}
        reg = _registry(section, env={"ALLOWED": "ok", "DENIED": "no"})
        assert asyncio.run(reg.resolve(SecretRef(source="env", provider="corp", id="ALLOWED"))) == "ok"
        with pytest.raises(SecretRefError, match="DENIED"):
            asyncio.run(reg.resolve(SecretRef(source="env", provider="corp", id="DENIED")))

    def test_default_env_provider_name(self):
        section = {
            "providers": {"corp": {"source": "env"}},
            "defaults": {"env": "corp"},
        }
        reg = _registry(section, env={"X": "via-corp"})
        assert asyncio.run(reg.resolve(SecretRef(source="env", id="X"))) == "via-corp"

    def test_default_env_alias_survives_file_provider_named_default(self, tmp_path):
        path = _write_json(tmp_path / "s.json", {"a": "from-file"})
        reg = _registry(
            {"providers": {"default": {"source": "file", "path": path}}},
            env={"OPENAI_API_KEY": "sk-env"},
        )
        assert asyncio.run(reg.resolve(SecretRef(source="env", id="OPENAI_API_KEY"))) == "sk-env"
        assert asyncio.run(
            reg.resolve(SecretRef(source="env", provider="default", id="OPENAI_API_KEY"))
        ) == "sk-env"
        assert asyncio.run(reg.resolve(SecretRef(source="file", id="/a"))) == "from-file"

    def test_error_message_has_no_value(self):
        reg = _registry(section={"providers": {"corp": {"source": "env", "allowlist": []}}},
                        env={"SECRET_NAME": "super-secret-value"})
        with pytest.raises(SecretRefError) as exc_info:
            asyncio.run(reg.resolve(SecretRef(source="env", provider="corp", id="SECRET_NAME")))
        assert "super-secret-value" not in str(exc_info.value)


# ── File provider ────────────────────────────────────────────────────────


class TestFileResolution:
    def test_json_pointer(self, tmp_path):
        path = _write_json(
            tmp_path / "secrets.json",
            {"providers": {"openai": {"apiKey": "sk-from-file-provider"}}},
        )
        reg = _registry({"providers": {"default": {"source": "file", "path": path, "mode": "json"}}})
        ref = SecretRef(source="file", provider="default", id="/providers/openai/apiKey")
        assert asyncio.run(reg.resolve(ref)) == "sk-from-file-provider"

    def test_default_file_provider(self, tmp_path):
        path = _write_json(tmp_path / "s.json", {"k": "v1"})
        section = {
            "providers": {"vault": {"source": "file", "path": path}},
            "defaults": {"file": "vault"},
        }
        reg = _registry(section)
        assert asyncio.run(reg.resolve(SecretRef(source="file", id="/k"))) == "v1"

    def test_non_object_payload(self, tmp_path):
        path = _write_json(tmp_path / "secrets.json", ["not-an-object"])
        reg = _registry({"providers": {"default": {"source": "file", "path": path, "mode": "json"}}})
        ref = SecretRef(source="file", provider="default", id="/providers/openai/apiKey")
        with pytest.raises(InvalidFilePayloadError, match="payload is not a JSON object"):
            asyncio.run(reg.resolve(ref))

    def test_scalar_payload(self, tmp_path):
        path = _write_json(tmp_path / "secrets.json", "just-a-string")
        reg = _registry({"providers": {"default": {"source": "file", "path": path}}})
        with pytest.raises(InvalidFilePayloadError, match="payload is not a JSON object"):
            asyncio.run(reg.resolve(SecretRef(source="file", provider="default", id="/a")))

    def test_malformed_json(self, tmp_path):
        path = tmp_path / "secrets.json"
        path.write_text("{not json", encoding="utf-8")
        reg = _registry({"providers": {"default": {"source": "file", "path": str(path)}}})
        with pytest.raises(InvalidFilePayloadError, match="not valid JSON"):
            asyncio.run(reg.resolve(SecretRef(source="file", provider="default", id="/a")))

    def test_missing_file(self, tmp_path):
        path = str(tmp_path / "absent.json")
        reg = _registry({"providers": {"default": {"source": "file", "path": path}}})
        with pytest.raises(InvalidFilePayloadError, match="cannot read"):
            asyncio.run(reg.resolve(SecretRef(source="file", provider="default", id="/a")))

    def test_missing_key(self, tmp_path):
        path = _write_json(tmp_path / "s.json", {"providers": {}})
        reg = _registry({"providers": {"default": {"source": "file", "path": path}}})
        ref = SecretRef(source="file", provider="default", id="/providers/openai/apiKey")
        with pytest.raises(MissingFileKeyError, match="openai"):
            asyncio.run(reg.resolve(ref))

    def test_non_string_leaf(self, tmp_path):
        path = _write_json(tmp_path / "s.json", {"port": 8080})
        reg = _registry({"providers": {"default": {"source": "file", "path": path}}})
        with pytest.raises(InvalidFilePayloadError, match="not a string"):
            asyncio.run(reg.resolve(SecretRef(source="file", provider="default", id="/port")))

    def test_text_mode_ignores_id(self, tmp_path):
        path = tmp_path / "token.txt"
        path.write_text("  tok-from-text\n", encoding="utf-8")
        reg = _registry(
            {"providers": {"tok": {"source": "file", "path": str(path), "mode": "text"}}}
        )
        ref = SecretRef(source="file", provider="tok", id="/whatever")
        assert asyncio.run(reg.resolve(ref)) == "tok-from-text"

    def test_text_mode_empty(self, tmp_path):
        path = tmp_path / "token.txt"
        path.write_text("   \n", encoding="utf-8")
        reg = _registry(
            {"providers": {"tok": {"source": "file", "path": str(path), "mode": "text"}}}
        )
        with pytest.raises(InvalidFilePayloadError, match="empty"):
            asyncio.run(reg.resolve(SecretRef(source="file", provider="tok")))

    def test_undeclared_provider(self):
        reg = _registry()
        ref = SecretRef(source="file", provider="missing", id="/a")
        with pytest.raises(UnknownProviderError, match="'missing' is not declared"):
            asyncio.run(reg.resolve(ref))

    def test_source_mismatch(self):
        reg = _registry({"providers": {"corp": {"source": "env"}}})
        with pytest.raises(UnknownProviderError, match="serves env references"):
            asyncio.run(reg.resolve(SecretRef(source="file", provider="corp", id="/a")))


class TestFileSecretCache:
    def test_reads_each_file_once(self, tmp_path):
        path = _write_json(tmp_path / "s.json", {"a": "1", "b": "2"})
        cache = FileSecretCache()
        reg = _registry({"providers": {"default": {"source": "file", "path": path}}}, cache=cache)

        async def _both():
            return await asyncio.gather(
                reg.resolve(SecretRef(source="file", provider="default", id="/a")),
                reg.resolve(SecretRef(source="file", provider="default", id="/b")),
            )

        assert asyncio.run(_both()) == ["1", "2"]
        assert cache.reads == 1

    def test_sequential_lookups_reuse_cache(self, tmp_path):
        path = tmp_path / "s.json"
        _write_json(path, {"a": "first"})
        cache = FileSecretCache()
        reg = _registry({"providers": {"default": {"source": "file", "path": str(path)}}}, cache=cache)

        async def _twice():
            first = await reg.resolve(SecretRef(source="file", provider="default", id="/a"))
            _write_json(path, {"a": "second"})
            second = await reg.resolve(SecretRef(source="file", provider="default", id="/a"))
            return first, second

        assert asyncio.run(_twice()) == ("first", "first")
        assert cache.reads == 1

    def test_modes_cached_separately(self, tmp_path):
        path = _write_json(tmp_path / "s.json", {"a": "1"})
        cache = FileSecretCache()

        async def _load():
            await cache.load(path, "json")
            await cache.load(path, "text")

        asyncio.run(_load())
        assert cache.reads == 2


class TestJsonPointer:
    def test_leading_slash_optional(self):
        assert lookup_json_pointer({"a": {"b": "c"}}, "a/b") == "c"

    def test_escapes(self):
        payload = {"a/b": {"m~n": "v"}}
        assert lookup_json_pointer(payload, "/a~1b/m~0n") == "v"

    def test_intermediate_not_object(self):
        with pytest.raises(MissingFileKeyError, match="not an object"):
            lookup_json_pointer({"a": "str"}, "/a/b")

    def test_empty_pointer(self):
        with pytest.raises(MissingFileKeyError):
            lookup_json_pointer({"a": "x"}, "/")
