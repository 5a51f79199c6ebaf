"""Tests for VaultConfig and the blob stores."""
import os

import pytest
from pydantic import ValidationError

from securevault.exceptions import StorageError
from securevault.storage import BlobStore, FileBlobStore, MemoryBlobStore, entries_key
from securevault.vault import VaultConfig, VaultStore, create_blob_store

from conftest import EMAIL, PASSWORD


class TestVaultConfig:

    def test_defaults(self):
        config = VaultConfig()
        assert config.kdf_iterations == 100000
        assert config.min_password_length == 8
        assert config.storage_path is None

    def test_from_env(self, monkeypatch, tmp_path):
        monkeypatch.setenv("SECUREVAULT_KDF_ITERATIONS", "200000")
        monkeypatch.setenv("SECUREVAULT_MIN_PASSWORD_LENGTH", "12")
        monkeypatch.setenv("SECUREVAULT_STORAGE_PATH", str(tmp_path / "vault.json"))
        config = VaultConfig.from_env()
        assert config.kdf_iterations == 200000
        assert config.min_password_length == 12
        assert config.storage_path.endswith("vault.json")

    def test_from_env_unset(self, monkeypatch):
        for name in (
            "SECUREVAULT_KDF_ITERATIONS",
            "SECUREVAULT_MIN_PASSWORD_LENGTH",
            "SECUREVAULT_STORAGE_PATH",
        ):
            monkeypatch.delenv(name, raising=False)
        assert VaultConfig.from_env() == VaultConfig()

    def test_invalid_iterations(self, monkeypatch):
        monkeypatch.setenv("SECUREVAULT_KDF_ITERATIONS", "ten")
        with pytest.raises(ValidationError):
            VaultConfig.from_env()

    def test_iterations_floor(self):
        with pytest.raises(ValidationError):
            VaultConfig(kdf_iterations=10)

    def test_blank_storage_path(self):
        with pytest.raises(ValidationError):
            VaultConfig(storage_path="   ")

    def test_min_password_length_applies(self, blob_store):
        store = VaultStore(
            blob_store, config=VaultConfig(kdf_iterations=1000, min_password_length=20),
        )
        assert store.config.min_password_length == 20


class TestCreateBlobStore:

    def test_memory(self):
        assert isinstance(create_blob_store(VaultConfig()), MemoryBlobStore)

    def test_file(self, tmp_path):
        store = create_blob_store(VaultConfig(storage_path=str(tmp_path / "v.json")))
        assert isinstance(store, FileBlobStore)
        assert isinstance(store, BlobStore)


class TestMemoryBlobStore:

    async def test_set_get_delete(self):
        store = MemoryBlobStore()
        assert await store.get("k") is None
        await store.set("k", b"v")
        assert await store.get("k") == b"v"
        await store.delete("k")
        await store.delete("k")
        assert await store.get("k") is None


class TestFileBlobStore:

    async def test_persists_across_instances(self, tmp_path):
        path = str(tmp_path / "nested" / "vault.json")
        first = FileBlobStore(path)
        await first.set("entries_a@x.com", b"\x00\x01binary")
        await first.set("users", b"{}")
        second = FileBlobStore(path)
        assert await second.get("entries_a@x.com") == b"\x00\x01binary"
        assert await second.get("users") == b"{}"
        assert await second.get("missing") is None

    async def test_delete(self, tmp_path):
        store = FileBlobStore(str(tmp_path / "vault.json"))
        await store.set("k", b"v")
        await store.delete("k")
        await store.delete("k")
        assert await store.get("k") is None

    async def test_no_temp_files_left(self, tmp_path):
        store = FileBlobStore(str(tmp_path / "vault.json"))
        await store.set("k", b"v")
        await store.set("k", b"w")
        assert os.listdir(tmp_path) == ["vault.json"]

    async def test_corrupted_file(self, tmp_path):
        path = tmp_path / "vault.json"
        path.write_bytes(b"{not json")
        with pytest.raises(StorageError):
            await FileBlobStore(str(path)).get("k")

    async def test_vault_restart_on_disk(self, tmp_path, config):
        """The vault survives a full restart through the file store."""
        path = str(tmp_path / "vault.json")
        store = VaultStore(FileBlobStore(path), config=config)
        await store.register(EMAIL, PASSWORD)
        await store.login(EMAIL, PASSWORD)
        await store.add_entry("Twitter", "bob", "p@ss")

        raw = (tmp_path / "vault.json").read_bytes()
        assert b"p@ss" not in raw
        assert PASSWORD.encode() not in raw

        restarted = VaultStore(FileBlobStore(path), config=config)
        await restarted.login(EMAIL, PASSWORD)
        assert [e.platform for e in restarted.entries] == ["Twitter"]
        assert await FileBlobStore(path).get(entries_key(EMAIL)) is not None
